"""
Delimiter-aware scanner for schema source text.

The Scanner walks raw text one unit at a time while tracking the nesting
depth of every delimiter kind and whether the cursor sits inside a string
literal. The module-level primitives (string skipping, closer matching and
depth-zero splitting) all drive a Scanner, so they agree on what counts as
structure and what counts as string content.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .tokens import (
    DelimiterKind,
    OPENERS,
    CLOSERS,
    MATCHING_CLOSER,
    QUOTE_CHARS,
    NOT_FOUND,
)


ALL_DELIMITERS = '{([<'
# Grammars where '<' and '>' are comparison operators, never generic brackets
NO_ANGLES = '{(['


class Scanner:
    """
    Cursor over source text with per-delimiter depth tracking.

    Depth counters never drop below zero, so stray closers degrade to
    "still at the top level" instead of wedging the scan.
    """

    def __init__(self, source: str, delimiters: str = ALL_DELIMITERS, pos: int = 0):
        self.source = source
        self.pos = pos
        self.delimiters = delimiters
        self.depths: Dict[DelimiterKind, int] = {kind: 0 for kind in DelimiterKind}
        self.in_string = False
        self.quote = ''

    def peek(self, offset: int = 0) -> str:
        """Look ahead in the source without consuming."""
        pos = self.pos + offset
        if pos < 0 or pos >= len(self.source):
            return ''
        return self.source[pos]

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    @property
    def at_depth_zero(self) -> bool:
        """True when outside every tracked delimiter and outside strings."""
        return not self.in_string and not any(self.depths.values())

    def advance(self) -> str:
        """Consume the current unit and return its text.

        An escape sequence inside a string literal is consumed as one unit.
        """
        start = self.pos
        ch = self.peek()
        if not ch:
            return ''

        if self.in_string:
            if ch == '\\':
                self.pos = min(self.pos + 2, len(self.source))
                return self.source[start:self.pos]
            if ch == self.quote:
                self.in_string = False
                self.quote = ''
        elif ch in QUOTE_CHARS:
            self.in_string = True
            self.quote = ch
        elif ch in OPENERS and ch in self.delimiters:
            self.depths[OPENERS[ch]] += 1
        elif ch in CLOSERS and self._tracks_closer(ch):
            kind = CLOSERS[ch]
            if self.depths[kind] > 0:
                self.depths[kind] -= 1

        self.pos += 1
        return ch

    def _tracks_closer(self, ch: str) -> bool:
        opener = next(o for o, c in MATCHING_CLOSER.items() if c == ch)
        if opener not in self.delimiters:
            return False
        # '=>' is an arrow, not the end of a generic argument list
        return not (ch == '>' and self.peek(-1) == '=')


# =============================================================================
# SCANNING PRIMITIVES
# =============================================================================

def skip_string_literal(text: str, index: int) -> int:
    """Return the index of the quote closing the literal opened at ``index``.

    Unterminated literals run to the end of the text.
    """
    if index < 0 or index >= len(text) or text[index] not in QUOTE_CHARS:
        return index
    scanner = Scanner(text, delimiters='', pos=index)
    scanner.advance()
    while scanner.in_string and not scanner.at_end():
        scanner.advance()
    if scanner.in_string:
        return len(text) - 1
    return scanner.pos - 1


def find_matching_closer(text: str, open_index: int) -> int:
    """Return the index of the delimiter balancing the one at ``open_index``.

    Nested delimiters of the same kind and string contents are skipped.
    Returns NOT_FOUND when the opener is never balanced.
    """
    if open_index < 0 or open_index >= len(text):
        return NOT_FOUND
    opener = text[open_index]
    if opener not in MATCHING_CLOSER:
        return NOT_FOUND
    closer = MATCHING_CLOSER[opener]

    scanner = Scanner(text, delimiters='', pos=open_index)
    depth = 0
    while not scanner.at_end():
        if not scanner.in_string:
            ch = scanner.peek()
            if ch == opener:
                depth += 1
            elif ch == closer and not (closer == '>' and scanner.peek(-1) == '='):
                depth -= 1
                if depth == 0:
                    return scanner.pos
        scanner.advance()
    return NOT_FOUND


def split_at_depth_zero(
    text: str,
    separators: str,
    drop_empty: bool = False,
    delimiters: str = ALL_DELIMITERS,
) -> List[str]:
    """Split ``text`` on any of ``separators`` found at nesting depth zero.

    Parts are trimmed. Empty trailing parts are dropped; with ``drop_empty``
    every empty part is dropped.
    """
    scanner = Scanner(text, delimiters)
    parts: List[str] = []
    start = 0
    while not scanner.at_end():
        if scanner.at_depth_zero and scanner.peek() in separators:
            parts.append(text[start:scanner.pos].strip())
            scanner.pos += 1
            start = scanner.pos
            continue
        scanner.advance()
    parts.append(text[start:].strip())

    if drop_empty:
        return [p for p in parts if p]
    while parts and not parts[-1]:
        parts.pop()
    return parts


def find_at_depth_zero(
    text: str,
    separator: str,
    start: int = 0,
    delimiters: str = ALL_DELIMITERS,
) -> int:
    """Index of the first ``separator`` at depth zero at or after ``start``."""
    scanner = Scanner(text, delimiters, pos=start)
    while not scanner.at_end():
        if scanner.at_depth_zero and text.startswith(separator, scanner.pos):
            return scanner.pos
        scanner.advance()
    return NOT_FOUND


def split_first_at_depth_zero(
    text: str,
    separator: str = ':',
    delimiters: str = ALL_DELIMITERS,
) -> Tuple[str, Optional[str]]:
    """Split on the first depth-zero ``separator``; the tail is None if absent."""
    index = find_at_depth_zero(text, separator, delimiters=delimiters)
    if index == NOT_FOUND:
        return text.strip(), None
    return text[:index].strip(), text[index + len(separator):].strip()


def collapse_deep_groups(
    text: str,
    max_nesting: int,
    replacement: str,
    delimiters: str = '{[',
) -> Tuple[str, int]:
    """Replace every group nested deeper than ``max_nesting`` with ``replacement``.

    Returns the rewritten text and the number of groups replaced. A group
    that never closes is replaced up to the end of the text.
    """
    scanner = Scanner(text, delimiters)
    out: List[str] = []
    start = 0
    collapsed = 0
    while not scanner.at_end():
        if (not scanner.in_string and scanner.peek() in delimiters
                and sum(scanner.depths.values()) >= max_nesting):
            close = find_matching_closer(text, scanner.pos)
            out.append(text[start:scanner.pos])
            out.append(replacement)
            collapsed += 1
            scanner.pos = len(text) if close == NOT_FOUND else close + 1
            start = scanner.pos
            continue
        scanner.advance()
    if not collapsed:
        return text, 0
    out.append(text[start:])
    return ''.join(out), collapsed


def strip_comments(
    text: str,
    line_markers: Sequence[str] = ('//',),
    block_markers: Iterable[Tuple[str, str]] = (('/*', '*/'),),
) -> str:
    """Remove comments that start outside string literals.

    Block comments are replaced by a single space so that tokens on either
    side stay separated.
    """
    block_markers = tuple(block_markers)
    scanner = Scanner(text, delimiters='')
    out: List[str] = []
    while not scanner.at_end():
        if not scanner.in_string:
            pos = scanner.pos
            if any(text.startswith(m, pos) for m in line_markers):
                end = text.find('\n', pos)
                scanner.pos = len(text) if end == NOT_FOUND else end
                continue
            block = next((b for b in block_markers if text.startswith(b[0], pos)), None)
            if block is not None:
                end = text.find(block[1], pos + len(block[0]))
                scanner.pos = len(text) if end == NOT_FOUND else end + len(block[1])
                out.append(' ')
                continue
        out.append(scanner.advance())
    return ''.join(out)
