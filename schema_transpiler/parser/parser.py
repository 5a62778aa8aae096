"""
Base declaration extractor shared by every source grammar.

A grammar subclass does two jobs:

- ``extract`` pulls the named top-level declarations out of a document and
  splits their bodies into raw fields, without interpreting field types.
- ``classify`` looks at one raw type expression and reports which shape it
  has. The rules are tried in the order listed in the subclass's ``RULES``
  tuple; the first rule that recognizes the expression wins.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from ..codegen.diagnostics import TranspilerDiagnostics
from ..lexer import (
    ALL_DELIMITERS,
    NOT_FOUND,
    OPENERS,
    Scanner,
    find_matching_closer,
    skip_string_literal,
    split_at_depth_zero,
    split_first_at_depth_zero,
)
from .ast_nodes import Declaration, EnumOf, Field, Literal, TypeShape, Unknown


logger = logging.getLogger(__name__)


IDENTIFIER_RE = re.compile(r'^[A-Za-z_$][\w$]*$')
NUMBER_RE = re.compile(r'^-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$')
BIGINT_RE = re.compile(r'^-?\d+n$')
FIELD_KEY_RE = re.compile(
    r'''^(?:readonly\s+)?(?:"(?P<dq>(?:[^"\\]|\\.)*)"|'(?P<sq>(?:[^'\\]|\\.)*)'|(?P<bare>[A-Za-z_$][\w$-]*))\s*(?P<optional>\?)?$'''
)


# =============================================================================
# LITERAL HELPERS
# =============================================================================

def unquote(text: str) -> str:
    """Strip the quotes from a string literal and resolve quote escapes."""
    quote = text[0]
    body = text[1:-1]
    return body.replace('\\' + quote, quote).replace('\\\\', '\\')


def is_string_literal(text: str, quotes: str = '"\'') -> bool:
    return (
        len(text) >= 2
        and text[0] in quotes
        and skip_string_literal(text, 0) == len(text) - 1
        and text[-1] == text[0]
    )


def literal_shape(text: str) -> Optional[Literal]:
    """Return the Literal for a quoted string, number or boolean, else None."""
    text = text.strip()
    if is_string_literal(text):
        return Literal(unquote(text))
    if NUMBER_RE.match(text):
        if re.match(r'^-?\d+$', text):
            return Literal(int(text))
        return Literal(float(text))
    if BIGINT_RE.match(text):
        return Literal(int(text[:-1]))
    if text in ('true', 'false'):
        return Literal(text == 'true')
    return None


def enum_of_literals(parts: List[str]) -> Optional[EnumOf]:
    """EnumOf for parts that are all string literals or all numbers."""
    literals = [literal_shape(p) for p in parts]
    if not literals or any(lit is None for lit in literals):
        return None
    values = tuple(lit.value for lit in literals)
    if all(isinstance(v, str) for v in values):
        return EnumOf(values)
    if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        return EnumOf(values)
    return None


class DeclarationExtractor:
    """
    Base class for all source grammars.

    Subclasses set ``DESCRIPTION`` (used in the "nothing found" diagnostic),
    ``RULES`` (classification precedence), ``FIELD_SEPARATORS`` and
    ``DELIMITERS`` (which brackets nest in this grammar).
    """

    DESCRIPTION = 'declarations'
    RULES: Tuple[str, ...] = ()
    FIELD_SEPARATORS = ';\n'
    DELIMITERS = ALL_DELIMITERS

    def __init__(self, diagnostics: TranspilerDiagnostics):
        self._diagnostics = diagnostics
        # Document-level metadata for emitters (titles, versions)
        self.document_info: Dict[str, Any] = {}

    def extract(self, source: str) -> List[Declaration]:
        """Return the document's declarations in source order."""
        raise NotImplementedError

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    def classify(self, raw: Any) -> TypeShape:
        """Classify one raw type expression, trying RULES in order."""
        raw = self.normalize(raw)
        for rule in self.RULES:
            shape = getattr(self, f'_match_{rule}')(raw)
            if shape is not None:
                return shape
        return Unknown(raw if isinstance(raw, str) else '')

    def normalize(self, raw: Any) -> Any:
        """Hook for grammar-specific cleanup before the rules run."""
        return raw

    def enum_values(self, declaration: Declaration) -> Tuple[Any, ...]:
        """Values of an ENUM_LIKE declaration, in source order."""
        shape = self.classify(declaration.alias_body)
        if isinstance(shape, EnumOf):
            return shape.values
        return ()

    def unwrap_parens(self, text: str) -> str:
        """Strip grouping parentheses that enclose the whole expression."""
        text = text.strip()
        while text.startswith('(') and find_matching_closer(text, 0) == len(text) - 1:
            text = text[1:-1].strip()
        return text

    # =========================================================================
    # BODY SPLITTING
    # =========================================================================

    def find_body(self, text: str, open_index: int, name: str) -> Optional[int]:
        """Closing index of the body opened at ``open_index``.

        Records an UnbalancedDelimiter warning and returns None when the body
        never closes.
        """
        close = find_matching_closer(text, open_index)
        if close == NOT_FOUND:
            self.skip_declaration(name, text[open_index])
            return None
        return close

    def unbalanced_opener(self, text: str) -> Optional[str]:
        """The first delimiter left open at the end of ``text``, if any."""
        scanner = Scanner(text, self.DELIMITERS)
        while not scanner.at_end():
            scanner.advance()
        if scanner.in_string:
            return scanner.quote
        for opener, kind in OPENERS.items():
            if scanner.depths[kind]:
                return opener
        return None

    def skip_declaration(self, name: str, delimiter: str) -> None:
        logger.warning('Skipping declaration %s: unbalanced %r', name, delimiter)
        self._diagnostics.warn_unbalanced_delimiter(name, delimiter)

    def parse_fields(self, body: str) -> Tuple[Tuple[Field, ...], Any]:
        """Split a declaration body into fields.

        Returns the fields plus the raw type of an index signature
        (``[key: string]: T``) when the body has one.
        """
        fields: List[Field] = []
        additional = None
        for line in self._join_continuations(body):
            if line.startswith('['):
                _, value_type = split_first_at_depth_zero(line, ':', self.DELIMITERS)
                if value_type:
                    additional = value_type
                continue
            field = self.parse_field(line)
            if field is not None:
                fields.append(field)
        return tuple(fields), additional

    def _join_continuations(self, body: str) -> List[str]:
        """Split a body into member lines, re-joining types that wrap lines."""
        lines: List[str] = []
        for line in split_at_depth_zero(body, self.FIELD_SEPARATORS, drop_empty=True,
                                        delimiters=self.DELIMITERS):
            if lines and (line[0] in '|&' or lines[-1][-1] in ':|&'):
                lines[-1] = f'{lines[-1]} {line}'
            else:
                lines.append(line)
        return lines

    def parse_field(self, line: str) -> Optional[Field]:
        """Split one field line on its first depth-zero colon."""
        key_part, raw_type = split_first_at_depth_zero(line, ':', self.DELIMITERS)
        if not raw_type:
            logger.debug('Skipping field line without a type: %r', line)
            return None
        match = FIELD_KEY_RE.match(key_part)
        if not match:
            logger.debug('Skipping member that is not a property: %r', line)
            return None
        key = match.group('bare')
        if key is None:
            quoted = match.group('dq') if match.group('dq') is not None else match.group('sq')
            key = quoted.replace('\\"', '"').replace("\\'", "'")
        return Field(key=key, raw_type=raw_type, optional=bool(match.group('optional')))
