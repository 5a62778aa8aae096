"""
Delimiter definitions for the schema scanner.

This module contains the DelimiterKind enum and the constant mappings
from opening and closing characters to delimiter kinds.
"""

from enum import Enum, auto


class DelimiterKind(Enum):
    """Enumeration of the nesting delimiters tracked by the scanner."""

    BRACE = auto()
    PAREN = auto()
    BRACKET = auto()
    ANGLE = auto()


# =============================================================================
# DELIMITER TABLES
# =============================================================================

OPENERS = {
    '{': DelimiterKind.BRACE,
    '(': DelimiterKind.PAREN,
    '[': DelimiterKind.BRACKET,
    '<': DelimiterKind.ANGLE,
}

CLOSERS = {
    '}': DelimiterKind.BRACE,
    ')': DelimiterKind.PAREN,
    ']': DelimiterKind.BRACKET,
    '>': DelimiterKind.ANGLE,
}

MATCHING_CLOSER = {
    '{': '}',
    '(': ')',
    '[': ']',
    '<': '>',
}

QUOTE_CHARS = frozenset('"\'`')

# Returned by find_matching_closer when no balanced closer exists
NOT_FOUND = -1
