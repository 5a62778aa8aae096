"""
Lexer module for the schema transpiler.

This module provides depth-aware scanning of schema source text.
"""

from .tokens import DelimiterKind, OPENERS, CLOSERS, MATCHING_CLOSER, QUOTE_CHARS, NOT_FOUND
from .lexer import (
    ALL_DELIMITERS,
    NO_ANGLES,
    Scanner,
    skip_string_literal,
    find_matching_closer,
    split_at_depth_zero,
    find_at_depth_zero,
    split_first_at_depth_zero,
    collapse_deep_groups,
    strip_comments,
)

__all__ = [
    'DelimiterKind',
    'OPENERS',
    'CLOSERS',
    'MATCHING_CLOSER',
    'QUOTE_CHARS',
    'NOT_FOUND',
    'ALL_DELIMITERS',
    'NO_ANGLES',
    'Scanner',
    'skip_string_literal',
    'find_matching_closer',
    'split_at_depth_zero',
    'find_at_depth_zero',
    'split_first_at_depth_zero',
    'collapse_deep_groups',
    'strip_comments',
]
