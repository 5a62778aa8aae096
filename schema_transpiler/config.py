"""
Per-converter limits.

A TranspilerConfig is immutable; use ``dataclasses.replace`` to derive an
override, or ``TranspilerConfig.from_file`` to load one from JSON.
"""

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TranspilerConfig:
    """Limits and formatting shared by every stage of one converter."""
    # Inputs longer than this (in characters) are refused before parsing
    max_input_length: int = 500_000
    # Nesting levels the mapper follows before typing a node as unknown
    max_depth: int = 32
    indent: str = '  '

    def __post_init__(self):
        if self.max_input_length <= 0:
            raise ValueError('max_input_length must be positive')
        if self.max_depth < 0:
            raise ValueError('max_depth must not be negative')

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional['TranspilerConfig'] = None) -> 'TranspilerConfig':
        """Override ``base`` (or the defaults) with the known keys of ``data``."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f'Unknown config keys: {", ".join(unknown)}')
        return replace(base or cls(), **data)

    @classmethod
    def from_file(cls, path: str, base: Optional['TranspilerConfig'] = None) -> 'TranspilerConfig':
        with open(Path(path), 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f'{path}: config must be a JSON object')
        return cls.from_dict(data, base)


TYPESCRIPT_DEFAULTS = TranspilerConfig(max_input_length=200_000, max_depth=20)
JSON_SCHEMA_DEFAULTS = TranspilerConfig(max_input_length=500_000, max_depth=64)
OPENAPI_DEFAULTS = TranspilerConfig(max_input_length=500_000, max_depth=64)
PROMPT_DEFAULTS = TranspilerConfig(max_input_length=200_000)
DEFAULT_CONFIG = TranspilerConfig()
