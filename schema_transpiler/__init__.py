"""
Schema Transpiler

Converts structural type descriptions between notations: TypeScript
declarations, JSON Schema, OpenAPI, GraphQL SDL, SQL DDL, Zod and tRPC.

Module Structure:
- lexer/: Delimiter-aware scanning (Scanner, split/match primitives)
- parser/: Declaration extraction and type-shape classification per grammar
- type_system/: Declaration registry and primitive mapping tables
- codegen/: TypeConverter, renderers and emitters per target
- transpile.py: Converter registry and command-line entry point

Usage:
    from schema_transpiler import convert

    result = convert('ts-to-zod', 'interface User { name: string }')
    print(result.output_text)
"""

from .config import TranspilerConfig
from .transpile import (
    ConversionResult,
    Converter,
    CONVERTERS,
    available_converters,
    convert,
    get_converter,
)

__all__ = [
    'TranspilerConfig',
    'ConversionResult',
    'Converter',
    'CONVERTERS',
    'available_converters',
    'convert',
    'get_converter',
]
