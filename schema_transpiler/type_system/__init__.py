"""
Type system module for the schema transpiler.

This module provides the declaration registry and the primitive mapping
tables shared by all grammars and targets.
"""

from .registry import DeclarationRegistry
from .mappings import (
    SAFE_INTEGER_MAX,
    CANONICAL_PRIMITIVES,
    is_unsafe_integer,
    TYPESCRIPT_KEYWORDS,
    GRAPHQL_SCALARS,
    SQL_TYPES,
    PRISMA_SCALARS,
    JSON_SCHEMA_TYPES,
    ZOD_FACTORIES,
    ZOD_PRIMITIVES,
    PRISMA_ZOD_PRIMITIVES,
    TYPESCRIPT_PRIMITIVES,
    JSON_SCHEMA_PRIMITIVES,
    PRISMA_PRIMITIVES,
)

__all__ = [
    'DeclarationRegistry',
    'SAFE_INTEGER_MAX',
    'CANONICAL_PRIMITIVES',
    'is_unsafe_integer',
    'TYPESCRIPT_KEYWORDS',
    'GRAPHQL_SCALARS',
    'SQL_TYPES',
    'PRISMA_SCALARS',
    'JSON_SCHEMA_TYPES',
    'ZOD_FACTORIES',
    'ZOD_PRIMITIVES',
    'PRISMA_ZOD_PRIMITIVES',
    'TYPESCRIPT_PRIMITIVES',
    'JSON_SCHEMA_PRIMITIVES',
    'PRISMA_PRIMITIVES',
]
