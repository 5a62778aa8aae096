"""
Parser module for the schema transpiler.

This module provides the declaration and type-shape nodes and one
DeclarationExtractor subclass per source grammar.
"""

from .ast_nodes import (
    DeclarationKind,
    Field,
    Declaration,
    TypeShape,
    Primitive,
    Literal,
    EnumOf,
    ArrayOf,
    TupleOf,
    UnionOf,
    IntersectionOf,
    Nullable,
    OptionalOf,
    Container,
    InlineObject,
    Reference,
    Unknown,
)
from .parser import DeclarationExtractor, literal_shape
from .typescript import TypeScriptExtractor
from .json_schema import JsonSchemaExtractor, OpenApiExtractor
from .graphql import GraphQLExtractor
from .sql import SqlExtractor
from .prisma import PrismaExtractor
from .zod import ZodExtractor

__all__ = [
    'DeclarationKind',
    'Field',
    'Declaration',
    'TypeShape',
    'Primitive',
    'Literal',
    'EnumOf',
    'ArrayOf',
    'TupleOf',
    'UnionOf',
    'IntersectionOf',
    'Nullable',
    'OptionalOf',
    'Container',
    'InlineObject',
    'Reference',
    'Unknown',
    'DeclarationExtractor',
    'literal_shape',
    'TypeScriptExtractor',
    'JsonSchemaExtractor',
    'OpenApiExtractor',
    'GraphQLExtractor',
    'SqlExtractor',
    'PrismaExtractor',
    'ZodExtractor',
]
