"""
Code generation module for the schema transpiler.

This module provides the diagnostics collector, the emission context, the
recursive TypeConverter and one renderer/emitter pair per target notation.
"""

# Diagnostics first: the parser package imports it while this package loads
from .diagnostics import (
    DiagnosticSeverity,
    DiagnosticKind,
    Diagnostic,
    ConversionError,
    TranspilerDiagnostics,
    syntax_unrecognized,
    invalid_document,
    size_limit_exceeded,
    conversion_failed,
)
from .context import EmissionContext
from .base import BaseRenderer, BaseEmitter, MappedField, MappedDeclaration
from .type_converter import TypeConverter
from .zod import ZodRenderer, ZodEmitter, ZodModelEmitter
from .prompt import PromptRenderer, PromptEmitter
from .typescript import TypeScriptRenderer, TypeScriptEmitter
from .json_schema import JsonSchemaRenderer, JsonSchemaEmitter
from .prisma import PrismaRenderer, PrismaEmitter
from .trpc import TrpcRouterEmitter, OpenApiEmitter, COMPONENTS_PREFIX

__all__ = [
    'DiagnosticSeverity',
    'DiagnosticKind',
    'Diagnostic',
    'ConversionError',
    'TranspilerDiagnostics',
    'syntax_unrecognized',
    'invalid_document',
    'size_limit_exceeded',
    'conversion_failed',
    'EmissionContext',
    'BaseRenderer',
    'BaseEmitter',
    'MappedField',
    'MappedDeclaration',
    'TypeConverter',
    'ZodRenderer',
    'ZodEmitter',
    'ZodModelEmitter',
    'PromptRenderer',
    'PromptEmitter',
    'TypeScriptRenderer',
    'TypeScriptEmitter',
    'JsonSchemaRenderer',
    'JsonSchemaEmitter',
    'PrismaRenderer',
    'PrismaEmitter',
    'TrpcRouterEmitter',
    'OpenApiEmitter',
    'COMPONENTS_PREFIX',
]
