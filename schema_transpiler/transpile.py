#!/usr/bin/env python3
"""
Schema converters and command-line entry point.

Every converter runs the same pipeline over one document:

    extract declarations -> build the registry -> map each declaration
    -> emit target text

and differs only in its source grammar, target renderer, emitter and
limits. ``convert`` never raises for bad input: fatal problems come back as
the result's ``diagnostic`` with placeholder output, recovered ones as
``warnings``.

Usage:
    schema-transpiler ts-to-zod types.ts -o schemas.ts
    cat schema.sql | schema-transpiler sql-to-prisma
    schema-transpiler --list
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Optional, Tuple, Type

from .codegen import (
    COMPONENTS_PREFIX,
    BaseEmitter,
    BaseRenderer,
    ConversionError,
    Diagnostic,
    EmissionContext,
    JsonSchemaEmitter,
    JsonSchemaRenderer,
    MappedDeclaration,
    OpenApiEmitter,
    PrismaEmitter,
    PrismaRenderer,
    PromptEmitter,
    PromptRenderer,
    TranspilerDiagnostics,
    TrpcRouterEmitter,
    TypeConverter,
    TypeScriptEmitter,
    TypeScriptRenderer,
    ZodEmitter,
    ZodModelEmitter,
    ZodRenderer,
    conversion_failed,
    size_limit_exceeded,
    syntax_unrecognized,
)
from .config import (
    DEFAULT_CONFIG,
    JSON_SCHEMA_DEFAULTS,
    OPENAPI_DEFAULTS,
    PROMPT_DEFAULTS,
    TYPESCRIPT_DEFAULTS,
    TranspilerConfig,
)
from .parser import (
    DeclarationExtractor,
    GraphQLExtractor,
    JsonSchemaExtractor,
    OpenApiExtractor,
    PrismaExtractor,
    SqlExtractor,
    TypeScriptExtractor,
    ZodExtractor,
)
from .type_system import PRISMA_ZOD_PRIMITIVES, DeclarationRegistry


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    """Output of one conversion.

    ``diagnostic`` is set only when the conversion failed as a whole;
    ``output_text`` is then the emitter's placeholder.
    """
    output_text: str
    diagnostic: Optional[Diagnostic] = None
    warnings: Tuple[Diagnostic, ...] = ()

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


class Converter:
    """
    One source grammar paired with one target.

    Holds only immutable configuration; every ``convert`` call builds its
    own extractor, diagnostics collector and emission context.
    """

    def __init__(
        self,
        name: str,
        grammar: Type[DeclarationExtractor],
        renderer: Callable[[EmissionContext], BaseRenderer],
        emitter: Type[BaseEmitter],
        config: TranspilerConfig = DEFAULT_CONFIG,
        inline_references: bool = False,
        description: str = '',
    ):
        self.name = name
        self.config = config
        self.description = description
        self._grammar_cls = grammar
        self._renderer_factory = renderer
        self._emitter_cls = emitter
        self._inline_references = inline_references

    def with_config(self, config: TranspilerConfig) -> 'Converter':
        """Copy of this converter using different limits."""
        return Converter(
            self.name,
            self._grammar_cls,
            self._renderer_factory,
            self._emitter_cls,
            config,
            self._inline_references,
            self.description,
        )

    def convert(self, source_text: str, diagnostics: Optional[TranspilerDiagnostics] = None) -> ConversionResult:
        """
        Convert one document.

        Args:
            source_text: The whole source document
            diagnostics: Collector for recovered problems; a fresh one is
                used when omitted

        Returns:
            The conversion result; never raises
        """
        diagnostics = diagnostics if diagnostics is not None else TranspilerDiagnostics()
        try:
            output = self._run(source_text, diagnostics)
        except ConversionError as e:
            logger.debug('%s: %s', self.name, e.diagnostic)
            return self._failed(e.diagnostic, diagnostics)
        except Exception as e:
            logger.exception('Converter %s failed', self.name)
            return self._failed(conversion_failed(f'{type(e).__name__}: {e}'), diagnostics)
        return ConversionResult(output, None, tuple(diagnostics.warnings))

    def _failed(self, diagnostic: Diagnostic, diagnostics: TranspilerDiagnostics) -> ConversionResult:
        return ConversionResult(self._emitter_cls.PLACEHOLDER, diagnostic, tuple(diagnostics.warnings))

    def _run(self, source_text: str, diagnostics: TranspilerDiagnostics) -> str:
        if len(source_text) > self.config.max_input_length:
            raise ConversionError(size_limit_exceeded(len(source_text), self.config.max_input_length))

        grammar = self._grammar_cls(diagnostics)
        declarations = grammar.extract(source_text)
        if not declarations:
            raise ConversionError(syntax_unrecognized(grammar.DESCRIPTION))

        registry = DeclarationRegistry(declarations)
        for duplicate in registry.duplicates:
            logger.warning('Ignoring duplicate declaration %s', duplicate.name)
            diagnostics.warn_unsupported_construct(
                'duplicate declaration', 'only the first definition is kept', duplicate.name,
            )

        ctx = EmissionContext(indent_str=self.config.indent)
        if issubclass(self._emitter_cls, JsonSchemaEmitter):
            ctx.root_name = registry.declarations[0].name

        converter = self._type_converter(ctx, grammar, registry, diagnostics)
        if self._emitter_cls.ORDERED:
            mapped = self._map_in_dependency_order(converter, grammar, registry, ctx)
        else:
            mapped = [converter.map_declaration(decl) for decl in registry.declarations]

        emitter = self._emitter_cls(ctx, grammar.document_info)
        return emitter.emit(mapped)

    def _type_converter(self, ctx, grammar, registry, diagnostics) -> TypeConverter:
        return TypeConverter(
            ctx,
            grammar,
            self._renderer_factory(ctx),
            registry,
            diagnostics,
            self.config.max_depth,
            inline_references=self._inline_references,
        )

    def _map_in_dependency_order(self, converter, grammar, registry, ctx) -> List[MappedDeclaration]:
        """Map declarations so that referenced ones are printed first.

        A first pass with a scratch context and collector only records which
        names each declaration references.
        """
        scratch_ctx = EmissionContext(indent_str=ctx.indent_str, root_name=ctx.root_name)
        scratch = self._type_converter(scratch_ctx, grammar, registry, TranspilerDiagnostics())
        references: Dict[str, List[str]] = {}
        for decl in registry.declarations:
            scratch.map_declaration(decl)
            references[decl.name] = list(scratch_ctx.references)

        return [
            converter.map_declaration(decl, pending)
            for decl, pending in registry.dependency_order(references)
        ]


# =============================================================================
# CONVERTER REGISTRY
# =============================================================================

CONVERTERS: Dict[str, Converter] = {}


def register(converter: Converter) -> Converter:
    if converter.name in CONVERTERS:
        raise ValueError(f'Converter {converter.name} is already registered')
    CONVERTERS[converter.name] = converter
    return converter


register(Converter(
    'ts-to-zod', TypeScriptExtractor, ZodRenderer, ZodEmitter, TYPESCRIPT_DEFAULTS,
    description='TypeScript interfaces and types to Zod schemas',
))
register(Converter(
    'ts-to-json-schema', TypeScriptExtractor, JsonSchemaRenderer, JsonSchemaEmitter, TYPESCRIPT_DEFAULTS,
    description='TypeScript interfaces and types to JSON Schema (draft-07)',
))
register(Converter(
    'json-schema-to-ts', JsonSchemaExtractor, TypeScriptRenderer, TypeScriptEmitter, JSON_SCHEMA_DEFAULTS,
    description='JSON Schema to TypeScript interfaces',
))
register(Converter(
    'json-schema-to-zod', JsonSchemaExtractor, ZodRenderer, ZodEmitter, JSON_SCHEMA_DEFAULTS,
    description='JSON Schema (including Pydantic model_json_schema output) to Zod schemas',
))
register(Converter(
    'openapi-to-zod', OpenApiExtractor, ZodRenderer, ZodEmitter, OPENAPI_DEFAULTS,
    inline_references=True,
    description='OpenAPI 3 component schemas (JSON or YAML) to Zod schemas',
))
register(Converter(
    'graphql-to-zod', GraphQLExtractor, ZodRenderer, ZodEmitter,
    description='GraphQL SDL types to Zod schemas',
))
register(Converter(
    'graphql-to-trpc', GraphQLExtractor, ZodRenderer, TrpcRouterEmitter,
    description='GraphQL SDL to a tRPC router with Zod inputs',
))
register(Converter(
    'sql-to-prisma', SqlExtractor, PrismaRenderer, PrismaEmitter,
    description='SQL CREATE TABLE statements to Prisma models',
))
register(Converter(
    'sql-to-json-schema', SqlExtractor, JsonSchemaRenderer, JsonSchemaEmitter,
    description='SQL CREATE TABLE statements to JSON Schema (draft-07)',
))
register(Converter(
    'sql-to-zod', SqlExtractor, ZodRenderer, ZodEmitter,
    description='SQL CREATE TABLE statements to Zod schemas',
))
register(Converter(
    'trpc-to-openapi', ZodExtractor, partial(JsonSchemaRenderer, ref_prefix=COMPONENTS_PREFIX),
    OpenApiEmitter,
    description='tRPC router procedures to an OpenAPI 3.1 document',
))
register(Converter(
    'prisma-to-zod', PrismaExtractor, partial(ZodRenderer, primitives=PRISMA_ZOD_PRIMITIVES), ZodModelEmitter,
    description='Prisma models and enums to Zod schemas with create-input schemas',
))
register(Converter(
    'zod-to-prompt', ZodExtractor, PromptRenderer, PromptEmitter, PROMPT_DEFAULTS,
    inline_references=True,
    description='A Zod object schema to an LLM structured-output system prompt',
))


def available_converters() -> Tuple[str, ...]:
    """Names of all registered converters, in registration order."""
    return tuple(CONVERTERS)


def get_converter(name: str, config: Optional[TranspilerConfig] = None) -> Converter:
    try:
        converter = CONVERTERS[name]
    except KeyError:
        raise ValueError(
            f'Unknown converter {name!r}. Available: {", ".join(available_converters())}'
        ) from None
    return converter.with_config(config) if config is not None else converter


def convert(name: str, source_text: str, config: Optional[TranspilerConfig] = None) -> ConversionResult:
    """Convert ``source_text`` with the converter registered as ``name``."""
    return get_converter(name, config).convert(source_text)


# =============================================================================
# COMMAND LINE
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Convert schema definitions between formats')
    parser.add_argument('converter', nargs='?', help='Converter name (see --list)')
    parser.add_argument('input', nargs='?', help='Input file (default: stdin)')
    parser.add_argument('-o', '--output', help='Output file (default: stdout)')
    parser.add_argument('--config', metavar='FILE', help='JSON file overriding the converter limits')
    parser.add_argument('--list', action='store_true', help='List available converters and exit')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging and per-warning detail')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if args.list:
        for name, converter in CONVERTERS.items():
            print(f'{name:<20} {converter.description}')
        return 0
    if not args.converter:
        parser.error('a converter name is required (see --list)')

    try:
        converter = get_converter(args.converter)
        if args.config:
            converter = converter.with_config(TranspilerConfig.from_file(args.config, converter.config))
    except (OSError, ValueError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 2

    if args.input:
        with open(args.input, 'r', encoding='utf-8') as f:
            source = f.read()
    else:
        source = sys.stdin.read()

    diagnostics = TranspilerDiagnostics(verbose=args.verbose)
    result = converter.convert(source, diagnostics)
    diagnostics.print_summary()

    if not result.ok:
        print(f'Error: {result.diagnostic}', file=sys.stderr)
        return 1

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(result.output_text)
        print(f'Written: {args.output}', file=sys.stderr)
    else:
        sys.stdout.write(result.output_text)
    return 0


if __name__ == '__main__':
    sys.exit(main())
