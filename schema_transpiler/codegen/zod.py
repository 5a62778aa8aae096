"""
Zod schema generation.

Renders mapped types as Zod builder chains and emits one exported schema
constant plus its inferred type per declaration. Referenced schemas are
defined before the schemas that use them; back edges of a reference cycle
are wrapped in ``z.lazy``.
"""

import re
from typing import Any, List, Mapping, Sequence, Tuple

from ..type_system.mappings import ZOD_PRIMITIVES, ZOD_STRING_FORMATS, is_unsafe_integer
from .base import (
    BaseEmitter,
    BaseRenderer,
    MappedDeclaration,
    MappedField,
    format_key,
    js_number,
    js_string,
    js_value,
    sanitize_identifier,
)


UNKNOWN = 'z.unknown()'

# Numeric/length constraint -> Zod method
BOUND_METHODS = {
    'min_length': 'min',
    'max_length': 'max',
    'minimum': 'min',
    'maximum': 'max',
    'exclusive_minimum': 'gt',
    'exclusive_maximum': 'lt',
    'multiple_of': 'multipleOf',
    'min_items': 'min',
    'max_items': 'max',
}


def schema_name(name: str) -> str:
    return f'{sanitize_identifier(name)}Schema'


def zod_value(value: Any) -> str:
    """JavaScript literal, with unsafe integers written as bigint literals."""
    if is_unsafe_integer(value):
        return f'{value}n'
    return js_value(value)


def regex_literal(pattern: str) -> str:
    return '/' + re.sub(r'(?<!\\)/', r'\/', pattern) + '/'


def field_expression(mapped: MappedField) -> str:
    """Field type with its optional/default/description modifiers."""
    field = mapped.field
    expr = mapped.expression
    if field.optional and not expr.endswith('.optional()'):
        expr += '.optional()'
    if 'default' in field.attributes:
        expr += f'.default({zod_value(field.attributes["default"])})'
    if field.description:
        expr += f'.describe({js_string(field.description)})'
    return expr


def inline_object(fields: Sequence[MappedField]) -> str:
    entries = [f'{format_key(f.key)}: {field_expression(f)}' for f in fields]
    if not entries:
        return 'z.object({})'
    return f'z.object({{ {", ".join(entries)} }})'


class ZodRenderer(BaseRenderer):
    """Renders type shapes as Zod expressions (plain strings)."""

    SUPPORTS_FIELD_SELECTION = True

    def __init__(self, ctx, primitives: Mapping[str, str] = ZOD_PRIMITIVES):
        super().__init__(ctx)
        self._primitives = primitives

    def unknown(self, hint: str = '') -> str:
        return UNKNOWN

    def primitive(self, name: str, constraints: Sequence[Tuple[str, Any]] = ()) -> str:
        return self._constrain(self._primitives.get(name, UNKNOWN), constraints)

    def _constrain(self, expr: str, constraints: Sequence[Tuple[str, Any]]) -> str:
        for constraint, value in constraints:
            if constraint == 'format':
                refinement = ZOD_STRING_FORMATS.get(value)
                if refinement and expr.startswith('z.string()') and not expr.endswith(refinement):
                    expr += refinement
            elif constraint == 'pattern':
                expr += f'.regex({regex_literal(value)})'
            elif constraint == 'description':
                expr += f'.describe({js_string(value)})'
            elif constraint in BOUND_METHODS:
                expr += f'.{BOUND_METHODS[constraint]}({js_number(value)})'
        return expr

    def literal(self, value: Any) -> str:
        if value is None:
            return 'z.null()'
        return f'z.literal({zod_value(value)})'

    def enum(self, values: Sequence[Any]) -> str:
        if not values:
            return 'z.never()'
        if all(isinstance(v, str) for v in values):
            return f'z.enum([{", ".join(js_string(v) for v in values)}])'
        if len(values) == 1:
            return self.literal(values[0])
        return self.union([self.literal(v) for v in values])

    def array(self, element: str, constraints: Sequence[Tuple[str, Any]] = ()) -> str:
        return self._constrain(f'z.array({element})', constraints)

    def tuple(self, elements: Sequence[str]) -> str:
        return f'z.tuple([{", ".join(elements)}])'

    def union(self, members: Sequence[str]) -> str:
        return f'z.union([{", ".join(members)}])'

    def intersect(self, left: str, right: str) -> str:
        return f'{left}.and({right})'

    def nullable(self, inner: str) -> str:
        return f'{inner}.nullable()'

    def optional(self, inner: str) -> str:
        if inner.endswith('.optional()'):
            return inner
        return f'{inner}.optional()'

    def container(self, name: str, args: Sequence[str]) -> str:
        if name == 'record':
            return f'z.record({args[-1]})'
        if name == 'map':
            key, value = (args[0], args[1]) if len(args) > 1 else ('z.string()', args[0])
            return f'z.map({key}, {value})'
        if name in ('set', 'promise'):
            return f'z.{name}({args[0]})'
        return args[0] if args else UNKNOWN

    def select(self, kind: str, base_name: str, keys: Sequence[str]) -> str:
        if kind in ('pick', 'omit'):
            mask = ', '.join(f'{format_key(k)}: true' for k in keys)
            return f'{schema_name(base_name)}.{kind}({{ {mask} }})'
        return f'{schema_name(base_name)}.{kind}()'

    def object(self, fields: Sequence[MappedField], additional: Any = None,
               top_level: bool = False) -> str:
        if top_level and fields:
            pad = self._ctx.indent()
            entries = ''.join(f'{pad}{format_key(f.key)}: {field_expression(f)},\n' for f in fields)
            body = 'z.object({\n' + entries + '})'
        else:
            body = inline_object(fields)

        if additional is True:
            return body + '.passthrough()'
        if additional is False:
            return body + '.strict()'
        if additional is not None:
            return body + f'.catchall({additional})'
        return body

    def reference(self, name: str) -> str:
        return schema_name(name)

    def deferred_reference(self, name: str) -> str:
        return f'z.lazy(() => {schema_name(name)})'


class ZodEmitter(BaseEmitter):
    """Emits ``export const XSchema`` / ``export type X`` pairs."""

    ORDERED = True
    IMPORT_LINE = 'import { z } from "zod";'

    def emit(self, declarations: List[MappedDeclaration]) -> str:
        lines = [self.IMPORT_LINE, '']
        lines.extend(self.header_comments())
        for mapped in declarations:
            lines.extend(self.emit_declaration(mapped))
        return '\n'.join(lines).rstrip('\n') + '\n'

    def header_comments(self) -> List[str]:
        info = self._document_info
        comments = []
        if info.get('source'):
            comments.append(f'// Generated from {info["source"]}')
        if info.get('title'):
            version = f' v{info["version"]}' if info.get('version') else ''
            comments.append(f'// {info["title"]}{version}')
        return comments + [''] if comments else []

    def emit_declaration(self, mapped: MappedDeclaration) -> List[str]:
        name = sanitize_identifier(mapped.name)
        description = mapped.declaration.attributes.get('description')
        lines = [f'/** {description} */'] if description else []
        lines.append(f'export const {name}Schema = {mapped.expression};')
        lines.append(f'export type {name} = z.infer<typeof {name}Schema>;')
        lines.append('')
        return lines


class ZodModelEmitter(ZodEmitter):
    """ZodEmitter that also emits a create-input schema per database model.

    The input schema omits the fields the database fills in itself.
    """

    def emit_declaration(self, mapped: MappedDeclaration) -> List[str]:
        lines = super().emit_declaration(mapped)
        if not mapped.declaration.attributes.get('model'):
            return lines
        name = sanitize_identifier(mapped.name)
        generated = [f.key for f in mapped.declaration.fields if f.attributes.get('generated')]
        expression = f'{name}Schema'
        if generated:
            mask = ', '.join(f'{format_key(key)}: true' for key in generated)
            expression += f'.omit({{ {mask} }})'
        lines.extend([
            '// Input schema',
            f'export const {name}CreateInputSchema = {expression};',
            f'export type {name}CreateInput = z.infer<typeof {name}CreateInputSchema>;',
            '',
        ])
        return lines
