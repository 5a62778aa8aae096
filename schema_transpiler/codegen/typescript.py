"""
TypeScript type generation.

Renders mapped types as TypeScript type expressions and emits object-like
declarations as exported interfaces, everything else as exported type
aliases.
"""

from typing import Any, List, Sequence, Tuple

from ..lexer import split_at_depth_zero
from ..type_system.mappings import TYPESCRIPT_PRIMITIVES, is_unsafe_integer
from .base import (
    BaseEmitter,
    BaseRenderer,
    MappedDeclaration,
    MappedField,
    format_key,
    indent_continuation,
    js_value,
    sanitize_identifier,
)


CONTAINER_GENERICS = {
    'set': 'Set',
    'map': 'Map',
    'record': 'Record',
    'promise': 'Promise',
}


def needs_grouping(expr: str, operators: str = '|&') -> bool:
    """True if ``expr`` has a union/intersection operator at depth zero."""
    return len(split_at_depth_zero(expr, operators, drop_empty=True)) > 1


def doc_comment(text: str, pad: str = '') -> List[str]:
    if '\n' not in text:
        return [f'{pad}/** {text} */']
    return [f'{pad}/**'] + [f'{pad} * {line}'.rstrip() for line in text.splitlines()] + [f'{pad} */']


class TypeScriptRenderer(BaseRenderer):
    """Renders type shapes as TypeScript type expressions."""

    def unknown(self, hint: str = '') -> str:
        return 'unknown'

    def primitive(self, name: str, constraints: Sequence[Tuple[str, Any]] = ()) -> str:
        return TYPESCRIPT_PRIMITIVES.get(name, 'unknown')

    def literal(self, value: Any) -> str:
        if is_unsafe_integer(value):
            return f'{value}n'
        return js_value(value)

    def enum(self, values: Sequence[Any]) -> str:
        if not values:
            return 'never'
        return ' | '.join(self.literal(v) for v in values)

    def array(self, element: str, constraints: Sequence[Tuple[str, Any]] = ()) -> str:
        if needs_grouping(element) or element.startswith('('):
            return f'({element})[]'
        return f'{element}[]'

    def tuple(self, elements: Sequence[str]) -> str:
        return f'[{", ".join(elements)}]'

    def union(self, members: Sequence[str]) -> str:
        return ' | '.join(members)

    def intersect(self, left: str, right: str) -> str:
        parts = [f'({p})' if needs_grouping(p, '|') else p for p in (left, right)]
        return ' & '.join(parts)

    def nullable(self, inner: str) -> str:
        return f'{inner} | null'

    def optional(self, inner: str) -> str:
        return f'{inner} | undefined'

    def container(self, name: str, args: Sequence[str]) -> str:
        generic = CONTAINER_GENERICS.get(name)
        if generic is None:
            return args[0] if args else 'unknown'
        return f'{generic}<{", ".join(args)}>'

    def object(self, fields: Sequence[MappedField], additional: Any = None,
               top_level: bool = False) -> str:
        if not fields and additional in (None, False):
            return '{}'
        pad = self._ctx.indent()
        lines = ['{']
        for mapped in fields:
            if mapped.field.description:
                lines.extend(doc_comment(mapped.field.description, pad))
            marker = '?' if mapped.field.optional else ''
            expression = indent_continuation(mapped.expression, pad)
            lines.append(f'{pad}{format_key(mapped.key)}{marker}: {expression};')
        if additional is True:
            lines.append(f'{pad}[key: string]: unknown;')
        elif additional not in (None, False):
            lines.append(f'{pad}[key: string]: {indent_continuation(additional, pad)};')
        lines.append('}')
        return '\n'.join(lines)

    def reference(self, name: str) -> str:
        return sanitize_identifier(name)


class TypeScriptEmitter(BaseEmitter):
    """Emits ``export interface`` and ``export type`` declarations."""

    def emit(self, declarations: List[MappedDeclaration]) -> str:
        blocks = []
        for mapped in declarations:
            lines = []
            description = mapped.declaration.attributes.get('description')
            if description:
                lines.extend(doc_comment(description))
            name = sanitize_identifier(mapped.name)
            if mapped.body is not None:
                extends = f' extends {", ".join(mapped.bases)}' if mapped.bases else ''
                lines.append(f'export interface {name}{extends} {mapped.body}')
            else:
                lines.append(f'export type {name} = {mapped.expression};')
            blocks.append('\n'.join(lines))
        return '\n\n'.join(blocks) + '\n'
