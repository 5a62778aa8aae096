"""
Prisma schema generation.

Renders SQL column types as Prisma scalar types and emits one ``model``
block per table. Inline ``ENUM(...)`` columns and ``CREATE TYPE ... AS ENUM``
declarations become ``enum`` blocks, printed before the models.
"""

import re
from typing import Any, List, Optional, Sequence, Tuple

from ..parser.ast_nodes import DeclarationKind
from ..type_system.mappings import PRISMA_PRIMITIVES
from .base import (
    BaseEmitter,
    BaseRenderer,
    MappedDeclaration,
    MappedField,
    js_string,
    singularize,
    to_camel_case,
    to_pascal_case,
)


NOW_DEFAULTS = ('current_timestamp', 'current_timestamp()', 'now()', 'localtimestamp')
UUID_DEFAULTS = ('gen_random_uuid()', 'uuid_generate_v4()', 'uuid()')
NUMERIC_TYPES = ('Int', 'BigInt', 'Float', 'Decimal')


def model_name(table: str) -> str:
    return to_pascal_case(singularize(table))


def enum_member(value: Any) -> str:
    member = re.sub(r'\W', '_', str(value))
    if not member or member[0].isdigit():
        member = '_' + member
    return member


def unsupported(type_text: str) -> str:
    return f'Unsupported({js_string(type_text)})'


class PrismaRenderer(BaseRenderer):
    """
    Renders column types as Prisma field types.

    An inline enumeration is registered in ``ctx.auxiliary`` as an enum
    named after the current model and column.
    """

    def unknown(self, hint: str = '') -> str:
        return unsupported(hint or 'unknown')

    def primitive(self, name: str, constraints: Sequence[Tuple[str, Any]] = ()) -> str:
        return PRISMA_PRIMITIVES.get(name) or unsupported(name)

    def literal(self, value: Any) -> str:
        if isinstance(value, bool):
            return 'Boolean'
        if isinstance(value, int):
            return 'Int'
        if isinstance(value, float):
            return 'Float'
        return 'String'

    def enum(self, values: Sequence[Any]) -> str:
        if not self._ctx.current_field:
            # A named enum type; the emitter prints it
            return to_pascal_case(self._ctx.current_declaration)
        name = model_name(self._ctx.current_declaration) + to_pascal_case(self._ctx.current_field)
        members = ''.join(f'{self._ctx.indent()}{enum_member(v)}\n' for v in values)
        self._ctx.auxiliary[name] = f'enum {name} {{\n{members}}}'
        return name

    def array(self, element: str, constraints: Sequence[Tuple[str, Any]] = ()) -> str:
        return f'{element}[]'

    def tuple(self, elements: Sequence[str]) -> str:
        return 'Json'

    def union(self, members: Sequence[str]) -> str:
        return 'Json'

    def intersect(self, left: str, right: str) -> str:
        return 'Json'

    def nullable(self, inner: str) -> str:
        return inner

    def optional(self, inner: str) -> str:
        return inner

    def container(self, name: str, args: Sequence[str]) -> str:
        return 'Json'

    def object(self, fields: Sequence[MappedField], additional: Any = None,
               top_level: bool = False) -> str:
        return 'Json'

    def reference(self, name: str) -> str:
        return to_pascal_case(name)


class PrismaEmitter(BaseEmitter):
    """Emits enum blocks followed by one model block per table."""

    def emit(self, declarations: List[MappedDeclaration]) -> str:
        blocks = []
        for mapped in declarations:
            if mapped.declaration.kind == DeclarationKind.ENUM_LIKE:
                blocks.append(self.emit_enum(mapped))
        blocks.extend(self._ctx.auxiliary[name] for name in self._ctx.auxiliary)
        for mapped in declarations:
            if mapped.declaration.kind != DeclarationKind.ENUM_LIKE:
                blocks.append(self.emit_model(mapped))
        return '\n\n'.join(blocks) + '\n'

    def emit_enum(self, mapped: MappedDeclaration) -> str:
        members = ''.join(f'{self._ctx.indent()}{enum_member(v)}\n' for v in mapped.enum_values)
        name = to_pascal_case(mapped.name)
        mapping = f'\n{self._ctx.indent()}@@map({js_string(mapped.name)})\n' if name != mapped.name else ''
        return f'enum {name} {{\n{members}{mapping}}}'

    def emit_model(self, mapped: MappedDeclaration) -> str:
        declaration = mapped.declaration
        table = declaration.attributes.get('table', mapped.name)
        primary_key = declaration.attributes.get('primary_key', ())
        pad = self._ctx.indent()

        rows = []
        for field in mapped.fields:
            column = field.field
            name = to_camel_case(column.key) or column.key
            field_type = field.expression
            if column.optional and not field_type.endswith('[]'):
                field_type += '?'
            rows.append((name, field_type, self.field_attributes(field, name, len(primary_key) == 1)))

        name_width = max((len(r[0]) for r in rows), default=0)
        type_width = max((len(r[1]) for r in rows), default=0)
        lines = [f'model {model_name(mapped.name)} {{']
        for name, field_type, attributes in rows:
            line = f'{pad}{name.ljust(name_width)} {field_type.ljust(type_width)} {" ".join(attributes)}'
            lines.append(line.rstrip())

        block_attributes = []
        if len(primary_key) > 1:
            block_attributes.append(f'@@id([{", ".join(to_camel_case(c) for c in primary_key)}])')
        for columns in declaration.attributes.get('unique_together', ()):
            block_attributes.append(f'@@unique([{", ".join(to_camel_case(c) for c in columns)}])')
        if model_name(mapped.name).lower() != table.lower():
            block_attributes.append(f'@@map({js_string(table)})')
        if block_attributes:
            lines.append('')
            lines.extend(pad + a for a in block_attributes)
        lines.append('}')
        return '\n'.join(lines)

    def field_attributes(self, mapped: MappedField, name: str, single_key: bool) -> List[str]:
        column = mapped.field
        attributes = []
        if column.attributes.get('primary_key') and single_key:
            attributes.append('@id')
        default = self.default_attribute(mapped)
        if default:
            attributes.append(default)
        if column.attributes.get('unique'):
            attributes.append('@unique')
        if name != column.key:
            attributes.append(f'@map({js_string(column.key)})')
        return attributes

    def default_attribute(self, mapped: MappedField) -> Optional[str]:
        column = mapped.field
        if column.attributes.get('auto_increment'):
            return '@default(autoincrement())'
        if column.default is None:
            return None
        lower = column.default.lower()
        if lower in NOW_DEFAULTS:
            return '@default(now())'
        if lower in UUID_DEFAULTS:
            return '@default(uuid())'
        if lower == 'cuid()':
            return '@default(cuid())'

        value = column.attributes.get('default')
        field_type = mapped.expression
        if field_type == 'Boolean' and lower in ('true', 'false', '1', '0'):
            return f'@default({"true" if lower in ("true", "1") else "false"})'
        if field_type in NUMERIC_TYPES and isinstance(value, (int, float)) and not isinstance(value, bool):
            return f'@default({value})'
        if field_type == 'String' and value is not None:
            return f'@default({js_string(str(value))})'
        if isinstance(value, str) and field_type not in PRISMA_PRIMITIVES.values():
            return f'@default({enum_member(value)})'
        return f'@default(dbgenerated({js_string(column.default)}))'
