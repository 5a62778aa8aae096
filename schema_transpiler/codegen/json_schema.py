"""
JSON Schema generation.

Renders mapped types as JSON Schema nodes (plain dicts) and emits a draft-07
document whose root is the first declaration; the remaining declarations go
under ``$defs``.
"""

import json
from typing import Any, Dict, List, Sequence, Tuple

from ..type_system.mappings import JSON_SCHEMA_CONSTRAINTS, JSON_SCHEMA_PRIMITIVES
from .base import BaseEmitter, BaseRenderer, MappedDeclaration, MappedField


DRAFT_07 = 'http://json-schema.org/draft-07/schema#'
DEFS_PREFIX = '#/$defs/'

# Column flags summarized in a property description, in this order
COLUMN_FLAGS = (
    ('primary_key', 'PRIMARY KEY'),
    ('unique', 'UNIQUE'),
    ('auto_increment', 'AUTO_INCREMENT'),
)


def literal_type(value: Any) -> str:
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, int):
        return 'integer'
    if isinstance(value, float):
        return 'number'
    if value is None:
        return 'null'
    return 'string'


class JsonSchemaRenderer(BaseRenderer):
    """
    Renders type shapes as JSON Schema nodes.

    References point at ``ref_prefix + name``; a reference to the document
    root (``ctx.root_name``) points at ``#``.
    """

    def __init__(self, ctx, ref_prefix: str = DEFS_PREFIX):
        super().__init__(ctx)
        self._ref_prefix = ref_prefix

    def unknown(self, hint: str = '') -> Dict[str, Any]:
        return {}

    def primitive(self, name: str, constraints: Sequence[Tuple[str, Any]] = ()) -> Dict[str, Any]:
        node = dict(JSON_SCHEMA_PRIMITIVES.get(name, ()))
        for constraint, value in constraints:
            keyword = JSON_SCHEMA_CONSTRAINTS.get(constraint)
            if keyword:
                node[keyword] = value
        return node

    def literal(self, value: Any) -> Dict[str, Any]:
        if value is None:
            return {'type': 'null'}
        return {'type': literal_type(value), 'const': value}

    def enum(self, values: Sequence[Any]) -> Dict[str, Any]:
        types = []
        for value in values:
            kind = literal_type(value)
            if kind not in types:
                types.append(kind)
        if types == ['integer', 'number'] or types == ['number', 'integer']:
            types = ['number']
        node: Dict[str, Any] = {'enum': list(values)}
        if len(types) == 1:
            node = {'type': types[0], 'enum': list(values)}
        return node

    def array(self, element: Dict[str, Any], constraints: Sequence[Tuple[str, Any]] = ()) -> Dict[str, Any]:
        node = {'type': 'array', 'items': element}
        for constraint, value in constraints:
            keyword = JSON_SCHEMA_CONSTRAINTS.get(constraint)
            if keyword:
                node[keyword] = value
        return node

    def tuple(self, elements: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            'type': 'array',
            'items': list(elements),
            'minItems': len(elements),
            'maxItems': len(elements),
        }

    def union(self, members: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        return {'anyOf': list(members)}

    def intersect(self, left: Dict[str, Any], right: Dict[str, Any]) -> Dict[str, Any]:
        members = []
        for node in (left, right):
            if list(node) == ['allOf']:
                members.extend(node['allOf'])
            else:
                members.append(node)
        return {'allOf': members}

    def nullable(self, inner: Dict[str, Any]) -> Dict[str, Any]:
        if isinstance(inner.get('type'), str) and 'enum' not in inner and 'const' not in inner:
            node = dict(inner)
            node['type'] = [inner['type'], 'null']
            return node
        return {'anyOf': [inner, {'type': 'null'}]}

    def optional(self, inner: Dict[str, Any]) -> Dict[str, Any]:
        return inner

    def container(self, name: str, args: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        if name == 'set':
            return {'type': 'array', 'items': args[0], 'uniqueItems': True}
        if name in ('map', 'record'):
            return {'type': 'object', 'additionalProperties': args[-1]}
        return args[0] if args else {}

    def object(self, fields: Sequence[MappedField], additional: Any = None,
               top_level: bool = False) -> Dict[str, Any]:
        properties = {}
        required = []
        for mapped in fields:
            properties[mapped.key] = self.property_node(mapped)
            if not mapped.field.optional:
                required.append(mapped.key)
        node: Dict[str, Any] = {'type': 'object', 'properties': properties}
        if required:
            node['required'] = required
        if additional is not None:
            node['additionalProperties'] = additional
        return node

    def property_node(self, mapped: MappedField) -> Dict[str, Any]:
        field = mapped.field
        node = dict(mapped.expression)
        if 'default' in field.attributes:
            node['default'] = field.attributes['default']
        elif field.default is not None:
            node['default'] = field.default
        descriptions = [field.description or node.get('description', '')]
        flags = [label for flag, label in COLUMN_FLAGS if field.attributes.get(flag)]
        if flags:
            descriptions.append(', '.join(flags))
        description = ' | '.join(d for d in descriptions if d)
        if description:
            node['description'] = description
        return node

    def reference(self, name: str) -> Dict[str, Any]:
        if name == self._ctx.root_name:
            return {'$ref': '#'}
        return {'$ref': self._ref_prefix + name}


class JsonSchemaEmitter(BaseEmitter):
    """Emits one draft-07 document: the first declaration is the root."""

    PLACEHOLDER = '{}'

    def emit(self, declarations: List[MappedDeclaration]) -> str:
        if not declarations:
            return self.PLACEHOLDER
        root, others = declarations[0], declarations[1:]
        title = root.declaration.attributes.get('table', root.name)
        document: Dict[str, Any] = {'$schema': DRAFT_07, 'title': title}
        document.update(self.declaration_node(root))
        if others:
            document['$defs'] = {m.name: self.declaration_node(m) for m in others}
        return dump(document)

    def declaration_node(self, mapped: MappedDeclaration) -> Dict[str, Any]:
        node = dict(mapped.expression)
        description = mapped.declaration.attributes.get('description')
        if description and 'description' not in node:
            node['description'] = description
        return node


def dump(document: Any) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False) + '\n'
