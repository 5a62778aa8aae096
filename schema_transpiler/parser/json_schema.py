"""
JSON Schema and OpenAPI document grammars.

The raw type expressions of these grammars are schema nodes (parsed JSON
mappings) rather than source text. A JSON Schema document yields its root
schema followed by its ``$defs``/``definitions``; an OpenAPI document yields
its ``components.schemas``.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..codegen.diagnostics import ConversionError, invalid_document
from ..lexer import collapse_deep_groups
from ..type_system.mappings import JSON_SCHEMA_TYPES
from .ast_nodes import (
    ArrayOf,
    Container,
    Declaration,
    DeclarationKind,
    EnumOf,
    Field,
    InlineObject,
    IntersectionOf,
    Literal,
    Nullable,
    Primitive,
    Reference,
    TupleOf,
    UnionOf,
)
from .parser import DeclarationExtractor


logger = logging.getLogger(__name__)


# JSON Schema keyword -> canonical constraint name
CONSTRAINT_KEYWORDS = (
    ('format', 'format'),
    ('minLength', 'min_length'),
    ('maxLength', 'max_length'),
    ('pattern', 'pattern'),
    ('minimum', 'minimum'),
    ('maximum', 'maximum'),
    ('exclusiveMinimum', 'exclusive_minimum'),
    ('exclusiveMaximum', 'exclusive_maximum'),
    ('multipleOf', 'multiple_of'),
)
ARRAY_KEYWORDS = (
    ('minItems', 'min_items'),
    ('maxItems', 'max_items'),
)
REF_PREFIXES = ('#/$defs/', '#/definitions/', '#/components/schemas/')
DOCUMENT_KEYWORDS = ('$schema', '$id', '$defs', 'definitions', 'title')
# Collections nested deeper than this are read as empty schemas
MAX_DOCUMENT_NESTING = 128


def constraints_of(node: Dict[str, Any], keywords) -> Tuple[Tuple[str, Any], ...]:
    return tuple((name, node[keyword]) for keyword, name in keywords if keyword in node)


def is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def collapse_deep_yaml(source: str, max_nesting: int) -> Tuple[str, int]:
    """Re-serialize a YAML document with collections below ``max_nesting`` emptied.

    Works on the parser's event stream, so block and flow styles are handled
    alike. Returns the source unchanged when nothing is nested that deep.
    """
    events = []
    depth = skipping = collapsed = 0
    for event in yaml.parse(source, Loader=yaml.SafeLoader):
        opens = isinstance(event, yaml.CollectionStartEvent)
        closes = isinstance(event, yaml.CollectionEndEvent)
        if skipping:
            skipping += opens - closes
            continue
        if opens and depth >= max_nesting:
            events.append(yaml.MappingStartEvent(event.anchor, None, True, flow_style=True))
            events.append(yaml.MappingEndEvent())
            collapsed += 1
            skipping = 1
            continue
        depth += opens - closes
        events.append(event)
    if not collapsed:
        return source, 0
    return yaml.emit(events), collapsed


class JsonSchemaExtractor(DeclarationExtractor):
    """Extracts the root schema and named definitions of a JSON Schema."""

    DESCRIPTION = 'JSON Schema definitions'
    DOCUMENT = 'JSON document'
    RULES = (
        'boolean_schema',
        'reference',
        'enum',
        'const',
        'nullable',
        'composition',
        'type_list',
        'array',
        'object',
        'primitive',
    )

    def __init__(self, diagnostics):
        super().__init__(diagnostics)
        self.root_name = ''

    def extract(self, source: str) -> List[Declaration]:
        document = self.load(source)
        declarations: List[Declaration] = []
        root = {k: v for k, v in document.items() if k not in DOCUMENT_KEYWORDS}
        if root:
            self.root_name = str(document.get('title') or 'Root')
            declarations.append(self.declaration(self.root_name, root))
        for key in ('$defs', 'definitions'):
            definitions = document.get(key)
            if isinstance(definitions, dict):
                declarations.extend(self.declaration(name, node) for name, node in definitions.items())
        return declarations

    def load(self, source: str) -> Dict[str, Any]:
        source, collapsed = collapse_deep_groups(source, MAX_DOCUMENT_NESTING, '{}')
        self.warn_collapsed(collapsed)
        try:
            document = json.loads(source)
        except json.JSONDecodeError as e:
            raise ConversionError(invalid_document(self.DOCUMENT, str(e)))
        if not isinstance(document, dict):
            raise ConversionError(invalid_document(self.DOCUMENT, 'top level is not an object'))
        return document

    def warn_collapsed(self, collapsed: int) -> None:
        if collapsed:
            logger.warning('Document nests deeper than %d levels; %d subtree(s) read as empty schemas',
                           MAX_DOCUMENT_NESTING, collapsed)
            self._diagnostics.warn_depth_exceeded(MAX_DOCUMENT_NESTING)

    def declaration(self, name: str, node: Any) -> Declaration:
        """Declaration for one named schema node."""
        if not isinstance(node, dict):
            return Declaration(name=name, kind=DeclarationKind.ALIAS_EXPRESSION, alias_body=node)
        attributes = {}
        if node.get('description'):
            attributes['description'] = node['description']
        if 'enum' in node:
            return Declaration(
                name=name, kind=DeclarationKind.ENUM_LIKE, alias_body=node, attributes=attributes,
            )
        if 'properties' in node and not self._is_composite(node):
            fields, additional = self.object_fields(node)
            if additional is not None:
                attributes['additional'] = additional
            return Declaration(
                name=name, kind=DeclarationKind.OBJECT_LIKE, fields=fields, attributes=attributes,
            )
        return Declaration(
            name=name, kind=DeclarationKind.ALIAS_EXPRESSION, alias_body=node, attributes=attributes,
        )

    def _is_composite(self, node: Dict[str, Any]) -> bool:
        return any(k in node for k in ('$ref', 'allOf', 'anyOf', 'oneOf')) or node.get('nullable') is True

    def object_fields(self, node: Dict[str, Any]) -> Tuple[Tuple[Field, ...], Any]:
        required = node.get('required')
        if not isinstance(required, list):
            # draft-03 marks required on the property itself
            required = ()
        fields = []
        properties = node.get('properties')
        for key, prop in (properties.items() if isinstance(properties, dict) else ()):
            attributes = {}
            default = None
            if isinstance(prop, dict) and 'default' in prop:
                attributes['default'] = prop['default']
                default = json.dumps(prop['default'])
            description = prop.get('description', '') if isinstance(prop, dict) else ''
            fields.append(Field(
                key=key,
                raw_type=prop,
                optional=key not in required and not (isinstance(prop, dict) and prop.get('required') is True),
                description=description,
                default=default,
                attributes=attributes,
            ))
        additional = node.get('additionalProperties')
        if isinstance(additional, dict) and not additional:
            additional = True
        return tuple(fields), additional

    def enum_values(self, declaration):
        values = declaration.alias_body.get('enum') or ()
        return tuple(v for v in values if is_scalar(v))

    # =========================================================================
    # CLASSIFICATION RULES
    # =========================================================================

    def _match_boolean_schema(self, node):
        if isinstance(node, bool):
            return Primitive('any' if node else 'never')
        return None

    def _match_reference(self, node):
        ref = node.get('$ref') if isinstance(node, dict) else None
        if not isinstance(ref, str):
            return None
        if ref == '#':
            return Reference(self.root_name)
        for prefix in REF_PREFIXES:
            if ref.startswith(prefix):
                return Reference(ref[len(prefix):])
        return Reference(ref.rsplit('/', 1)[-1])

    def _match_enum(self, node):
        if isinstance(node, dict) and isinstance(node.get('enum'), list):
            return EnumOf(tuple(v for v in node['enum'] if is_scalar(v)))
        return None

    def _match_const(self, node):
        if isinstance(node, dict) and 'const' in node and is_scalar(node['const']):
            return Literal(node['const'])
        return None

    def _match_nullable(self, node):
        if isinstance(node, dict) and node.get('nullable') is True:
            return Nullable({k: v for k, v in node.items() if k != 'nullable'})
        return None

    def _match_composition(self, node):
        if not isinstance(node, dict):
            return None
        if isinstance(node.get('allOf'), list) and node['allOf']:
            return IntersectionOf(tuple(node['allOf']))
        for keyword in ('oneOf', 'anyOf'):
            members = node.get(keyword)
            if isinstance(members, list) and members:
                non_null = [m for m in members if m != {'type': 'null'}]
                if len(non_null) == 1 and len(members) == 2:
                    return Nullable(non_null[0])
                return UnionOf(tuple(members))
        return None

    def _match_type_list(self, node):
        if not isinstance(node, dict) or not isinstance(node.get('type'), list):
            return None
        types = node['type']
        non_null = [t for t in types if t != 'null']
        if not non_null:
            return Primitive('null')
        if len(non_null) < len(types):
            return Nullable({**node, 'type': non_null[0] if len(non_null) == 1 else non_null})
        return UnionOf(tuple({**node, 'type': t} for t in non_null))

    def _match_array(self, node):
        if not isinstance(node, dict):
            return None
        if node.get('type') != 'array' and 'items' not in node and 'prefixItems' not in node:
            return None
        tuple_items = node.get('prefixItems', node.get('items'))
        if isinstance(tuple_items, list):
            return TupleOf(tuple(tuple_items))
        return ArrayOf(node.get('items', True), constraints_of(node, ARRAY_KEYWORDS))

    def _match_object(self, node):
        if not isinstance(node, dict):
            return None
        if node.get('type') != 'object' and 'properties' not in node:
            return None
        fields, additional = self.object_fields(node)
        if not fields and isinstance(additional, dict):
            return Container('record', ({'type': 'string'}, additional))
        if not fields and additional is None:
            return Primitive('object')
        return InlineObject(fields, additional)

    def _match_primitive(self, node):
        if not isinstance(node, dict):
            return None
        canonical = JSON_SCHEMA_TYPES.get(node.get('type'))
        if canonical is not None:
            return Primitive(canonical, constraints_of(node, CONSTRAINT_KEYWORDS))
        if 'type' not in node:
            return Primitive('any')
        return None


class OpenApiExtractor(JsonSchemaExtractor):
    """Extracts ``components.schemas`` from an OpenAPI document (JSON or YAML)."""

    DESCRIPTION = 'OpenAPI component schemas'
    DOCUMENT = 'OpenAPI document'

    def extract(self, source: str) -> List[Declaration]:
        document = self.load(source)
        version = document.get('openapi') or document.get('swagger') or '3.x'
        info = document.get('info') if isinstance(document.get('info'), dict) else {}
        self.document_info.update({
            'source': f'OpenAPI {version}',
            'title': info.get('title', ''),
            'version': info.get('version', ''),
        })
        schemas = self._schemas(document)
        if schemas is None:
            logger.debug('Document has no components.schemas section')
            return []
        return [self.declaration(name, node) for name, node in schemas.items()]

    def _schemas(self, document: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        components = document.get('components')
        if isinstance(components, dict) and isinstance(components.get('schemas'), dict):
            return components['schemas']
        if isinstance(document.get('definitions'), dict):
            return document['definitions']
        return None

    def load(self, source: str) -> Dict[str, Any]:
        if source.lstrip().startswith('{'):
            return super().load(source)
        try:
            source, collapsed = collapse_deep_yaml(source, MAX_DOCUMENT_NESTING)
            document = yaml.safe_load(source)
        except yaml.YAMLError as e:
            raise ConversionError(invalid_document(self.DOCUMENT, str(e).splitlines()[0]))
        self.warn_collapsed(collapsed)
        if not isinstance(document, dict):
            raise ConversionError(invalid_document(self.DOCUMENT, 'top level is not a mapping'))
        return document
