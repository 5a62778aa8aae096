"""
TypeScript declaration grammar.

Extracts ``interface``, ``type`` and ``enum`` declarations and classifies
TypeScript type expressions (unions, intersections, arrays, tuples, generic
containers, inline object literals and named references).
"""

import re
from typing import List

from ..lexer import (
    Scanner,
    find_matching_closer,
    split_at_depth_zero,
    split_first_at_depth_zero,
    strip_comments,
)
from ..type_system.mappings import TYPESCRIPT_KEYWORDS
from .ast_nodes import (
    ArrayOf,
    Container,
    Declaration,
    DeclarationKind,
    InlineObject,
    IntersectionOf,
    Nullable,
    Primitive,
    Reference,
    TupleOf,
    UnionOf,
)
from .parser import DeclarationExtractor, IDENTIFIER_RE, enum_of_literals, literal_shape


DECLARATION_RE = re.compile(
    r'\b(?:export\s+)?(?:declare\s+)?(?:'
    r'(?P<interface>interface)\s+(?P<iname>[A-Za-z_$][\w$]*)\s*(?:<[^{]*?>)?\s*'
    r'(?:extends\s+(?P<bases>[^{]+?)\s*)?\{'
    r'|(?P<type>type)\s+(?P<tname>[A-Za-z_$][\w$]*)\s*(?:<[^=]*?>)?\s*='
    r'|(?:const\s+)?(?P<enum>enum)\s+(?P<ename>[A-Za-z_$][\w$]*)\s*\{'
    r')'
)

# A line starting a new declaration ends an alias with no terminating ';'
NEXT_DECLARATION_RE = re.compile(
    r'\n[ \t]*(?:export\s+)?(?:declare\s+)?'
    r'(?:interface|type|enum|const|let|var|class|function|import)\b'
)

GENERIC_RE = re.compile(r'^(?P<name>[A-Za-z_$][\w$.]*)\s*<')
QUALIFIED_NAME_RE = re.compile(r'^[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*$')
TUPLE_LABEL_RE = re.compile(r'^(?:\.\.\.)?[A-Za-z_$][\w$]*\??\s*:\s*')

ARRAY_GENERICS = ('Array', 'ReadonlyArray')
CONTAINER_GENERICS = {
    'Set': 'set',
    'ReadonlySet': 'set',
    'Map': 'map',
    'ReadonlyMap': 'map',
    'Record': 'record',
    'Promise': 'promise',
    'Partial': 'partial',
    'Required': 'required',
    'Readonly': 'readonly',
    'Pick': 'pick',
    'Omit': 'omit',
}


class TypeScriptExtractor(DeclarationExtractor):
    """Extracts TypeScript interfaces, type aliases and enums."""

    DESCRIPTION = 'TypeScript interfaces, types or enums'
    FIELD_SEPARATORS = ';,\n'
    RULES = (
        'keyword',
        'literal',
        'union',
        'intersection',
        'array_suffix',
        'tuple',
        'generic',
        'inline_object',
        'reference',
    )

    def extract(self, source: str) -> List[Declaration]:
        text = strip_comments(source)
        declarations: List[Declaration] = []
        pos = 0
        while True:
            match = DECLARATION_RE.search(text, pos)
            if not match:
                break
            if match.group('interface'):
                declaration, pos = self._extract_interface(text, match)
            elif match.group('type'):
                declaration, pos = self._extract_alias(text, match)
            else:
                declaration, pos = self._extract_enum(text, match)
            if declaration is not None:
                declarations.append(declaration)
        return declarations

    def _extract_interface(self, text, match):
        name = match.group('iname')
        open_index = match.end() - 1
        close = self.find_body(text, open_index, name)
        if close is None:
            return None, match.end()
        fields, additional = self.parse_fields(text[open_index + 1:close])
        bases = ()
        if match.group('bases'):
            bases = tuple(
                base.split('<')[0].strip()
                for base in split_at_depth_zero(match.group('bases'), ',', drop_empty=True)
            )
        attributes = {'additional': additional} if additional is not None else {}
        return Declaration(
            name=name,
            kind=DeclarationKind.OBJECT_LIKE,
            fields=fields,
            bases=bases,
            attributes=attributes,
        ), close + 1

    def _extract_alias(self, text, match):
        name = match.group('tname')
        start = match.end()
        end = self._find_alias_end(text, start)
        body = text[start:end].strip()
        next_pos = end + 1

        opener = self.unbalanced_opener(body)
        if opener:
            self.skip_declaration(name, opener)
            return None, next_pos
        if not body:
            return None, next_pos

        if body.startswith('{') and find_matching_closer(body, 0) == len(body) - 1:
            fields, additional = self.parse_fields(body[1:-1])
            attributes = {'additional': additional} if additional is not None else {}
            return Declaration(
                name=name,
                kind=DeclarationKind.OBJECT_LIKE,
                fields=fields,
                attributes=attributes,
            ), next_pos
        return Declaration(name=name, kind=DeclarationKind.ALIAS_EXPRESSION, alias_body=body), next_pos

    def _extract_enum(self, text, match):
        name = match.group('ename')
        open_index = match.end() - 1
        close = self.find_body(text, open_index, name)
        if close is None:
            return None, match.end()
        body = text[open_index + 1:close].strip()
        return Declaration(name=name, kind=DeclarationKind.ENUM_LIKE, alias_body=body), close + 1

    def _find_alias_end(self, text: str, start: int) -> int:
        """End of an alias body: a depth-zero ';' or the next declaration line."""
        next_decl = NEXT_DECLARATION_RE.search(text, start)
        limit = next_decl.start() if next_decl else len(text)
        scanner = Scanner(text, pos=start)
        while scanner.pos < limit:
            if scanner.at_depth_zero and scanner.peek() == ';':
                return scanner.pos
            scanner.advance()
        return limit

    def enum_values(self, declaration):
        values = []
        for member in split_at_depth_zero(declaration.alias_body, ',', drop_empty=True):
            member_name, initializer = split_first_at_depth_zero(member, '=')
            literal = literal_shape(initializer) if initializer else None
            if literal is not None and isinstance(literal.value, str):
                values.append(literal.value)
            else:
                values.append(member_name.strip('"\''))
        return tuple(values)

    # =========================================================================
    # CLASSIFICATION RULES
    # =========================================================================

    def normalize(self, raw):
        text = self.unwrap_parens(str(raw))
        # Leading separators from multi-line unions: `| "a" | "b"`
        while text[:1] in ('|', '&'):
            text = self.unwrap_parens(text[1:])
        if text.startswith('readonly '):
            text = text[len('readonly '):].strip()
        return text

    def _match_keyword(self, text):
        canonical = TYPESCRIPT_KEYWORDS.get(text)
        return Primitive(canonical) if canonical else None

    def _match_literal(self, text):
        return literal_shape(text)

    def _match_union(self, text):
        parts = split_at_depth_zero(text, '|', drop_empty=True)
        if len(parts) < 2:
            return None
        enum = enum_of_literals(parts)
        if enum is not None and all(isinstance(v, str) for v in enum.values):
            return enum
        if len(parts) == 2 and 'null' in parts:
            return Nullable(parts[1] if parts[0] == 'null' else parts[0])
        return UnionOf(tuple(parts))

    def _match_intersection(self, text):
        parts = split_at_depth_zero(text, '&', drop_empty=True)
        if len(parts) < 2:
            return None
        return IntersectionOf(tuple(parts))

    def _match_array_suffix(self, text):
        if text.endswith('[]') and len(text) > 2:
            return ArrayOf(text[:-2].strip())
        return None

    def _match_tuple(self, text):
        if not text.startswith('[') or find_matching_closer(text, 0) != len(text) - 1:
            return None
        elements = []
        for element in split_at_depth_zero(text[1:-1], ',', drop_empty=True):
            element = TUPLE_LABEL_RE.sub('', element)
            if element.endswith('?'):
                element = element[:-1]
            elements.append(element)
        return TupleOf(tuple(elements))

    def _match_generic(self, text):
        match = GENERIC_RE.match(text)
        if not match:
            return None
        open_index = match.end() - 1
        if find_matching_closer(text, open_index) != len(text) - 1:
            return None
        name = match.group('name')
        args = tuple(split_at_depth_zero(text[open_index + 1:-1], ',', drop_empty=True))
        if not args:
            return None
        if name in ARRAY_GENERICS:
            return ArrayOf(args[0])
        if name == 'NonNullable':
            members = split_at_depth_zero(self.unwrap_parens(args[0]), '|', drop_empty=True)
            kept = tuple(m for m in members if m not in ('null', 'undefined'))
            return UnionOf(kept) if kept else Primitive('never')
        container = CONTAINER_GENERICS.get(name)
        if container in ('pick', 'omit'):
            keys = self._selected_keys(args[1] if len(args) > 1 else '')
            return Container(container, args[:1], keys)
        if container is not None:
            return Container(container, args)
        # User-declared generic: refer to the declaration, drop the arguments
        return Reference(name)

    def _selected_keys(self, text: str):
        keys = []
        for part in split_at_depth_zero(self.unwrap_parens(text), '|', drop_empty=True):
            literal = literal_shape(part)
            if literal is not None and isinstance(literal.value, str):
                keys.append(literal.value)
        return tuple(keys)

    def _match_inline_object(self, text):
        if not text.startswith('{') or find_matching_closer(text, 0) != len(text) - 1:
            return None
        fields, additional = self.parse_fields(text[1:-1])
        return InlineObject(fields, additional)

    def _match_reference(self, text):
        if IDENTIFIER_RE.match(text) or QUALIFIED_NAME_RE.match(text):
            return Reference(text)
        return None

