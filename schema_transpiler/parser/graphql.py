"""
GraphQL SDL grammar.

Extracts ``type``, ``input`` and ``interface`` blocks (with field
arguments), ``enum`` blocks and ``union`` definitions. ``scalar``
definitions are not declarations; they widen the set of names the
classifier treats as primitives.

A field is nullable unless its type ends in ``!``; nullable types classify
as OptionalOf the non-null form.
"""

import re
from typing import List, Optional

from ..lexer import (
    NO_ANGLES,
    find_matching_closer,
    split_at_depth_zero,
    split_first_at_depth_zero,
    strip_comments,
)
from ..type_system.mappings import GRAPHQL_SCALARS
from .ast_nodes import (
    ArrayOf,
    Declaration,
    DeclarationKind,
    Field,
    OptionalOf,
    Primitive,
    Reference,
    UnionOf,
)
from .parser import DeclarationExtractor, literal_shape


BLOCK_RE = re.compile(
    r'\b(?P<keyword>type|input|interface|enum)\s+(?P<name>[_A-Za-z]\w*)'
    r'(?:\s+implements\s+(?P<bases>[\w&,\s]+?))?'
    r'\s*(?:@\w+(?:\([^)]*\))?\s*)*\{'
)
UNION_RE = re.compile(
    r'\bunion\s+(?P<name>[_A-Za-z]\w*)\s*(?:@\w+(?:\([^)]*\))?\s*)*='
    r'\s*(?P<members>\|?[^\n|]+(?:\s*\|[^\n|]+)*)'
)
SCALAR_RE = re.compile(r'\bscalar\s+(?P<name>[_A-Za-z]\w*)')
DESCRIPTION_LINE_RE = re.compile(r'^[ \t]*"(?:[^"\\\n]|\\.)*"[ \t]*$', re.MULTILINE)
DIRECTIVE_RE = re.compile(r'@\w+(?:\s*\([^)]*\))?')
NAME_RE = re.compile(r'^[_A-Za-z]\w*$')

# Widely used custom scalars -> (canonical name, constraints)
CUSTOM_SCALARS = {
    'DateTime': ('datetime', ()),
    'Date': ('date', ()),
    'Time': ('time', ()),
    'Timestamp': ('datetime', ()),
    'JSON': ('json', ()),
    'JSONObject': ('json', ()),
    'BigInt': ('bigint', ()),
    'Long': ('integer', ()),
    'Decimal': ('decimal', ()),
    'UUID': ('string', (('format', 'uuid'),)),
    'EmailAddress': ('string', (('format', 'email'),)),
    'Email': ('string', (('format', 'email'),)),
    'URL': ('string', (('format', 'url'),)),
    'Upload': ('unknown', ()),
}


def strip_sdl_comments(source: str) -> str:
    """Remove ``#`` comments and block/line description strings."""
    text = strip_comments(source, line_markers=('#',), block_markers=(('"""', '"""'),))
    return DESCRIPTION_LINE_RE.sub('', text)


class GraphQLExtractor(DeclarationExtractor):
    """Extracts GraphQL object, input, interface, enum and union types."""

    DESCRIPTION = 'GraphQL type, input, or enum definitions'
    FIELD_SEPARATORS = '\n,'
    DELIMITERS = NO_ANGLES
    RULES = (
        'union',
        'nullable',
        'list',
        'scalar',
        'reference',
    )

    def __init__(self, diagnostics):
        super().__init__(diagnostics)
        self._custom_scalars = set()

    def extract(self, source: str) -> List[Declaration]:
        text = strip_sdl_comments(source)
        self._custom_scalars = {m.group('name') for m in SCALAR_RE.finditer(text)}

        found = []
        for match in BLOCK_RE.finditer(text):
            declaration = self._extract_block(text, match)
            if declaration is not None:
                found.append((match.start(), declaration))
        for match in UNION_RE.finditer(text):
            # Union members are never null
            members = [m.strip() for m in match.group('members').split('|') if m.strip()]
            declaration = Declaration(
                name=match.group('name'),
                kind=DeclarationKind.ALIAS_EXPRESSION,
                alias_body=' | '.join(f'{m}!' for m in members),
            )
            found.append((match.start(), declaration))
        found.sort(key=lambda item: item[0])
        return [declaration for _, declaration in found]

    def _extract_block(self, text, match) -> Optional[Declaration]:
        name = match.group('name')
        open_index = match.end() - 1
        close = self.find_body(text, open_index, name)
        if close is None:
            return None
        body = text[open_index + 1:close]

        if match.group('keyword') == 'enum':
            return Declaration(name=name, kind=DeclarationKind.ENUM_LIKE, alias_body=body.strip())

        bases = ()
        if match.group('bases'):
            bases = tuple(b for b in re.split(r'[\s&,]+', match.group('bases')) if b)
        fields = []
        for line in split_at_depth_zero(body, self.FIELD_SEPARATORS, drop_empty=True,
                                        delimiters=self.DELIMITERS):
            field = self.parse_field(line)
            if field is not None:
                fields.append(field)
        return Declaration(
            name=name,
            kind=DeclarationKind.OBJECT_LIKE,
            fields=tuple(fields),
            bases=bases,
        )

    def parse_field(self, line: str) -> Optional[Field]:
        """``name(arg: T = default, ...): Type @directive``"""
        line = line.strip()
        arguments = ()
        paren = line.find('(')
        colon = line.find(':')
        if paren != -1 and (colon == -1 or paren < colon):
            close = find_matching_closer(line, paren)
            if close == -1:
                return None
            arguments = self._parse_arguments(line[paren + 1:close])
            line = line[:paren] + line[close + 1:]

        key, raw_type = split_first_at_depth_zero(line, ':', self.DELIMITERS)
        if not raw_type or not NAME_RE.match(key):
            return None
        default = None
        attributes = {}
        raw_type, value = split_first_at_depth_zero(DIRECTIVE_RE.sub('', raw_type), '=', self.DELIMITERS)
        if value:
            default = value
            literal = literal_shape(value)
            if literal is not None:
                attributes['default'] = literal.value
        return Field(
            key=key,
            raw_type=raw_type.strip(),
            default=default,
            attributes=attributes,
            arguments=arguments,
        )

    def _parse_arguments(self, text: str):
        arguments = []
        for part in split_at_depth_zero(text, ',\n', drop_empty=True, delimiters=self.DELIMITERS):
            field = self.parse_field(part)
            if field is not None:
                arguments.append(field)
        return tuple(arguments)

    def enum_values(self, declaration):
        body = DIRECTIVE_RE.sub('', declaration.alias_body)
        return tuple(v for v in re.split(r'[\s,]+', body) if NAME_RE.match(v))

    # =========================================================================
    # CLASSIFICATION RULES
    # =========================================================================

    def normalize(self, raw):
        return str(raw).strip()

    def _match_union(self, text):
        members = split_at_depth_zero(text, '|', drop_empty=True, delimiters=self.DELIMITERS)
        if len(members) < 2:
            return None
        return UnionOf(tuple(m.rstrip('!') + '!' for m in members))

    def _match_nullable(self, text):
        if text and not text.endswith('!') and '|' not in text:
            return OptionalOf(text + '!')
        return None

    def _match_list(self, text):
        inner = text[:-1].strip()
        if inner.startswith('[') and find_matching_closer(inner, 0) == len(inner) - 1:
            return ArrayOf(inner[1:-1].strip())
        return None

    def _match_scalar(self, text):
        name = text[:-1].strip()
        if name in GRAPHQL_SCALARS:
            return Primitive(GRAPHQL_SCALARS[name])
        if name in CUSTOM_SCALARS:
            canonical, constraints = CUSTOM_SCALARS[name]
            return Primitive(canonical, constraints)
        if name in self._custom_scalars:
            return Primitive('unknown')
        return None

    def _match_reference(self, text):
        name = text[:-1].strip()
        return Reference(name) if NAME_RE.match(name) else None
