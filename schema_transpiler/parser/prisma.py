"""
Prisma schema grammar.

Extracts ``enum`` blocks and ``model``/``type``/``view`` blocks. A model
field line is ``name Type[?|[]] @attribute...``; the attributes are kept on
the field (``default``, ``generated``, ``primary_key``, ``unique``), and the
native ``@db.*`` type travels with the raw type so that length limits reach
the classifier. Fields whose type is another model are relation fields and
describe no column, so they are left out of the model.

``?`` marks a nullable column, not an absent key: Prisma fields are never
optional.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from ..lexer import NO_ANGLES, split_at_depth_zero, strip_comments
from ..type_system.mappings import PRISMA_SCALARS
from .ast_nodes import ArrayOf, Declaration, DeclarationKind, Field, Nullable, Primitive, Reference, Unknown
from .parser import DeclarationExtractor, IDENTIFIER_RE, literal_shape


logger = logging.getLogger(__name__)


BLOCK_RE = re.compile(r'^[ \t]*(?P<keyword>model|type|view|enum)[ \t]+(?P<name>\w+)[ \t]*\{', re.MULTILINE)
DOC_COMMENT = '///'
NATIVE_TYPE_RE = re.compile(r'^@db\.(?P<name>\w+)(?:\((?P<args>[^)]*)\))?$')
ATTRIBUTE_RE = re.compile(r'^@(?P<name>[\w.]+)(?:\((?P<args>.*)\))?$', re.DOTALL)
# @default(...) functions whose value the database fills in
GENERATED_DEFAULTS = ('autoincrement', 'now', 'uuid', 'cuid', 'nanoid', 'ulid', 'dbgenerated', 'sequence')
LENGTH_NATIVE_TYPES = ('VarChar', 'Char', 'NVarChar', 'NChar')


def doc_comment_before(text: str, index: int) -> str:
    """The ``///`` lines directly above the line starting at ``index``."""
    lines = text[:index].rstrip('\n').split('\n')
    docs = []
    while lines and lines[-1].strip().startswith(DOC_COMMENT):
        docs.append(lines.pop().strip()[len(DOC_COMMENT):].strip())
    return ' '.join(reversed(docs))


class PrismaExtractor(DeclarationExtractor):
    """Extracts Prisma enums and models."""

    DESCRIPTION = 'Prisma models or enums'
    DELIMITERS = NO_ANGLES
    RULES = (
        'unsupported',
        'nullable',
        'list',
        'scalar',
        'reference',
    )

    def extract(self, source: str) -> List[Declaration]:
        blocks = []
        for match in BLOCK_RE.finditer(source):
            open_index = match.end() - 1
            close = self.find_body(source, open_index, match.group('name'))
            if close is not None:
                blocks.append((match, source[open_index + 1:close]))
        models = {m.group('name') for m, _ in blocks if m.group('keyword') in ('model', 'view')}

        enums, objects = [], []
        for match, body in blocks:
            name = match.group('name')
            attributes: Dict[str, Any] = {}
            description = doc_comment_before(source, match.start())
            if description:
                attributes['description'] = description
            if match.group('keyword') == 'enum':
                enums.append(Declaration(name=name, kind=DeclarationKind.ENUM_LIKE,
                                         alias_body=body, attributes=attributes))
                continue
            if match.group('keyword') in ('model', 'view'):
                attributes['model'] = True
            objects.append(Declaration(
                name=name,
                kind=DeclarationKind.OBJECT_LIKE,
                fields=self._fields(name, body, models),
                attributes=attributes,
            ))
        if blocks:
            self.document_info['source'] = 'Prisma schema'
        # Enums are printed first; models only ever refer to them by name
        return enums + objects

    def _fields(self, model: str, body: str, models) -> Tuple[Field, ...]:
        fields = []
        description = []
        for raw_line in body.split('\n'):
            line = raw_line.strip()
            if line.startswith(DOC_COMMENT):
                description.append(line[len(DOC_COMMENT):].strip())
                continue
            line = strip_comments(line).strip()
            if not line or line.startswith('@@'):
                description = []
                continue
            field = self.parse_field(line, ' '.join(description))
            description = []
            if field is None:
                continue
            if field.attributes.get('relation') or field.raw_type.split()[0].rstrip('?[]') in models:
                logger.debug('Leaving relation field %s.%s out of the model', model, field.key)
                continue
            fields.append(field)
        return tuple(fields)

    def parse_field(self, line: str, description: str = '') -> Optional[Field]:
        tokens = split_at_depth_zero(line, ' \t', drop_empty=True, delimiters=self.DELIMITERS)
        if len(tokens) < 2 or not IDENTIFIER_RE.match(tokens[0]):
            logger.debug('Skipping Prisma line that is not a field: %r', line)
            return None
        key, type_token = tokens[0], tokens[1]
        raw_type = type_token
        attributes: Dict[str, Any] = {}
        default = None
        for token in tokens[2:]:
            native = NATIVE_TYPE_RE.match(token)
            if native:
                raw_type = f'{type_token} {token}'
                continue
            attribute = ATTRIBUTE_RE.match(token)
            if not attribute:
                continue
            name, args = attribute.group('name'), (attribute.group('args') or '').strip()
            if name == 'id':
                attributes['primary_key'] = True
            elif name == 'unique':
                attributes['unique'] = True
            elif name == 'updatedAt':
                attributes['generated'] = True
            elif name == 'relation':
                attributes['relation'] = True
            elif name == 'default' and args:
                default = args
                attributes.update(self._default_attributes(args))
        return Field(key=key, raw_type=raw_type, description=description,
                     default=default, attributes=attributes)

    def _default_attributes(self, args: str) -> Dict[str, Any]:
        function = re.match(r'^(\w+)\s*\(', args)
        if function and function.group(1) in GENERATED_DEFAULTS:
            return {'generated': True}
        literal = literal_shape(args)
        if literal is not None:
            return {'default': literal.value}
        if IDENTIFIER_RE.match(args):
            # Bare identifiers are enum values
            return {'default': args}
        return {}

    def enum_values(self, declaration):
        values = []
        for line in strip_comments(declaration.alias_body).split('\n'):
            line = line.strip()
            if not line or line.startswith('@@'):
                continue
            name = line.split()[0]
            if IDENTIFIER_RE.match(name):
                values.append(name)
        return tuple(values)

    # =========================================================================
    # CLASSIFICATION RULES
    # =========================================================================

    def normalize(self, raw):
        return re.sub(r'\s+', ' ', str(raw).strip())

    def _match_unsupported(self, text):
        if text.startswith('Unsupported('):
            return Unknown(text)
        return None

    def _match_nullable(self, text):
        base, _, native = text.partition(' ')
        if base.endswith('?'):
            return Nullable(f'{base[:-1]} {native}'.strip())
        return None

    def _match_list(self, text):
        base, _, native = text.partition(' ')
        if base.endswith('[]'):
            return ArrayOf(f'{base[:-2]} {native}'.strip())
        return None

    def _match_scalar(self, text):
        base, _, native = text.partition(' ')
        canonical = PRISMA_SCALARS.get(base)
        if canonical is None:
            return None
        constraints = []
        match = NATIVE_TYPE_RE.match(native)
        if match and match.group('name') in LENGTH_NATIVE_TYPES and (match.group('args') or '').strip().isdigit():
            constraints.append(('max_length', int(match.group('args'))))
        elif match and match.group('name') == 'Uuid':
            constraints.append(('format', 'uuid'))
        return Primitive(canonical, tuple(constraints))

    def _match_reference(self, text):
        if IDENTIFIER_RE.match(text):
            return Reference(text)
        return None
