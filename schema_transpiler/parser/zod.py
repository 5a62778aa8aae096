"""
Zod / tRPC router grammar.

Extracts named Zod schema constants (``const UserSchema = z.object(...)``)
and the procedures of a tRPC ``router({...})``. A procedure becomes an
alias declaration whose body is its ``.input(...)`` schema, with the
procedure kind kept in its attributes.

Zod expressions are method chains; classification splits a chain on its
depth-zero dots and looks at the outermost call first.
"""

import logging
import re
from typing import List, Optional, Tuple

from ..lexer import (
    NO_ANGLES,
    Scanner,
    find_matching_closer,
    split_at_depth_zero,
    strip_comments,
)
from ..type_system.mappings import ZOD_FACTORIES
from .ast_nodes import (
    ArrayOf,
    Container,
    Declaration,
    DeclarationKind,
    EnumOf,
    Field,
    InlineObject,
    IntersectionOf,
    Nullable,
    OptionalOf,
    Primitive,
    Reference,
    TupleOf,
    UnionOf,
)
from .parser import (
    DeclarationExtractor,
    IDENTIFIER_RE,
    enum_of_literals,
    is_string_literal,
    literal_shape,
    unquote,
)


logger = logging.getLogger(__name__)


SCHEMA_CONST_RE = re.compile(r'\b(?:export\s+)?const\s+(?P<name>[A-Za-z_$][\w$]*)\s*(?::[^=]+)?=\s*(?=z\.)')
ROUTER_RE = re.compile(r'\brouter\s*\(\s*\{')
PROCEDURE_KEY_RE = re.compile(r'^(?P<name>[A-Za-z_$][\w$]*)\s*:')
PROCEDURE_KINDS = ('mutation', 'subscription', 'query')
NEXT_STATEMENT_RE = re.compile(r'\n[ \t]*(?:export\s+)?(?:const|let|var|type|interface|function|import)\b')
CALL_RE = re.compile(r'^(?P<name>[A-Za-z_$][\w$]*)\s*(?:\((?P<args>.*)\))?$', re.DOTALL)

# Trailing methods that do not change the validated shape
TRANSPARENT_METHODS = (
    'describe', 'default', 'catch', 'refine', 'superRefine', 'transform',
    'brand', 'readonly', 'trim', 'toLowerCase', 'toUpperCase',
)
STRING_FORMATS = {
    'email': 'email',
    'url': 'uri',
    'uuid': 'uuid',
    'cuid': 'cuid',
    'datetime': 'date-time',
    'ip': 'ipv4',
}


def schema_base_name(name: str) -> str:
    """'UserSchema' -> 'User'"""
    if name.endswith('Schema') and len(name) > len('Schema'):
        return name[:-len('Schema')]
    return name


def split_chain(text: str) -> List[Tuple[str, Optional[str]]]:
    """Split ``a.b(x).c()`` into [(name, args text or None), ...]."""
    calls = []
    for part in split_at_depth_zero(text, '.', delimiters=NO_ANGLES):
        match = CALL_RE.match(part.strip())
        if not match:
            return []
        calls.append((match.group('name'), match.group('args')))
    return calls


def join_chain(calls: List[Tuple[str, Optional[str]]]) -> str:
    return '.'.join(name if args is None else f'{name}({args})' for name, args in calls)


def number_argument(args: Optional[str]):
    literal = literal_shape((args or '').split(',')[0])
    if literal is not None and isinstance(literal.value, (int, float)) and not isinstance(literal.value, bool):
        return literal.value
    return None


def describe_text(args: Optional[str]) -> Optional[str]:
    """Text of a ``.describe(...)`` argument; template literals included."""
    args = (args or '').strip()
    if is_string_literal(args, '"\'`'):
        return unquote(args)
    return None


def list_items(args: str) -> List[str]:
    """Elements of a ``[a, b]`` argument."""
    args = args.strip()
    if args.startswith('[') and args.endswith(']'):
        args = args[1:-1]
    return split_at_depth_zero(args, ',', drop_empty=True, delimiters=NO_ANGLES)


class ZodExtractor(DeclarationExtractor):
    """Extracts Zod schema constants and tRPC router procedures."""

    DESCRIPTION = 'tRPC procedures or Zod schemas'
    FIELD_SEPARATORS = ','
    DELIMITERS = NO_ANGLES
    RULES = (
        'modifier',
        'combinator',
        'reference',
        'factory',
    )

    def extract(self, source: str) -> List[Declaration]:
        text = strip_comments(source)
        declarations = []
        for match in SCHEMA_CONST_RE.finditer(text):
            body = text[match.end():self._statement_end(text, match.end())].strip()
            declarations.append(self._schema_declaration(schema_base_name(match.group('name')), body))
        declarations.extend(self._extract_procedures(text))
        return declarations

    def _statement_end(self, text: str, start: int) -> int:
        next_statement = NEXT_STATEMENT_RE.search(text, start)
        limit = next_statement.start() if next_statement else len(text)
        scanner = Scanner(text, NO_ANGLES, pos=start)
        while scanner.pos < limit:
            if scanner.at_depth_zero and scanner.peek() == ';':
                return scanner.pos
            scanner.advance()
        return limit

    def _schema_declaration(self, name: str, body: str) -> Declaration:
        calls = split_chain(body)
        if len(calls) == 2 and calls[1][0] == 'object' and calls[1][1] is not None:
            inner = calls[1][1].strip()
            if inner.startswith('{') and find_matching_closer(inner, 0) == len(inner) - 1:
                fields, _ = self.parse_fields(inner[1:-1])
                return Declaration(name=name, kind=DeclarationKind.OBJECT_LIKE, fields=fields)
        return Declaration(name=name, kind=DeclarationKind.ALIAS_EXPRESSION, alias_body=body)

    def _extract_procedures(self, text: str) -> List[Declaration]:
        match = ROUTER_RE.search(text)
        if not match:
            return []
        open_index = match.end() - 1
        close = self.find_body(text, open_index, 'router')
        if close is None:
            return []

        procedures = []
        for chunk in split_at_depth_zero(text[open_index + 1:close], ',', drop_empty=True,
                                         delimiters=NO_ANGLES):
            key = PROCEDURE_KEY_RE.match(chunk)
            if not key:
                continue
            chain = chunk[key.end():].strip()
            calls = split_chain(chain)
            kind = next((k for k in PROCEDURE_KINDS if any(name == k for name, _ in calls)), None)
            if kind is None:
                logger.debug('Skipping router entry without a procedure: %s', key.group('name'))
                continue
            input_schema = next((args for name, args in calls if name == 'input' and args), None)
            procedures.append(Declaration(
                name=key.group('name'),
                kind=DeclarationKind.ALIAS_EXPRESSION,
                alias_body=(input_schema or '').strip(),
                attributes={'procedure': kind, 'has_input': input_schema is not None},
            ))
        return procedures

    def parse_field(self, line: str) -> Optional[Field]:
        field = super().parse_field(line)
        if field is None:
            return None
        calls = split_chain(field.raw_type)
        # `.array()` wraps everything before it, so only calls after it count
        tail = calls[max((i for i, (name, _) in enumerate(calls) if name == 'array'), default=0):]
        optional = field.optional or any(name in ('optional', 'nullish') for name, _ in tail)
        description = next((describe_text(args) for name, args in calls
                            if name == 'describe' and describe_text(args) is not None), '')
        default = next((literal_shape(args) for name, args in calls
                        if name == 'default' and args and literal_shape(args) is not None), None)
        return Field(
            key=field.key,
            raw_type=field.raw_type,
            optional=optional,
            description=description,
            attributes={'default': default.value} if default is not None else {},
        )

    # =========================================================================
    # CLASSIFICATION RULES
    # =========================================================================

    def normalize(self, raw):
        """Drop shape-preserving trailing calls and unwrap ``z.lazy``, iteratively."""
        text = str(raw).strip().rstrip(',').strip().replace('z.coerce.', 'z.')
        while True:
            calls = split_chain(text)
            if not calls:
                return text
            keep = 2 if calls[0][0] == 'z' else 1
            while len(calls) > keep and calls[-1][0] in TRANSPARENT_METHODS:
                calls.pop()
            if len(calls) == 2 and calls[0][0] == 'z' and calls[1][0] == 'lazy' and calls[1][1]:
                body = calls[1][1].strip()
                arrow = body.find('=>')
                text = (body[arrow + 2:] if arrow != -1 else body).strip()
                continue
            return join_chain(calls)

    def _match_modifier(self, text):
        calls = split_chain(text)
        if len(calls) < 2:
            return None
        name, _ = calls[-1]
        rest = join_chain(calls[:-1])
        if name == 'optional':
            return OptionalOf(rest)
        if name == 'nullable':
            return Nullable(rest)
        if name == 'nullish':
            return OptionalOf(rest + '.nullable()')
        return None

    def _match_combinator(self, text):
        calls = split_chain(text)
        if len(calls) < 2 or calls[0][0] == 'z' and len(calls) == 2:
            return None
        name, args = calls[-1]
        rest = join_chain(calls[:-1])
        if name == 'or' and args:
            return UnionOf((rest, args))
        if name == 'and' and args:
            return IntersectionOf((rest, args))
        if name == 'merge' and args:
            return IntersectionOf((rest, args))
        if name == 'extend' and args:
            return IntersectionOf((rest, f'z.object({args})'))
        if name == 'array' and not args:
            return ArrayOf(rest)
        if name in ('pick', 'omit') and args:
            keys = tuple(k.split(':')[0].strip().strip('\'"') for k in
                         split_at_depth_zero(args.strip()[1:-1], ',', drop_empty=True, delimiters=NO_ANGLES))
            return Container(name, (rest,), keys)
        if name in ('partial', 'required') and not args:
            return Container(name, (rest,))
        return None

    def _match_reference(self, text):
        if IDENTIFIER_RE.match(text) and text != 'z':
            return Reference(schema_base_name(text))
        return None

    def _match_factory(self, text):
        calls = split_chain(text)
        if len(calls) < 2 or calls[0][0] != 'z':
            return None
        factory, args = calls[1]
        methods = calls[2:]
        args = (args or '').strip()

        if factory in ZOD_FACTORIES:
            return self._primitive(ZOD_FACTORIES[factory], methods)
        if factory == 'literal':
            return literal_shape(args)
        if factory == 'enum':
            enum = enum_of_literals(list_items(args))
            return enum if enum is not None else EnumOf(())
        if factory == 'array':
            return ArrayOf(args, self._array_constraints(methods))
        if factory == 'tuple':
            return TupleOf(tuple(list_items(args)))
        if factory in ('union', 'discriminatedUnion'):
            items = args[args.find('['):] if '[' in args else args
            return UnionOf(tuple(list_items(items)))
        if factory == 'intersection':
            return IntersectionOf(tuple(split_at_depth_zero(args, ',', drop_empty=True, delimiters=NO_ANGLES)))
        if factory == 'object':
            return self._object(args, methods)
        if factory in ('record', 'map'):
            parts = split_at_depth_zero(args, ',', drop_empty=True, delimiters=NO_ANGLES)
            if len(parts) == 1:
                parts = ['z.string()'] + parts
            return Container(factory, tuple(parts[:2]))
        if factory in ('set', 'promise'):
            return Container(factory, (args,))
        return None

    def _primitive(self, canonical: str, methods) -> Primitive:
        constraints = []
        for name, args in methods:
            value = number_argument(args)
            if name == 'int':
                canonical = 'integer'
            elif name in STRING_FORMATS:
                constraints.append(('format', STRING_FORMATS[name]))
            elif name == 'regex' and args:
                constraints.append(('pattern', args.strip().strip('/')))
            elif canonical == 'string' and value is not None and name in ('min', 'max', 'length'):
                if name in ('min', 'length'):
                    constraints.append(('min_length', value))
                if name in ('max', 'length'):
                    constraints.append(('max_length', value))
            elif value is not None and name in ('min', 'gte'):
                constraints.append(('minimum', value))
            elif value is not None and name in ('max', 'lte'):
                constraints.append(('maximum', value))
            elif value is not None and name == 'gt':
                constraints.append(('exclusive_minimum', value))
            elif value is not None and name == 'lt':
                constraints.append(('exclusive_maximum', value))
            elif name == 'positive':
                constraints.append(('exclusive_minimum', 0))
            elif name == 'nonnegative':
                constraints.append(('minimum', 0))
        return Primitive(canonical, tuple(constraints))

    def _array_constraints(self, methods):
        constraints = []
        for name, args in methods:
            value = number_argument(args)
            if value is None:
                continue
            if name in ('min', 'length'):
                constraints.append(('min_items', value))
            if name in ('max', 'length'):
                constraints.append(('max_items', value))
        return tuple(constraints)

    def _object(self, args: str, methods) -> InlineObject:
        fields = ()
        if args.startswith('{') and find_matching_closer(args, 0) == len(args) - 1:
            fields, _ = self.parse_fields(args[1:-1])
        additional = None
        for name, method_args in methods:
            if name == 'strict':
                additional = False
            elif name == 'passthrough':
                additional = True
            elif name == 'catchall' and method_args:
                additional = method_args
        return InlineObject(fields, additional)
