"""
SQL DDL grammar.

Extracts ``CREATE TABLE`` statements (one object-like declaration per table,
one field per column) and ``CREATE TYPE ... AS ENUM`` statements. Column
constraints are kept as field attributes; table-level ``PRIMARY KEY`` and
``UNIQUE`` constraints are folded into the table's attributes.

'<' and '>' never nest in SQL, so every split here ignores angle brackets.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from ..lexer import NO_ANGLES, find_matching_closer, split_at_depth_zero, strip_comments
from ..type_system.mappings import SQL_TYPES
from .ast_nodes import ArrayOf, Declaration, DeclarationKind, EnumOf, Field, Primitive, Reference
from .parser import DeclarationExtractor, literal_shape


logger = logging.getLogger(__name__)


QUALIFIED = r'(?:[`"\[]?[\w$]+[`"\]]?\.)*[`"\[]?(?P<name>[\w$]+)[`"\]]?'
CREATE_TABLE_RE = re.compile(
    r'\bCREATE\s+(?:(?:GLOBAL\s+|LOCAL\s+)?TEMP(?:ORARY)?\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?'
    + QUALIFIED + r'\s*\(',
    re.IGNORECASE,
)
CREATE_ENUM_RE = re.compile(
    r'\bCREATE\s+TYPE\s+' + QUALIFIED + r'\s+AS\s+ENUM\s*\(',
    re.IGNORECASE,
)
COLUMN_NAME_RE = re.compile(r'^(?:`([^`]+)`|"([^"]+)"|\[([^\]]+)\]|([\w$]+))\s*(.*)$', re.DOTALL)
MULTIWORD_TYPES = (
    'double precision',
    'character varying',
    'timestamp without time zone',
    'timestamp with time zone',
    'time without time zone',
    'time with time zone',
)
TYPE_RE = re.compile(r'^(?P<base>[A-Za-z_][\w]*)\s*(?P<params>\([^)]*\))?(?P<array>(?:\s*\[\d*\])*)', re.DOTALL)
DEFAULT_RE = re.compile(
    r"\bDEFAULT\s+(?P<value>'(?:[^']|'')*'|\((?:[^()]|\([^()]*\))*\)|[\w.+-]+(?:\s*\([^()]*\))?)"
    r"(?:::[\w ]+?(?=\s|$))?",
    re.IGNORECASE,
)
TABLE_CONSTRAINT_RE = re.compile(
    r'^(?:CONSTRAINT\s+\S+\s+)?(?P<kind>PRIMARY\s+KEY|UNIQUE(?:\s+(?:KEY|INDEX))?|FOREIGN\s+KEY|CHECK|KEY|INDEX|EXCLUDE)\b',
    re.IGNORECASE,
)
SERIAL_TYPES = ('serial', 'smallserial', 'bigserial')
INLINE_ENUM_TYPES = ('enum', 'set')


def unquote_identifier(name: str) -> str:
    return name.strip().strip('`"[]')


def column_list(text: str) -> Tuple[str, ...]:
    """Column names inside the first parenthesized list of ``text``."""
    start = text.find('(')
    if start == -1:
        return ()
    end = find_matching_closer(text, start)
    inner = text[start + 1:end] if end != -1 else text[start + 1:]
    return tuple(unquote_identifier(c.split()[0]) for c in inner.split(',') if c.strip())


def string_values(text: str) -> Tuple[Any, ...]:
    values = []
    for part in split_at_depth_zero(text, ',', drop_empty=True, delimiters=NO_ANGLES):
        literal = literal_shape(part.replace("''", "\\'"))
        if literal is not None:
            values.append(literal.value)
    return tuple(values)


def split_column_type(rest: str) -> Tuple[str, str]:
    """Split a column definition (after the name) into type text and constraints."""
    lowered = rest.lower()
    for multiword in MULTIWORD_TYPES:
        if lowered.startswith(multiword):
            end = len(multiword)
            match = re.match(r'\s*\(\d+\)', rest[end:])
            if match:
                end += match.end()
            return rest[:end], rest[end:]
    match = TYPE_RE.match(rest)
    if not match:
        return '', rest
    end = match.end()
    unsigned = re.match(r'\s+(?:UNSIGNED|ZEROFILL)\b', rest[end:], re.IGNORECASE)
    if unsigned:
        end += unsigned.end()
    return rest[:end].strip(), rest[end:]


class SqlExtractor(DeclarationExtractor):
    """Extracts tables and enum types from SQL DDL."""

    DESCRIPTION = 'CREATE TABLE statements'
    DELIMITERS = NO_ANGLES
    RULES = (
        'inline_enum',
        'array',
        'boolean_tinyint',
        'primitive',
        'reference',
    )

    def extract(self, source: str) -> List[Declaration]:
        text = strip_comments(source, line_markers=('--', '#'))
        found = []
        for match in CREATE_ENUM_RE.finditer(text):
            declaration = self._extract_enum(text, match)
            if declaration is not None:
                found.append((match.start(), declaration))
        for match in CREATE_TABLE_RE.finditer(text):
            declaration = self._extract_table(text, match)
            if declaration is not None:
                found.append((match.start(), declaration))
        found.sort(key=lambda item: item[0])
        return [declaration for _, declaration in found]

    def _extract_enum(self, text, match) -> Optional[Declaration]:
        name = match.group('name')
        open_index = match.end() - 1
        close = self.find_body(text, open_index, name)
        if close is None:
            return None
        return Declaration(
            name=name,
            kind=DeclarationKind.ENUM_LIKE,
            alias_body=text[open_index + 1:close].strip(),
        )

    def _extract_table(self, text, match) -> Optional[Declaration]:
        table = match.group('name')
        open_index = match.end() - 1
        close = self.find_body(text, open_index, table)
        if close is None:
            return None

        columns = []
        primary_key: Tuple[str, ...] = ()
        unique_together = []
        for part in split_at_depth_zero(text[open_index + 1:close], ',', drop_empty=True,
                                        delimiters=self.DELIMITERS):
            constraint = TABLE_CONSTRAINT_RE.match(part)
            if constraint:
                kind = constraint.group('kind').upper()
                if kind.startswith('PRIMARY'):
                    primary_key = column_list(part)
                elif kind.startswith('UNIQUE'):
                    unique_together.append(column_list(part))
                continue
            column = self.parse_column(part)
            if column is not None:
                columns.append(column)

        primary_key = primary_key or tuple(c['name'] for c in columns if c['primary_key'])
        single_unique = {cols[0] for cols in unique_together if len(cols) == 1}
        fields = tuple(
            self._column_field(c, c['name'] in primary_key, c['name'] in single_unique)
            for c in columns
        )
        return Declaration(
            name=table[:1].upper() + table[1:],
            kind=DeclarationKind.OBJECT_LIKE,
            fields=fields,
            attributes={
                'table': table,
                'primary_key': primary_key,
                'unique_together': tuple(cols for cols in unique_together if len(cols) > 1),
            },
        )

    def parse_column(self, text: str) -> Optional[Dict[str, Any]]:
        """Name, type and constraints of one column definition."""
        match = COLUMN_NAME_RE.match(text.strip())
        if not match:
            return None
        name = next(g for g in match.groups()[:4] if g is not None)
        type_text, rest = split_column_type(match.group(5))
        if not type_text:
            logger.debug('Skipping column without a type: %r', text)
            return None
        upper = rest.upper()
        base = type_text.split('(')[0].strip().lower()
        default = DEFAULT_RE.search(rest)
        return {
            'name': name,
            'type': type_text,
            'not_null': 'NOT NULL' in upper,
            'primary_key': 'PRIMARY KEY' in upper,
            'unique': bool(re.search(r'\bUNIQUE\b', upper)),
            'auto_increment': (
                base in SERIAL_TYPES
                or bool(re.search(r'\bAUTO_?INCREMENT\b|\bGENERATED\b.*\bAS\s+IDENTITY\b', upper))
            ),
            'default': default.group('value') if default else None,
        }

    def _column_field(self, column: Dict[str, Any], primary: bool, unique: bool) -> Field:
        attributes: Dict[str, Any] = {}
        if primary:
            attributes['primary_key'] = True
        if column['unique'] or unique:
            attributes['unique'] = True
        if column['auto_increment']:
            attributes['auto_increment'] = True
        default = column['default']
        if default is not None and default.upper() != 'NULL':
            literal = literal_shape(default.replace("''", "\\'"))
            if default.lower() in ('true', 'false'):
                attributes['default'] = default.lower() == 'true'
            elif literal is not None:
                attributes['default'] = literal.value
        else:
            default = None
        return Field(
            key=column['name'],
            raw_type=column['type'],
            optional=not (column['not_null'] or primary),
            default=default,
            attributes=attributes,
        )

    def enum_values(self, declaration):
        return string_values(declaration.alias_body)

    # =========================================================================
    # CLASSIFICATION RULES
    # =========================================================================

    def normalize(self, raw):
        return re.sub(r'\s+', ' ', str(raw).strip())

    def _match_inline_enum(self, text):
        match = re.match(r'^(enum|set)\s*\((.*)\)$', text, re.IGNORECASE | re.DOTALL)
        if match and match.group(1).lower() in INLINE_ENUM_TYPES:
            return EnumOf(string_values(match.group(2)))
        return None

    def _match_array(self, text):
        if text.endswith(']'):
            return ArrayOf(re.sub(r'\s*\[\d*\]$', '', text))
        if text.upper().endswith(' ARRAY'):
            return ArrayOf(text[:-len(' ARRAY')])
        return None

    def _match_boolean_tinyint(self, text):
        if re.match(r'^tinyint\s*\(\s*1\s*\)', text, re.IGNORECASE):
            return Primitive('boolean')
        return None

    def _match_primitive(self, text):
        lowered = text.lower()
        match = re.match(r'^(?P<base>[a-z_][\w ]*?)\s*(?:\((?P<params>[^)]*)\))?(?:\s+(?:unsigned|zerofill))*$', lowered)
        if not match:
            return None
        base = match.group('base').strip()
        mapped = SQL_TYPES.get(base)
        if mapped is None:
            return None
        canonical, constraints = mapped
        params = [p.strip() for p in (match.group('params') or '').split(',') if p.strip()]
        if canonical == 'string' and params and params[0].isdigit():
            constraints = constraints + (('max_length', int(params[0])),)
        elif canonical == 'decimal' and len(params) == 2:
            constraints = constraints + (('description', f'{base.upper()}({params[0]},{params[1]})'),)
        return Primitive(canonical, constraints)

    def _match_reference(self, text):
        name = unquote_identifier(text.split('.')[-1])
        if re.match(r'^[\w$]+$', name):
            return Reference(name)
        return None
