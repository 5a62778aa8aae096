"""
Type mappings between source grammars, canonical primitives and targets.

Every grammar maps its primitive keywords onto a small canonical vocabulary
(string, integer, datetime, ...), and every target renders that vocabulary
in its own syntax. Tables are read-only mappings; converters receive them as
configuration and never mutate them.
"""

from types import MappingProxyType
from typing import Any, Mapping, Tuple


# JavaScript numbers are float64; integers beyond this lose precision
SAFE_INTEGER_MAX = 2 ** 53 - 1


def is_unsafe_integer(value: Any) -> bool:
    """Return True for ints outside the float64 exact integer range."""
    return isinstance(value, int) and not isinstance(value, bool) and abs(value) > SAFE_INTEGER_MAX


# =============================================================================
# CANONICAL PRIMITIVES
# =============================================================================

CANONICAL_PRIMITIVES = (
    'string',
    'number',
    'integer',
    'bigint',
    'decimal',
    'boolean',
    'null',
    'undefined',
    'void',
    'any',
    'unknown',
    'never',
    'object',
    'symbol',
    'date',
    'datetime',
    'time',
    'json',
    'bytes',
)


# =============================================================================
# SOURCE GRAMMAR TABLES
# =============================================================================

TYPESCRIPT_KEYWORDS: Mapping[str, str] = MappingProxyType({
    'string': 'string',
    'number': 'number',
    'boolean': 'boolean',
    'bigint': 'bigint',
    'symbol': 'symbol',
    'null': 'null',
    'undefined': 'undefined',
    'void': 'void',
    'any': 'any',
    'unknown': 'unknown',
    'never': 'never',
    'object': 'object',
    'Date': 'date',
})

GRAPHQL_SCALARS: Mapping[str, str] = MappingProxyType({
    'ID': 'string',
    'String': 'string',
    'Int': 'integer',
    'Float': 'number',
    'Boolean': 'boolean',
})

# SQL base type -> (canonical name, extra constraints)
SQL_TYPES: Mapping[str, Tuple[str, Tuple[Tuple[str, Any], ...]]] = MappingProxyType({
    # Integers
    'int': ('integer', ()),
    'integer': ('integer', ()),
    'tinyint': ('integer', ()),
    'smallint': ('integer', ()),
    'mediumint': ('integer', ()),
    'serial': ('integer', ()),
    'smallserial': ('integer', ()),
    'year': ('integer', ()),
    'bigint': ('bigint', ()),
    'bigserial': ('bigint', ()),
    # Floats
    'float': ('number', ()),
    'double': ('number', ()),
    'double precision': ('number', ()),
    'real': ('number', ()),
    'decimal': ('decimal', ()),
    'numeric': ('decimal', ()),
    'money': ('decimal', ()),
    # Strings
    'varchar': ('string', ()),
    'char': ('string', ()),
    'character': ('string', ()),
    'character varying': ('string', ()),
    'nvarchar': ('string', ()),
    'text': ('string', ()),
    'tinytext': ('string', ()),
    'mediumtext': ('string', ()),
    'longtext': ('string', ()),
    'citext': ('string', ()),
    'uuid': ('string', (('format', 'uuid'),)),
    # Boolean
    'boolean': ('boolean', ()),
    'bool': ('boolean', ()),
    'bit': ('boolean', ()),
    # Date/Time
    'timestamp': ('datetime', ()),
    'timestamp without time zone': ('datetime', ()),
    'timestamp with time zone': ('datetime', ()),
    'timestamptz': ('datetime', ()),
    'datetime': ('datetime', ()),
    'date': ('datetime', ()),
    'time': ('time', ()),
    # JSON
    'json': ('json', ()),
    'jsonb': ('json', ()),
    # Binary
    'blob': ('bytes', ()),
    'bytea': ('bytes', ()),
    'binary': ('bytes', ()),
    'varbinary': ('bytes', ()),
})

JSON_SCHEMA_TYPES: Mapping[str, str] = MappingProxyType({
    'string': 'string',
    'number': 'number',
    'integer': 'integer',
    'boolean': 'boolean',
    'null': 'null',
})

# Prisma scalar -> canonical primitive
PRISMA_SCALARS: Mapping[str, str] = MappingProxyType({
    'String': 'string',
    'Int': 'integer',
    'BigInt': 'bigint',
    'Float': 'number',
    'Decimal': 'decimal',
    'Boolean': 'boolean',
    'DateTime': 'datetime',
    'Json': 'json',
    'Bytes': 'bytes',
})

# z.<name>() factory -> canonical primitive
ZOD_FACTORIES: Mapping[str, str] = MappingProxyType({
    'string': 'string',
    'number': 'number',
    'bigint': 'bigint',
    'boolean': 'boolean',
    'date': 'date',
    'symbol': 'symbol',
    'null': 'null',
    'undefined': 'undefined',
    'void': 'void',
    'any': 'any',
    'unknown': 'unknown',
    'never': 'never',
})


# =============================================================================
# TARGET TABLES
# =============================================================================

ZOD_PRIMITIVES: Mapping[str, str] = MappingProxyType({
    'string': 'z.string()',
    'number': 'z.number()',
    'integer': 'z.number().int()',
    'bigint': 'z.bigint()',
    'decimal': 'z.number()',
    'boolean': 'z.boolean()',
    'null': 'z.null()',
    'undefined': 'z.undefined()',
    'void': 'z.void()',
    'any': 'z.any()',
    'unknown': 'z.unknown()',
    'never': 'z.never()',
    'object': 'z.object({}).passthrough()',
    'symbol': 'z.symbol()',
    'date': 'z.date()',
    'datetime': 'z.string().datetime()',
    'time': 'z.string()',
    'json': 'z.record(z.unknown())',
    'bytes': 'z.string()',
})

# Prisma clients hand back Date objects, so timestamps are coerced
PRISMA_ZOD_PRIMITIVES: Mapping[str, str] = MappingProxyType(dict(ZOD_PRIMITIVES, datetime='z.coerce.date()'))

TYPESCRIPT_PRIMITIVES: Mapping[str, str] = MappingProxyType({
    'string': 'string',
    'number': 'number',
    'integer': 'number',
    'bigint': 'bigint',
    'decimal': 'number',
    'boolean': 'boolean',
    'null': 'null',
    'undefined': 'undefined',
    'void': 'void',
    'any': 'any',
    'unknown': 'unknown',
    'never': 'never',
    'object': 'object',
    'symbol': 'symbol',
    'date': 'Date',
    'datetime': 'string',
    'time': 'string',
    'json': 'Record<string, unknown>',
    'bytes': 'string',
})

# Values are key/value pairs so every lookup builds a fresh dict
JSON_SCHEMA_PRIMITIVES: Mapping[str, Tuple[Tuple[str, Any], ...]] = MappingProxyType({
    'string': (('type', 'string'),),
    'number': (('type', 'number'),),
    'integer': (('type', 'integer'),),
    'bigint': (('type', 'integer'),),
    'decimal': (('type', 'number'),),
    'boolean': (('type', 'boolean'),),
    'null': (('type', 'null'),),
    'undefined': (('type', 'null'),),
    'void': (('type', 'null'),),
    'any': (),
    'unknown': (),
    'never': (('not', {}),),
    'object': (('type', 'object'),),
    'symbol': (),
    'date': (('type', 'string'), ('format', 'date-time')),
    'datetime': (('type', 'string'), ('format', 'date-time')),
    'time': (('type', 'string'), ('format', 'time')),
    'json': (('type', 'object'),),
    'bytes': (('type', 'string'),),
})

PRISMA_PRIMITIVES: Mapping[str, str] = MappingProxyType({
    'string': 'String',
    'number': 'Float',
    'integer': 'Int',
    'bigint': 'BigInt',
    'decimal': 'Decimal',
    'boolean': 'Boolean',
    'date': 'DateTime',
    'datetime': 'DateTime',
    'time': 'DateTime',
    'json': 'Json',
    'object': 'Json',
    'bytes': 'Bytes',
})

# Zod string refinements keyed by JSON Schema format name
ZOD_STRING_FORMATS: Mapping[str, str] = MappingProxyType({
    'email': '.email()',
    'uuid': '.uuid()',
    'date-time': '.datetime()',
    'uri': '.url()',
    'url': '.url()',
    'ipv4': '.ip()',
    'ipv6': '.ip()',
})

# Canonical constraint name -> JSON Schema keyword
JSON_SCHEMA_CONSTRAINTS: Mapping[str, str] = MappingProxyType({
    'format': 'format',
    'min_length': 'minLength',
    'max_length': 'maxLength',
    'pattern': 'pattern',
    'minimum': 'minimum',
    'maximum': 'maximum',
    'exclusive_minimum': 'exclusiveMinimum',
    'exclusive_maximum': 'exclusiveMaximum',
    'multiple_of': 'multipleOf',
    'min_items': 'minItems',
    'max_items': 'maxItems',
    'description': 'description',
})
