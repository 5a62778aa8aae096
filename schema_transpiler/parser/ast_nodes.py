"""
Declaration and type-shape definitions.

This module contains the dataclasses produced by the declaration extractors
(Declaration, Field) and the closed set of type shapes a grammar classifies a
raw type expression into. Shapes describe a single level of a type
expression: their children are still raw source expressions, which the
TypeConverter maps recursively.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional, Tuple


# =============================================================================
# DECLARATIONS
# =============================================================================

class DeclarationKind(Enum):
    """Kinds of top-level declarations."""
    OBJECT_LIKE = auto()
    ALIAS_EXPRESSION = auto()
    ENUM_LIKE = auto()


@dataclass(frozen=True)
class Field:
    """A named member of an object-like declaration or inline object.

    ``raw_type`` is source text for text grammars and a schema mapping for
    JSON documents.
    """
    key: str
    raw_type: Any
    optional: bool = False
    description: str = ''
    default: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)
    arguments: Tuple['Field', ...] = ()


@dataclass(frozen=True)
class Declaration:
    """A named top-level type or schema definition."""
    name: str
    kind: DeclarationKind
    fields: Tuple[Field, ...] = ()
    alias_body: Any = None
    bases: Tuple[str, ...] = ()
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if self.kind == DeclarationKind.OBJECT_LIKE:
            if self.alias_body is not None:
                raise ValueError(f'Object-like declaration {self.name} cannot carry an alias body')
        else:
            if self.fields:
                raise ValueError(f'Declaration {self.name} of kind {self.kind.name} cannot have fields')
            if self.alias_body is None:
                raise ValueError(f'Declaration {self.name} of kind {self.kind.name} needs an alias body')


# =============================================================================
# TYPE SHAPES
# =============================================================================

@dataclass(frozen=True)
class TypeShape:
    """Base class for all classified type shapes."""
    pass


@dataclass(frozen=True)
class Primitive(TypeShape):
    """A primitive named by its canonical name (see type_system.mappings).

    ``constraints`` holds ordered (name, value) pairs such as
    ('format', 'email') or ('max_length', 255).
    """
    name: str
    constraints: Tuple[Tuple[str, Any], ...] = ()


@dataclass(frozen=True)
class Literal(TypeShape):
    """A single literal value (str, int, float, bool or None)."""
    value: Any


@dataclass(frozen=True)
class EnumOf(TypeShape):
    """A closed enumeration of literal values, in source order."""
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class ArrayOf(TypeShape):
    element: Any
    constraints: Tuple[Tuple[str, Any], ...] = ()


@dataclass(frozen=True)
class TupleOf(TypeShape):
    elements: Tuple[Any, ...]


@dataclass(frozen=True)
class UnionOf(TypeShape):
    """Union of two or more raw member expressions."""
    members: Tuple[Any, ...]


@dataclass(frozen=True)
class IntersectionOf(TypeShape):
    """Intersection of two or more raw member expressions."""
    members: Tuple[Any, ...]


@dataclass(frozen=True)
class Nullable(TypeShape):
    inner: Any


@dataclass(frozen=True)
class OptionalOf(TypeShape):
    inner: Any


@dataclass(frozen=True)
class Container(TypeShape):
    """A generic container such as 'set', 'map', 'record' or 'pick'.

    ``keys`` carries the selected field names for 'pick' and 'omit'.
    """
    name: str
    args: Tuple[Any, ...]
    keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class InlineObject(TypeShape):
    """An anonymous object; ``additional`` is the raw type of extra keys."""
    fields: Tuple[Field, ...]
    additional: Any = None


@dataclass(frozen=True)
class Reference(TypeShape):
    """A named reference to another declaration."""
    name: str


@dataclass(frozen=True)
class Unknown(TypeShape):
    """An expression no rule recognized."""
    text: str = ''
