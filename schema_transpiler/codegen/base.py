"""
Base renderer and emitter classes with shared utilities.

A renderer turns one classified type shape (whose children are already
mapped) into target syntax. An emitter assembles the mapped declarations of
a document into the final output text. Both receive the EmissionContext of
the conversion they serve.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import EmissionContext

from ..parser.ast_nodes import Declaration, Field


IDENTIFIER_RE = re.compile(r'^[A-Za-z_$][\w$]*$')


@dataclass(frozen=True)
class MappedField:
    """A field together with its type expression in the target notation."""
    field: Field
    expression: Any
    arguments: Tuple['MappedField', ...] = ()

    @property
    def key(self) -> str:
        return self.field.key


@dataclass(frozen=True)
class MappedDeclaration:
    """A declaration together with everything the emitter needs to print it.

    ``expression`` is the whole declaration in target notation; ``fields``
    are kept separately for emitters that print members one per line.
    """
    declaration: Declaration
    expression: Any
    fields: Tuple[MappedField, ...] = ()
    bases: Tuple[Any, ...] = ()
    enum_values: Tuple[Any, ...] = ()
    # Object body without bases, for emitters that print bases separately
    body: Any = None

    @property
    def name(self) -> str:
        return self.declaration.name


# =============================================================================
# NAMING
# =============================================================================

def is_identifier(name: str) -> bool:
    return bool(IDENTIFIER_RE.match(name))


def sanitize_identifier(name: str) -> str:
    """Replace characters that cannot appear in an identifier."""
    if is_identifier(name):
        return name
    cleaned = re.sub(r'[^\w$]', '_', name) or '_'
    if cleaned[0].isdigit():
        cleaned = '_' + cleaned
    return cleaned


def format_key(key: str) -> str:
    """Object key: bare when it is an identifier, quoted otherwise."""
    return key if is_identifier(key) else js_string(key)


def to_pascal_case(name: str) -> str:
    """'user_profiles' -> 'UserProfiles'; existing capitals are kept."""
    parts = [p for p in re.split(r'[_\-\s.]+', name) if p]
    return ''.join(p[0].upper() + p[1:] for p in parts)


def to_camel_case(name: str) -> str:
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def singularize(name: str) -> str:
    if name.endswith('ies'):
        return name[:-3] + 'y'
    if name.endswith('ses') or name.endswith('xes'):
        return name[:-2]
    if name.endswith('s') and not name.endswith('ss') and not name.endswith('us'):
        return name[:-1]
    return name


# =============================================================================
# VALUE FORMATTING
# =============================================================================

def js_string(value: str) -> str:
    """Double-quoted JavaScript string literal."""
    return json.dumps(value, ensure_ascii=False)


def js_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def js_value(value: Any) -> str:
    """JavaScript source for a literal value."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    if isinstance(value, (int, float)):
        return js_number(value)
    if isinstance(value, str):
        return js_string(value)
    return json.dumps(value, ensure_ascii=False)


def indent_continuation(text: str, pad: str) -> str:
    """Indent every line after the first, for embedding multi-line text."""
    return text.replace('\n', '\n' + pad)


class BaseRenderer:
    """
    Base class for all target renderers.

    Each method receives children that are already expressed in the target
    notation. The TypeConverter folds intersections of three or more members
    through ``intersect`` two at a time.
    """

    # Targets that can express Pick/Omit/Partial/Required on a named schema
    SUPPORTS_FIELD_SELECTION = False

    def __init__(self, ctx: 'EmissionContext'):
        """
        Initialize the base renderer.

        Args:
            ctx: The emission context of the current conversion
        """
        self._ctx = ctx

    def unknown(self, hint: str = '') -> Any:
        raise NotImplementedError

    def primitive(self, name: str, constraints: Sequence[Tuple[str, Any]] = ()) -> Any:
        raise NotImplementedError

    def literal(self, value: Any) -> Any:
        raise NotImplementedError

    def enum(self, values: Sequence[Any]) -> Any:
        raise NotImplementedError

    def array(self, element: Any, constraints: Sequence[Tuple[str, Any]] = ()) -> Any:
        raise NotImplementedError

    def tuple(self, elements: Sequence[Any]) -> Any:
        raise NotImplementedError

    def union(self, members: Sequence[Any]) -> Any:
        raise NotImplementedError

    def intersect(self, left: Any, right: Any) -> Any:
        raise NotImplementedError

    def nullable(self, inner: Any) -> Any:
        raise NotImplementedError

    def optional(self, inner: Any) -> Any:
        raise NotImplementedError

    def container(self, name: str, args: Sequence[Any]) -> Any:
        raise NotImplementedError

    def select(self, kind: str, base_name: str, keys: Sequence[str]) -> Any:
        """Pick/Omit/Partial/Required applied to a named declaration."""
        raise NotImplementedError

    def object(self, fields: Sequence[MappedField], additional: Any = None,
               top_level: bool = False) -> Any:
        """An object type.

        ``additional`` is None (target default), True (open), False (closed)
        or the mapped type of extra keys.
        """
        raise NotImplementedError

    def reference(self, name: str) -> Any:
        raise NotImplementedError

    def deferred_reference(self, name: str) -> Any:
        return self.reference(name)


class BaseEmitter:
    """
    Base class for all target emitters.

    ``ORDERED`` emitters need referenced declarations printed first; the
    converter then maps declarations in dependency order.
    """

    ORDERED = False
    # Output returned alongside a fatal diagnostic
    PLACEHOLDER = ''

    def __init__(self, ctx: 'EmissionContext', document_info: Optional[Dict[str, Any]] = None):
        self._ctx = ctx
        self._document_info = document_info or {}

    def emit(self, declarations: List[MappedDeclaration]) -> str:
        raise NotImplementedError
