"""
Recursive type-expression mapping.

This module provides the TypeConverter class, which maps raw source type
expressions to target expressions. The source grammar classifies one level
of an expression into a shape; the converter recurses into the shape's
children and hands the mapped children to the target renderer.
"""

import dataclasses
import logging
from functools import reduce
from typing import Any, FrozenSet, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import EmissionContext
    from .diagnostics import TranspilerDiagnostics
    from ..parser.parser import DeclarationExtractor
    from ..type_system import DeclarationRegistry

from ..parser.ast_nodes import (
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
    OptionalOf,
    Primitive,
    Reference,
    TupleOf,
    UnionOf,
    Unknown,
)
from ..type_system.mappings import is_unsafe_integer
from .base import BaseRenderer, MappedDeclaration, MappedField


logger = logging.getLogger(__name__)


# Containers whose argument is mapped as-is
PASSTHROUGH_CONTAINERS = ('readonly',)
# Containers that derive a new object from a named declaration's fields
FIELD_SELECTIONS = ('pick', 'omit', 'partial', 'required')


class TypeConverter:
    """
    Maps source type expressions to target type expressions.

    Recursion is bounded by ``max_depth``: deeper expressions become the
    target's unknown type and a DepthExceeded warning is recorded once per
    declaration. Named references are tracked with an ancestor set that is
    copied, never mutated, on every push, so sibling branches never see each
    other's references. A reference to a name already in the ancestor set
    renders as the target's deferred form instead of recursing.

    With ``inline_references`` set, references to known declarations are
    expanded in place; otherwise they render as named references.
    """

    def __init__(
        self,
        ctx: 'EmissionContext',
        grammar: 'DeclarationExtractor',
        renderer: BaseRenderer,
        registry: 'DeclarationRegistry',
        diagnostics: 'TranspilerDiagnostics',
        max_depth: int,
        inline_references: bool = False,
    ):
        self._ctx = ctx
        self._grammar = grammar
        self._renderer = renderer
        self._registry = registry
        self._diagnostics = diagnostics
        self._max_depth = max_depth
        self._inline_references = inline_references
        self._handlers = {
            Primitive: self._map_primitive,
            Literal: self._map_literal,
            EnumOf: self._map_enum,
            Reference: self._map_reference,
            UnionOf: self._map_union,
            IntersectionOf: self._map_intersection,
            Nullable: self._map_nullable,
            OptionalOf: self._map_optional,
            ArrayOf: self._map_array,
            TupleOf: self._map_tuple,
            Container: self._map_container,
            InlineObject: self._map_inline_object,
            Unknown: self._map_unknown,
        }

    # =========================================================================
    # DECLARATIONS
    # =========================================================================

    def map_declaration(
        self,
        declaration: Declaration,
        pending: FrozenSet[str] = frozenset(),
    ) -> MappedDeclaration:
        """Map one declaration.

        Args:
            declaration: The declaration to map
            pending: Declarations not yet emitted when this one is printed;
                references to them must be deferred

        Returns:
            The mapped declaration
        """
        self._ctx.begin_declaration(declaration.name)
        known = self._registry.names
        ancestors = frozenset(pending) | {declaration.name}

        if declaration.kind == DeclarationKind.ENUM_LIKE:
            values = self._grammar.enum_values(declaration)
            self._check_numeric_range(values)
            return MappedDeclaration(declaration, self._renderer.enum(values), enum_values=values)

        if declaration.kind == DeclarationKind.ALIAS_EXPRESSION:
            expression = self.map_type(declaration.alias_body, known, ancestors, 0)
            return MappedDeclaration(declaration, expression)

        fields = self.map_fields(declaration.fields, known, ancestors, 0)
        additional = self._map_additional(declaration.attributes.get('additional'), known, ancestors, 0)
        body = self._renderer.object(fields, additional, top_level=True)
        bases = tuple(self._resolve(base, known, ancestors, 0) for base in declaration.bases)
        expression = reduce(self._renderer.intersect, bases + (body,))
        return MappedDeclaration(declaration, expression, fields, bases, body=body)

    def map_fields(
        self,
        fields: Sequence[Field],
        known_names: FrozenSet[str],
        ancestor_refs: FrozenSet[str],
        depth: int,
    ) -> Tuple[MappedField, ...]:
        mapped = []
        for field in fields:
            if depth == 0:
                self._ctx.current_field = field.key
            expression = self.map_type(field.raw_type, known_names, ancestor_refs, depth)
            arguments = self.map_fields(field.arguments, known_names, ancestor_refs, depth)
            mapped.append(MappedField(field, expression, arguments))
        return tuple(mapped)

    # =========================================================================
    # MAIN TYPE MAPPING
    # =========================================================================

    def map_type(
        self,
        raw_type: Any,
        known_names: FrozenSet[str],
        ancestor_refs: FrozenSet[str] = frozenset(),
        depth: int = 0,
    ) -> Any:
        """Map one raw type expression to the target notation.

        Args:
            raw_type: Source expression (text, or a schema node for JSON grammars)
            known_names: Names declared in the document
            ancestor_refs: References being expanded on the current path
            depth: Current nesting depth

        Returns:
            The target expression; never raises for malformed input
        """
        if depth > self._max_depth:
            self._warn_depth()
            return self._renderer.unknown()
        shape = self._grammar.classify(raw_type)
        return self._handlers[type(shape)](shape, known_names, ancestor_refs, depth)

    def _map_primitive(self, shape, known, ancestors, depth):
        return self._renderer.primitive(shape.name, shape.constraints)

    def _map_literal(self, shape, known, ancestors, depth):
        self._check_numeric_range((shape.value,))
        return self._renderer.literal(shape.value)

    def _map_enum(self, shape, known, ancestors, depth):
        self._check_numeric_range(shape.values)
        return self._renderer.enum(shape.values)

    def _map_reference(self, shape, known, ancestors, depth):
        return self._resolve(shape.name, known, ancestors, depth)

    def _map_union(self, shape, known, ancestors, depth):
        members = [self.map_type(m, known, ancestors, depth + 1) for m in shape.members]
        if len(members) == 1:
            return members[0]
        return self._renderer.union(members)

    def _map_intersection(self, shape, known, ancestors, depth):
        members = [self.map_type(m, known, ancestors, depth + 1) for m in shape.members]
        return reduce(self._renderer.intersect, members)

    def _map_nullable(self, shape, known, ancestors, depth):
        return self._renderer.nullable(self.map_type(shape.inner, known, ancestors, depth + 1))

    def _map_optional(self, shape, known, ancestors, depth):
        return self._renderer.optional(self.map_type(shape.inner, known, ancestors, depth + 1))

    def _map_array(self, shape, known, ancestors, depth):
        element = self.map_type(shape.element, known, ancestors, depth + 1)
        return self._renderer.array(element, shape.constraints)

    def _map_tuple(self, shape, known, ancestors, depth):
        return self._renderer.tuple([self.map_type(e, known, ancestors, depth + 1) for e in shape.elements])

    def _map_container(self, shape, known, ancestors, depth):
        if shape.name in PASSTHROUGH_CONTAINERS:
            return self.map_type(shape.args[0], known, ancestors, depth + 1)
        if shape.name in FIELD_SELECTIONS:
            return self._map_selection(shape, known, ancestors, depth)
        args = [self.map_type(a, known, ancestors, depth + 1) for a in shape.args]
        return self._renderer.container(shape.name, args)

    def _map_selection(self, shape, known, ancestors, depth):
        """Pick/Omit/Partial/Required over a declaration's fields."""
        base = self._grammar.classify(shape.args[0])
        if not isinstance(base, Reference) or base.name not in known:
            return self.map_type(shape.args[0], known, ancestors, depth + 1)

        name = base.name
        if (self._renderer.SUPPORTS_FIELD_SELECTION and not self._inline_references
                and name not in ancestors):
            self._ctx.note_reference(name)
            return self._renderer.select(shape.name, name, shape.keys)

        if not self._registry.is_object(name):
            return self._resolve(name, known, ancestors, depth)

        declaration = self._registry.get(name)
        fields = select_fields(declaration.fields, shape.name, shape.keys)
        mapped = self.map_fields(fields, known, ancestors | {name}, depth + 1)
        return self._renderer.object(mapped)

    def _map_inline_object(self, shape, known, ancestors, depth):
        fields = self.map_fields(shape.fields, known, ancestors, depth + 1)
        additional = self._map_additional(shape.additional, known, ancestors, depth + 1)
        return self._renderer.object(fields, additional)

    def _map_unknown(self, shape, known, ancestors, depth):
        if shape.text:
            logger.debug('Unrecognized type expression %r', shape.text)
            self._diagnostics.warn_unsupported_construct(
                'type expression', shape.text[:80], self._ctx.current_declaration,
            )
        return self._renderer.unknown(shape.text)

    # =========================================================================
    # REFERENCES
    # =========================================================================

    def _resolve(self, name: str, known: FrozenSet[str], ancestors: FrozenSet[str], depth: int) -> Any:
        if name not in known:
            logger.debug('Unresolved reference %s in %s', name, self._ctx.current_declaration)
            self._diagnostics.warn_unknown_reference(name, self._ctx.current_declaration)
            return self._renderer.unknown(name)

        self._ctx.note_reference(name)
        if name in ancestors:
            return self._renderer.deferred_reference(name)
        if self._inline_references:
            return self._map_definition(self._registry.get(name), known, ancestors | {name}, depth + 1)
        return self._renderer.reference(name)

    def _map_definition(self, declaration, known, ancestors, depth):
        """Expand a declaration in place (inline reference mode)."""
        if depth > self._max_depth:
            self._warn_depth()
            return self._renderer.unknown()
        if declaration.kind == DeclarationKind.ENUM_LIKE:
            return self._renderer.enum(self._grammar.enum_values(declaration))
        if declaration.kind == DeclarationKind.ALIAS_EXPRESSION:
            return self.map_type(declaration.alias_body, known, ancestors, depth)
        fields = self.map_fields(declaration.fields, known, ancestors, depth)
        additional = self._map_additional(declaration.attributes.get('additional'), known, ancestors, depth)
        body = self._renderer.object(fields, additional)
        bases = [self._resolve(base, known, ancestors, depth) for base in declaration.bases]
        return reduce(self._renderer.intersect, bases + [body])

    def _map_additional(self, additional, known, ancestors, depth):
        if additional is None or isinstance(additional, bool):
            return additional
        return self.map_type(additional, known, ancestors, depth)

    # =========================================================================
    # WARNINGS
    # =========================================================================

    def _warn_depth(self) -> None:
        name = self._ctx.current_declaration
        if name not in self._ctx.depth_warned:
            self._ctx.depth_warned.add(name)
            logger.warning('Nesting deeper than %d levels in %s', self._max_depth, name)
            self._diagnostics.warn_depth_exceeded(self._max_depth, name)

    def _check_numeric_range(self, values: Sequence[Any]) -> None:
        for value in values:
            if is_unsafe_integer(value):
                self._diagnostics.warn_numeric_range(str(value), self._ctx.current_declaration)


def select_fields(fields: Sequence[Field], kind: str, keys: Sequence[str]) -> Tuple[Field, ...]:
    """Apply Pick/Omit/Partial/Required to a field list."""
    if kind == 'pick':
        return tuple(f for f in fields if f.key in keys)
    if kind == 'omit':
        return tuple(f for f in fields if f.key not in keys)
    return tuple(dataclasses.replace(f, optional=(kind == 'partial')) for f in fields)
