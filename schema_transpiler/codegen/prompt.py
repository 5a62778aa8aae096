"""
LLM system-prompt generation.

Renders the fields of one Zod object schema as an XML-sectioned system
prompt: a role, extraction instructions, one schema line per field with its
type label, requiredness, description and constraints, an example JSON
object and closing output rules.
"""

import json
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..parser.ast_nodes import DeclarationKind
from .base import BaseEmitter, BaseRenderer, MappedDeclaration, MappedField, js_number, js_value
from .diagnostics import ConversionError, invalid_document, syntax_unrecognized


PRIMITIVE_LABELS = {
    'integer': 'number',
    'decimal': 'number',
    'bigint': 'number',
    'datetime': 'string',
    'time': 'string',
    'bytes': 'string',
    'void': 'null',
    'json': 'record (key-value map)',
    'object': 'nested object',
}
EXAMPLE_VALUES = {
    'number': 0,
    'boolean': False,
    'date': '2026-01-01T00:00:00Z',
}
FORMAT_RULES = {
    'email': 'must be a valid email',
    'uri': 'must be a valid URL',
    'uuid': 'must be a valid UUID',
    'cuid': 'must be a valid CUID',
    'date-time': 'ISO 8601 datetime',
    'ipv4': 'must be a valid IP address',
}
BOUND_RULES = {
    'min_length': 'min',
    'max_length': 'max',
    'minimum': 'min',
    'maximum': 'max',
    'min_items': 'min',
    'max_items': 'max',
    'exclusive_minimum': 'greater than',
    'exclusive_maximum': 'less than',
    'multiple_of': 'multiple of',
}
NO_DESCRIPTION = 'No description provided.'

ROLE = (
    "You are a structured data extraction system. Your sole purpose is to analyze the user's input "
    "and return a single, valid JSON object that conforms exactly to the schema below."
)
INSTRUCTIONS = (
    '1. Return ONLY raw JSON. No markdown code fences, no commentary, no explanations.',
    '2. Every field marked REQUIRED must be present. Omit OPTIONAL fields only if the data is genuinely absent.',
    '3. Data types must match exactly: strings as strings, numbers as numbers, booleans as true/false.',
    "4. Do NOT invent or assume values not present in the user's input. Use null for missing optional fields.",
    '5. Respect every constraint (min, max, format, enum values) listed in the schema.',
)
OUTPUT_RULES = (
    '- Output must be parseable by JSON.parse() with zero modifications.',
    '- Do not wrap in markdown. Do not add trailing commas.',
    '- If a field is an enum, use ONLY the listed values.',
    "- If the user's input is ambiguous for a field, prefer null over guessing.",
)


@dataclass(frozen=True)
class PromptType:
    """A field type described for a language model.

    ``example`` None means the field's example is a ``<key>`` placeholder.
    """
    label: str
    constraints: Tuple[str, ...] = ()
    example: Any = None
    optional: bool = False


def constraint_text(name: str, value: Any) -> Optional[str]:
    if name == 'format':
        return FORMAT_RULES.get(value, f'format: {value}')
    if name == 'pattern':
        return f'pattern: /{value}/'
    if name == 'exclusive_minimum' and value == 0:
        return 'must be positive'
    if name in BOUND_RULES:
        return f'{BOUND_RULES[name]}: {js_number(value)}'
    return None


def example_value(key: str, prompt_type: PromptType) -> Any:
    if prompt_type.example is None:
        return f'<{key}>'
    return prompt_type.example


class PromptRenderer(BaseRenderer):
    """Renders type shapes as PromptType descriptions."""

    def unknown(self, hint: str = '') -> PromptType:
        return PromptType('any')

    def primitive(self, name: str, constraints: Sequence[Tuple[str, Any]] = ()) -> PromptType:
        label = PRIMITIVE_LABELS.get(name, name)
        rules = [text for text in (constraint_text(c, v) for c, v in constraints) if text]
        if name == 'integer':
            rules.append('must be an integer')
        if name == 'datetime' and FORMAT_RULES['date-time'] not in rules:
            rules.append(FORMAT_RULES['date-time'])
        return PromptType(label, tuple(rules), EXAMPLE_VALUES.get(label))

    def literal(self, value: Any) -> PromptType:
        return PromptType(f'literal {js_value(value)}', (), value)

    def enum(self, values: Sequence[Any]) -> PromptType:
        label = f'enum [{", ".join(str(v) for v in values)}]'
        return PromptType(label, (), values[0] if values else None)

    def array(self, element: PromptType, constraints: Sequence[Tuple[str, Any]] = ()) -> PromptType:
        rules = tuple(text for text in (constraint_text(c, v) for c, v in constraints) if text)
        return PromptType(f'array of {element.label}', rules, [])

    def tuple(self, elements: Sequence[PromptType]) -> PromptType:
        return PromptType(f'tuple [{", ".join(e.label for e in elements)}]', (),
                          [e.example for e in elements])

    def union(self, members: Sequence[PromptType]) -> PromptType:
        return PromptType(f'union of {" | ".join(m.label for m in members)}', (), members[0].example)

    def intersect(self, left: PromptType, right: PromptType) -> PromptType:
        if isinstance(left.example, dict) and isinstance(right.example, dict):
            return PromptType('nested object', (), {**left.example, **right.example})
        return replace(left, constraints=left.constraints + right.constraints)

    def nullable(self, inner: PromptType) -> PromptType:
        return replace(inner, constraints=inner.constraints + ('nullable',), optional=True)

    def optional(self, inner: PromptType) -> PromptType:
        return replace(inner, optional=True)

    def container(self, name: str, args: Sequence[PromptType]) -> PromptType:
        if name == 'record':
            return PromptType('record (key-value map)')
        if name == 'map':
            return PromptType('map', (), {})
        if name == 'set':
            return PromptType(f'set of {args[0].label}', ('unique items',), [])
        return args[0] if args else self.unknown()

    def object(self, fields: Sequence[MappedField], additional: Any = None,
               top_level: bool = False) -> PromptType:
        return PromptType('nested object', (), {f.key: example_value(f.key, f.expression) for f in fields})

    def reference(self, name: str) -> PromptType:
        return PromptType(f'{name} object')


class PromptEmitter(BaseEmitter):
    """Emits a system prompt for the last object schema in the document."""

    def emit(self, declarations: List[MappedDeclaration]) -> str:
        objects = [m for m in declarations if m.declaration.kind == DeclarationKind.OBJECT_LIKE]
        if not objects:
            raise ConversionError(syntax_unrecognized('z.object() schemas'))
        # Schemas are declared before use, so the outermost one comes last
        target = objects[-1]
        if not target.fields:
            raise ConversionError(invalid_document(
                'Zod object schema', f'could not detect any fields inside {target.name}'))

        example: Dict[str, Any] = {f.key: example_value(f.key, f.expression) for f in target.fields}
        lines = ['<system>', '<role>', ROLE, '</role>', '', '<instructions>']
        lines.extend(INSTRUCTIONS)
        lines.extend(['</instructions>', '', '<json_schema>'])
        lines.extend(self.schema_line(f) for f in target.fields)
        lines.extend(['</json_schema>', '', '<example_output>'])
        lines.append(json.dumps(example, indent=2, ensure_ascii=False))
        lines.extend(['</example_output>', '', '<constraints>'])
        lines.extend(OUTPUT_RULES)
        lines.extend(['</constraints>', '</system>'])
        return '\n'.join(lines) + '\n'

    def schema_line(self, mapped: MappedField) -> str:
        field = mapped.field
        prompt_type: PromptType = mapped.expression
        required = 'OPTIONAL' if field.optional or prompt_type.optional else 'REQUIRED'
        rules = list(prompt_type.constraints)
        if 'default' in field.attributes:
            rules.append(f'default: {js_value(field.attributes["default"])}')
        line = f'  - "{field.key}": [{prompt_type.label}] ({required}): {field.description or NO_DESCRIPTION}'
        if rules:
            line += f' | Constraints: {", ".join(rules)}'
        return line
