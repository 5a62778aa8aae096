"""
Emission context for renderers and emitters.

This module provides a context class that holds the per-conversion state
shared by the TypeConverter, the target renderer and the emitter, so none of
them keeps state between conversions.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Set


@dataclass
class EmissionContext:
    """
    Holds all state needed while mapping and emitting one document.

    A fresh context is created for every conversion call.
    """

    # Indentation
    indent_str: str = '  '

    # Position within the document
    current_declaration: str = ''
    current_field: str = ''

    # Declaration printed as the document root, for targets that have one
    root_name: str = ''

    # Names referenced by the declaration being mapped, in first-use order
    references: List[str] = field(default_factory=list)

    # Declarations that already reported a depth truncation
    depth_warned: Set[str] = field(default_factory=set)

    # Generated helper declarations (e.g. Prisma enums), name -> source text
    auxiliary: Dict[str, str] = field(default_factory=dict)

    def begin_declaration(self, name: str) -> None:
        self.current_declaration = name
        self.current_field = ''
        self.references = []

    def note_reference(self, name: str) -> None:
        if name not in self.references:
            self.references.append(name)

    def indent(self, level: int = 1) -> str:
        return self.indent_str * level
