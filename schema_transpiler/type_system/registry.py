"""
Registry of the declarations found in one source document.

The DeclarationRegistry is built once per conversion from the extractor's
output. The TypeConverter uses it to resolve named references, and emitters
that need referenced declarations defined first use its dependency ordering.
"""

from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..parser.ast_nodes import Declaration, DeclarationKind


class DeclarationRegistry:
    """
    Read-only lookup of declarations by name.

    When a document declares the same name twice, the first declaration
    wins; later ones are listed in ``duplicates`` and never emitted.
    """

    def __init__(self, declarations: Iterable[Declaration]):
        self._by_name: Dict[str, Declaration] = {}
        self.duplicates: List[Declaration] = []
        for decl in declarations:
            if decl.name in self._by_name:
                self.duplicates.append(decl)
            else:
                self._by_name[decl.name] = decl
        self._declarations: Tuple[Declaration, ...] = tuple(self._by_name.values())
        self._names: FrozenSet[str] = frozenset(self._by_name)

    @property
    def declarations(self) -> Tuple[Declaration, ...]:
        """All declarations in source order."""
        return self._declarations

    @property
    def names(self) -> FrozenSet[str]:
        return self._names

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._declarations)

    def get(self, name: str) -> Optional[Declaration]:
        return self._by_name.get(name)

    def is_object(self, name: str) -> bool:
        decl = self._by_name.get(name)
        return decl is not None and decl.kind == DeclarationKind.OBJECT_LIKE

    def dependency_order(
        self,
        references: Mapping[str, Sequence[str]],
    ) -> List[Tuple[Declaration, FrozenSet[str]]]:
        """
        Order declarations so that referenced ones come first.

        Walks the reference graph depth-first in source order. Each entry
        pairs a declaration with the names still open on the walk when it
        finished (itself included); references to those names are the back
        edges of a cycle and must use a deferred form.

        Args:
            references: Declaration name to the names it references, in
                first-use order

        Returns:
            (declaration, pending names) pairs in emission order
        """
        ordered: List[Tuple[Declaration, FrozenSet[str]]] = []
        finished: set = set()
        on_stack: List[str] = []

        for root in self._declarations:
            if root.name in finished or root.name in on_stack:
                continue
            # Iterative DFS; each frame is (name, iterator over its edges)
            on_stack.append(root.name)
            frames = [(root.name, iter(references.get(root.name, ())))]
            while frames:
                name, edges = frames[-1]
                advanced = False
                for target in edges:
                    if target in self._by_name and target not in finished and target not in on_stack:
                        on_stack.append(target)
                        frames.append((target, iter(references.get(target, ()))))
                        advanced = True
                        break
                if advanced:
                    continue
                frames.pop()
                pending = frozenset(on_stack)
                on_stack.pop()
                finished.add(name)
                ordered.append((self._by_name[name], pending))

        return ordered
