"""Parsed tree datatypes shared by the parser, renderer and engine."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from ..buffer.positions import Position, Span
from .navigation import node_after, node_before

EDITABLE_TYPES = frozenset({"literal", "blank"})
NODE_TYPES = frozenset({"expression", "literal", "blank", "comment"})


@dataclass(eq=False)
class Node:
    """One addressable node of a parsed tree.

    ``element`` is the visual element bound by the renderer; ``quarantine``
    holds the bookmark of a provisional node that is not in the buffer yet.
    """

    id: str
    type: str
    start: Position
    end: Position
    children: list[Node] = field(default_factory=list)
    parent: Node | None = field(default=None, repr=False)
    element: Any = field(default=None, repr=False)
    quarantine: Any = field(default=None, repr=False)

    @property
    def span(self) -> Span:
        return Span(self.start, self.end)

    def depth_first(self) -> Iterator[Node]:
        """Traverse the subtree in preorder, yielding self then children."""
        yield self
        for child in self.children:
            yield from child.depth_first()

    def is_ancestor_of(self, other: Node) -> bool:
        """Return whether ``other`` is this node or lies in its subtree."""
        node: Node | None = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False


@dataclass
class Tree:
    """Root nodes plus an id index covering every node."""

    roots: list[Node]
    node_map: dict[str, Node] = field(default_factory=dict)
    _order: list[Node] = field(default_factory=list, repr=False)
    _index: dict[str, int] = field(default_factory=dict, repr=False)

    @classmethod
    def from_roots(cls, roots: list[Node]) -> Tree:
        tree = cls(roots=roots)
        for root in roots:
            root.parent = None
            for node in root.depth_first():
                for child in node.children:
                    child.parent = node
                tree._index[node.id] = len(tree._order)
                tree._order.append(node)
                tree.node_map[node.id] = node
        return tree

    def nodes(self) -> list[Node]:
        """Return every node in preorder."""
        return list(self._order)

    def node_after(self, target: Node | Position) -> Node | None:
        return node_after(self._order, self._index, target)

    def node_before(self, target: Node | Position) -> Node | None:
        return node_before(self._order, self._index, target)
