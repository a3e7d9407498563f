"""Visual elements bound to tree nodes.

Each element records the id of the node it renders, so lookups go through
the tree's ``node_map`` rather than through display attributes.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from ..buffer.positions import Position, Span

NODE_CLASS = "blocks-node"
WHITESPACE_CLASS = "blocks-white-space"
BLANK_CLASS = "blocks-blank"
LOCKED_CLASS = "blocks-locked"
HIDDEN_CLASS = "blocks-hidden"
EDITING_CLASS = "blocks-editing"
ERROR_CLASS = "blocks-error"
DRAGGING_CLASS = "blocks-dragging"
DROP_TARGET_CLASS = "blocks-drop-target"
OVER_TARGET_CLASS = "blocks-over-target"


@dataclass(eq=False)
class BlockElement:
    """One on-screen block or whitespace gap."""

    kind: str
    node_id: str | None = None
    node_type: str | None = None
    text: str = ""
    classes: set[str] = field(default_factory=set)
    title: str = ""
    css: str = ""
    editable: bool = False
    draggable: bool = False
    location: Position | None = None
    span: Span | None = None
    origin: Position | None = None
    parent: BlockElement | None = field(default=None, repr=False)
    children: list[BlockElement] = field(default_factory=list, repr=False)
    attached: bool = True

    def add_class(self, name: str) -> None:
        self.classes.add(name)

    def remove_class(self, name: str) -> None:
        self.classes.discard(name)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def append(self, child: BlockElement) -> BlockElement:
        child.parent = self
        self.children.append(child)
        return child

    def walk(self) -> Iterator[BlockElement]:
        yield self
        for child in self.children:
            yield from child.walk()

    def is_hidden(self) -> bool:
        """Return whether this element or any ancestor is hidden."""
        element: BlockElement | None = self
        while element is not None:
            if HIDDEN_CLASS in element.classes:
                return True
            element = element.parent
        return False

    def nearest_node_element(self) -> BlockElement | None:
        """Return the closest element (self included) that renders a node."""
        element: BlockElement | None = self
        while element is not None:
            if NODE_CLASS in element.classes:
                return element
            element = element.parent
        return None

    def destroy(self) -> None:
        """Detach this element and its subtree from the display."""
        for element in self.walk():
            element.attached = False
            element.editable = False
