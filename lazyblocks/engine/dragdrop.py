"""Drag state, drop-target rules and offset-safe drop planning."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..buffer import Position, Span, TextBuffer
from ..render.elements import DROP_TARGET_CLASS, BlockElement
from ..tree_model import EDITABLE_TYPES, Node

TEXT_MIME = "text/plain"
ID_MIME = "text/id"

WillInsertHook = Callable[[str, Node, Position, Node | None], str]
DidInsertHook = Callable[[str, Node, Position, Node | None], object]


@dataclass(frozen=True)
class DragState:
    """The node being dragged."""

    node_id: str


@dataclass(frozen=True)
class Splice:
    """One buffer replacement of ``[start, end)`` with ``text``."""

    text: str
    start: Position
    end: Position

    def apply(self, buffer: TextBuffer) -> None:
        buffer.replace_range(self.text, self.start, self.end)


def plan_drop(source: Span, text: str, destination: Span) -> list[Splice]:
    """Order the two edits of a move so neither invalidates the other's offsets.

    When the source precedes the destination, the destination is edited
    first; otherwise the source is cleared first.
    """
    insert = Splice(text, destination.start, destination.end)
    clear = Splice("", source.start, source.end)
    if source.start < destination.start:
        return [insert, clear]
    return [clear, insert]


def is_drop_target(element: BlockElement | None, node: Node | None) -> bool:
    """Return whether a drop may land on ``element`` (resolved to ``node``)."""
    if element is None:
        return True
    if element.has_class(DROP_TARGET_CLASS):
        return True
    if node is None:
        return True
    return node.type in EDITABLE_TYPES


def drop_is_inside_source(source: Node, destination: Position, destination_node: Node | None) -> bool:
    """Return whether a drop would land within the dragged node itself."""
    if destination_node is not None and source.is_ancestor_of(destination_node):
        return True
    return source.span.contains(destination)
