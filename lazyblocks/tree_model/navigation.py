"""Preorder successor/predecessor lookups over a flattened tree."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..buffer.positions import Position

if TYPE_CHECKING:
    from .types import Node


def node_after(
    order: list[Node],
    index: dict[str, int],
    target: Node | Position,
) -> Node | None:
    """Return the node following ``target`` in preorder, or ``None`` past the end.

    A position resolves to the first node starting at or after it.
    """
    if not isinstance(target, Position):
        idx = index.get(target.id)
        if idx is not None and order[idx] is target:
            return order[idx + 1] if idx + 1 < len(order) else None
        target = target.start
    for node in order:
        if node.start >= target:
            return node
    return None


def node_before(
    order: list[Node],
    index: dict[str, int],
    target: Node | Position,
) -> Node | None:
    """Return the node preceding ``target`` in preorder, or ``None`` before the start.

    A position resolves to the last node starting before it.
    """
    if not isinstance(target, Position):
        idx = index.get(target.id)
        if idx is not None and order[idx] is target:
            return order[idx - 1] if idx > 0 else None
        target = target.start
    found: Node | None = None
    for node in order:
        if node.start < target:
            found = node
    return found
