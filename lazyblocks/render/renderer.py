"""Element renderer: builds block elements for nodes and animates mode switches."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..buffer import Position, TextBuffer
from ..tree_model import Node, Tree
from .elements import (
    BLANK_CLASS,
    DROP_TARGET_CLASS,
    HIDDEN_CLASS,
    LOCKED_CLASS,
    NODE_CLASS,
    WHITESPACE_CLASS,
    BlockElement,
)


@dataclass(frozen=True)
class RenderOptions:
    """Renderer configuration passed through by the engine."""

    locked_types: frozenset[str] = frozenset()
    hidden_types: frozenset[str] = frozenset()
    transition_steps: int = 4


@dataclass(frozen=True)
class TransitionClone:
    """Captured placement of one element before a re-render."""

    path: tuple[int, ...]
    node_type: str
    text: str
    origin: Position


@dataclass
class TransitionSnapshot:
    clones: dict[tuple[int, ...], TransitionClone] = field(default_factory=dict)


@dataclass(frozen=True)
class Move:
    """Animated movement of one element from its old to its new origin."""

    node_id: str
    text: str
    frames: tuple[Position, ...]


def _node_paths(tree: Tree) -> list[tuple[tuple[int, ...], Node]]:
    paths: list[tuple[tuple[int, ...], Node]] = []

    def walk(node: Node, path: tuple[int, ...]) -> None:
        paths.append((path, node))
        for idx, child in enumerate(node.children):
            walk(child, path + (idx,))

    for idx, root in enumerate(tree.roots):
        walk(root, (idx,))
    return paths


def _interpolate(start: Position, end: Position, steps: int) -> tuple[Position, ...]:
    steps = max(1, steps)
    frames = []
    for step in range(1, steps + 1):
        line = start.line + round((end.line - start.line) * step / steps)
        column = start.column + round((end.column - start.column) * step / steps)
        frames.append(Position(line, column))
    return tuple(frames)


class BlockRenderer:
    """Builds element trees and attaches root elements to the buffer."""

    def __init__(self) -> None:
        self.last_transition: list[Move] = []

    def build_element(
        self,
        node: Node,
        buffer: TextBuffer,
        options: RenderOptions | None = None,
    ) -> BlockElement:
        """Build the element subtree for ``node`` without attaching it."""
        options = options or RenderOptions()
        element = BlockElement(
            kind="node",
            node_id=node.id,
            node_type=node.type,
            text=buffer.get_range(node.start, node.end),
            classes={NODE_CLASS, f"blocks-{node.type}"},
            draggable=node.type not in ("blank", "comment"),
            span=node.span,
            origin=node.start,
        )
        if node.type == "blank":
            element.add_class(BLANK_CLASS)
        if node.type in options.locked_types:
            element.add_class(LOCKED_CLASS)
            element.draggable = False
        if node.type in options.hidden_types:
            element.add_class(HIDDEN_CLASS)
        node.element = element

        if node.type == "expression":
            if not node.children:
                element.append(self._gap(node.start.shifted(columns=1)))
            for child in node.children:
                element.append(self.build_element(child, buffer, options))
                element.append(self._gap(child.end))
        return element

    @staticmethod
    def _gap(location: Position) -> BlockElement:
        return BlockElement(
            kind="whitespace",
            classes={WHITESPACE_CLASS, DROP_TARGET_CLASS},
            location=location,
            origin=location,
        )

    def render(
        self,
        node: Node,
        buffer: TextBuffer,
        options: RenderOptions | None = None,
    ) -> BlockElement:
        """Render a root node and attach it over its text range."""
        element = self.build_element(node, buffer, options)
        buffer.mark_text(node.start, node.end, replaced_with=element)
        return element

    def prepare_transition(self, tree: Tree | None, buffer: TextBuffer) -> TransitionSnapshot:
        """Capture the current placement of every rendered element."""
        snapshot = TransitionSnapshot()
        if tree is None:
            return snapshot
        for path, node in _node_paths(tree):
            element = node.element
            if element is None or element.origin is None:
                continue
            snapshot.clones[path] = TransitionClone(
                path=path,
                node_type=node.type,
                text=element.text,
                origin=element.origin,
            )
        return snapshot

    def render_transition(
        self,
        snapshot: TransitionSnapshot,
        tree: Tree,
        buffer: TextBuffer,
        options: RenderOptions | None = None,
    ) -> list[Move]:
        """Match captured clones to new elements and compute animation frames."""
        steps = (options or RenderOptions()).transition_steps
        moves: list[Move] = []
        for path, node in _node_paths(tree):
            clone = snapshot.clones.get(path)
            element = node.element
            if clone is None or element is None or element.origin is None:
                continue
            if clone.node_type != node.type:
                continue
            moves.append(
                Move(
                    node_id=node.id,
                    text=element.text,
                    frames=_interpolate(clone.origin, element.origin, steps),
                )
            )
        self.last_transition = moves
        return moves
