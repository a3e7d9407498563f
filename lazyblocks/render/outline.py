"""Terminal outline of a block tree, one row per visible node."""

from __future__ import annotations

from ..buffer import TextBuffer
from ..tree_model import Node, Tree
from .highlighting import DEFAULT_STYLE, colorize_label, sanitize_terminal_text

MAX_LABEL_WIDTH = 60


def _label(text: str) -> str:
    single_line = " ".join(text.split())
    if len(single_line) <= MAX_LABEL_WIDTH:
        return single_line
    return single_line[: MAX_LABEL_WIDTH - 3] + "..."


def format_outline_row(
    node: Node,
    buffer: TextBuffer,
    depth: int,
    *,
    selected: bool = False,
    no_color: bool = False,
    style: str = DEFAULT_STYLE,
) -> str:
    """Format one outline row: marker, indent, node type and label."""
    label = _label(buffer.get_range(node.start, node.end))
    rendered_label = sanitize_terminal_text(label) if no_color else colorize_label(label, style)
    marker = ">" if selected else " "
    return f"{marker} {'  ' * depth}[{node.type}] {rendered_label}"


def format_outline(
    tree: Tree | None,
    buffer: TextBuffer,
    *,
    selected_id: str | None = None,
    no_color: bool = False,
    style: str = DEFAULT_STYLE,
) -> list[str]:
    """Return outline rows for every node whose element is not hidden."""
    if tree is None:
        return []
    rows: list[str] = []

    def walk(node: Node, depth: int) -> None:
        element = node.element
        if element is not None and element.is_hidden():
            return
        rows.append(
            format_outline_row(
                node,
                buffer,
                depth,
                selected=node.id == selected_id,
                no_color=no_color,
                style=style,
            )
        )
        for child in node.children:
            walk(child, depth + 1)

    for root in tree.roots:
        walk(root, 0)
    return rows
