"""Provisional nodes for text typed in block mode before it reaches the buffer."""

from __future__ import annotations

from dataclasses import dataclass

from ..buffer import Bookmark, Position, TextBuffer
from ..render import BlockRenderer, RenderOptions
from ..render.elements import BlockElement
from ..tree_model import Node, SExpressionParser
from .scheduler import DeferredCall

IDLE = "idle"
PROVISIONAL = "provisional"
COMMITTED = "committed"

SEPARATOR = " "


@dataclass(eq=False)
class Quarantine:
    """A literal node that exists only as a bookmark widget until committed."""

    node: Node
    element: BlockElement
    bookmark: Bookmark
    state: str = PROVISIONAL
    pending_entry: DeferredCall | None = None

    def release(self) -> Position:
        """Clear the bookmark (destroying its widget) and return where it last resolved."""
        position = self.bookmark.position
        self.bookmark.clear()
        return position

    def abandon(self) -> None:
        self.state = IDLE
        if self.pending_entry is not None:
            self.pending_entry.cancel()
        self.bookmark.clear()
        self.element.destroy()


def synthesize_literal(parser: SExpressionParser, pos: Position) -> Node:
    """Parse a throwaway literal so the new node sits exactly at ``pos``."""
    filler = "\n" * pos.line + " " * pos.column
    tree = parser.parse(filler + "x")
    return tree.roots[0]


def create_quarantine(
    buffer: TextBuffer,
    parser: SExpressionParser,
    renderer: BlockRenderer,
    text: str,
    options: RenderOptions | None = None,
) -> Quarantine:
    """Build a provisional literal holding ``text`` at the buffer cursor."""
    cursor = buffer.get_cursor()
    node = synthesize_literal(parser, cursor)
    element = renderer.build_element(node, buffer, options)
    element.text = text
    node.end = node.start
    bookmark = buffer.set_bookmark(cursor, widget=element)
    node.quarantine = bookmark
    return Quarantine(node=node, element=element, bookmark=bookmark)
