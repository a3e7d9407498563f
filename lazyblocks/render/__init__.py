"""Presentation layer: block elements, the renderer, and terminal outlines."""

from __future__ import annotations

from .elements import (
    BLANK_CLASS,
    DRAGGING_CLASS,
    DROP_TARGET_CLASS,
    EDITING_CLASS,
    ERROR_CLASS,
    HIDDEN_CLASS,
    LOCKED_CLASS,
    NODE_CLASS,
    OVER_TARGET_CLASS,
    WHITESPACE_CLASS,
    BlockElement,
)
from .highlighting import colorize_label, read_text, sanitize_terminal_text
from .outline import format_outline, format_outline_row
from .renderer import BlockRenderer, Move, RenderOptions, TransitionClone, TransitionSnapshot

__all__ = [
    "BlockElement",
    "BlockRenderer",
    "RenderOptions",
    "Move",
    "TransitionClone",
    "TransitionSnapshot",
    "format_outline",
    "format_outline_row",
    "colorize_label",
    "read_text",
    "sanitize_terminal_text",
    "NODE_CLASS",
    "WHITESPACE_CLASS",
    "BLANK_CLASS",
    "LOCKED_CLASS",
    "HIDDEN_CLASS",
    "EDITING_CLASS",
    "ERROR_CLASS",
    "DRAGGING_CLASS",
    "DROP_TARGET_CLASS",
    "OVER_TARGET_CLASS",
]
