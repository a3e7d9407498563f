"""Text buffer consumed by the block engine.

Exports positions, marks, and the in-memory ``TextBuffer``.
"""

from __future__ import annotations

from .commands import COMMANDS, run_command
from .document import TextBuffer, TextChange
from .marks import Bookmark, TextMark
from .positions import Position, Span, end_of_text, map_position

__all__ = [
    "Position",
    "Span",
    "end_of_text",
    "map_position",
    "TextMark",
    "Bookmark",
    "TextBuffer",
    "TextChange",
    "COMMANDS",
    "run_command",
]
