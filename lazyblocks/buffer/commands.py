"""Named buffer commands reachable from keymaps."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from .positions import Position

if TYPE_CHECKING:
    from .document import TextBuffer


def _go_doc_start(buffer: TextBuffer) -> None:
    buffer.set_cursor(Position(0, 0))


def _go_doc_end(buffer: TextBuffer) -> None:
    buffer.set_cursor(buffer.last_position())


def _go_line_start(buffer: TextBuffer) -> None:
    buffer.set_cursor(Position(buffer.get_cursor().line, 0))


def _go_line_end(buffer: TextBuffer) -> None:
    line = buffer.get_cursor().line
    buffer.set_cursor(Position(line, len(buffer.get_line(line))))


def _go_char_left(buffer: TextBuffer) -> None:
    index = buffer.index_from_pos(buffer.get_cursor())
    buffer.set_cursor(buffer.pos_from_index(index - 1))


def _go_char_right(buffer: TextBuffer) -> None:
    index = buffer.index_from_pos(buffer.get_cursor())
    buffer.set_cursor(buffer.pos_from_index(index + 1))


def _go_line_up(buffer: TextBuffer) -> None:
    cursor = buffer.get_cursor()
    if cursor.line > 0:
        buffer.set_cursor(Position(cursor.line - 1, cursor.column))


def _go_line_down(buffer: TextBuffer) -> None:
    cursor = buffer.get_cursor()
    buffer.set_cursor(Position(cursor.line + 1, cursor.column))


def _del_char_before(buffer: TextBuffer) -> None:
    cursor = buffer.get_cursor()
    index = buffer.index_from_pos(cursor)
    if index > 0:
        buffer.replace_range("", buffer.pos_from_index(index - 1), cursor)


def _del_char_after(buffer: TextBuffer) -> None:
    cursor = buffer.get_cursor()
    after = buffer.pos_from_index(buffer.index_from_pos(cursor) + 1)
    if after != cursor:
        buffer.replace_range("", cursor, after)


def _newline(buffer: TextBuffer) -> None:
    buffer.replace_range("\n", buffer.get_cursor())


COMMANDS: dict[str, Callable[[TextBuffer], object]] = {
    "undo": lambda buffer: buffer.undo(),
    "redo": lambda buffer: buffer.redo(),
    "goDocStart": _go_doc_start,
    "goDocEnd": _go_doc_end,
    "goLineStart": _go_line_start,
    "goLineEnd": _go_line_end,
    "goCharLeft": _go_char_left,
    "goCharRight": _go_char_right,
    "goLineUp": _go_line_up,
    "goLineDown": _go_line_down,
    "delCharBefore": _del_char_before,
    "delCharAfter": _del_char_after,
    "newline": _newline,
}


def run_command(buffer: TextBuffer, name: str) -> None:
    """Execute the named command against ``buffer``."""
    command = COMMANDS.get(name)
    if command is None:
        raise ValueError(f"unknown buffer command: {name!r}")
    command(buffer)
