"""In-memory text buffer with marks, bookmarks, transactions and history.

This is the buffer contract the block engine consumes: range-addressed
read/replace, cursor tracking, bookmarks, marks, atomic operations, and
change notifications. Undo/redo lives here, not in the engine.
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from .commands import run_command
from .marks import Bookmark, TextMark
from .positions import Position, end_of_text, map_position


@dataclass(frozen=True)
class TextChange:
    """One applied replacement, expressed in pre-edit coordinates."""

    start: Position
    end: Position
    removed: str
    inserted: str


ChangeListener = Callable[["TextBuffer", list[TextChange]], None]


class TextBuffer:
    """Line-based text storage addressed by ``Position`` values."""

    def __init__(self, text: str = "") -> None:
        self._lines: list[str] = text.split("\n")
        self._cursor = Position(0, 0)
        self._marks: list[TextMark] = []
        self._listeners: list[ChangeListener] = []
        self._operation_depth = 0
        self._pending_changes: list[TextChange] = []
        self._undo_stack: list[list[TextChange]] = []
        self._redo_stack: list[list[TextChange]] = []
        self._replaying_history = False
        self.scroll_target: Position | None = None
        self.wrapper_classes: set[str] = {"lazyblocks-wrapper"}

    # Text access

    def get_value(self) -> str:
        return "\n".join(self._lines)

    def set_value(self, text: str) -> None:
        """Replace the whole document in one change."""
        self.replace_range(text, Position(0, 0), self.last_position())

    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, line: int) -> str:
        return self._lines[line]

    def last_position(self) -> Position:
        last = len(self._lines) - 1
        return Position(last, len(self._lines[last]))

    def clip_pos(self, pos: Position) -> Position:
        """Clamp ``pos`` to the nearest valid buffer position."""
        if pos.line < 0:
            return Position(0, 0)
        if pos.line >= len(self._lines):
            return self.last_position()
        column = max(0, min(pos.column, len(self._lines[pos.line])))
        return Position(pos.line, column)

    def index_from_pos(self, pos: Position) -> int:
        pos = self.clip_pos(pos)
        index = sum(len(line) + 1 for line in self._lines[: pos.line])
        return index + pos.column

    def pos_from_index(self, index: int) -> Position:
        index = max(0, index)
        for line_no, line in enumerate(self._lines):
            if index <= len(line):
                return Position(line_no, index)
            index -= len(line) + 1
        return self.last_position()

    def get_range(self, start: Position, end: Position) -> str:
        start = self.clip_pos(start)
        end = self.clip_pos(end)
        if start.line == end.line:
            return self._lines[start.line][start.column : end.column]
        parts = [self._lines[start.line][start.column :]]
        parts.extend(self._lines[start.line + 1 : end.line])
        parts.append(self._lines[end.line][: end.column])
        return "\n".join(parts)

    # Mutation

    def replace_range(self, text: str, start: Position, end: Position | None = None) -> None:
        """Replace ``[start, end)`` with ``text``; ``end`` defaults to ``start``."""
        start = self.clip_pos(start)
        end = start if end is None else self.clip_pos(end)
        if end < start:
            start, end = end, start
        removed = self.get_range(start, end)
        if not removed and not text:
            return
        change = TextChange(start=start, end=end, removed=removed, inserted=text)
        with self.operation():
            self._apply(change)
            self._pending_changes.append(change)

    def _apply(self, change: TextChange) -> None:
        start, end = change.start, change.end
        head = self._lines[start.line][: start.column]
        tail = self._lines[end.line][end.column :]
        inserted = change.inserted.split("\n")
        inserted[0] = head + inserted[0]
        inserted[-1] = inserted[-1] + tail
        self._lines[start.line : end.line + 1] = inserted

        self._cursor = map_position(self._cursor, start, end, change.inserted, stick_to_end=True)
        emptied: list[TextMark] = []
        for mark in self._marks:
            if mark.is_bookmark:
                mark.start = mark.end = map_position(mark.start, start, end, change.inserted, stick_to_end=True)
                continue
            was_empty = mark.start == mark.end
            mark.start = map_position(mark.start, start, end, change.inserted, stick_to_end=True)
            mark.end = map_position(mark.end, start, end, change.inserted)
            if mark.end < mark.start:
                mark.end = mark.start
            if not was_empty and mark.start == mark.end:
                emptied.append(mark)
        for mark in emptied:
            mark.clear()

    @contextlib.contextmanager
    def operation(self) -> Iterator[TextBuffer]:
        """Group edits so listeners see them once, after the outermost scope."""
        self._operation_depth += 1
        try:
            yield self
        finally:
            self._operation_depth -= 1
            if self._operation_depth == 0:
                self._flush_changes()

    def _flush_changes(self) -> None:
        changes = self._pending_changes
        self._pending_changes = []
        if not changes:
            return
        if not self._replaying_history:
            self._undo_stack.append(changes)
            self._redo_stack.clear()
        for listener in list(self._listeners):
            listener(self, list(changes))

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Subscribe to change notifications and return an unsubscribe callback."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # History

    def undo(self) -> bool:
        if not self._undo_stack:
            return False
        changes = self._undo_stack.pop()
        self._replay(
            [
                TextChange(c.start, end_of_text(c.start, c.inserted), c.inserted, c.removed)
                for c in reversed(changes)
            ],
        )
        self._redo_stack.append(changes)
        return True

    def redo(self) -> bool:
        if not self._redo_stack:
            return False
        changes = self._redo_stack.pop()
        self._replay(changes)
        self._undo_stack.append(changes)
        return True

    def _replay(self, changes: list[TextChange]) -> None:
        self._replaying_history = True
        try:
            with self.operation():
                for change in changes:
                    self.replace_range(change.inserted, change.start, change.end)
        finally:
            self._replaying_history = False

    # Cursor and viewport

    def get_cursor(self) -> Position:
        return self._cursor

    def set_cursor(self, pos: Position) -> None:
        self._cursor = self.clip_pos(pos)

    def scroll_into_view(self, pos: Position) -> None:
        self.scroll_target = self.clip_pos(pos)

    def coords_char(self, x: int, y: int) -> tuple[Position, bool]:
        """Map a pointer cell (``x`` column, ``y`` row) to a buffer position.

        The flag is ``True`` when the pointer lies below the last line.
        """
        if y >= len(self._lines):
            return self.last_position(), True
        return self.clip_pos(Position(max(0, y), max(0, x))), False

    # Marks

    def mark_text(
        self,
        start: Position,
        end: Position,
        *,
        replaced_with: Any = None,
        class_name: str | None = None,
        css: str | None = None,
        title: str | None = None,
    ) -> TextMark:
        mark = TextMark(
            start=self.clip_pos(start),
            end=self.clip_pos(end),
            replaced_with=replaced_with,
            class_name=class_name,
            css=css,
            title=title,
            _detach=self._detach_mark,
        )
        self._marks.append(mark)
        return mark

    def set_bookmark(self, pos: Position, widget: Any = None) -> Bookmark:
        pos = self.clip_pos(pos)
        bookmark = Bookmark(start=pos, end=pos, replaced_with=widget, _detach=self._detach_mark)
        self._marks.append(bookmark)
        return bookmark

    def _detach_mark(self, mark: TextMark) -> None:
        if mark in self._marks:
            self._marks.remove(mark)

    def find_marks(self, start: Position, end: Position) -> list[TextMark]:
        """Return marks touching ``[start, end]``, bookmarks included."""
        found: list[TextMark] = []
        for mark in self._marks:
            if mark.is_bookmark:
                if start <= mark.start <= end:
                    found.append(mark)
            elif mark.start <= end and mark.end >= start:
                found.append(mark)
        return found

    def find_marks_at(self, pos: Position) -> list[TextMark]:
        return [mark for mark in self._marks if mark.start <= pos <= mark.end]

    def get_all_marks(self) -> list[TextMark]:
        return list(self._marks)

    # Commands

    def exec_command(self, name: str) -> None:
        run_command(self, name)
