"""Buffer coordinates: positions, spans, and edit mapping helpers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based ``(line, column)`` location in a buffer."""

    line: int
    column: int

    def shifted(self, lines: int = 0, columns: int = 0) -> Position:
        return Position(self.line + lines, self.column + columns)


@dataclass(frozen=True)
class Span:
    """Half-open buffer range ``[start, end)``."""

    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"span end {self.end} precedes start {self.start}")

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, pos: Position) -> bool:
        """Return whether ``pos`` lies strictly inside the span."""
        return self.start < pos < self.end


def end_of_text(start: Position, text: str) -> Position:
    """Return the position reached after inserting ``text`` at ``start``."""
    parts = text.split("\n")
    if len(parts) == 1:
        return Position(start.line, start.column + len(text))
    return Position(start.line + len(parts) - 1, len(parts[-1]))


def map_position(
    pos: Position,
    start: Position,
    end: Position,
    inserted: str,
    *,
    stick_to_end: bool = False,
) -> Position:
    """Map ``pos`` through the replacement of ``[start, end)`` by ``inserted``.

    Positions before the edit are unchanged. Positions after it shift by the
    size difference. Positions inside the replaced range collapse onto the
    inserted text's start, or its end when ``stick_to_end`` is set.
    """
    new_end = end_of_text(start, inserted)
    if pos < start or (pos == start and not stick_to_end):
        return pos
    if pos < end or (pos == end and start == end):
        return new_end if stick_to_end else start
    if pos.line == end.line:
        return Position(new_end.line, new_end.column + (pos.column - end.column))
    return Position(pos.line + (new_end.line - end.line), pos.column)
