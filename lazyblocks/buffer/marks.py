"""Text marks and bookmarks owned by a ``TextBuffer``."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .positions import Position, Span


@dataclass(eq=False)
class TextMark:
    """Decoration over ``[start, end)``, optionally replacing the text with a widget.

    ``replaced_with`` is any object exposing ``destroy()``; clearing the mark
    destroys it.
    """

    start: Position
    end: Position
    replaced_with: Any = None
    class_name: str | None = None
    css: str | None = None
    title: str | None = None
    attached: bool = True
    _detach: Callable[[TextMark], None] | None = field(default=None, repr=False)

    @property
    def is_bookmark(self) -> bool:
        return False

    def find(self) -> Span | None:
        """Return the current range, or ``None`` once cleared."""
        if not self.attached:
            return None
        return Span(self.start, self.end)

    def clear(self) -> None:
        if not self.attached:
            return
        self.attached = False
        if self._detach is not None:
            self._detach(self)
        widget = self.replaced_with
        if widget is not None and hasattr(widget, "destroy"):
            widget.destroy()


@dataclass(eq=False)
class Bookmark(TextMark):
    """Zero-width mark at one position, optionally showing a widget there."""

    @property
    def is_bookmark(self) -> bool:
        return True

    @property
    def widget(self) -> Any:
        return self.replaced_with

    @property
    def position(self) -> Position:
        return self.start
