"""Decorations applied to block elements through the engine's marking entry point."""

from __future__ import annotations

from collections.abc import Iterable

from ..buffer import Position, Span, TextBuffer, TextMark
from ..errors import UnsupportedMarkOptionError
from ..render.elements import NODE_CLASS, BlockElement

SUPPORTED_MARK_OPTIONS = ("css", "class_name", "title")


class BlockMarker:
    """Handle for one decoration placed on a block element."""

    def __init__(
        self,
        mark: TextMark,
        element: BlockElement,
        options: dict[str, str],
        registry: BlockMarkerRegistry,
    ) -> None:
        self.mark = mark
        self.element = element
        self.options = dict(options)
        self._registry = registry

    def clear(self) -> None:
        if self.options.get("css"):
            self.element.css = ""
        if self.options.get("title"):
            self.element.title = ""
        if self.options.get("class_name"):
            self.element.remove_class(self.options["class_name"])
        self._registry.discard(self)

    def find(self) -> Span | None:
        return self.mark.find()


def _element_for_range(root: BlockElement, start: Position, end: Position) -> BlockElement:
    """Return the element rendering exactly ``[start, end)``, else the root element."""
    wanted = Span(start, end)
    for element in root.walk():
        if NODE_CLASS in element.classes and element.span == wanted:
            return element
    return root


class BlockMarkerRegistry:
    """Markers created by one engine, grouped by the buffer mark of their root block.

    Several nested elements of one root can carry decorations at once, so each
    mark holds a list of markers.
    """

    def __init__(self) -> None:
        self._by_mark: dict[TextMark, list[BlockMarker]] = {}

    def mark_text(
        self,
        buffer: TextBuffer,
        start: Position,
        end: Position,
        options: dict[str, str],
    ) -> BlockMarker | None:
        """Decorate the block covering ``[start, end)`` or pass through to the buffer."""
        for option in options:
            if option not in SUPPORTED_MARK_OPTIONS:
                raise UnsupportedMarkOptionError(option)
        if not options:
            return None

        for mark in buffer.find_marks(start, end):
            root = mark.replaced_with
            if mark.is_bookmark or not isinstance(root, BlockElement):
                continue
            if NODE_CLASS not in root.classes or not (mark.start <= start and end <= mark.end):
                continue
            element = _element_for_range(root, start, end)
            if options.get("css"):
                element.css = options["css"]
            if options.get("class_name"):
                element.add_class(options["class_name"])
            if options.get("title"):
                element.title = options["title"]
            marker = BlockMarker(mark, element, options, self)
            self._by_mark.setdefault(mark, []).append(marker)
            return marker

        buffer.mark_text(start, end, **options)
        return None

    def discard(self, marker: BlockMarker) -> None:
        markers = self._by_mark.get(marker.mark, [])
        if marker in markers:
            markers.remove(marker)
        if not markers:
            self._by_mark.pop(marker.mark, None)

    def clear(self) -> None:
        self._by_mark.clear()

    def markers_for(
        self,
        marks: Iterable[TextMark],
        start: Position | None = None,
        end: Position | None = None,
    ) -> list[BlockMarker]:
        """Markers on ``marks``, optionally only those whose element touches ``[start, end]``."""
        found: list[BlockMarker] = []
        for mark in marks:
            for marker in self._by_mark.get(mark, ()):
                span = marker.element.span
                if start is not None and end is not None and span is not None:
                    if span.start > end or span.end < start:
                        continue
                found.append(marker)
        return found
