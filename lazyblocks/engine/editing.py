"""In-place text editing sessions for literal blocks and whitespace gaps."""

from __future__ import annotations

from dataclasses import dataclass

from ..buffer import Span
from ..render.elements import BlockElement
from ..tree_model import Node

VIEWING = "viewing"
EDITING = "editing"
ERRORING = "erroring"

LITERAL_EDIT = "literal"
WHITESPACE_EDIT = "whitespace"


@dataclass(eq=False)
class EditSession:
    """Text being edited inside one element before it is spliced into the buffer.

    ``target`` is the buffer range the edited text replaces; ``prefix`` is
    prepended to the text before validation and insertion.
    """

    element: BlockElement
    node: Node | None
    target: Span
    old_text: str
    prefix: str = ""
    kind: str = LITERAL_EDIT
    state: str = EDITING
    selection_start: int = 0
    selection_end: int = 0

    @property
    def text(self) -> str:
        return self.element.text

    @text.setter
    def text(self, value: str) -> None:
        self.element.text = value

    @property
    def fragment(self) -> str:
        return self.prefix + self.text

    def select_all(self) -> None:
        self.selection_start = 0
        self.selection_end = len(self.text)

    def move_caret_to_end(self) -> None:
        self.selection_start = self.selection_end = len(self.text)

    def _selection(self) -> tuple[int, int]:
        low = max(0, min(self.selection_start, self.selection_end, len(self.text)))
        high = max(0, min(max(self.selection_start, self.selection_end), len(self.text)))
        return low, high

    def insert(self, text: str) -> None:
        """Replace the selection with ``text`` and leave the caret after it."""
        low, high = self._selection()
        self.text = self.text[:low] + text + self.text[high:]
        self.selection_start = self.selection_end = low + len(text)

    def delete_backward(self) -> None:
        low, high = self._selection()
        if low == high:
            if low == 0:
                return
            low -= 1
        self.text = self.text[:low] + self.text[high:]
        self.selection_start = self.selection_end = low

    def delete_forward(self) -> None:
        low, high = self._selection()
        if low == high:
            if high >= len(self.text):
                return
            high += 1
        self.text = self.text[:low] + self.text[high:]
        self.selection_start = self.selection_end = low

    def move_caret(self, offset: int) -> None:
        low, high = self._selection()
        if low != high:
            caret = low if offset < 0 else high
        else:
            caret = max(0, min(len(self.text), low + offset))
        self.selection_start = self.selection_end = caret

    def move_caret_home(self) -> None:
        self.selection_start = self.selection_end = 0

    def restore(self) -> None:
        """Put the cached original text back."""
        self.text = self.old_text
        self.select_all()


def handle_session_key(session: EditSession, key: str) -> bool:
    """Apply a caret or deletion key to ``session``; return whether it was used."""
    if key == "BACKSPACE":
        session.delete_backward()
    elif key == "DELETE":
        session.delete_forward()
    elif key == "LEFT":
        session.move_caret(-1)
    elif key == "RIGHT":
        session.move_caret(1)
    elif key == "HOME":
        session.move_caret_home()
    elif key == "END":
        session.move_caret_to_end()
    else:
        return False
    return True
