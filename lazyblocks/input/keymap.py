"""Key-name normalization and the default block-mode keymap."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from ..buffer import TextBuffer
from .key_registry import KeyComboBinding, KeyComboRegistry

KeymapEntry = str | Callable[[TextBuffer], object]

_KEY_ALIASES = {
    "RETURN": "ENTER",
    "ESCAPE": "ESC",
    "DEL": "DELETE",
    "BS": "BACKSPACE",
    "ARROWLEFT": "LEFT",
    "ARROWRIGHT": "RIGHT",
    "ARROWUP": "UP",
    "ARROWDOWN": "DOWN",
}

DEFAULT_KEYMAP: dict[str, KeymapEntry] = {
    "CTRL_Z": "undo",
    "CTRL_Y": "redo",
    "CTRL_SHIFT_Z": "redo",
    "HOME": "goLineStart",
    "END": "goLineEnd",
    "CTRL_HOME": "goDocStart",
    "CTRL_END": "goDocEnd",
    "LEFT": "goCharLeft",
    "RIGHT": "goCharRight",
    "UP": "goLineUp",
    "DOWN": "goLineDown",
    "ENTER": "newline",
}


def normalize_key(key: str) -> str:
    """Normalize key names like ``Shift-Tab`` or ``ctrl+z`` to ``SHIFT_TAB`` / ``CTRL_Z``.

    Single printable characters are returned unchanged.
    """
    if len(key) == 1:
        return key
    parts = [part for part in key.replace("+", "-").replace("_", "-").split("-") if part]
    if not parts:
        return key
    parts = [_KEY_ALIASES.get(part.upper(), part.upper()) for part in parts]
    return "_".join(parts)


def is_printable_key(key: str) -> bool:
    """Return whether ``key`` is a single printable character."""
    return len(key) == 1 and key.isprintable()


def build_keymap_registry(keymap: Mapping[str, KeymapEntry], buffer: TextBuffer) -> KeyComboRegistry:
    """Bind keymap entries to ``buffer``: names run commands, callables get the buffer."""
    registry = KeyComboRegistry(normalize=normalize_key)
    for key, entry in keymap.items():
        registry.register_binding(KeyComboBinding((key,), _entry_handler(entry, buffer), _entry_label(entry)))
    return registry


def _entry_label(entry: KeymapEntry) -> str:
    if isinstance(entry, str):
        return entry
    return getattr(entry, "__name__", type(entry).__name__)


def _entry_handler(entry: KeymapEntry, buffer: TextBuffer) -> Callable[[], bool]:
    if isinstance(entry, str):

        def run_named_command() -> bool:
            buffer.exec_command(entry)
            return True

        return run_named_command

    def run_bound_function() -> bool:
        entry(buffer)
        return True

    return run_bound_function
