"""Interaction events delivered to the block engine.

Handlers mark an event consumed with ``prevent_default`` and
``stop_propagation``; unconsumed events fall through to the buffer's own
default behavior.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..input.keymap import normalize_key
from ..render.elements import BlockElement


@dataclass
class Event:
    type: str = ""
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


@dataclass
class KeyEvent(Event):
    """Key press; ``key`` is a normalized token such as ``TAB`` or a single character."""

    type: str = "keydown"
    key: str = ""

    def __post_init__(self) -> None:
        self.key = normalize_key(self.key)


@dataclass
class PointerEvent(Event):
    """Mouse event aimed at ``target`` (``None`` for background) at cell ``(x, y)``."""

    type: str = "click"
    target: BlockElement | None = None
    x: int = 0
    y: int = 0


@dataclass
class DataTransfer:
    """Payload carried by one drag gesture."""

    effect_allowed: str = "uninitialized"
    drag_image: Any = None
    _data: dict[str, str] = field(default_factory=dict)

    def set_data(self, mime_type: str, value: str) -> None:
        self._data[mime_type] = value

    def get_data(self, mime_type: str) -> str:
        return self._data.get(mime_type, "")


@dataclass
class DragEvent(PointerEvent):
    type: str = "drop"
    data_transfer: DataTransfer = field(default_factory=DataTransfer)


@dataclass
class ClipboardEvent(Event):
    """Copy, cut or paste; ``text`` carries pasted clipboard text."""

    type: str = "copy"
    text: str = ""
