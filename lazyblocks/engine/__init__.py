"""Block engine: mode switching, selection, editing, drag-and-drop and copy/cut."""

from __future__ import annotations

from .blocks import MODE_CLASS_PREFIX, BlockEditor, EditorTimings
from .clipboard import TransferBuffer, copy_text_to_clipboard
from .dragdrop import DragState, Splice, is_drop_target, plan_drop
from .editing import EDITING, ERRORING, VIEWING, EditSession
from .events import ClipboardEvent, DataTransfer, DragEvent, Event, KeyEvent, PointerEvent
from .marks import SUPPORTED_MARK_OPTIONS, BlockMarker, BlockMarkerRegistry
from .quarantine import COMMITTED, IDLE, PROVISIONAL, Quarantine
from .scheduler import DeferredCall, DeferredCallbacks

__all__ = [
    "BlockEditor",
    "EditorTimings",
    "MODE_CLASS_PREFIX",
    "TransferBuffer",
    "copy_text_to_clipboard",
    "DragState",
    "Splice",
    "is_drop_target",
    "plan_drop",
    "EditSession",
    "VIEWING",
    "EDITING",
    "ERRORING",
    "Event",
    "KeyEvent",
    "PointerEvent",
    "DragEvent",
    "DataTransfer",
    "ClipboardEvent",
    "BlockMarker",
    "BlockMarkerRegistry",
    "SUPPORTED_MARK_OPTIONS",
    "Quarantine",
    "IDLE",
    "PROVISIONAL",
    "COMMITTED",
    "DeferredCall",
    "DeferredCallbacks",
]
