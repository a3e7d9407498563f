"""Persistent JSON config helpers.

Stores the default block mode, keymap overrides, focus-handoff delays and
renderer type lists. All access is defensive: malformed or missing config
falls back safely.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir

from .buffer import COMMANDS
from .engine.blocks import EditorTimings
from .render import RenderOptions

APP_NAME = "lazyblocks"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem and serialization errors are ignored; a config that cannot be
    written never stops an editing session.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError):
        pass


def _load_delay(data: dict[str, object], key: str, default: float) -> float:
    """Read a non-negative number of seconds; booleans and negatives are ignored."""
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value < 0:
        return default
    return float(value)


def load_editor_timings() -> EditorTimings:
    """Load focus-handoff delays, keeping defaults for unset or invalid values."""
    data = load_config()
    defaults = EditorTimings()
    return EditorTimings(
        edit_entry_delay=_load_delay(data, "edit_entry_delay", defaults.edit_entry_delay),
        error_refocus_delay=_load_delay(data, "error_refocus_delay", defaults.error_refocus_delay),
        copy_refocus_delay=_load_delay(data, "copy_refocus_delay", defaults.copy_refocus_delay),
    )


def load_keymap_overrides() -> dict[str, str]:
    """Load ``key token -> command name`` overrides.

    Non-string keys or values, blank entries and names that are not buffer
    commands are dropped.
    """
    value = load_config().get("keymap")
    if not isinstance(value, dict):
        return {}
    overrides: dict[str, str] = {}
    for key, command in value.items():
        if not isinstance(key, str) or not isinstance(command, str):
            continue
        if not key.strip() or not command.strip():
            continue
        if command.strip() not in COMMANDS:
            continue
        overrides[key.strip()] = command.strip()
    return overrides


def _load_type_list(data: dict[str, object], key: str) -> frozenset[str]:
    value = data.get(key)
    if not isinstance(value, list):
        return frozenset()
    return frozenset(item for item in value if isinstance(item, str) and item)


def load_render_options() -> RenderOptions:
    """Load locked and hidden node types for the renderer."""
    data = load_config()
    return RenderOptions(
        locked_types=_load_type_list(data, "locked_types"),
        hidden_types=_load_type_list(data, "hidden_types"),
    )


def load_default_mode() -> str | None:
    """Load the persisted block mode name, returning ``None`` when unset/invalid."""
    value = load_config().get("default_mode")
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def save_default_mode(mode: str) -> None:
    """Persist the block mode used when the CLI gets no ``--mode``."""
    stripped = str(mode).strip()
    if not stripped:
        return
    config = load_config()
    config["default_mode"] = stripped
    save_config(config)
