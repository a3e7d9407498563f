"""Input-layer helpers: key normalization, keymaps and the key-combo registry."""

from .key_registry import KeyComboBinding, KeyComboRegistry
from .keymap import DEFAULT_KEYMAP, KeymapEntry, build_keymap_registry, is_printable_key, normalize_key

__all__ = [
    "KeyComboBinding",
    "KeyComboRegistry",
    "DEFAULT_KEYMAP",
    "KeymapEntry",
    "build_keymap_registry",
    "is_printable_key",
    "normalize_key",
]
