"""Key-combo table that maps normalized key names to keymap actions."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass

KeyAction = Callable[[], bool | None]


@dataclass(frozen=True)
class KeyComboBinding:
    """One or more key tokens bound to an action.

    ``label`` names the action for logs and listings: the command name for
    named buffer commands, the function name for callables.
    """

    combos: tuple[str, ...]
    action: KeyAction
    label: str = ""


class KeyComboRegistry:
    def __init__(self, normalize: Callable[[str], str] | None = None) -> None:
        self._normalize = normalize or str
        self._bindings: dict[str, KeyComboBinding] = {}

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        """Bind every combo of ``binding``; a later binding replaces an earlier one."""
        for combo in binding.combos:
            self._bindings[self._normalize(combo)] = binding
        return self

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        for binding in bindings:
            self.register_binding(binding)
        return self

    def is_bound(self, key: str) -> bool:
        return self._normalize(key) in self._bindings

    def label_for(self, key: str) -> str | None:
        binding = self._bindings.get(self._normalize(key))
        return None if binding is None else binding.label

    def items(self) -> Iterator[tuple[str, str]]:
        """Yield ``(normalized key, label)`` pairs sorted by key."""
        for key in sorted(self._bindings):
            yield key, self._bindings[key].label

    def dispatch(self, key: str) -> bool | None:
        """Run the action bound to ``key``; ``None`` means nothing is bound."""
        binding = self._bindings.get(self._normalize(key))
        if binding is None:
            return None
        return binding.action()
