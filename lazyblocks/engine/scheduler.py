"""Deferred callbacks for focus handoffs and short retries.

Everything runs on the caller's thread: callbacks only execute when the
host loop calls ``run_due`` (or ``run_all`` in scripted sessions).
"""

from __future__ import annotations

import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(order=True)
class DeferredCall:
    due: float
    seq: int
    callback: Callable[[], object] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class DeferredCallbacks:
    """Ordered queue of callbacks due at monotonic deadlines."""

    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._monotonic = monotonic
        self._seq = itertools.count()
        self._queue: list[DeferredCall] = []

    @property
    def pending(self) -> int:
        return sum(1 for call in self._queue if not call.cancelled)

    def call_later(self, delay: float, callback: Callable[[], object]) -> DeferredCall:
        call = DeferredCall(self._monotonic() + max(0.0, delay), next(self._seq), callback)
        self._queue.append(call)
        self._queue.sort()
        return call

    def _pop_next(self, now: float | None) -> DeferredCall | None:
        while self._queue:
            call = self._queue[0]
            if call.cancelled:
                self._queue.pop(0)
                continue
            if now is not None and call.due > now:
                return None
            return self._queue.pop(0)
        return None

    def run_due(self, now: float | None = None) -> int:
        """Run callbacks whose deadline has passed; return how many ran."""
        if now is None:
            now = self._monotonic()
        ran = 0
        while True:
            call = self._pop_next(now)
            if call is None:
                return ran
            call.callback()
            ran += 1

    def run_all(self) -> int:
        """Run every pending callback in deadline order, including ones scheduled meanwhile."""
        ran = 0
        while True:
            call = self._pop_next(None)
            if call is None:
                return ran
            call.callback()
            ran += 1
