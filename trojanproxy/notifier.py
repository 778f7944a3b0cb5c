"""A one-slot change notifier."""

from __future__ import annotations

import threading


class Notifier:
    """Collapses any number of signals into one pending notification."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = False

    def signal(self) -> None:
        """Mark a change as pending; never blocks."""
        with self._cond:
            self._pending = True
            self._cond.notify()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for a pending change and consume it; False on timeout."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._pending, timeout):
                return False
            self._pending = False
            return True