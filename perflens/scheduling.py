"""Cancellation primitives for the sequential batch runner."""

from __future__ import annotations

import threading


class AnalysisCancelled(Exception):
    """Raised inside a run when its cancellation token fires."""


class CancellationToken:
    """Cooperative cancellation flag that doubles as an interruptible timer."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep for ``seconds`` unless cancelled first; return True when cancelled."""
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(seconds)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelled("Analysis cancelled")


__all__ = ["AnalysisCancelled", "CancellationToken"]
