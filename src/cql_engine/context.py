"""Cancellation token threaded through reconciler calls."""

from __future__ import annotations

import threading

from src.cql_engine.errors import ReconcileCancelledError


class ReconcileContext:
    """
    Carries the caller's cancellation signal into a reconcile call.

    Statements already issued are not undone; the engine only stops issuing
    further statements once `cancel()` has been called.
    """

    def __init__(self, event: threading.Event | None = None) -> None:
        self._event = event or threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str) -> None:
        """Raise ReconcileCancelledError naming the operation that was interrupted."""
        if self.cancelled:
            raise ReconcileCancelledError(f"{operation}: context cancelled")


def background() -> ReconcileContext:
    """A fresh context that is never cancelled unless the holder cancels it."""
    return ReconcileContext()
