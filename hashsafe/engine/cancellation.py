"""Cooperative cancellation for hashing runs.

A token is created per run and shared between the handle (which sets it)
and the worker (which checks it between blocks). It is backed by
``threading.Event`` so setting and checking need no extra locking.
"""

from __future__ import annotations

import threading


class CancellationToken:
    """Single-use cancellation signal."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> bool:
        """Request cancellation. Returns True only for the first request."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


__all__ = ["CancellationToken"]
