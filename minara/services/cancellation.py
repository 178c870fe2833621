"""
Cooperative cancellation for signup attempts.

A ``CancellationToken`` is handed to every step of one signup attempt.
The UI cancels it when the view is torn down; steps check it between
store calls and sleep through :meth:`CancellationToken.wait` so that a
pending delay ends immediately on cancellation.
"""

from __future__ import annotations

import threading


class CancellationToken:
    """Thread-safe one-shot cancellation flag backed by ``threading.Event``."""

    def __init__(self) -> None:
        self._event: threading.Event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to *seconds*; return ``True`` if cancelled meanwhile."""
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(timeout=seconds)
