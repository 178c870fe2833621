"""
Signup Rate-Limit Guard.

Client-side mirror of the identity provider's signup cooldown.  When the
provider throttles a signup, the workflow arms the guard with the
cooldown it reported; until the cooldown runs out every submission is
refused locally, without a network call, and the UI shows a countdown.

State lives on the guard instance only (``RateLimitState``).  Nothing is
persisted: restarting the client forgets the cooldown, and the provider
will simply throttle again if it still applies.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable, Optional

from minara.logger import StructuredLogger
from minara.models.signup_models import GuardCheck, RateLimitState
from minara.services.base_service import BaseService


class RateLimitGuard(BaseService):
    """Owns one ``RateLimitState`` and answers "may I submit now?".

    Parameters
    ----------
    logger:
        Structured JSON logger.
    clock:
        Monotonic time source in seconds.  Tests inject a fake.
    """

    _TICK_INTERVAL_S: float = 1.0

    def __init__(
        self,
        logger: StructuredLogger,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(logger)
        self._clock: Callable[[], float] = clock
        self._state: RateLimitState = RateLimitState()
        self._lock: threading.Lock = threading.Lock()
        self._ticker: Optional[threading.Thread] = None
        self._ticker_stop: threading.Event = threading.Event()

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def activate(self, duration_seconds: int, reason: Optional[str] = None) -> None:
        """Block submissions for *duration_seconds* from now.

        A second activation replaces the first, even if shorter.
        """
        with self._lock:
            self._state = RateLimitState(
                active_until=self._clock() + duration_seconds,
                reason=reason,
            )
        self._logger.info(
            "Signup rate limit active for %d s.", duration_seconds,
            extra={"event": "RATE_LIMIT_ACTIVATED", "reason": reason},
        )

    def clear(self) -> None:
        """Drop the cooldown immediately (manual "I've waited" override)."""
        with self._lock:
            was_active = self._state.active_until is not None
            self._state = RateLimitState()
        if was_active:
            self._logger.info(
                "Signup rate limit cleared.", extra={"event": "RATE_LIMIT_CLEARED"},
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def remaining_seconds(self) -> int:
        """Whole seconds left, rounded up.  Reaching ``0`` clears the state."""
        with self._lock:
            if self._state.active_until is None:
                return 0
            remaining = max(0, math.ceil(self._state.active_until - self._clock()))
            if remaining == 0:
                self._state = RateLimitState()
            return remaining

    @property
    def is_active(self) -> bool:
        return self.remaining_seconds() > 0

    @property
    def reason(self) -> Optional[str]:
        with self._lock:
            return self._state.reason

    def check_and_maybe_block(self) -> GuardCheck:
        """Run before every submission.  ``blocked`` means: do not call out."""
        remaining = self.remaining_seconds()
        if remaining > 0:
            self._logger.debug("Submission blocked; %d s remaining.", remaining)
            return GuardCheck(blocked=True, remaining_seconds=remaining)
        return GuardCheck(blocked=False)

    # ------------------------------------------------------------------
    # Countdown ticker
    # ------------------------------------------------------------------

    def start_ticker(
        self,
        on_tick: Callable[[int], None],
        interval: Optional[float] = None,
    ) -> None:
        """Call ``on_tick(remaining)`` every *interval* seconds on a daemon thread.

        The first tick fires immediately.  The ticker stops by itself after
        reporting ``0`` and is replaced if already running.  *on_tick* runs
        on the ticker thread; UI callers must marshal to their own thread.
        """
        self.stop_ticker()
        period = self._TICK_INTERVAL_S if interval is None else interval
        stop_event = threading.Event()
        self._ticker_stop = stop_event

        def _run() -> None:
            try:
                while True:
                    remaining = self.remaining_seconds()
                    on_tick(remaining)
                    if remaining == 0 or stop_event.wait(timeout=period):
                        break
            except Exception as exc:
                self._logger.error("Rate-limit ticker crashed: %s", exc)

        self._ticker = threading.Thread(
            target=_run, name="RateLimitTicker", daemon=True,
        )
        self._ticker.start()

    def stop_ticker(self) -> None:
        """Stop the countdown ticker.  Safe to call when none is running."""
        self._ticker_stop.set()
        ticker = self._ticker
        self._ticker = None
        if (
            ticker is not None
            and ticker.is_alive()
            and ticker is not threading.current_thread()
        ):
            ticker.join(timeout=2.0)

    @property
    def ticker_running(self) -> bool:
        return self._ticker is not None and self._ticker.is_alive()
