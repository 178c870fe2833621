"""
Reconciliation Sweep.

Background daemon that drains the local ``orphaned_accounts`` ledger.
Each pass re-runs the profile cascade for every pending account; a
success marks the row ``resolved``, and a row that keeps failing is
marked ``abandoned`` after ``SWEEP_MAX_ATTEMPTS`` tries so support can
follow up by hand.

Follows the same lifecycle as the other daemon services: ``start()`` /
``stop()``, a stop ``Event`` used as the sleep, and exponential backoff
while passes keep failing.
"""

from __future__ import annotations

import threading
from typing import Optional

from pydantic import BaseModel

from minara.config import AppConfig
from minara.database import DatabaseManager
from minara.logger import StructuredLogger
from minara.models.enums import OrphanStatus
from minara.repositories.orphaned_account_repository import OrphanedAccountRepository
from minara.services.base_service import BaseService
from minara.services.cancellation import CancellationToken
from minara.services.profile_reconciler import ProfileReconciler


class SweepReport(BaseModel):
    """Counts for one :meth:`ReconciliationSweep.run_once` pass."""

    examined: int = 0
    resolved: int = 0
    retried: int = 0
    abandoned: int = 0


class ReconciliationSweep(BaseService):
    """Retries profile reconciliation for ledgered accounts.

    Parameters
    ----------
    db:
        Database manager; passes are skipped while Supabase is offline.
    orphan_repo:
        The local ledger.
    reconciler:
        Same ``ProfileReconciler`` the signup workflow uses.
    config:
        Interval, backoff cap and attempt limit.
    logger:
        Structured JSON logger.
    """

    _BATCH_SIZE: int = 50

    def __init__(
        self,
        db: DatabaseManager,
        orphan_repo: OrphanedAccountRepository,
        reconciler: ProfileReconciler,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._db: DatabaseManager = db
        self._orphans: OrphanedAccountRepository = orphan_repo
        self._reconciler: ProfileReconciler = reconciler
        self._config: AppConfig = config
        self._thread: Optional[threading.Thread] = None
        self._stop_event: threading.Event = threading.Event()
        self._token: CancellationToken = CancellationToken()
        self._consecutive_failures: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the sweep on a daemon thread.  No-op when already running."""
        if self._thread is not None and self._thread.is_alive():
            self._logger.debug("Reconciliation sweep already running.")
            return

        self._stop_event.clear()
        self._token = CancellationToken()
        self._consecutive_failures = 0
        self._thread = threading.Thread(
            target=self._run_loop,
            name="ReconciliationSweep",
            daemon=True,
        )
        self._thread.start()
        self._logger.info("Reconciliation sweep started.")

    def stop(self) -> None:
        """Signal the sweep to stop and wait up to 10 s for it to exit."""
        if self._thread is None:
            return

        self._stop_event.set()
        self._token.cancel()
        self._thread.join(timeout=10.0)
        if self._thread.is_alive():
            self._logger.warning("Reconciliation sweep did not terminate within 10 s.")
        else:
            self._logger.info("Reconciliation sweep stopped.")
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # One pass
    # ------------------------------------------------------------------

    def run_once(self) -> SweepReport:
        """Retry every pending ledger row once and return the tallies."""
        report = SweepReport()
        for orphan in self._orphans.list_pending(limit=self._BATCH_SIZE):
            if self._stop_event.is_set():
                break

            result = self._reconciler.ensure_profile(
                orphan.account_id,
                orphan.email,
                orphan.full_name,
                orphan.role,
                cancel_token=self._token,
            )
            if result.cancelled:
                break
            report.examined += 1

            if result.success:
                self._orphans.set_status(orphan.account_id, OrphanStatus.RESOLVED)
                self._audit(
                    "ORPHAN_RESOLVED",
                    "OrphanedAccount",
                    orphan.account_id,
                    {"path": result.path, "attempts": orphan.attempts + 1},
                    db=self._db,
                )
                report.resolved += 1
                continue

            underlying = result.underlying_error
            attempts = self._orphans.record_attempt(
                orphan.account_id,
                str(result.error_code) if result.error_code else None,
                underlying.message if underlying else result.error_message,
            )
            if attempts >= self._config.SWEEP_MAX_ATTEMPTS:
                self._orphans.set_status(orphan.account_id, OrphanStatus.ABANDONED)
                self._audit(
                    "ORPHAN_ABANDONED",
                    "OrphanedAccount",
                    orphan.account_id,
                    {"attempts": attempts, "error_code": str(result.error_code)},
                    db=self._db,
                )
                report.abandoned += 1
            else:
                report.retried += 1

        if report.examined:
            self._logger.info(
                "Reconciliation pass: %d examined, %d resolved, %d retried, %d abandoned.",
                report.examined, report.resolved, report.retried, report.abandoned,
            )
        return report

    # ------------------------------------------------------------------
    # Core loop
    # ------------------------------------------------------------------

    def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                if self._stop_event.wait(timeout=self._calculate_backoff_interval()):
                    break
                if not self._db.is_online:
                    continue

                report = self.run_once()
                if report.retried or report.abandoned:
                    self._consecutive_failures += 1
                else:
                    self._consecutive_failures = 0
        except Exception as exc:
            self._logger.error(
                "Reconciliation sweep crashed: %s", exc, exc_info=True,
            )

    def _calculate_backoff_interval(self) -> float:
        """``SWEEP_INTERVAL_S * 2**failures``, capped at ``SWEEP_MAX_INTERVAL_S``."""
        interval = self._config.SWEEP_INTERVAL_S * (2 ** self._consecutive_failures)
        return min(interval, self._config.SWEEP_MAX_INTERVAL_S)
