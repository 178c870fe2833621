"""
Orphaned Account Repository.

Local SQLite ledger of accounts that exist with the identity provider
but have no reconciled ``profiles`` row.  Written by the signup workflow
when profile reconciliation fails and drained by the reconciliation
sweep.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from minara.models.enums import OrphanStatus
from minara.models.signup_models import OrphanedAccount
from minara.repositories.base_repository import BaseRepository


class OrphanedAccountRepository(BaseRepository):
    """Data access for the local ``orphaned_accounts`` table.

    All writes take ``DatabaseManager.write_lock``: the signup worker
    thread records rows while the sweep thread updates them.
    """

    TABLE = "orphaned_accounts"

    def record(self, orphan: OrphanedAccount) -> None:
        """Insert *orphan* or refresh its error and reset it to ``pending``.

        A user retrying signup for the same account lands on the same
        row (``account_id`` is the primary key).
        """
        with self._db.write_lock:
            try:
                self.sqlite.execute(
                    f"""
                    INSERT INTO {self.TABLE}
                        (account_id, email, full_name, role, status,
                         attempts, last_error_code, last_error_message)
                    VALUES (?, ?, ?, ?, 'pending', 0, ?, ?)
                    ON CONFLICT(account_id) DO UPDATE SET
                        email = excluded.email,
                        full_name = excluded.full_name,
                        role = excluded.role,
                        status = 'pending',
                        last_error_code = excluded.last_error_code,
                        last_error_message = excluded.last_error_message,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (
                        orphan.account_id,
                        orphan.email,
                        orphan.full_name,
                        str(orphan.role),
                        orphan.last_error_code,
                        orphan.last_error_message,
                    ),
                )
                self._commit()
                self._logger.info(
                    "Orphaned account recorded: %s", orphan.account_id,
                    extra={"error_code": orphan.last_error_code},
                )
            except sqlite3.Error as exc:
                self._logger.error(
                    "Failed to record orphaned account %s: %s",
                    orphan.account_id,
                    exc,
                )

    def get(self, account_id: str) -> Optional[OrphanedAccount]:
        row = self.sqlite.execute(
            f"SELECT * FROM {self.TABLE} WHERE account_id = ?", (account_id,),
        ).fetchone()
        return OrphanedAccount(**dict(row)) if row else None

    def list_pending(self, limit: int = 50) -> list[OrphanedAccount]:
        """Oldest pending rows first."""
        rows = self.sqlite.execute(
            f"""
            SELECT * FROM {self.TABLE}
            WHERE status = 'pending'
            ORDER BY created_at ASC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
        return [OrphanedAccount(**dict(row)) for row in rows]

    def record_attempt(
        self,
        account_id: str,
        error_code: Optional[str],
        error_message: Optional[str],
    ) -> int:
        """Increment ``attempts`` after a failed sweep retry.

        Returns the new attempt count (``0`` if the row is missing).
        """
        with self._db.write_lock:
            self.sqlite.execute(
                f"""
                UPDATE {self.TABLE}
                SET attempts = attempts + 1,
                    last_error_code = ?,
                    last_error_message = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE account_id = ?
                """,
                (error_code, error_message, account_id),
            )
            self._commit()
            row = self.sqlite.execute(
                f"SELECT attempts FROM {self.TABLE} WHERE account_id = ?",
                (account_id,),
            ).fetchone()
        return int(row["attempts"]) if row else 0

    def set_status(self, account_id: str, status: OrphanStatus) -> None:
        with self._db.write_lock:
            self.sqlite.execute(
                f"""
                UPDATE {self.TABLE}
                SET status = ?, updated_at = CURRENT_TIMESTAMP
                WHERE account_id = ?
                """,
                (str(status), account_id),
            )
            self._commit()
        self._logger.info("Orphaned account %s marked %s.", account_id, status)
