"""
Profile Repository.

Data access for the Supabase ``profiles`` table.  Each method performs
exactly one store round-trip and returns a ``StoreResult``; the fallback
logic between them lives in ``ProfileReconciler``.
"""

from __future__ import annotations

from typing import Any, Optional

from minara.models.result_models import StoreResult
from minara.models.signup_models import ProfileRecord
from minara.repositories.base_repository import BaseRepository


class ProfileRepository(BaseRepository):
    """Data access layer for ``profiles`` rows.

    **No ``delete()`` method.**  Signup never removes a profile; a
    failed reconciliation leaves whatever the store already holds.
    """

    TABLE = "profiles"
    CONFLICT_KEY = "id"

    def upsert(self, profile: ProfileRecord) -> StoreResult:
        """Insert or overwrite the row keyed by ``profile.id``."""
        row = self._to_row(profile)

        def _op() -> Optional[dict[str, Any]]:
            response = (
                self.supabase.table(self.TABLE)
                .upsert(row, on_conflict=self.CONFLICT_KEY, ignore_duplicates=False)
                .execute()
            )
            return self._first_row(response)

        result = self._execute_store_call(
            _op, operation_name="upsert (profiles)", entity_id=profile.id,
        )
        if result.ok:
            self._logger.info("Profile upserted: %s", profile.id)
        return result

    def insert(self, profile: ProfileRecord) -> StoreResult:
        """Plain insert; fails on an existing ``id``."""
        row = self._to_row(profile)

        def _op() -> Optional[dict[str, Any]]:
            response = self.supabase.table(self.TABLE).insert(row).execute()
            return self._first_row(response)

        result = self._execute_store_call(
            _op, operation_name="insert (profiles)", entity_id=profile.id,
        )
        if result.ok:
            self._logger.info("Profile inserted: %s", profile.id)
        return result

    def get_by_id(self, account_id: str) -> StoreResult:
        """Read one row by primary key.  ``data`` is ``None`` when absent."""
        def _op() -> Optional[dict[str, Any]]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq(self.CONFLICT_KEY, account_id)
                .maybe_single()
                .execute()
            )
            return self._first_row(response)

        return self._execute_store_call(
            _op,
            operation_name="get_by_id (profiles)",
            entity_id=account_id,
            allow_empty=True,
        )

    @staticmethod
    def _to_row(profile: ProfileRecord) -> dict[str, Any]:
        return profile.model_dump(mode="json", exclude_none=True)
