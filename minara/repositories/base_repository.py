"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (Supabase + local SQLite)
- Logger reference
- Conversion of Supabase / PostgREST exceptions into ``StoreResult``
  ``(data, error)`` pairs, logging the raw error detail on the way
"""

from __future__ import annotations

import sqlite3
from typing import Any, Callable, Optional

from supabase import Client as SupabaseClient

from minara.database import DatabaseManager
from minara.logger import StructuredLogger
from minara.models.result_models import StoreError, StoreResult

# PostgREST codes meaning "the single-row read matched nothing".
_NO_ROWS_CODES: frozenset[str] = frozenset({"204", "PGRST116"})


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client (raises ``RuntimeError`` when offline)."""
        return self._db.supabase

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Returns the local SQLite connection."""
        return self._db.sqlite

    # ------------------------------------------------------------------
    # Supabase call wrapper
    # ------------------------------------------------------------------

    def _execute_store_call(
        self,
        store_op: Callable[[], Optional[dict[str, Any]]],
        *,
        operation_name: str,
        entity_id: str,
        allow_empty: bool = False,
    ) -> StoreResult:
        """Run *store_op* and fold its outcome into a ``StoreResult``.

        Parameters
        ----------
        store_op:
            Zero-argument callable that performs the Supabase request and
            returns the affected / selected row, or ``None``.
        operation_name:
            Label for log lines, e.g. ``"upsert (profiles)"``.
        entity_id:
            Key of the row involved; logged with every failure.
        allow_empty:
            When ``True`` a ``None`` row is a valid answer (reads).  When
            ``False`` (writes) an empty response is reported as an error,
            since the store accepted the request but returned nothing we
            can rely on.
        """
        try:
            row = store_op()
        except Exception as exc:
            error = self._to_store_error(exc)
            if allow_empty and error.code in _NO_ROWS_CODES:
                return StoreResult(data=None)
            self._log_store_error(operation_name, entity_id, error)
            return StoreResult(error=error)

        if row is None and not allow_empty:
            error = StoreError(message=f"{operation_name} returned no data")
            self._log_store_error(operation_name, entity_id, error)
            return StoreResult(error=error)

        return StoreResult(data=row)

    @staticmethod
    def _first_row(response: Any) -> Optional[dict[str, Any]]:
        """Return the first row of a PostgREST response, if any.

        ``maybe_single()`` returns ``None`` instead of a response object
        when nothing matched, and ``data`` is a dict for single-row
        reads but a list for writes.
        """
        if response is None:
            return None
        data = response.data
        if not data:
            return None
        if isinstance(data, list):
            return data[0]
        return data

    @staticmethod
    def _to_store_error(exc: Exception) -> StoreError:
        """Extract ``{code, message, details, hint}`` from a store exception.

        PostgREST ``APIError`` carries the four fields as attributes; any
        other exception (offline ``RuntimeError``, socket errors) only has
        its text.
        """
        if isinstance(exc, RuntimeError) and not hasattr(exc, "code"):
            return StoreError(code="offline", message=str(exc))

        code = getattr(exc, "code", None)
        message = getattr(exc, "message", None) or str(exc)
        details = getattr(exc, "details", None)
        hint = getattr(exc, "hint", None)
        return StoreError(
            code=str(code) if code is not None else None,
            message=str(message),
            details=str(details) if details is not None else None,
            hint=str(hint) if hint is not None else None,
        )

    def _log_store_error(
        self, operation_name: str, entity_id: str, error: StoreError,
    ) -> None:
        self._logger.warning(
            "Store call %s failed for %s: %s",
            operation_name,
            entity_id,
            error.message,
            extra={
                "table": self.TABLE,
                "entity_id": entity_id,
                "code": error.code,
                "details": error.details,
                "hint": error.hint,
            },
        )

    # ------------------------------------------------------------------
    # SQLite helpers
    # ------------------------------------------------------------------

    def _commit(self) -> None:
        self.sqlite.commit()
