"""
Database Abstraction Layer.

Holds the two connections the signup client needs:

- **Supabase**: the identity provider (``.auth``) and the managed
  Postgres store that owns the ``profiles`` and
  ``instructor_applications`` tables.  Authoritative for everything the
  signup workflow writes.

- **SQLite (local)**: a small ledger of accounts whose profile
  reconciliation failed, so the background sweep can retry them after
  restarts.  Nothing else is stored locally; rate-limit state is
  deliberately kept in memory only.

This module only manages the raw connections; it contains no query logic.

Usage (dependency injection at app startup)::

    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        sqlite_path=Path(config.LOCAL_DB_PATH),
        logger=StructuredLogger(name="database"),
    )
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Optional

from supabase import create_client, Client as SupabaseClient

from minara.logger import StructuredLogger


class DatabaseManager:
    """Manages the Supabase client and the local SQLite ledger connection.

    When ``supabase_url`` or ``supabase_key`` is empty the Supabase client
    is **not** created.  The ``supabase`` property then raises
    ``RuntimeError``, which the account service classifies as a network
    error and the repositories convert into a ``StoreError``.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The Supabase anonymous key.  Signup runs with end-user
        privileges, so row-level security applies to every write.
    sqlite_path:
        Filesystem path for the local ledger (``":memory:"`` in tests).
    logger:
        A ``StructuredLogger`` instance.
    supabase_client:
        Pre-built client; bypasses ``create_client``.  Used by tests to
        inject an in-memory fake.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        sqlite_path: Path,
        logger: StructuredLogger,
        supabase_client: Optional[SupabaseClient] = None,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._write_lock: threading.RLock = threading.RLock()

        self._supabase: Optional[SupabaseClient] = supabase_client
        if self._supabase is None:
            self._supabase = self._create_supabase(supabase_url, supabase_key)

        self._sqlite_conn: sqlite3.Connection = self._connect_sqlite(sqlite_path)

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client.

        Raises
        ------
        RuntimeError
            If the client was not initialised (missing credentials).
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "Check SUPABASE_URL and SUPABASE_ANON_KEY."
            )
        return self._supabase

    @property
    def is_online(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Return the local SQLite connection."""
        return self._sqlite_conn

    @property
    def write_lock(self) -> threading.RLock:
        """Lock serialising SQLite writes from the UI, signup and sweep threads::

            with db.write_lock:
                db.sqlite.execute("INSERT ...")
                db.sqlite.commit()
        """
        return self._write_lock

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the local SQLite connection.

        Safe to call multiple times; subsequent calls are no-ops.
        """
        with self._write_lock:
            try:
                self._sqlite_conn.close()
                self._logger.info("SQLite connection closed.")
            except sqlite3.ProgrammingError:
                # Already closed.
                pass

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _create_supabase(self, url: str, key: str) -> Optional[SupabaseClient]:
        if not (url and key):
            self._logger.warning(
                "Supabase credentials not configured; signup is unavailable."
            )
            return None
        try:
            client = create_client(url, key)
            self._logger.info("Supabase client initialized.")
            return client
        except (ValueError, TypeError) as exc:
            self._logger.warning("Supabase credential format error: %s.", exc)
        except Exception as exc:
            self._logger.error(
                "Unexpected Supabase initialization failure: %s.",
                exc,
                exc_info=True,
            )
        return None

    def _connect_sqlite(self, path: Path) -> sqlite3.Connection:
        """Open (or create) the local ledger database.

        Raises
        ------
        PermissionError
            If the OS denies access to the database file or its directory.
            Re-raised with a user-facing message.
        """
        try:
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            self._logger.info("SQLite ledger opened at %s", path)
            return conn
        except PermissionError as exc:
            msg = (
                f"Cannot open the local database at '{path}'. "
                "The file or its directory may be read-only or locked by "
                "another process.  Please check file permissions and try again."
            )
            self._logger.error(msg)
            raise PermissionError(msg) from exc
