"""
Base Service Class.

Standardises the logger pattern for all signup services and gives them
one way to emit audit events.  Services extend this and add their own
repository dependencies via __init__.
"""

from __future__ import annotations

from typing import Optional

from minara.database import DatabaseManager
from minara.logger import StructuredLogger
from minara.utils.audit import DetailValue, log_audit_event


class BaseService:
    """Base class for all service classes. Provides a logger and ``_audit``."""

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger: StructuredLogger = logger

    def _audit(
        self,
        action: str,
        entity_type: str,
        account_id: str,
        details: Optional[dict[str, DetailValue]] = None,
        *,
        entity_id: Optional[str] = None,
        db: Optional[DatabaseManager] = None,
    ) -> None:
        """Emit an audit event about *account_id*.

        Signup has no separate actor, so the account is both the subject
        and ``user_id``; ``entity_id`` defaults to it.  Passing *db* also
        persists the event to the local ``audit_log`` table.
        """
        log_audit_event(
            logger=self._logger,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id or account_id,
            user_id=account_id,
            details=details,
            conn=db.sqlite if db is not None else None,
            lock=db.write_lock if db is not None else None,
        )
