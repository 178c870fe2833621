"""
Structured Audit Logging.

Every signup state change that creates or repairs a record is emitted as
one validated JSON line, and optionally copied into the local
``audit_log`` table so support can answer "what happened to this
account?" without the remote store.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from minara.logger import StructuredLogger

__all__ = [
    "AUDIT_ACTIONS",
    "AuditEvent",
    "DetailValue",
    "log_audit_event",
    "persist_audit_event",
]

# Flat scalars only; nested payloads belong in a dedicated model.
DetailValue = Union[str, int, float, bool, None]

AUDIT_ACTIONS: frozenset[str] = frozenset({
    "ACCOUNT_CREATED",
    "PROFILE_ENSURED",
    "APPLICATION_SUBMITTED",
    "ORPHAN_RECORDED",
    "ORPHAN_RESOLVED",
    "ORPHAN_ABANDONED",
})


class AuditEvent(BaseModel):
    """One audit trail entry, validated before it is serialised."""

    timestamp: str
    action: str
    entity_type: str
    entity_id: str
    user_id: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def _build_event(
    action: str,
    entity_type: str,
    entity_id: str,
    user_id: str,
    details: Optional[dict[str, DetailValue]],
) -> AuditEvent:
    return AuditEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        details=details or {},
    )


def log_audit_event(
    logger: StructuredLogger,
    action: str,
    entity_type: str,
    entity_id: str,
    user_id: str,
    details: Optional[dict[str, DetailValue]] = None,
    conn: Optional[sqlite3.Connection] = None,
    lock: Optional[threading.RLock] = None,
) -> None:
    """Log a structured JSON audit event, with optional SQLite persistence.

    Args:
        logger: The logger instance to write to.
        action: One of :data:`AUDIT_ACTIONS` (e.g. ``"PROFILE_ENSURED"``).
        entity_type: ``"Account"``, ``"Profile"``, ``"InstructorApplication"``
            or ``"OrphanedAccount"``.
        entity_id: Key of the affected record.
        user_id: Account the event concerns.  Signup has no separate
            actor, so this is usually the new account itself.
        details: Optional flat context (role, cascade path, ...).
        conn: When given, the event is also written to ``audit_log``.
            Persistence failures are logged and never propagated.
        lock: Write lock to hold while persisting, when *conn* is shared
            between threads.
    """
    if action not in AUDIT_ACTIONS:
        logger.warning("Unregistered audit action %r.", action)

    event = _build_event(action, entity_type, entity_id, user_id, details)
    logger.info("AUDIT: %s", json.dumps(event.model_dump(), default=str))

    if conn is None:
        return
    try:
        if lock is not None:
            with lock:
                persist_audit_event(conn, event)
        else:
            persist_audit_event(conn, event)
    except sqlite3.Error as db_err:
        logger.warning("Failed to persist audit event to SQLite: %s", db_err)


def persist_audit_event(conn: sqlite3.Connection, event: AuditEvent) -> None:
    """Insert an already-validated *event* into the ``audit_log`` table."""
    conn.execute(
        """
        INSERT INTO audit_log (timestamp, action, entity_type, entity_id, user_id, details)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            event.timestamp,
            event.action,
            event.entity_type,
            event.entity_id,
            event.user_id,
            json.dumps(event.details, default=str),
        ),
    )
    conn.commit()
