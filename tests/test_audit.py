"""Structured audit events."""

from __future__ import annotations

import json
import logging
import sqlite3

from minara.utils.audit import log_audit_event


def _audit_lines(caplog) -> list[dict]:
    return [
        json.loads(record.getMessage().removeprefix("AUDIT: "))
        for record in caplog.records
        if record.getMessage().startswith("AUDIT: ")
    ]


def test_event_is_logged_as_json(logger, caplog):
    with caplog.at_level(logging.INFO, logger="minara.test"):
        log_audit_event(
            logger=logger,
            action="PROFILE_ENSURED",
            entity_type="Profile",
            entity_id="acct-1",
            user_id="acct-1",
            details={"path": "insert"},
        )

    [event] = _audit_lines(caplog)
    assert event["action"] == "PROFILE_ENSURED"
    assert event["details"] == {"path": "insert"}
    assert event["timestamp"]


def test_unregistered_action_warns_but_still_logs(logger, caplog):
    with caplog.at_level(logging.INFO, logger="minara.test"):
        log_audit_event(logger, "SOMETHING_ELSE", "Profile", "x", "x")

    assert any(r.levelno == logging.WARNING for r in caplog.records)
    assert len(_audit_lines(caplog)) == 1


def test_event_is_persisted_when_connection_given(db, logger):
    log_audit_event(
        logger, "ORPHAN_RESOLVED", "OrphanedAccount", "acct-2", "acct-2",
        details={"attempts": 3}, conn=db.sqlite, lock=db.write_lock,
    )

    row = db.sqlite.execute("SELECT * FROM audit_log").fetchone()
    assert row["action"] == "ORPHAN_RESOLVED"
    assert json.loads(row["details"]) == {"attempts": 3}


def test_persistence_failure_is_logged_not_raised(logger, caplog):
    conn = sqlite3.connect(":memory:")  # no audit_log table

    with caplog.at_level(logging.WARNING, logger="minara.test"):
        log_audit_event(logger, "ACCOUNT_CREATED", "Account", "a", "a", conn=conn)

    assert "Failed to persist audit event" in caplog.text
    conn.close()
