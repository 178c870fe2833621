"""Shared utilities for the Minara Learn client.

Convenience re-exports so consumers can write
``from minara.utils import log_audit_event``.
"""

from minara.utils.audit import AUDIT_ACTIONS, AuditEvent, log_audit_event

__all__ = [
    "AUDIT_ACTIONS",
    "AuditEvent",
    "log_audit_event",
]
