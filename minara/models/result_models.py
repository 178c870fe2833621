"""
Signup Result Models.

Error taxonomies and typed result objects exchanged between the signup
components and the UI layer.  Every component returns one of these
models; raw provider or store exceptions never cross a component
boundary.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from minara.models.enums import WorkflowState
from minara.models.signup_models import (
    AccountRecord,
    InstructorApplication,
    ProfileRecord,
)


# ---------------------------------------------------------------------------
# Error taxonomies (one per component)
# ---------------------------------------------------------------------------

class AccountErrorCode(StrEnum):
    """Classified identity-provider signup failures."""

    THROTTLED_SHORT = "throttled_short"
    THROTTLED_GENERIC = "throttled_generic"
    ALREADY_EXISTS = "already_exists"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class ProfileErrorCode(StrEnum):
    """Classified ``profiles`` reconciliation failures."""

    PERMISSION_DENIED = "permission_denied"
    POLICY_REJECTED = "policy_rejected"
    CREATION_FAILED = "creation_failed"
    VERIFICATION_FAILED = "verification_failed"


class ApplicationErrorCode(StrEnum):
    """Classified ``instructor_applications`` insert failures."""

    SCHEMA_MISSING = "schema_missing"
    SCHEMA_MISMATCH = "schema_mismatch"
    UNKNOWN = "unknown"


class WorkflowErrorCode(StrEnum):
    """Failures raised by the orchestrator itself, before or between steps."""

    BLOCKED = "blocked"
    VALIDATION_ERROR = "validation_error"
    CANCELLED = "cancelled"
    IN_PROGRESS = "in_progress"


ErrorCode = Union[AccountErrorCode, ProfileErrorCode, ApplicationErrorCode, WorkflowErrorCode]


# ---------------------------------------------------------------------------
# Identity-provider error text mapping
# ---------------------------------------------------------------------------
# The provider exposes no structured codes on signup throttling, so the
# only signal is its message text.  Rules are checked in order; the
# first phrase found (case-insensitive) wins.  "For security purposes,
# you can only request this after 48 seconds." must hit the first rule.

PROVIDER_ERROR_RULES: tuple[tuple[str, AccountErrorCode, str], ...] = (
    (
        "48 seconds",
        AccountErrorCode.THROTTLED_SHORT,
        "Too many signup attempts. Please wait {seconds} seconds and try again.",
    ),
    (
        "security purposes",
        AccountErrorCode.THROTTLED_GENERIC,
        "Signup is temporarily limited. Please wait {seconds} seconds and try again.",
    ),
    (
        "already registered",
        AccountErrorCode.ALREADY_EXISTS,
        "An account with this email already exists. Please sign in instead.",
    ),
    (
        "user_already_exists",
        AccountErrorCode.ALREADY_EXISTS,
        "An account with this email already exists. Please sign in instead.",
    ),
)


# ---------------------------------------------------------------------------
# Store response shape
# ---------------------------------------------------------------------------

class StoreError(BaseModel):
    """Error payload of a managed-store call (PostgREST error shape)."""

    code: Optional[str] = None
    message: str = ""
    details: Optional[str] = None
    hint: Optional[str] = None


class StoreResult(BaseModel):
    """``(data, error)`` pair returned by every repository call.

    Exactly one side is meaningful: ``error`` set means the call failed;
    otherwise ``data`` holds the returned row (``None`` for a read that
    matched nothing).
    """

    data: Optional[dict[str, Any]] = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Result of a single client-side field validation check."""

    is_valid: bool
    error_message: Optional[str] = None


# ---------------------------------------------------------------------------
# Component results
# ---------------------------------------------------------------------------

class AccountResult(BaseModel):
    """Outcome of ``AccountService.create_account``.

    ``cooldown_seconds`` is set only for throttling codes; the
    orchestrator arms the rate-limit guard with it.
    """

    success: bool
    account: Optional[AccountRecord] = None
    error_code: Optional[AccountErrorCode] = None
    error_message: Optional[str] = None
    provider_message: Optional[str] = None
    cooldown_seconds: Optional[int] = None

    @property
    def is_throttled(self) -> bool:
        return self.error_code in (
            AccountErrorCode.THROTTLED_SHORT,
            AccountErrorCode.THROTTLED_GENERIC,
        )


class ProfileResult(BaseModel):
    """Outcome of ``ProfileReconciler.ensure_profile``.

    ``path`` names the cascade step that produced the row (``upsert``,
    ``insert`` or ``existing``) and is kept for logging and tests.
    ``cancelled`` is set, with no ``error_code``, when the caller's token
    fired; that is not a store failure and must not be counted as one.
    """

    success: bool
    profile: Optional[ProfileRecord] = None
    path: Optional[str] = None
    cancelled: bool = False
    error_code: Optional[ProfileErrorCode] = None
    error_message: Optional[str] = None
    remediation_hint: Optional[str] = None
    remediation_link: Optional[str] = None
    underlying_error: Optional[StoreError] = None


class ApplicationResult(BaseModel):
    """Outcome of ``ApplicationService.submit_application``."""

    success: bool
    application: Optional[InstructorApplication] = None
    error_code: Optional[ApplicationErrorCode] = None
    error_message: Optional[str] = None
    underlying_error: Optional[StoreError] = None


# ---------------------------------------------------------------------------
# Workflow outcome
# ---------------------------------------------------------------------------

class WorkflowOutcome(BaseModel):
    """Discriminated result of one ``submit_signup`` call.

    ``state`` is the terminal state reached.  ``message`` is always
    human-readable and safe to show; ``remediation_hint`` /
    ``remediation_link`` are present when the user can act on the
    failure.  ``transitions`` lists every state visited, in order.
    """

    state: WorkflowState
    success: bool
    error_code: Optional[ErrorCode] = None
    message: str = ""
    remediation_hint: Optional[str] = None
    remediation_link: Optional[str] = None
    account_id: Optional[str] = None
    application_id: Union[int, str, None] = None
    redirect_path: Optional[str] = None
    remaining_seconds: Optional[int] = None
    transitions: list[WorkflowState] = Field(default_factory=list)
