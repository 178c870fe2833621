"""
Signup Data Models.

Pydantic models for the records the signup workflow reads and writes:
the form submission, the identity-provider account, the ``profiles``
row, the ``instructor_applications`` row, the in-memory rate-limit
state and the local orphaned-account ledger row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from minara.models.enums import (
    ApplicationStatus,
    ExperienceBand,
    ExpertiseArea,
    OrphanStatus,
    UserRole,
)


# ---------------------------------------------------------------------------
# Form submission
# ---------------------------------------------------------------------------

class InstructorDetails(BaseModel):
    """Professional details collected on the instructor form.

    Values are kept as plain strings so that a half-filled form still
    builds a model; ``SignupValidator`` enforces the enums and minimum
    lengths before any network call.
    """

    expertise: str = ""
    experience: str = ""
    organization: Optional[str] = None
    bio: str = ""
    motivation: str = ""


class SignupRequest(BaseModel):
    """A single signup form submission.

    Attributes
    ----------
    role:
        ``student`` or ``instructor_pending``.
    email, password, confirm_password:
        Credentials as typed.  The passwords are excluded from ``repr``
        so they never reach a log line by accident.
    display_name:
        Full name shown on the profile.
    agree_to_terms:
        Terms-of-service checkbox.
    instructor:
        Required when ``role`` is ``instructor_pending``.
    """

    role: UserRole
    email: str
    password: str = Field(repr=False)
    confirm_password: str = Field(repr=False)
    display_name: str
    agree_to_terms: bool = False
    instructor: Optional[InstructorDetails] = None

    @property
    def is_instructor(self) -> bool:
        return self.role == UserRole.INSTRUCTOR_PENDING


# ---------------------------------------------------------------------------
# External records
# ---------------------------------------------------------------------------

class AccountRecord(BaseModel):
    """Account created by the identity provider.  Never mutated here."""

    account_id: str
    email: str


class ProfileRecord(BaseModel):
    """Row of the Supabase ``profiles`` table, keyed by ``id`` (= account id)."""

    id: str
    email: str
    full_name: str = ""
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InstructorApplication(BaseModel):
    """Row of the Supabase ``instructor_applications`` table."""

    id: Union[int, str, None] = None
    user_id: str
    email: str
    name: str
    expertise: ExpertiseArea
    experience: ExperienceBand
    organization: Optional[str] = None
    bio: str
    motivation: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    submitted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Client-held state
# ---------------------------------------------------------------------------

class RateLimitState(BaseModel):
    """Ephemeral signup throttle.

    ``active_until`` is a reading of the guard's monotonic clock, not a
    wall-clock time, so it is meaningless outside the running process
    and is never persisted.
    """

    active_until: Optional[float] = None
    reason: Optional[str] = None


class GuardCheck(BaseModel):
    """Answer of ``RateLimitGuard.check_and_maybe_block``."""

    blocked: bool
    remaining_seconds: int = 0


class OrphanedAccount(BaseModel):
    """Local ledger row for an account whose profile could not be reconciled."""

    account_id: str
    email: str
    full_name: str = ""
    role: UserRole
    status: OrphanStatus = OrphanStatus.PENDING
    attempts: int = 0
    last_error_code: Optional[str] = None
    last_error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
