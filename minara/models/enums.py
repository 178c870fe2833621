"""
Shared Enumerations for Minara Learn Models.

StrEnum values compare equal to their string equivalents, so rows read
back from Supabase (``{"role": "student"}``) validate directly.
"""

from __future__ import annotations
from enum import StrEnum


class UserRole(StrEnum):
    """Roles stored on ``profiles.role``.

    Signup only ever writes ``STUDENT`` or ``INSTRUCTOR_PENDING``;
    promotion to ``INSTRUCTOR`` happens when an admin approves the
    instructor application.
    """

    STUDENT = "student"
    INSTRUCTOR_PENDING = "instructor_pending"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


SIGNUP_ROLES: frozenset[UserRole] = frozenset({
    UserRole.STUDENT,
    UserRole.INSTRUCTOR_PENDING,
})


class ApplicationStatus(StrEnum):
    """Review states of an instructor application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ExpertiseArea(StrEnum):
    """Teaching areas offered on the instructor form."""

    PROGRAMMING = "programming"
    DESIGN = "design"
    BUSINESS = "business"
    DATA_SCIENCE = "data-science"
    CYBERSECURITY = "cybersecurity"
    CLOUD = "cloud"
    MOBILE = "mobile"
    AI_ML = "ai-ml"
    DEVOPS = "devops"
    OTHER = "other"


class ExperienceBand(StrEnum):
    """Years of teaching / industry experience."""

    ONE_TO_TWO = "1-2"
    THREE_TO_FIVE = "3-5"
    SIX_TO_TEN = "6-10"
    TEN_PLUS = "10+"


class OrphanStatus(StrEnum):
    """Lifecycle of an ``orphaned_accounts`` ledger row."""

    PENDING = "pending"
    RESOLVED = "resolved"
    ABANDONED = "abandoned"


class WorkflowState(StrEnum):
    """States of one signup attempt.

    Happy path: ``IDLE → SUBMITTING → ACCOUNT_CREATED → PROFILE_ENSURED
    → (APPLICATION_SUBMITTED) → COMPLETED``.  Every other member is a
    terminal failure exit; after any terminal state the workflow is
    back at ``IDLE``.
    """

    IDLE = "idle"
    SUBMITTING = "submitting"
    ACCOUNT_CREATED = "account_created"
    PROFILE_ENSURED = "profile_ensured"
    APPLICATION_SUBMITTED = "application_submitted"
    COMPLETED = "completed"

    BLOCKED = "blocked"
    VALIDATION_FAILED = "validation_failed"
    ACCOUNT_FAILED = "account_failed"
    PROFILE_FAILED = "profile_failed"
    APPLICATION_FAILED = "application_failed"
    CANCELLED = "cancelled"
