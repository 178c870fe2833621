"""
Data Models Package.

Re-exports the signup models for short imports:
    from minara.models import SignupRequest, ProfileRecord, UserRole
    from minara.models import WorkflowOutcome, AccountErrorCode
"""

from __future__ import annotations

from minara.models.enums import (
    ApplicationStatus,
    ExperienceBand,
    ExpertiseArea,
    OrphanStatus,
    UserRole,
    WorkflowState,
)
from minara.models.result_models import (
    AccountErrorCode,
    AccountResult,
    ApplicationErrorCode,
    ApplicationResult,
    ProfileErrorCode,
    ProfileResult,
    StoreError,
    StoreResult,
    ValidationResult,
    WorkflowErrorCode,
    WorkflowOutcome,
)
from minara.models.signup_models import (
    AccountRecord,
    GuardCheck,
    InstructorApplication,
    InstructorDetails,
    OrphanedAccount,
    ProfileRecord,
    RateLimitState,
    SignupRequest,
)

__all__ = [
    "AccountErrorCode",
    "AccountRecord",
    "AccountResult",
    "ApplicationErrorCode",
    "ApplicationResult",
    "ApplicationStatus",
    "ExperienceBand",
    "ExpertiseArea",
    "GuardCheck",
    "InstructorApplication",
    "InstructorDetails",
    "OrphanStatus",
    "OrphanedAccount",
    "ProfileErrorCode",
    "ProfileRecord",
    "ProfileResult",
    "RateLimitState",
    "SignupRequest",
    "StoreError",
    "StoreResult",
    "UserRole",
    "ValidationResult",
    "WorkflowErrorCode",
    "WorkflowOutcome",
    "WorkflowState",
]
