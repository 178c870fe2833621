"""
Instructor Application Service.

Writes the single ``instructor_applications`` row of an instructor
signup.  Called only after the applicant's profile has been verified,
since the table references ``profiles.id``.  A failure here leaves the
account and profile in place; the applicant can resubmit from their
dashboard.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from minara.logger import StructuredLogger
from minara.models.enums import ApplicationStatus, ExperienceBand, ExpertiseArea
from minara.models.result_models import (
    ApplicationErrorCode,
    ApplicationResult,
    StoreError,
)
from minara.models.signup_models import InstructorApplication, InstructorDetails
from minara.repositories.application_repository import ApplicationRepository
from minara.services.base_service import BaseService


class ApplicationService(BaseService):
    """Single-insert writer for instructor applications."""

    def __init__(self, repo: ApplicationRepository, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._repo: ApplicationRepository = repo

    def submit_application(
        self,
        account_id: str,
        details: InstructorDetails,
        email: str,
        name: str,
    ) -> ApplicationResult:
        """Insert one ``pending`` application stamped with the current time."""
        organization = (details.organization or "").strip() or None
        application = InstructorApplication(
            user_id=account_id,
            email=email.strip().lower(),
            name=name.strip(),
            expertise=ExpertiseArea(details.expertise),
            experience=ExperienceBand(details.experience),
            organization=organization,
            bio=details.bio.strip(),
            motivation=details.motivation.strip(),
            status=ApplicationStatus.PENDING,
            submitted_at=datetime.now(timezone.utc),
        )

        result = self._repo.insert(application)
        if not result.ok:
            return self.classify_failure(result.error)

        if result.data:
            application = application.model_copy(update={"id": result.data.get("id")})

        self._audit(
            "APPLICATION_SUBMITTED",
            "InstructorApplication",
            account_id,
            {
                "expertise": str(application.expertise),
                "experience": str(application.experience),
            },
            entity_id=str(application.id) if application.id is not None else None,
        )
        return ApplicationResult(success=True, application=application)

    @staticmethod
    def classify_failure(error: Optional[StoreError]) -> ApplicationResult:
        code = (error.code or "") if error else ""
        message = error.message if error else ""
        text = message.lower()

        missing = code == "42P01"
        mismatch = code in ("42703", "PGRST204")
        if not (missing or mismatch):
            # Column errors also say "does not exist"; check them first.
            mismatch = "column" in text
            missing = not mismatch and "does not exist" in text

        if missing:
            return ApplicationResult(
                success=False,
                error_code=ApplicationErrorCode.SCHEMA_MISSING,
                error_message=(
                    "Your account was created, but instructor applications are "
                    "not available yet. Please contact support."
                ),
                underlying_error=error,
            )

        if mismatch:
            return ApplicationResult(
                success=False,
                error_code=ApplicationErrorCode.SCHEMA_MISMATCH,
                error_message=(
                    "Your account was created, but the application form does not "
                    "match the server. Please contact support."
                ),
                underlying_error=error,
            )

        return ApplicationResult(
            success=False,
            error_code=ApplicationErrorCode.UNKNOWN,
            error_message=(
                "Your account was created, but your application could not be "
                f"submitted: {message or 'unknown error'}"
            ),
            underlying_error=error,
        )
