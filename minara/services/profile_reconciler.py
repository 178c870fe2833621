"""
Profile Reconciler.

Guarantees that a ``profiles`` row exists for a freshly created account.
The managed store is eventually consistent and its row-level security
policies vary between deployments, so a single write is not trusted:

1. upsert keyed on ``id`` (latest values win);
2. if that fails, a plain insert;
3. if that fails too, an existence read, because a database trigger or
   an earlier attempt may already have created the row.

Any success, including a row found by the existence read, is only
accepted once a further read by ``id`` returns the row.  That read is
retried a bounded number of times with exponential backoff, since a replica may briefly lag the primary.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from minara.config import AppConfig
from minara.logger import StructuredLogger
from minara.models.enums import UserRole
from minara.models.result_models import ProfileErrorCode, ProfileResult, StoreError, StoreResult
from minara.models.signup_models import ProfileRecord
from minara.repositories.profile_repository import ProfileRepository
from minara.services.base_service import BaseService
from minara.services.cancellation import CancellationToken


_RLS_PHRASES: tuple[str, ...] = ("row-level security", "row level security")


class ProfileReconciler(BaseService):
    """Runs the write cascade and the verification read for one account.

    Parameters
    ----------
    repo:
        ``profiles`` data access.
    config:
        Verification attempts / backoff and remediation targets.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        repo: ProfileRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo: ProfileRepository = repo
        self._config: AppConfig = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ensure_profile(
        self,
        account_id: str,
        email: str,
        display_name: str,
        role: UserRole,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProfileResult:
        """Make sure ``profiles[account_id]`` exists and holds these values.

        Idempotent: calling it again for the same account converges on
        one row carrying the most recent arguments.
        """
        token = cancel_token or CancellationToken()
        profile = ProfileRecord(
            id=account_id,
            email=email.strip().lower(),
            full_name=display_name.strip(),
            role=role,
            updated_at=datetime.now(timezone.utc),
        )

        last_error: Optional[StoreError] = None
        for path, write in (("upsert", self._repo.upsert), ("insert", self._repo.insert)):
            if token.cancelled:
                return self._cancelled(account_id)

            result: StoreResult = write(profile)
            if result.ok:
                return self._verify(profile, path, token)

            last_error = result.error
            self._logger.warning(
                "Profile %s failed for %s; falling back.", path, account_id,
                extra={"path": path, "code": last_error.code if last_error else None},
            )

        if token.cancelled:
            return self._cancelled(account_id)

        existing = self._repo.get_by_id(account_id)
        if existing.ok and existing.data:
            return self._verify(profile, "existing", token)
        if not existing.ok and last_error is None:
            last_error = existing.error

        return self.classify_failure(last_error)

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def _verify(
        self,
        profile: ProfileRecord,
        path: str,
        token: CancellationToken,
    ) -> ProfileResult:
        attempts = max(1, self._config.PROFILE_VERIFY_ATTEMPTS)
        delay = self._config.PROFILE_VERIFY_BACKOFF_S
        last_error: Optional[StoreError] = None

        for attempt in range(1, attempts + 1):
            read = self._repo.get_by_id(profile.id)
            if read.ok and read.data:
                return self._succeeded(self._as_record(read.data, profile), path)
            last_error = read.error

            if attempt < attempts:
                self._logger.debug(
                    "Profile %s not visible yet (attempt %d/%d); retrying in %.2f s.",
                    profile.id, attempt, attempts, delay,
                )
                if token.wait(delay):
                    return self._cancelled(profile.id)
                delay *= 2

        self._logger.error(
            "Profile %s written via %s but not readable after %d attempts.",
            profile.id, path, attempts,
            extra={"path": path, "code": last_error.code if last_error else None},
        )
        return ProfileResult(
            success=False,
            path=path,
            error_code=ProfileErrorCode.VERIFICATION_FAILED,
            error_message=(
                "Your account was created, but we could not confirm your profile."
            ),
            remediation_hint=self._support_hint(),
            remediation_link=f"mailto:{self._config.SUPPORT_EMAIL}",
            underlying_error=last_error,
        )

    def _succeeded(self, profile: ProfileRecord, path: str) -> ProfileResult:
        self._audit(
            "PROFILE_ENSURED", "Profile", profile.id,
            {"path": path, "role": str(profile.role)},
        )
        return ProfileResult(success=True, profile=profile, path=path)

    def _as_record(self, row: dict[str, Any], written: ProfileRecord) -> ProfileRecord:
        """Build the confirmed record from a read-back row.

        A returned row is what proves existence; its contents are not
        trusted.  Null columns keep the values just written, and a row
        the model rejects (a trigger-created row with an unknown role,
        say) falls back to the written record.
        """
        merged = {
            **written.model_dump(),
            **{key: value for key, value in row.items() if value is not None},
        }
        try:
            return ProfileRecord.model_validate(merged)
        except ValidationError as exc:
            self._logger.warning(
                "Profile %s read back in an unexpected shape: %s",
                written.id,
                exc.errors(include_url=False),
            )
            return written

    def _cancelled(self, account_id: str) -> ProfileResult:
        self._logger.info("Profile reconciliation cancelled for %s.", account_id)
        return ProfileResult(
            success=False,
            cancelled=True,
            error_message="Signup was cancelled before your profile was confirmed.",
        )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify_failure(self, error: Optional[StoreError]) -> ProfileResult:
        """Turn the last store error of a failed cascade into a ``ProfileResult``."""
        code = (error.code or "") if error else ""
        raw = _raw_text(error)
        text = raw.lower()

        if code == "42501" or "permission denied" in text:
            return ProfileResult(
                success=False,
                error_code=ProfileErrorCode.PERMISSION_DENIED,
                error_message=(
                    "Your account was created, but the database refused to "
                    "create your profile (permission denied)."
                ),
                remediation_hint=(
                    "An administrator needs to repair the profiles table "
                    "permissions."
                ),
                remediation_link=self._config.DATABASE_REPAIR_URL,
                underlying_error=error,
            )

        if any(phrase in text for phrase in _RLS_PHRASES) or "RLS" in raw:
            return ProfileResult(
                success=False,
                error_code=ProfileErrorCode.POLICY_REJECTED,
                error_message=(
                    "Your account was created, but a row-level security policy "
                    "blocked your profile."
                ),
                remediation_hint=(
                    "An administrator needs to update the profiles security "
                    "policies."
                ),
                remediation_link=self._config.RLS_REPAIR_URL,
                underlying_error=error,
            )

        return ProfileResult(
            success=False,
            error_code=ProfileErrorCode.CREATION_FAILED,
            error_message=(
                "Your account was created, but your profile could not be set up."
            ),
            remediation_hint=self._support_hint(),
            remediation_link=f"mailto:{self._config.SUPPORT_EMAIL}",
            underlying_error=error,
        )

    def _support_hint(self) -> str:
        return (
            f"Contact {self._config.SUPPORT_EMAIL} and quote the email you "
            "signed up with."
        )


def _raw_text(error: Optional[StoreError]) -> str:
    if error is None:
        return ""
    return " ".join(p for p in (error.message, error.details, error.hint) if p)
