"""
Signup Form Validation.

Client-side checks run before any network call.  Each check returns a
``ValidationResult``; :meth:`SignupValidator.validate_request` runs them
in form order and stops at the first failure so the user sees one
actionable message at a time.
"""

from __future__ import annotations

import re

from minara.config import AppConfig
from minara.models.enums import SIGNUP_ROLES, ExperienceBand, ExpertiseArea
from minara.models.result_models import ValidationResult
from minara.models.signup_models import InstructorDetails, SignupRequest


_EMAIL_RE: re.Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

# C0 controls, DEL and C1 controls.
_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x1f\x7f-\x9f]")

_VALID = ValidationResult(is_valid=True)


def _invalid(message: str) -> ValidationResult:
    return ValidationResult(is_valid=False, error_message=message)


class SignupValidator:
    """Field and form validators, parameterised by ``AppConfig`` minimums."""

    def __init__(self, config: AppConfig) -> None:
        self._config: AppConfig = config

    # ------------------------------------------------------------------
    # Single-field checks
    # ------------------------------------------------------------------

    @staticmethod
    def validate_email(email: str) -> ValidationResult:
        """Validate an email address against a simplified RFC 5322 regex."""
        if not email or not email.strip():
            return _invalid("Email address is required.")
        if not _EMAIL_RE.match(email.strip()):
            return _invalid("Please enter a valid email address.")
        return _VALID

    def validate_name(self, name: str) -> ValidationResult:
        """Validate the display name.

        Rejects control characters (including newlines and tabs) so the
        name cannot corrupt log lines or the profile header.
        """
        stripped = name.strip()
        if not stripped:
            return _invalid("Full name is required.")
        if len(stripped) < self._config.NAME_MIN_LENGTH:
            return _invalid(
                f"Full name must be at least {self._config.NAME_MIN_LENGTH} characters."
            )
        if _CONTROL_CHAR_RE.search(stripped):
            return _invalid(
                "Full name contains invalid characters. "
                "Only printable characters are allowed."
            )
        return _VALID

    def validate_password(self, password: str, confirm_password: str) -> ValidationResult:
        """Minimum length, then equality with the confirmation field."""
        minimum = self._config.PASSWORD_MIN_LENGTH
        if len(password) < minimum:
            return _invalid(f"Password must be at least {minimum} characters.")
        if password != confirm_password:
            return _invalid("Passwords do not match.")
        return _VALID

    @staticmethod
    def validate_terms(agree_to_terms: bool) -> ValidationResult:
        if not agree_to_terms:
            return _invalid("You must accept the Terms of Service to continue.")
        return _VALID

    def validate_instructor_details(self, details: InstructorDetails) -> ValidationResult:
        """Expertise and experience must be known choices; free text has minimums."""
        if details.expertise not in {area.value for area in ExpertiseArea}:
            return _invalid("Please select your area of expertise.")
        if details.experience not in {band.value for band in ExperienceBand}:
            return _invalid("Please select your years of experience.")

        bio_min = self._config.BIO_MIN_LENGTH
        if len(details.bio.strip()) < bio_min:
            return _invalid(f"Your bio must be at least {bio_min} characters.")

        motivation_min = self._config.MOTIVATION_MIN_LENGTH
        if len(details.motivation.strip()) < motivation_min:
            return _invalid(
                f"Please tell us why you want to teach "
                f"(at least {motivation_min} characters)."
            )
        return _VALID

    # ------------------------------------------------------------------
    # Whole form
    # ------------------------------------------------------------------

    def validate_request(self, request: SignupRequest) -> ValidationResult:
        """Run every applicable check in form order; first failure wins."""
        if request.role not in SIGNUP_ROLES:
            return _invalid("This account type cannot be created from the signup form.")

        checks = (
            lambda: self.validate_name(request.display_name),
            lambda: self.validate_email(request.email),
            lambda: self.validate_password(request.password, request.confirm_password),
        )
        for check in checks:
            result = check()
            if not result.is_valid:
                return result

        if request.is_instructor:
            if request.instructor is None:
                return _invalid("Instructor applications need your professional details.")
            result = self.validate_instructor_details(request.instructor)
            if not result.is_valid:
                return result

        return self.validate_terms(request.agree_to_terms)

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalise an email address: strip whitespace and lowercase."""
        return email.strip().lower()
