"""
Account Service.

Creates the identity-provider account for a signup and classifies the
provider's refusal.  One ``sign_up`` call per invocation; this service
never retries.  The provider does not expose structured error codes for
signup throttling, so classification matches the error text against
``PROVIDER_ERROR_RULES`` in a single place.
"""

from __future__ import annotations

from typing import Any, Optional

from minara.config import AppConfig
from minara.database import DatabaseManager
from minara.logger import StructuredLogger
from minara.models.result_models import (
    PROVIDER_ERROR_RULES,
    AccountErrorCode,
    AccountResult,
)
from minara.models.signup_models import AccountRecord, SignupRequest
from minara.services.base_service import BaseService


class AccountService(BaseService):
    """Wraps ``supabase.auth.sign_up`` and returns an ``AccountResult``.

    Parameters
    ----------
    db:
        Database manager exposing the Supabase client.
    config:
        Provides the throttle cooldown durations.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        db: DatabaseManager,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._db: DatabaseManager = db
        self._config: AppConfig = config

    def create_account(self, request: SignupRequest) -> AccountResult:
        """Register ``request.email`` with the identity provider.

        ``full_name``, ``display_name`` and ``role`` travel as user
        metadata.  The password is sent once and never logged.
        """
        email = request.email.strip().lower()
        display_name = request.display_name.strip()

        try:
            response = self._db.supabase.auth.sign_up({
                "email": email,
                "password": request.password,
                "options": {
                    "data": {
                        "full_name": display_name,
                        "display_name": display_name,
                        "role": str(request.role),
                    },
                },
            })
        except (RuntimeError, ConnectionError, TimeoutError) as exc:
            return self._network_failure(exc)
        except Exception as exc:
            return self._classify_provider_error(exc)

        user = getattr(response, "user", None)
        account_id = getattr(user, "id", None)
        if not account_id:
            self._logger.warning(
                "sign_up returned no user for %s.", email,
                extra={"event": "SIGNUP_FAILED", "error_code": "no_user"},
            )
            return AccountResult(
                success=False,
                error_code=AccountErrorCode.UNKNOWN,
                error_message="Account creation failed. Please try again.",
                provider_message="No user returned from sign_up.",
            )

        account = AccountRecord(account_id=str(account_id), email=email)
        self._audit(
            "ACCOUNT_CREATED",
            "Account",
            account.account_id,
            {"email": email, "role": str(request.role)},
        )
        return AccountResult(success=True, account=account)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify_message(self, message: str) -> AccountResult:
        """Map provider error text to a failed ``AccountResult``.

        Exposed separately so the mapping can be exercised without a
        provider round-trip.
        """
        lowered = message.lower()
        for phrase, error_code, template in PROVIDER_ERROR_RULES:
            if phrase in lowered:
                cooldown = self._cooldown_for(error_code)
                return AccountResult(
                    success=False,
                    error_code=error_code,
                    error_message=template.format(seconds=cooldown),
                    provider_message=message,
                    cooldown_seconds=cooldown,
                )

        return AccountResult(
            success=False,
            error_code=AccountErrorCode.UNKNOWN,
            error_message=message or "Account creation failed. Please try again.",
            provider_message=message,
        )

    def _classify_provider_error(self, exc: Exception) -> AccountResult:
        message = _provider_message(exc)
        result = self.classify_message(message)
        self._logger.warning(
            "Signup refused by identity provider: %s", message,
            extra={
                "event": "SIGNUP_FAILED",
                "error_code": str(result.error_code),
                "provider_code": getattr(exc, "code", None),
            },
        )
        return result

    def _network_failure(self, exc: Exception) -> AccountResult:
        self._logger.warning(
            "Signup could not reach the identity provider: %s", exc,
            extra={"event": "SIGNUP_FAILED", "error_code": "network_error"},
        )
        return AccountResult(
            success=False,
            error_code=AccountErrorCode.NETWORK_ERROR,
            error_message=(
                "Cannot reach the server. "
                "An internet connection is required to create an account."
            ),
            provider_message=str(exc),
        )

    def _cooldown_for(self, error_code: AccountErrorCode) -> Optional[int]:
        if error_code == AccountErrorCode.THROTTLED_SHORT:
            return self._config.THROTTLE_SHORT_SECONDS
        if error_code == AccountErrorCode.THROTTLED_GENERIC:
            return self._config.THROTTLE_GENERIC_SECONDS
        return None


def _provider_message(exc: Exception) -> str:
    """Best human text of a provider exception (``AuthApiError.message`` or ``str``)."""
    message: Any = getattr(exc, "message", None)
    return str(message) if message else str(exc)
