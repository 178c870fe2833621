"""
Signup Workflow.

Orchestrates one signup attempt, strictly forward:

    guard -> validation -> account -> profile -> (instructor) application
          -> navigate to sign-in

Each step returns a typed result; the workflow maps it to the next
``WorkflowState`` or to a terminal failure state and builds the
``WorkflowOutcome`` the UI renders.  Nothing is rolled back: an account
whose profile cannot be reconciled is written to the local
orphaned-account ledger for the reconciliation sweep to retry.

Runs on a background thread.  Cooperative cancellation is checked
between steps; once the token fires, late results are discarded and the
attempt ends in ``CANCELLED``.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional, Union

from minara.config import AppConfig
from minara.logger import StructuredLogger
from minara.models.enums import WorkflowState
from minara.models.result_models import (
    AccountErrorCode,
    ErrorCode,
    ProfileResult,
    WorkflowErrorCode,
    WorkflowOutcome,
)
from minara.models.signup_models import AccountRecord, OrphanedAccount, SignupRequest
from minara.repositories.orphaned_account_repository import OrphanedAccountRepository
from minara.services.account_service import AccountService
from minara.services.application_service import ApplicationService
from minara.services.base_service import BaseService
from minara.services.cancellation import CancellationToken
from minara.services.profile_reconciler import ProfileReconciler
from minara.services.rate_limit_guard import RateLimitGuard
from minara.services.signup_validation import SignupValidator

Navigate = Callable[[str, str], None]

_STUDENT_NOTICE = "Please check your email to verify your account"
_INSTRUCTOR_NOTICE = (
    "Please check your email to verify your account. "
    "Your instructor application is under review."
)


class _Attempt:
    """Mutable bookkeeping for one ``submit_signup`` call."""

    def __init__(self, token: CancellationToken) -> None:
        self.token = token
        self.transitions: list[WorkflowState] = [WorkflowState.IDLE]
        self.account: Optional[AccountRecord] = None


class SignupWorkflow(BaseService):
    """Entry point of the signup feature: ``submit_signup(request)``.

    Parameters
    ----------
    guard:
        Rate-limit guard owned by this workflow's caller.  Throttled
        account errors arm it.
    validator, account_service, profile_reconciler, application_service:
        The step components.
    orphan_repo:
        Local ledger receiving accounts whose profile failed.
    config:
        Sign-in route and settle delay.
    logger:
        Structured JSON logger.
    navigate:
        ``navigate(path, message)`` called on completion.  Invoked on the
        worker thread; the UI shell marshals it to the Tk thread.
    """

    def __init__(
        self,
        guard: RateLimitGuard,
        validator: SignupValidator,
        account_service: AccountService,
        profile_reconciler: ProfileReconciler,
        application_service: ApplicationService,
        orphan_repo: OrphanedAccountRepository,
        config: AppConfig,
        logger: StructuredLogger,
        navigate: Optional[Navigate] = None,
    ) -> None:
        super().__init__(logger)
        self._guard = guard
        self._validator = validator
        self._accounts = account_service
        self._profiles = profile_reconciler
        self._applications = application_service
        self._orphans = orphan_repo
        self._config = config
        self._navigate: Optional[Navigate] = navigate

        self._state: WorkflowState = WorkflowState.IDLE
        self._state_lock: threading.Lock = threading.Lock()
        self._submit_lock: threading.Lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> WorkflowState:
        with self._state_lock:
            return self._state

    @property
    def guard(self) -> RateLimitGuard:
        return self._guard

    def set_navigator(self, navigate: Optional[Navigate]) -> None:
        self._navigate = navigate

    def submit_signup(
        self,
        request: SignupRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> WorkflowOutcome:
        """Run one signup attempt to a terminal state.

        Only one attempt runs at a time; a concurrent call is refused
        without touching the network.  Whatever the outcome, ``state``
        is back at ``IDLE`` when this returns.
        """
        if not self._submit_lock.acquire(blocking=False):
            return WorkflowOutcome(
                state=WorkflowState.BLOCKED,
                success=False,
                error_code=WorkflowErrorCode.IN_PROGRESS,
                message="A signup is already in progress.",
            )

        attempt = _Attempt(cancel_token or CancellationToken())
        try:
            return self._run(request, attempt)
        finally:
            self._set_state(WorkflowState.IDLE)
            self._submit_lock.release()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _run(self, request: SignupRequest, attempt: _Attempt) -> WorkflowOutcome:
        check = self._guard.check_and_maybe_block()
        if check.blocked:
            return self._finish(
                attempt,
                WorkflowState.BLOCKED,
                error_code=WorkflowErrorCode.BLOCKED,
                message=(
                    "Too many signup attempts. Please wait "
                    f"{check.remaining_seconds} seconds before trying again."
                ),
                remaining_seconds=check.remaining_seconds,
            )

        validation = self._validator.validate_request(request)
        if not validation.is_valid:
            return self._finish(
                attempt,
                WorkflowState.VALIDATION_FAILED,
                error_code=WorkflowErrorCode.VALIDATION_ERROR,
                message=validation.error_message or "Please check the form.",
            )

        self._advance(attempt, WorkflowState.SUBMITTING)
        self._logger.info(
            "Signup started.",
            extra={"event": "SIGNUP_STARTED", "role": str(request.role)},
        )

        # --- account -----------------------------------------------------
        account_result = self._accounts.create_account(request)
        if attempt.token.cancelled:
            if account_result.success:
                attempt.account = account_result.account
            return self._cancel(request, attempt)

        if not account_result.success or account_result.account is None:
            if account_result.is_throttled and account_result.cooldown_seconds:
                self._guard.activate(
                    account_result.cooldown_seconds,
                    reason=str(account_result.error_code),
                )
            error_code = account_result.error_code or AccountErrorCode.UNKNOWN
            hint = None
            if error_code == AccountErrorCode.ALREADY_EXISTS:
                hint = "Sign in with this email, or reset your password."
            return self._finish(
                attempt,
                WorkflowState.ACCOUNT_FAILED,
                error_code=error_code,
                message=account_result.error_message or "Account creation failed.",
                remediation_hint=hint,
                remediation_link=(
                    self._config.SIGN_IN_PATH
                    if error_code == AccountErrorCode.ALREADY_EXISTS else None
                ),
                remaining_seconds=account_result.cooldown_seconds,
            )

        attempt.account = account_result.account
        self._advance(attempt, WorkflowState.ACCOUNT_CREATED)

        # --- profile -----------------------------------------------------
        profile_result = self._profiles.ensure_profile(
            attempt.account.account_id,
            attempt.account.email,
            request.display_name,
            request.role,
            cancel_token=attempt.token,
        )
        if attempt.token.cancelled or profile_result.cancelled:
            return self._cancel(request, attempt)

        if not profile_result.success:
            self._record_orphan(request, attempt.account, profile_result)
            return self._finish(
                attempt,
                WorkflowState.PROFILE_FAILED,
                error_code=profile_result.error_code,
                message=profile_result.error_message or "Profile setup failed.",
                remediation_hint=profile_result.remediation_hint,
                remediation_link=profile_result.remediation_link,
            )

        self._advance(attempt, WorkflowState.PROFILE_ENSURED)

        # --- application (instructors only) ------------------------------
        application_id = None
        if request.is_instructor and request.instructor is not None:
            if attempt.token.wait(self._config.PROFILE_SETTLE_DELAY_S):
                return self._cancel(request, attempt)

            app_result = self._applications.submit_application(
                attempt.account.account_id,
                request.instructor,
                attempt.account.email,
                request.display_name,
            )
            if attempt.token.cancelled:
                return self._cancel(request, attempt)

            if not app_result.success:
                return self._finish(
                    attempt,
                    WorkflowState.APPLICATION_FAILED,
                    error_code=app_result.error_code,
                    message=app_result.error_message or "Application submission failed.",
                    remediation_hint=(
                        f"Contact {self._config.SUPPORT_EMAIL} to complete your "
                        "instructor application."
                    ),
                    remediation_link=f"mailto:{self._config.SUPPORT_EMAIL}",
                )

            self._advance(attempt, WorkflowState.APPLICATION_SUBMITTED)
            if app_result.application is not None:
                application_id = app_result.application.id

        # --- done --------------------------------------------------------
        notice = _INSTRUCTOR_NOTICE if request.is_instructor else _STUDENT_NOTICE
        outcome = self._finish(
            attempt,
            WorkflowState.COMPLETED,
            message=notice,
            application_id=application_id,
            redirect_path=self._config.SIGN_IN_PATH,
        )
        if self._navigate is not None:
            try:
                self._navigate(self._config.SIGN_IN_PATH, notice)
            except Exception as exc:
                self._logger.error("Post-signup navigation failed: %s", exc)
        return outcome

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_state(self, state: WorkflowState) -> None:
        with self._state_lock:
            self._state = state

    def _advance(self, attempt: _Attempt, state: WorkflowState) -> None:
        attempt.transitions.append(state)
        self._set_state(state)
        self._logger.debug("Signup state -> %s", state)

    def _finish(
        self,
        attempt: _Attempt,
        state: WorkflowState,
        *,
        error_code: Optional[ErrorCode] = None,
        message: str = "",
        remediation_hint: Optional[str] = None,
        remediation_link: Optional[str] = None,
        remaining_seconds: Optional[int] = None,
        application_id: Union[int, str, None] = None,
        redirect_path: Optional[str] = None,
    ) -> WorkflowOutcome:
        self._advance(attempt, state)
        success = state == WorkflowState.COMPLETED
        log = self._logger.info if success else self._logger.warning
        log(
            "Signup finished in state %s.", state,
            extra={
                "event": "SIGNUP_FINISHED",
                "state": str(state),
                "error_code": str(error_code) if error_code else None,
                "account_id": attempt.account.account_id if attempt.account else None,
            },
        )
        return WorkflowOutcome(
            state=state,
            success=success,
            error_code=error_code,
            message=message,
            remediation_hint=remediation_hint,
            remediation_link=remediation_link,
            account_id=attempt.account.account_id if attempt.account else None,
            application_id=application_id,
            redirect_path=redirect_path,
            remaining_seconds=remaining_seconds,
            transitions=list(attempt.transitions),
        )

    def _cancel(self, request: SignupRequest, attempt: _Attempt) -> WorkflowOutcome:
        """End a cancelled attempt.  An account without a profile is ledgered."""
        if attempt.account is not None and WorkflowState.PROFILE_ENSURED not in attempt.transitions:
            self._record_orphan(request, attempt.account, None)
        return self._finish(
            attempt,
            WorkflowState.CANCELLED,
            error_code=WorkflowErrorCode.CANCELLED,
            message="Signup was cancelled.",
        )

    def _record_orphan(
        self,
        request: SignupRequest,
        account: AccountRecord,
        profile_result: Optional[ProfileResult],
    ) -> None:
        error_code = None
        error_message = "cancelled before profile reconciliation"
        if profile_result is not None:
            error_code = str(profile_result.error_code) if profile_result.error_code else None
            underlying = profile_result.underlying_error
            error_message = underlying.message if underlying else profile_result.error_message

        self._orphans.record(
            OrphanedAccount(
                account_id=account.account_id,
                email=account.email,
                full_name=request.display_name.strip(),
                role=request.role,
                last_error_code=error_code,
                last_error_message=error_message,
            )
        )
        self._audit(
            "ORPHAN_RECORDED", "OrphanedAccount", account.account_id,
            {"error_code": error_code, "role": str(request.role)},
        )
