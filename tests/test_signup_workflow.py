"""End-to-end signup workflow against the in-memory Supabase stand-in."""

from __future__ import annotations

from unittest.mock import MagicMock

from minara.models.enums import ApplicationStatus, WorkflowState
from minara.models.result_models import (
    AccountErrorCode,
    ApplicationErrorCode,
    ProfileErrorCode,
    WorkflowErrorCode,
)
from minara.services.cancellation import CancellationToken
from tests.conftest import (
    FakeAPIError,
    FakeAuthError,
    make_instructor_request,
    make_student_request,
)

THROTTLED = "For security purposes, you can only request this after 48 seconds."


def test_student_signup_completes_without_application(workflow, fake_supabase, config):
    navigate = MagicMock()
    workflow.set_navigator(navigate)

    outcome = workflow.submit_signup(make_student_request())

    assert outcome.success
    assert outcome.state == WorkflowState.COMPLETED
    assert outcome.transitions == [
        WorkflowState.IDLE,
        WorkflowState.SUBMITTING,
        WorkflowState.ACCOUNT_CREATED,
        WorkflowState.PROFILE_ENSURED,
        WorkflowState.COMPLETED,
    ]
    assert outcome.redirect_path == config.SIGN_IN_PATH
    assert fake_supabase.count("instructor_applications", "insert") == 0
    assert fake_supabase.profiles[outcome.account_id]["role"] == "student"
    navigate.assert_called_once_with(
        config.SIGN_IN_PATH, "Please check your email to verify your account",
    )
    assert workflow.state == WorkflowState.IDLE


def test_instructor_signup_survives_upsert_permission_failure(workflow, fake_supabase):
    fake_supabase.fail(
        "profiles", "upsert", FakeAPIError("42501", "permission denied for table profiles"),
    )

    outcome = workflow.submit_signup(make_instructor_request())

    assert outcome.state == WorkflowState.COMPLETED
    assert WorkflowState.APPLICATION_SUBMITTED in outcome.transitions
    assert len(fake_supabase.applications) == 1
    application = fake_supabase.applications[0]
    assert application["status"] == ApplicationStatus.PENDING.value
    assert application["user_id"] == outcome.account_id
    assert application["expertise"] == "programming"
    assert application["submitted_at"]
    assert outcome.application_id == 1
    assert "under review" in outcome.message


def test_already_registered_never_reaches_the_store(workflow, fake_supabase):
    fake_supabase.auth.error = FakeAuthError("User already registered")

    outcome = workflow.submit_signup(make_instructor_request())

    assert outcome.state == WorkflowState.ACCOUNT_FAILED
    assert outcome.error_code == AccountErrorCode.ALREADY_EXISTS
    assert fake_supabase.calls == []


def test_throttle_arms_guard_and_blocks_next_attempt(workflow, fake_supabase, clock):
    fake_supabase.auth.error = FakeAuthError(THROTTLED)

    first = workflow.submit_signup(make_student_request())
    assert first.state == WorkflowState.ACCOUNT_FAILED
    assert first.error_code == AccountErrorCode.THROTTLED_SHORT
    assert first.remaining_seconds == 48

    fake_supabase.auth.error = None
    clock.advance(10)
    second = workflow.submit_signup(make_student_request())
    assert second.state == WorkflowState.BLOCKED
    assert second.error_code == WorkflowErrorCode.BLOCKED
    assert second.remaining_seconds == 38
    assert len(fake_supabase.auth.calls) == 1

    clock.advance(38)
    third = workflow.submit_signup(make_student_request())
    assert third.state == WorkflowState.COMPLETED


def test_invalid_form_fails_before_any_network_call(workflow, fake_supabase):
    outcome = workflow.submit_signup(
        make_student_request(confirm_password="Different1"),
    )

    assert outcome.state == WorkflowState.VALIDATION_FAILED
    assert outcome.error_code == WorkflowErrorCode.VALIDATION_ERROR
    assert outcome.message == "Passwords do not match."
    assert fake_supabase.auth.calls == []


def test_profile_failure_is_ledgered_for_the_sweep(workflow, fake_supabase, services, config):
    denied = FakeAPIError("42501", "permission denied for table profiles")
    fake_supabase.fail("profiles", "upsert", denied)
    fake_supabase.fail("profiles", "insert", denied)

    outcome = workflow.submit_signup(make_student_request())

    assert outcome.state == WorkflowState.PROFILE_FAILED
    assert outcome.error_code == ProfileErrorCode.PERMISSION_DENIED
    assert outcome.remediation_link == config.DATABASE_REPAIR_URL
    assert outcome.account_id is not None

    orphan = services["reconciliation_sweep"]._orphans.get(outcome.account_id)
    assert orphan is not None
    assert orphan.last_error_code == "permission_denied"


def test_application_failure_keeps_account_and_profile(workflow, fake_supabase):
    fake_supabase.fail(
        "instructor_applications",
        "insert",
        FakeAPIError("42P01", 'relation "public.instructor_applications" does not exist'),
    )

    outcome = workflow.submit_signup(make_instructor_request())

    assert outcome.state == WorkflowState.APPLICATION_FAILED
    assert outcome.error_code == ApplicationErrorCode.SCHEMA_MISSING
    assert outcome.account_id in fake_supabase.profiles


def test_cancellation_discards_late_results(workflow, fake_supabase, services):
    token = CancellationToken()
    fake_supabase.auth.on_sign_up = token.cancel
    navigate = MagicMock()
    workflow.set_navigator(navigate)

    outcome = workflow.submit_signup(make_student_request(), cancel_token=token)

    assert outcome.state == WorkflowState.CANCELLED
    assert fake_supabase.calls == []
    navigate.assert_not_called()
    # The account exists without a profile, so it is handed to the sweep.
    assert services["reconciliation_sweep"]._orphans.get(outcome.account_id) is not None


def test_concurrent_submission_is_refused(workflow, fake_supabase):
    workflow._submit_lock.acquire()
    try:
        outcome = workflow.submit_signup(make_student_request())
    finally:
        workflow._submit_lock.release()

    assert outcome.error_code == WorkflowErrorCode.IN_PROGRESS
    assert fake_supabase.auth.calls == []


def test_navigation_failure_does_not_change_outcome(workflow):
    workflow.set_navigator(MagicMock(side_effect=RuntimeError("window closed")))

    outcome = workflow.submit_signup(make_student_request())

    assert outcome.state == WorkflowState.COMPLETED
    assert workflow.state == WorkflowState.IDLE


def test_trigger_created_profile_with_null_name_completes(workflow, fake_supabase):
    denied = FakeAPIError("42501", "permission denied for table profiles")
    fake_supabase.fail("profiles", "upsert", denied)
    fake_supabase.fail("profiles", "insert", denied)

    # A signup trigger already created a bare row for the new account.
    fake_supabase.auth.next_user_id = "acct-trigger"
    fake_supabase.profiles["acct-trigger"] = {"id": "acct-trigger", "full_name": None, "role": "student"}

    outcome = workflow.submit_signup(make_student_request())

    assert outcome.state == WorkflowState.COMPLETED
    assert fake_supabase.count("profiles", "select") == 2


def test_ledger_write_failure_still_ends_in_profile_failed(workflow, fake_supabase, db):
    denied = FakeAPIError("42501", "permission denied for table profiles")
    fake_supabase.fail("profiles", "upsert", denied)
    fake_supabase.fail("profiles", "insert", denied)
    db.sqlite.close()

    outcome = workflow.submit_signup(make_student_request())

    assert outcome.state == WorkflowState.PROFILE_FAILED
    assert outcome.error_code == ProfileErrorCode.PERMISSION_DENIED
