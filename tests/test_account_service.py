"""Account creation and identity-provider error classification."""

from __future__ import annotations

from pathlib import Path

import pytest

from minara.database import DatabaseManager
from minara.models.result_models import AccountErrorCode
from minara.services.account_service import AccountService
from tests.conftest import FakeAuthError, make_student_request


@pytest.fixture
def account_service(db, config, logger):
    return AccountService(db=db, config=config, logger=logger)


@pytest.mark.parametrize(
    "provider_message, expected_code, expected_cooldown",
    [
        (
            "For security purposes, you can only request this after 48 seconds.",
            AccountErrorCode.THROTTLED_SHORT,
            48,
        ),
        (
            "For security purposes, you can only request this once every 60 seconds",
            AccountErrorCode.THROTTLED_GENERIC,
            60,
        ),
        ("User already registered", AccountErrorCode.ALREADY_EXISTS, None),
        ("user_already_exists", AccountErrorCode.ALREADY_EXISTS, None),
        ("Signups not allowed for this instance", AccountErrorCode.UNKNOWN, None),
    ],
)
def test_classification_is_deterministic(
    account_service, provider_message, expected_code, expected_cooldown,
):
    first = account_service.classify_message(provider_message)
    second = account_service.classify_message(provider_message)

    assert first == second
    assert not first.success
    assert first.error_code == expected_code
    assert first.cooldown_seconds == expected_cooldown
    assert first.provider_message == provider_message


def test_unknown_error_carries_provider_message(account_service):
    result = account_service.classify_message("Database error saving new user")
    assert result.error_message == "Database error saving new user"
    assert not result.is_throttled


def test_throttle_message_mentions_cooldown(account_service):
    result = account_service.classify_message(
        "For security purposes, you can only request this after 48 seconds."
    )
    assert result.is_throttled
    assert "48 seconds" in result.error_message


def test_create_account_success_sends_metadata(account_service, fake_supabase):
    result = account_service.create_account(
        make_student_request(email="  Ada@Example.com ")
    )

    assert result.success
    assert result.account.email == "ada@example.com"
    assert result.account.account_id == fake_supabase.auth.users["ada@example.com"]

    sent = fake_supabase.auth.calls[0]
    assert sent["email"] == "ada@example.com"
    assert sent["options"]["data"] == {
        "full_name": "Ada Lovelace",
        "display_name": "Ada Lovelace",
        "role": "student",
    }


def test_duplicate_signup_is_already_exists(account_service):
    assert account_service.create_account(make_student_request()).success
    result = account_service.create_account(make_student_request())
    assert result.error_code == AccountErrorCode.ALREADY_EXISTS


def test_provider_exception_is_classified(account_service, fake_supabase):
    fake_supabase.auth.error = FakeAuthError(
        "For security purposes, you can only request this after 48 seconds."
    )
    result = account_service.create_account(make_student_request())
    assert result.error_code == AccountErrorCode.THROTTLED_SHORT
    assert result.cooldown_seconds == 48
    assert len(fake_supabase.auth.calls) == 1


@pytest.mark.parametrize("exc", [ConnectionError("reset"), TimeoutError("timed out")])
def test_transport_failures_are_network_errors(account_service, fake_supabase, exc):
    fake_supabase.auth.error = exc
    result = account_service.create_account(make_student_request())
    assert result.error_code == AccountErrorCode.NETWORK_ERROR


def test_offline_client_is_network_error(config, logger):
    offline = DatabaseManager(
        supabase_url="",
        supabase_key="",
        sqlite_path=Path(":memory:"),
        logger=logger,
    )
    try:
        result = AccountService(db=offline, config=config, logger=logger).create_account(
            make_student_request()
        )
    finally:
        offline.close()
    assert result.error_code == AccountErrorCode.NETWORK_ERROR


def test_response_without_user_is_unknown(account_service, fake_supabase):
    fake_supabase.auth.return_no_user = True
    result = account_service.create_account(make_student_request())
    assert not result.success
    assert result.error_code == AccountErrorCode.UNKNOWN
