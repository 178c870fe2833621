"""Instructor application submission and failure classification."""

from __future__ import annotations

import pytest

from minara.models.enums import ApplicationStatus
from minara.models.result_models import ApplicationErrorCode, StoreError
from minara.repositories.application_repository import ApplicationRepository
from minara.services.application_service import ApplicationService
from tests.conftest import FakeAPIError, make_instructor_request


@pytest.fixture
def service(db, logger) -> ApplicationService:
    return ApplicationService(ApplicationRepository(db, logger), logger)


def test_submit_stores_pending_application(service, fake_supabase):
    details = make_instructor_request().instructor

    result = service.submit_application("acct-1", details, " Grace@Example.com ", " Grace ")

    assert result.success
    assert result.application.id == 1
    assert result.application.status == ApplicationStatus.PENDING
    stored = fake_supabase.applications[0]
    assert stored["user_id"] == "acct-1"
    assert stored["email"] == "grace@example.com"
    assert stored["name"] == "Grace"
    assert stored["status"] == "pending"


def test_store_error_is_classified(service, fake_supabase):
    fake_supabase.fail(
        "instructor_applications",
        "insert",
        FakeAPIError("PGRST204", "Could not find the 'bio' column of 'instructor_applications'"),
    )

    result = service.submit_application("acct-1", make_instructor_request().instructor, "g@x.io", "G")

    assert not result.success
    assert result.error_code == ApplicationErrorCode.SCHEMA_MISMATCH
    assert result.underlying_error.code == "PGRST204"


@pytest.mark.parametrize(
    "code, message, expected",
    [
        ("42P01", 'relation "instructor_applications" does not exist', ApplicationErrorCode.SCHEMA_MISSING),
        (None, 'relation "instructor_applications" does not exist', ApplicationErrorCode.SCHEMA_MISSING),
        ("42703", 'column "motivation" does not exist', ApplicationErrorCode.SCHEMA_MISMATCH),
        (None, 'column "motivation" of relation "x" does not exist', ApplicationErrorCode.SCHEMA_MISMATCH),
        ("23503", "insert violates foreign key constraint", ApplicationErrorCode.UNKNOWN),
    ],
)
def test_classify_failure(code, message, expected):
    result = ApplicationService.classify_failure(StoreError(code=code, message=message))

    assert result.error_code == expected
    assert "account was created" in result.error_message


def test_unknown_failure_carries_store_message():
    result = ApplicationService.classify_failure(
        StoreError(code="23503", message="insert violates foreign key constraint"),
    )
    assert "foreign key" in result.error_message
