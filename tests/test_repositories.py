"""Repository error folding: store exceptions become ``StoreResult`` errors."""

from __future__ import annotations

from pathlib import Path

import pytest

from minara.database import DatabaseManager
from minara.models.enums import UserRole
from minara.models.signup_models import ProfileRecord
from minara.repositories.profile_repository import ProfileRepository
from tests.conftest import FakeAPIError


@pytest.fixture
def repo(db, logger) -> ProfileRepository:
    return ProfileRepository(db, logger)


def _profile(account_id: str = "acct-1") -> ProfileRecord:
    return ProfileRecord(id=account_id, email="a@b.io", full_name="Ab", role=UserRole.STUDENT)


def test_upsert_returns_written_row(repo, fake_supabase):
    result = repo.upsert(_profile())

    assert result.ok
    assert result.data["role"] == "student"
    assert "created_at" not in fake_supabase.profiles["acct-1"]


def test_api_error_fields_are_preserved(repo, fake_supabase):
    fake_supabase.fail(
        "profiles",
        "insert",
        FakeAPIError(
            "42501",
            "new row violates row-level security policy",
            details="Failing row contains (...)",
            hint="Check policies",
        ),
    )

    result = repo.insert(_profile())

    assert not result.ok
    assert result.error.code == "42501"
    assert result.error.message == "new row violates row-level security policy"
    assert result.error.details == "Failing row contains (...)"
    assert result.error.hint == "Check policies"


def test_duplicate_insert_is_an_error(repo):
    repo.insert(_profile())

    result = repo.insert(_profile())

    assert result.error.code == "23505"


def test_missing_row_read_is_empty_not_an_error(repo, fake_supabase):
    result = repo.get_by_id("nobody")
    assert result.ok
    assert result.data is None

    fake_supabase.fail("profiles", "select", FakeAPIError("204", "Missing response"))
    assert repo.get_by_id("nobody").ok


def test_read_errors_other_than_no_rows_surface(repo, fake_supabase):
    fake_supabase.fail("profiles", "select", FakeAPIError("42501", "permission denied"))

    result = repo.get_by_id("acct-1")

    assert result.error.code == "42501"


def test_offline_store_reports_offline(logger):
    offline = DatabaseManager(
        supabase_url="", supabase_key="", sqlite_path=Path(":memory:"), logger=logger,
    )
    try:
        assert not offline.is_online
        result = ProfileRepository(offline, logger).upsert(_profile())
    finally:
        offline.close()

    assert result.error.code == "offline"
