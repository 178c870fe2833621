"""Shared fixtures: an in-memory Supabase stand-in, a fake clock, wired services."""

from __future__ import annotations

import uuid
from collections import defaultdict
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Optional

import pytest

from minara.config import AppConfig
from minara.database import DatabaseManager
from minara.logger import StructuredLogger
from minara.models.enums import ExperienceBand, ExpertiseArea, UserRole
from minara.models.signup_models import InstructorDetails, SignupRequest
from minara.schema import initialize_schema
from minara.services import create_services


# ---------------------------------------------------------------------------
# Fake Supabase client
# ---------------------------------------------------------------------------


class FakeAPIError(Exception):
    """Mimics postgrest ``APIError``: code / message / details / hint attributes."""

    def __init__(self, code: Optional[str], message: str, details: Any = None, hint: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        self.hint = hint


class FakeAuthError(Exception):
    """Mimics gotrue ``AuthApiError`` (message attribute, no SQLSTATE)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class FakeAuth:
    def __init__(self) -> None:
        self.users: dict[str, str] = {}
        self.calls: list[dict[str, Any]] = []
        self.error: Optional[Exception] = None
        self.return_no_user: bool = False
        self.on_sign_up: Optional[Callable[[], None]] = None
        self.next_user_id: Optional[str] = None

    def sign_up(self, credentials: dict[str, Any]) -> SimpleNamespace:
        self.calls.append(credentials)
        if self.on_sign_up is not None:
            self.on_sign_up()
        if self.error is not None:
            raise self.error
        if self.return_no_user:
            return SimpleNamespace(user=None, session=None)

        email = credentials["email"]
        if email in self.users:
            raise FakeAuthError("User already registered", code="user_already_exists")
        user_id = self.next_user_id or str(uuid.uuid4())
        self.next_user_id = None
        self.users[email] = user_id
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email), session=None)


class FakeQuery:
    def __init__(self, client: "FakeSupabase", table: str) -> None:
        self._client = client
        self._table = table
        self._op: Optional[str] = None
        self._row: Optional[dict[str, Any]] = None
        self._filter: Optional[tuple[str, Any]] = None

    def upsert(self, row: dict[str, Any], on_conflict: str = "", ignore_duplicates: bool = False) -> "FakeQuery":
        self._op, self._row = "upsert", dict(row)
        return self

    def insert(self, row: dict[str, Any]) -> "FakeQuery":
        self._op, self._row = "insert", dict(row)
        return self

    def select(self, columns: str = "*") -> "FakeQuery":
        self._op = "select"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filter = (column, value)
        return self

    def maybe_single(self) -> "FakeQuery":
        return self

    def execute(self) -> Any:
        return self._client._execute(self._table, self._op, self._row, self._filter)


class FakeSupabase:
    """Enough of ``supabase.Client`` for the signup workflow.

    ``fail(table, op, exc, times)`` makes the next *times* calls raise
    (``None`` = forever).  ``hidden_reads`` makes that many ``select``
    calls return nothing, simulating replica lag; ``-1`` hides forever.
    """

    def __init__(self) -> None:
        self.auth = FakeAuth()
        self.profiles: dict[str, dict[str, Any]] = {}
        self.applications: list[dict[str, Any]] = []
        self.calls: list[tuple[str, str]] = []
        self.hidden_reads: int = 0
        self._failures: dict[tuple[str, str], list[Any]] = defaultdict(list)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail(self, table: str, op: str, exc: Exception, times: Optional[int] = None) -> None:
        self._failures[(table, op)] = [exc, times]

    def count(self, table: str, op: str) -> int:
        return self.calls.count((table, op))

    def _maybe_raise(self, table: str, op: str) -> None:
        entry = self._failures.get((table, op))
        if not entry:
            return
        exc, times = entry
        if times is not None:
            if times <= 0:
                return
            entry[1] = times - 1
        raise exc

    def _execute(self, table: str, op: Optional[str], row: Optional[dict[str, Any]], flt: Optional[tuple[str, Any]]) -> Any:
        assert op is not None
        self.calls.append((table, op))
        self._maybe_raise(table, op)

        if table == "profiles":
            if op == "upsert":
                merged = {**self.profiles.get(row["id"], {}), **row}
                self.profiles[row["id"]] = merged
                return SimpleNamespace(data=[dict(merged)])
            if op == "insert":
                if row["id"] in self.profiles:
                    raise FakeAPIError("23505", "duplicate key value violates unique constraint \"profiles_pkey\"")
                self.profiles[row["id"]] = dict(row)
                return SimpleNamespace(data=[dict(row)])
            if op == "select":
                if self.hidden_reads:
                    if self.hidden_reads > 0:
                        self.hidden_reads -= 1
                    return None
                found = self.profiles.get(flt[1]) if flt else None
                return SimpleNamespace(data=dict(found)) if found else None

        if table == "instructor_applications" and op == "insert":
            stored = {**row, "id": len(self.applications) + 1}
            self.applications.append(stored)
            return SimpleNamespace(data=[dict(stored)])

        raise AssertionError(f"unexpected call {table}.{op}")


class FakeClock:
    """Monotonic clock whose time only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name="minara.test", log_file=False)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        SUPABASE_URL="https://example.supabase.co",
        PROFILE_VERIFY_BACKOFF_S=0.0,
        PROFILE_SETTLE_DELAY_S=0.0,
        SWEEP_MAX_ATTEMPTS=2,
    )


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db(fake_supabase, logger):
    manager = DatabaseManager(
        supabase_url="",
        supabase_key="",
        sqlite_path=Path(":memory:"),
        logger=logger,
        supabase_client=fake_supabase,
    )
    initialize_schema(manager.sqlite, logger)
    yield manager
    manager.close()


@pytest.fixture
def services(db, config, clock, logger, monkeypatch):
    monkeypatch.setattr("minara.services.get_logger", lambda name="minara": logger)
    return create_services(db=db, config=config, clock=clock)


@pytest.fixture
def workflow(services):
    return services["signup_workflow"]


# ---------------------------------------------------------------------------
# Request builders
# ---------------------------------------------------------------------------


def make_student_request(**overrides: Any) -> SignupRequest:
    fields: dict[str, Any] = {
        "role": UserRole.STUDENT,
        "email": "ada@example.com",
        "password": "Abcdef12",
        "confirm_password": "Abcdef12",
        "display_name": "Ada Lovelace",
        "agree_to_terms": True,
    }
    fields.update(overrides)
    return SignupRequest(**fields)


def make_instructor_request(**overrides: Any) -> SignupRequest:
    details = InstructorDetails(
        expertise=ExpertiseArea.PROGRAMMING.value,
        experience=ExperienceBand.THREE_TO_FIVE.value,
        organization="Analytical Engines Ltd",
        bio="B" * 120,
        motivation="M" * 60,
    )
    fields: dict[str, Any] = {
        "role": UserRole.INSTRUCTOR_PENDING,
        "email": "grace@example.com",
        "password": "Abcdef12",
        "confirm_password": "Abcdef12",
        "display_name": "Grace Hopper",
        "agree_to_terms": True,
        "instructor": details,
    }
    fields.update(overrides)
    return SignupRequest(**fields)
