"""Pytest configuration and shared fixtures for PaybackPal tests.

Provides a throwaway SQLite database, a settings repository on top of it,
a controllable clock and an in-memory stand-in for the OS notification
facility.
"""

from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

from paybackpal.infra.repositories import SQLModelSettingsRepository
from paybackpal.models import AppSetting  # noqa: F401  # register table metadata
from paybackpal.services.reminders import AuthorizationStatus, PendingRequest

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the Callable[[], Session] used by repositories."""

    @contextmanager
    def factory():
        session = Session(db_engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


@pytest.fixture
def settings_repo(session_factory) -> SQLModelSettingsRepository:
    return SQLModelSettingsRepository(session_factory)


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    # A Thursday afternoon
    return FakeClock(datetime(2024, 3, 14, 15, 30))


# =============================================================================
# Notification facility
# =============================================================================


class FakeNotificationCenter:
    """In-memory notification facility with scriptable permission and failures."""

    def __init__(
        self,
        status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
        grant_on_request: bool = True,
    ):
        self.status = status
        self.grant_on_request = grant_on_request
        self.pending: dict[str, dict] = {}
        self.fail_ids: set[str] = set()
        self.authorization_requests = 0
        self.cancelled: list[set[str]] = []

    async def request_authorization(self) -> bool:
        self.authorization_requests += 1
        self.status = (
            AuthorizationStatus.AUTHORIZED if self.grant_on_request else AuthorizationStatus.DENIED
        )
        return self.grant_on_request

    async def get_authorization_status(self) -> AuthorizationStatus:
        return self.status

    async def list_pending_requests(self) -> list[PendingRequest]:
        return [PendingRequest(identifier=i) for i in self.pending]

    async def schedule_request(self, identifier, title, body, trigger) -> None:
        if identifier in self.fail_ids:
            raise RuntimeError(f"facility rejected {identifier}")
        self.pending[identifier] = {"title": title, "body": body, "trigger": trigger}

    async def cancel_pending_requests(self, identifiers: set[str]) -> None:
        self.cancelled.append(set(identifiers))
        for identifier in identifiers:
            self.pending.pop(identifier, None)


@pytest.fixture
def notification_center() -> FakeNotificationCenter:
    return FakeNotificationCenter()


# =============================================================================
# Helpers
# =============================================================================


class InMemorySettings:
    """Dict-backed settings store for tests that do not need a database."""

    def __init__(self):
        self.values: dict[str, str] = {}

    def get_value(self, key):
        return self.values.get(key)

    def set(self, key, value, description=None):
        self.values[key] = value

    def delete(self, key):
        self.values.pop(key, None)


@pytest.fixture
def memory_settings() -> InMemorySettings:
    return InMemorySettings()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so later tests start clean."""
    yield
    logger = logging.getLogger("paybackpal")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
