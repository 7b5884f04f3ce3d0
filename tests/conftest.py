"""
Root test configuration and fixtures for the survey validation project.

This conftest.py provides common fixtures for all test categories:
- unit/: Fast, isolated tests against a throwaway SQLite file
- integration/: Full adjudication flows through the HTTP layer

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from survey_validation.core.models import Actor, UserType  # noqa: E402
from survey_validation.db import DatabaseConfig, DatabaseManager  # noqa: E402
from tests.fixtures.factories import (  # noqa: E402
    FIXED_NOW,
    ImmediateScheduler,
    RecordingAuditWriter,
    RecordingBroadcaster,
    RecordingEmailSender,
    Seeder,
)

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db(tmp_path: Path) -> Iterator[DatabaseManager]:
    """Fresh SQLite database file with the full schema."""
    manager = DatabaseManager(DatabaseConfig(url=f"sqlite:///{tmp_path / 'survey.db'}", sqlite_timeout=5.0))
    manager.create_all()
    yield manager
    manager.dispose()


@pytest.fixture
def session_factory(db: DatabaseManager) -> sessionmaker[Session]:
    return db.session_factory


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def seed(session_factory: sessionmaker[Session]) -> Seeder:
    """Seeder over the test database, with barangays, a batch and validators loaded."""
    seeder = Seeder(session_factory)
    seeder.reference_data()
    return seeder


# =============================================================================
# Actors
# =============================================================================


@pytest.fixture
def staff_actor() -> Actor:
    return Actor(user_id="LYDO001", user_type=UserType.LYDO_STAFF, display_name="Ana Reyes")


@pytest.fixture
def sk_actor() -> Actor:
    return Actor(user_id="SK001", user_type=UserType.SK_OFFICIAL, display_name="Paolo Cruz")


# =============================================================================
# Fan-out fakes
# =============================================================================


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def scheduler() -> ImmediateScheduler:
    return ImmediateScheduler()


@pytest.fixture
def audit_writer() -> RecordingAuditWriter:
    return RecordingAuditWriter()
