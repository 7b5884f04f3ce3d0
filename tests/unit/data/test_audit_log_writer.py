"""Tests for the audit trail writer."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy import select

from survey_validation.core.models import Actor, UserType
from survey_validation.data import SqlAuditLogWriter, determine_category
from survey_validation.db.tables import ActivityLog
from tests.fixtures.factories import FIXED_NOW


@pytest.mark.parametrize(
    ("action", "resource_type", "category"),
    [
        ("Bulk Export", "validation", "Data Export"),
        ("IMPORT_PROFILES", "youth", "Data Management"),
        ("UPDATE", "staff", "User Management"),
        ("LOGIN", None, "Authentication"),
        ("Approve", "validation", "Survey Validation"),
        ("VALIDATE_SURVEY_RESPONSE", "survey-response", "Survey Management"),
        ("RESTART", "server", "System Management"),
    ],
)
def test_determine_category(action, resource_type, category):
    assert determine_category(action, resource_type) == category


class TestSqlAuditLogWriter:
    def test_writes_row(self, session_factory, fixed_clock, staff_actor):
        writer = SqlAuditLogWriter(session_factory, clock=fixed_clock)

        log_id = writer.record(
            staff_actor,
            "Approve",
            "validation",
            "VQ1",
            {"queueId": "VQ1", "isBulkOperation": True},
            resource_name="Maria Santos",
        )

        assert log_id is not None and log_id.startswith("ACT")
        with session_factory() as session:
            row = session.execute(select(ActivityLog)).scalar_one()
        assert row.log_id == log_id
        assert row.user_id == "LYDO001"
        assert row.user_type == "lydo_staff"
        assert row.category == "Survey Validation"
        assert row.resource_name == "Maria Santos"
        assert row.details == {"queueId": "VQ1", "isBulkOperation": True}
        assert row.success is True
        assert row.created_at == FIXED_NOW

    def test_explicit_category_and_defaults(self, session_factory):
        writer = SqlAuditLogWriter(session_factory)

        writer.record(Actor(user_id="", user_type=UserType.ADMIN), "Export", "validation", "RES1", {}, category="X")

        with session_factory() as session:
            row = session.execute(select(ActivityLog)).scalar_one()
        assert row.category == "X"
        assert row.user_id == "SYSTEM"
        assert row.resource_name == "RES1"

    def test_failed_write_returns_none(self, staff_actor, caplog):
        factory = MagicMock(side_effect=RuntimeError("database is locked"))
        writer = SqlAuditLogWriter(factory)

        assert writer.record(staff_actor, "Approve", "validation", "VQ1", {}) is None
        assert "Failed to write audit log Approve on validation/VQ1" in caplog.text
