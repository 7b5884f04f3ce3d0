"""Tests for the validation queue service entry points."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from survey_validation.core.errors import InvalidInput, NotFound
from survey_validation.fanout import FanOutDispatcher
from survey_validation.processing import ValidationTransactionCoordinator
from survey_validation.query import QueueQueryService
from survey_validation.service import ExportRequest, ValidationQueueService
from tests.fixtures.factories import FIXED_NOW


@pytest.fixture
def service(session_factory, fixed_clock, broadcaster, audit_writer, email_sender, scheduler):
    coordinator = ValidationTransactionCoordinator(session_factory, clock=fixed_clock)
    dispatcher = FanOutDispatcher(broadcaster, audit_writer, email_sender, scheduler, clock=fixed_clock)
    queries = QueueQueryService(session_factory, clock=fixed_clock)
    return ValidationQueueService(coordinator, dispatcher, queries, audit_writer=audit_writer, clock=fixed_clock)


@pytest.fixture
def queued(seed):
    seed.profile("YTH001")
    seed.profile("YTH002", first_name="Juan", email="juan@example.com")
    seed.queued("VQ1", "RES1", "YTH001")
    seed.queued("VQ2", "RES2", "YTH002")
    return seed


class TestAdjudicate:
    def test_commits_then_fans_out(self, service, queued, staff_actor, broadcaster, email_sender):
        result = service.adjudicate("VQ1", "approve", "looks good", staff_actor)

        assert result.response_id == "RES1"
        assert result.status.value == "validated"
        assert broadcaster.rooms_for("validation:queueUpdated") == ["role:admin", "role:staff", "barangay:BRG001"]
        assert [recipient for _, _, recipient in email_sender.sent] == ["old@example.com"]
        assert service.queries.queue_size() == 1

    def test_failed_transaction_skips_fan_out(self, service, queued, staff_actor, broadcaster, audit_writer):
        with pytest.raises(NotFound):
            service.adjudicate("VQ_MISSING", "approve", None, staff_actor)

        assert broadcaster.emits == []
        assert audit_writer.entries == []

    def test_bulk_dispatches_once(self, service, queued, staff_actor, broadcaster, audit_writer):
        outcome = service.bulk_adjudicate(["VQ1", "VQ2", "VQ9"], "reject", "duplicate batch", staff_actor)

        assert (outcome.success_count, outcome.failure_count) == (2, 1)
        assert len(broadcaster.rooms_for("validation:queueUpdated")) == 2
        assert audit_writer.actions()[-1] == "Bulk Reject"


class TestRecordExport:
    def test_selected_ids_are_a_bulk_export(self, service, staff_actor, audit_writer):
        receipt = service.record_export(ExportRequest(format="csv", selected_ids=["VQ1", " ", "VQ2"]), staff_actor)

        assert receipt.total == 2
        assert receipt.export_type == "selected"
        assert receipt.format == "csv"
        assert receipt.exported_at == FIXED_NOW
        [entry] = audit_writer.entries
        assert entry["action"] == "Bulk Export"
        assert entry["category"] == "Data Export"
        assert entry["resource_name"] == "Validation Queue Export - CSV (2 items)"

    def test_whole_queue_export_counts_queue(self, service, queued, staff_actor, audit_writer):
        receipt = service.record_export(ExportRequest(format="json"), staff_actor)

        assert (receipt.total, receipt.export_type) == (2, "all")
        assert audit_writer.entries[0]["action"] == "Export"

    def test_filtered_export_uses_client_count_and_log_format(self, service, staff_actor, audit_writer):
        receipt = service.record_export(
            ExportRequest(format="excel", log_format="xlsx", count=1, status="pending"), staff_actor
        )

        assert (receipt.total, receipt.export_type, receipt.format) == (1, "status:pending", "xlsx")
        details = audit_writer.entries[0]["details"]
        assert details["filterStatus"] == "pending"
        assert audit_writer.entries[0]["resource_name"] == "Validation Queue Export - XLSX (1 item)"

    def test_invalid_format(self, service, staff_actor, audit_writer):
        with pytest.raises(InvalidInput, match="Invalid export format"):
            service.record_export(ExportRequest(format="docx"), staff_actor)

        assert audit_writer.entries == []

    def test_count_failure_is_audited_and_raised(self, staff_actor, audit_writer):
        queries = Mock()
        queries.queue_size.side_effect = RuntimeError("disk I/O error")
        service = ValidationQueueService(Mock(), Mock(), queries, audit_writer=audit_writer)

        with pytest.raises(RuntimeError):
            service.record_export(ExportRequest(), staff_actor)

        [entry] = audit_writer.entries
        assert entry["success"] is False
        assert entry["error_message"] == "disk I/O error"
