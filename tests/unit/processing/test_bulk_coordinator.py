"""Tests for bulk adjudication with per-item isolation."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from sqlalchemy import select

from survey_validation.core.errors import InvalidInput, TransactionFailure
from survey_validation.core.models import AdjudicationAction
from survey_validation.db import SurveyResponse, ValidationQueueEntry
from survey_validation.processing import BulkCoordinator, ValidationTransactionCoordinator
from tests.fixtures.factories import SAME_PERSON_NOTES


@pytest.fixture
def bulk(session_factory, fixed_clock):
    return BulkCoordinator(ValidationTransactionCoordinator(session_factory, clock=fixed_clock))


class TestBulkCoordinator:
    def test_partial_failure_keeps_going(self, bulk, seed, session_factory, staff_actor):
        seed.profile("YTH001")
        seed.profile("YTH002", first_name="Juan", email="juan@example.com")
        seed.queued("VQ1", "RES1", "YTH001")
        seed.queued("VQ3", "RES3", "YTH002")

        outcome = bulk.execute(["VQ1", "VQ_MISSING", "VQ3"], "approve", "Batch approval", staff_actor)

        assert outcome.total == 3
        assert outcome.success_count == 2
        assert outcome.failure_count == 1
        assert [r.to_dict() for r in outcome.results] == [
            {"id": "VQ1", "success": True},
            {"id": "VQ_MISSING", "success": False, "message": "Not found"},
            {"id": "VQ3", "success": True},
        ]
        with session_factory() as session:
            statuses = dict(session.execute(select(SurveyResponse.response_id, SurveyResponse.validation_status)).all())
            remaining = session.scalars(select(ValidationQueueEntry.queue_id)).all()
        assert statuses == {"RES1": "validated", "RES3": "validated"}
        assert remaining == []

    def test_committed_results_exclude_failures(self, bulk, seed, staff_actor):
        seed.profile("YTH001")
        seed.queued("VQ1", "RES1", "YTH001")

        outcome = bulk.execute(["VQ_MISSING", "VQ1"], "reject", None, staff_actor)

        assert [r.response_id for r in outcome.committed] == ["RES1"]
        assert outcome.action is AdjudicationAction.REJECT

    def test_bulk_never_updates_contact_info(self, bulk, seed, session_factory, staff_actor):
        seed.profile("YTH001")
        seed.queued("VQ1", "RES1", "YTH001", notes=SAME_PERSON_NOTES)

        outcome = bulk.execute(["VQ1"], "approve", None, staff_actor)

        assert outcome.committed[0].contact_updated is False

    @pytest.mark.parametrize("ids", [[], None])
    def test_empty_selection_is_invalid(self, bulk, staff_actor, ids):
        with pytest.raises(InvalidInput, match="No items selected for validation"):
            bulk.execute(ids, "approve", None, staff_actor)

    def test_bad_action_is_invalid_before_any_item(self, staff_actor):
        coordinator = Mock()
        bulk = BulkCoordinator(coordinator)

        with pytest.raises(InvalidInput):
            bulk.execute(["VQ1"], "escalate", None, staff_actor)

        coordinator.execute.assert_not_called()

    def test_unexpected_errors_use_generic_message(self, staff_actor):
        coordinator = Mock()
        coordinator.execute.side_effect = [
            TransactionFailure("Failed to validate queue item"),
            RuntimeError("boom"),
        ]
        bulk = BulkCoordinator(coordinator)

        outcome = bulk.execute(["VQ1", "VQ2"], "approve", None, staff_actor)

        assert [r.message for r in outcome.results] == [
            "Failed to validate queue item",
            "Failed to validate queue item",
        ]
        assert outcome.success_count == 0
