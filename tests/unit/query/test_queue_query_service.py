"""Tests for queue listing views, sorting and dashboard statistics."""

from __future__ import annotations

from datetime import timedelta

import pytest

from survey_validation.db.tables import Staff
from survey_validation.processing import ValidationTransactionCoordinator
from survey_validation.query import Pagination, QueueFilters, QueueQueryService, QueueSort, QueueView
from tests.fixtures.factories import FIXED_NOW, SAME_PERSON_NOTES


@pytest.fixture
def queries(session_factory, fixed_clock):
    return QueueQueryService(session_factory, timezone="Asia/Manila", clock=fixed_clock)


@pytest.fixture
def populated(seed):
    """Two queued items, one dequeued rejection and one validated today."""
    seed.profile("YTH001", first_name="Maria", last_name="Santos", age=19)
    seed.profile("YTH002", first_name="Juan", last_name="Dela Cruz", age=24, barangay_id="BRG002")
    seed.profile("YTH003", first_name="Liza", last_name="Garcia", age=16)
    seed.profile("YTH004", first_name="Pedro", last_name="Ramos", age=21, barangay_id=None)

    seed.queued("VQ1", "RES1", "YTH001", notes=SAME_PERSON_NOTES, voter_match="partial", score=70)
    seed.queued("VQ2", "RES2", "YTH002", voter_match="exact", score=95)
    seed.response(
        "RES3",
        "YTH003",
        status="rejected",
        validated_by="SK001",
        validation_date=FIXED_NOW - timedelta(hours=1),
    )
    seed.response(
        "RES4",
        "YTH004",
        status="validated",
        validated_by="LYDO001",
        validation_date=FIXED_NOW - timedelta(hours=2),
    )
    return seed


class TestQueueView:
    @pytest.mark.parametrize(
        ("status", "view"),
        [
            ("pending", QueueView.QUEUE),
            ("validated", QueueView.QUEUE),
            ("rejected", QueueView.REJECTED),
            ("all", QueueView.ALL),
            ("", QueueView.ALL),
            (None, QueueView.ALL),
            ("bogus", QueueView.ALL),
        ],
    )
    def test_status_maps_to_view(self, status, view):
        assert QueueView.for_status(status) is view


class TestListing:
    def test_pending_view_lists_queued_items_only(self, queries, populated):
        page = queries.list(QueueFilters(status="pending"))

        assert {item.queue_id for item in page.items} == {"VQ1", "VQ2"}
        assert page.total_count == 2

    def test_rejected_view_lists_dequeued_rejections(self, queries, populated):
        page = queries.list(QueueFilters(status="rejected"))

        assert [item.response_id for item in page.items] == ["RES3"]
        item = page.items[0]
        assert item.queue_id is None
        assert item.id == "RES3"
        assert item.voter_match is None
        assert item.validation_score is None

    def test_all_view_is_union_of_queue_and_rejections(self, queries, populated):
        page = queries.list(QueueFilters())

        assert {item.response_id for item in page.items} == {"RES1", "RES2", "RES3"}
        assert page.total_count == 3

    def test_unknown_status_behaves_like_all(self, queries, populated):
        assert queries.list(QueueFilters(status="whatever")).total_count == 3

    def test_search_is_case_insensitive_and_applies_to_both_halves(self, queries, populated):
        assert [i.response_id for i in queries.list(QueueFilters(search="maria")).items] == ["RES1"]
        assert [i.response_id for i in queries.list(QueueFilters(search="GARC")).items] == ["RES3"]

    def test_search_matches_batch_name_and_validator_id(self, queries, populated):
        assert queries.list(QueueFilters(search="kk survey")).total_count == 3
        assert [i.response_id for i in queries.list(QueueFilters(search="sk00")).items] == ["RES3"]

    def test_barangay_filter(self, queries, populated):
        page = queries.list(QueueFilters(barangay="BRG002"))

        assert [item.response_id for item in page.items] == ["RES2"]

    def test_score_and_voter_match_filters_only_hit_queue(self, queries, populated):
        assert [i.queue_id for i in queries.list(QueueFilters(status="pending", score_min=80)).items] == ["VQ2"]
        assert [i.queue_id for i in queries.list(QueueFilters(status="pending", score_max=80)).items] == ["VQ1"]
        assert [i.queue_id for i in queries.list(QueueFilters(status="pending", voter_match="exact")).items] == [
            "VQ2"
        ]

    def test_sort_by_age_ascending(self, queries, populated):
        page = queries.list(QueueFilters(), QueueSort(sort_by="age", sort_order="asc"))

        assert [item.age for item in page.items] == [16, 19, 24]

    def test_unknown_sort_key_and_order_fall_back_to_defaults(self, queries, populated):
        page = queries.list(QueueFilters(status="pending"), QueueSort(sort_by="drop table", sort_order="sideways"))

        # Both entries share a submission time; descending response id breaks the tie
        assert [item.queue_id for item in page.items] == ["VQ2", "VQ1"]

    @pytest.fixture
    def two_validators(self, seed):
        seed.add(Staff(lydo_id="AAA001", first_name="Zed", last_name="Zamora", role_name="staff"))
        seed.profile("YTH020", first_name="Ana")
        seed.profile("YTH021", first_name="Ben")
        seed.response("RES20", "YTH020", status="rejected", validated_by="AAA001", validation_date=FIXED_NOW)
        seed.response("RES21", "YTH021", status="rejected", validated_by="SK001", validation_date=FIXED_NOW)
        return seed

    def test_sort_by_validator_uses_display_name(self, queries, two_validators):
        page = queries.list(QueueFilters(), QueueSort(sort_by="validated_by", sort_order="asc"))

        assert [item.validated_by for item in page.items] == ["Paolo Cruz", "Zed Zamora"]

    def test_rejected_view_sorts_by_validator_id(self, queries, two_validators):
        page = queries.list(QueueFilters(status="rejected"), QueueSort(sort_by="validated_by", sort_order="asc"))

        assert [item.validated_by_user_id for item in page.items] == ["AAA001", "SK001"]

    def test_pagination(self, queries, populated):
        sort = QueueSort(sort_by="age", sort_order="asc")

        first = queries.list(QueueFilters(), sort, Pagination(page=1, limit=2))
        second = queries.list(QueueFilters(), sort, Pagination(page=2, limit=2))

        assert [i.age for i in first.items] == [16, 19]
        assert [i.age for i in second.items] == [24]
        assert first.total_count == 3
        assert first.total_pages == 2

    def test_items_carry_conflict_and_validator_details(self, queries, populated):
        items = {i.response_id: i for i in queries.list(QueueFilters()).items}

        assert items["RES1"].conflict["type"] == "mismatch"
        assert items["RES1"].barangay == "Poblacion"
        assert items["RES1"].batch_name == "KK Survey 2026"
        assert items["RES3"].validated_by == "Paolo Cruz"
        assert items["RES3"].validated_by_user_id == "SK001"
        assert items["RES3"].validator_position == "SK Chairperson"
        assert items["RES3"].validator_barangay == "San Isidro"

    def test_rejection_moves_item_between_views(self, queries, populated, session_factory, fixed_clock, staff_actor):
        coordinator = ValidationTransactionCoordinator(session_factory, clock=fixed_clock)

        coordinator.execute("VQ2", "reject", "Not a resident", staff_actor)

        assert "RES2" in {i.response_id for i in queries.list(QueueFilters(status="rejected")).items}
        assert "RES2" not in {i.response_id for i in queries.list(QueueFilters(status="pending")).items}
        assert queries.queue_size() == 1


class TestCompletedToday:
    def test_lists_responses_validated_today(self, queries, populated, seed):
        seed.profile("YTH005", first_name="Old", last_name="Decision")
        seed.response(
            "RES5",
            "YTH005",
            status="validated",
            batch_id=None,
            validated_by="LYDO001",
            validation_date=FIXED_NOW - timedelta(days=2),
        )

        page = queries.completed_today()

        assert [item.response_id for item in page.items] == ["RES4"]
        assert page.items[0].validated_by == "Ana Reyes"

    def test_search(self, queries, populated):
        assert queries.completed_today(search="nobody").total_count == 0
        assert queries.completed_today(search="ramos").total_count == 1


class TestStats:
    def test_counts(self, queries, populated):
        stats = queries.stats()

        assert stats.pending == 2
        assert stats.rejected == 1
        assert stats.completed_today == 1
        assert stats.total == 2 + 1 + 1
        assert stats.by_barangay == {"Poblacion": 1, "San Isidro": 1}

    def test_recent_validations_newest_first(self, queries, populated):
        recent = queries.stats().recent_validations

        assert [(r.first_name, r.status, r.validated_by) for r in recent] == [
            ("Liza", "rejected", "Paolo Cruz"),
            ("Pedro", "validated", "Ana Reyes"),
        ]

    def test_unknown_barangay_and_system_validator(self, queries, seed):
        seed.profile("YTH010", barangay_id=None)
        seed.queued("VQ10", "RES10", "YTH010")
        seed.profile("YTH011", first_name="Auto")
        seed.response("RES11", "YTH011", status="validated", validation_date=FIXED_NOW)

        stats = queries.stats()

        assert stats.by_barangay == {"Unknown": 1}
        assert stats.recent_validations[0].validated_by == "System"
