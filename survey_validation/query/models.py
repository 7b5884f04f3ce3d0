"""Read-side models for the validation queue views."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class QueueView(Enum):
    """Which population of responses a listing covers"""

    QUEUE = "queue"  # queue-resident items
    REJECTED = "rejected"  # rejected responses no longer queued
    ALL = "all"  # union of the two

    @classmethod
    def for_status(cls, status: str | None) -> QueueView:
        """Map a status filter to a view. Empty, "all" or unknown values list everything."""
        normalized = (status or "").strip().lower()
        if normalized in ("pending", "validated"):
            return cls.QUEUE
        if normalized == "rejected":
            return cls.REJECTED
        return cls.ALL


SORT_KEYS = (
    "submitted_at",
    "first_name",
    "last_name",
    "age",
    "barangay",
    "validated_by",
    "validation_score",
)
DEFAULT_SORT_KEY = "submitted_at"


@dataclass
class QueueFilters:
    search: str | None = None
    status: str | None = None
    barangay: str | None = None
    voter_match: str | None = None
    score_min: int | None = None
    score_max: int | None = None

    @property
    def view(self) -> QueueView:
        return QueueView.for_status(self.status)

    @property
    def normalized_status(self) -> str | None:
        return (self.status or "").strip().lower() or None


@dataclass
class QueueSort:
    """Sort key and direction; anything but "asc" sorts descending"""

    sort_by: str | None = None
    sort_order: str | None = "desc"

    @property
    def ascending(self) -> bool:
        return (self.sort_order or "").lower() == "asc"

    @property
    def key(self) -> str | None:
        """The requested key when it is on the allow-list, else None."""
        return self.sort_by if self.sort_by in SORT_KEYS else None


@dataclass
class Pagination:
    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        self.page = max(1, self.page)
        self.limit = max(1, self.limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class QueueItem:
    """One row of the review list"""

    id: str
    response_id: str
    queue_id: str | None
    youth_id: str | None
    first_name: str | None = None
    last_name: str | None = None
    middle_name: str | None = None
    suffix: str | None = None
    age: int | None = None
    gender: str | None = None
    birth_date: date | None = None
    contact_number: str | None = None
    email: str | None = None
    barangay: str | None = None
    barangay_id: str | None = None
    batch_id: str | None = None
    batch_name: str | None = None
    voter_match: str | None = None
    validation_score: int | None = None
    status: str | None = None
    validated_by: str | None = None
    validated_by_user_id: str | None = None
    validator_role: str | None = None
    validator_position: str | None = None
    validator_barangay: str | None = None
    validated_at: datetime | None = None
    submitted_at: datetime | None = None
    comments: str | None = None
    conflict: dict[str, Any] | None = None
    conflicting_profile: dict[str, str | None] | None = None


@dataclass
class QueuePage:
    items: list[QueueItem]
    total_count: int
    pagination: Pagination

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.pagination.limit) if self.total_count else 0


@dataclass
class RecentValidation:
    first_name: str | None
    last_name: str | None
    barangay: str | None
    validated_by: str
    status: str
    validated_at: datetime | None


@dataclass
class QueueStats:
    total: int
    pending: int
    completed_today: int
    rejected: int
    by_barangay: dict[str, int] = field(default_factory=dict)
    recent_validations: list[RecentValidation] = field(default_factory=list)
