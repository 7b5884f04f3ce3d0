"""Read path over the validation queue."""

from __future__ import annotations

from .models import (
    Pagination,
    QueueFilters,
    QueueItem,
    QueuePage,
    QueueSort,
    QueueStats,
    QueueView,
    RecentValidation,
)
from .queue_query_service import QueueQueryService

__all__ = [
    "Pagination",
    "QueueFilters",
    "QueueItem",
    "QueuePage",
    "QueueQueryService",
    "QueueSort",
    "QueueStats",
    "QueueView",
    "RecentValidation",
]
