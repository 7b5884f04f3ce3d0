"""Adjudication processing: duplicate resolution and transactional state changes."""

from __future__ import annotations

from .bulk_coordinator import BulkCoordinator
from .duplicate_resolver import DuplicateResolver
from .transaction_coordinator import ValidationTransactionCoordinator

__all__ = [
    "BulkCoordinator",
    "DuplicateResolver",
    "ValidationTransactionCoordinator",
]
