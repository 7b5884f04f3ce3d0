"""
Pydantic schemas for the validation queue API.

Re-exports all schemas for convenient importing.
"""

from __future__ import annotations

from .validation_queue import (
    BulkItemResponse,
    BulkValidateRequest,
    BulkValidateResponse,
    ExportRequestBody,
    ExportResponse,
    PaginationResponse,
    QueueItemResponse,
    QueuePageResponse,
    QueueStatsResponse,
    RecentValidationResponse,
    ValidateItemRequest,
    ValidateItemResponse,
)

__all__ = [
    "BulkItemResponse",
    "BulkValidateRequest",
    "BulkValidateResponse",
    "ExportRequestBody",
    "ExportResponse",
    "PaginationResponse",
    "QueueItemResponse",
    "QueuePageResponse",
    "QueueStatsResponse",
    "RecentValidationResponse",
    "ValidateItemRequest",
    "ValidateItemResponse",
]
