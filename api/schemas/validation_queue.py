"""
Pydantic schemas for validation queue endpoints.

Wire names are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from survey_validation.shared.date_utils import to_iso

UtcDatetime = Annotated[datetime, PlainSerializer(to_iso, return_type=str | None)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ========================================
# Requests
# ========================================


class ValidateItemRequest(CamelModel):
    """Approve or reject one queue entry."""

    action: str = Field(description='"approve" or "reject"')
    comments: str | None = None
    update_contact_info: bool = Field(
        default=False,
        description="Treat contact-mismatch notes as the same person and reconcile duplicates",
    )


class BulkValidateRequest(CamelModel):
    """Apply one decision to many queue entries."""

    ids: list[str] = Field(default_factory=list)
    action: str | None = None
    comments: str | None = None


class ExportRequestBody(CamelModel):
    """Client-side export that should be recorded in the audit trail."""

    format: str = "json"
    selected_ids: list[str] = Field(default_factory=list)
    log_format: str | None = None
    count: int | None = None
    status: str | None = None


# ========================================
# Responses
# ========================================


class QueueItemResponse(CamelModel):
    id: str
    response_id: str
    queue_id: str | None = None
    youth_id: str | None = None
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
    validated_at: UtcDatetime | None = None
    submitted_at: UtcDatetime | None = None
    comments: str | None = None
    conflict: dict[str, Any] | None = None
    conflicting_profile: dict[str, str | None] | None = None


class PaginationResponse(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class QueuePageResponse(CamelModel):
    items: list[QueueItemResponse]
    pagination: PaginationResponse


class RecentValidationResponse(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    barangay: str | None = None
    validated_by: str
    status: str
    validated_at: UtcDatetime | None = None


class QueueStatsResponse(CamelModel):
    total: int
    pending: int
    completed: int
    rejected: int
    by_barangay: dict[str, int] = Field(default_factory=dict)
    recent_validations: list[RecentValidationResponse] = Field(default_factory=list)


class ValidateItemResponse(CamelModel):
    queue_id: str
    response_id: str
    status: str
    validated_by: str
    validated_at: UtcDatetime


class BulkItemResponse(CamelModel):
    id: str
    success: bool
    message: str | None = None


class BulkValidateResponse(CamelModel):
    total: int
    success: int
    failed: int
    results: list[BulkItemResponse]


class ExportResponse(CamelModel):
    exported_at: UtcDatetime
    total: int
    export_type: str
    format: str
