"""
Validation Queue Router - Manual review of survey responses.

Listing, statistics, single and bulk adjudication, and export auditing.
The domain services are synchronous; every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Query

from survey_validation.auth import AuthUser, get_current_user
from survey_validation.query import Pagination, QueueFilters, QueuePage, QueueQueryService, QueueSort
from survey_validation.service import ExportRequest, ValidationQueueService

from ..dependencies import get_query_service, get_validation_service
from ..schemas import (
    BulkItemResponse,
    BulkValidateRequest,
    BulkValidateResponse,
    ExportRequestBody,
    ExportResponse,
    PaginationResponse,
    QueueItemResponse,
    QueueStatsResponse,
    RecentValidationResponse,
    ValidateItemRequest,
    ValidateItemResponse,
)
from ..settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/validation-queue", tags=["validation-queue"])


def _page_payload(page: QueuePage) -> dict[str, Any]:
    items = [QueueItemResponse.model_validate(asdict(item)) for item in page.items]
    pagination = PaginationResponse(
        current_page=page.pagination.page,
        total_pages=page.total_pages,
        total_items=page.total_count,
        items_per_page=page.pagination.limit,
    )
    return {
        "success": True,
        "data": [item.model_dump(by_alias=True, mode="json") for item in items],
        "pagination": pagination.model_dump(by_alias=True),
    }


def _pagination(page: int, limit: int | None) -> Pagination:
    return Pagination(page=page, limit=get_settings().clamp_page_size(limit))


def _split_ids(raw: str | None) -> list[str]:
    return [i.strip() for i in (raw or "").split(",") if i.strip()]


# ========================================
# Read endpoints
# ========================================


@router.get("")
async def list_validation_queue(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None),
    status: str | None = Query(default=None, description="pending, validated, rejected or all"),
    barangay: str | None = Query(default=None, description="Barangay id"),
    voter_match: str | None = Query(default=None, alias="voterMatch"),
    score_min: int | None = Query(default=None, alias="scoreMin"),
    score_max: int | None = Query(default=None, alias="scoreMax"),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default="desc", alias="sortOrder"),
    user: AuthUser = Depends(get_current_user),
    queries: QueueQueryService = Depends(get_query_service),
) -> dict[str, Any]:
    """Paginated review list covering queued and dequeued rejected responses."""
    filters = QueueFilters(
        search=search,
        status=status,
        barangay=barangay,
        voter_match=voter_match,
        score_min=score_min,
        score_max=score_max,
    )
    sort = QueueSort(sort_by=sort_by, sort_order=sort_order)
    result = await asyncio.to_thread(queries.list, filters, sort, _pagination(page, limit))
    return _page_payload(result)


@router.get("/stats")
async def get_validation_stats(
    user: AuthUser = Depends(get_current_user),
    queries: QueueQueryService = Depends(get_query_service),
) -> dict[str, Any]:
    stats = await asyncio.to_thread(queries.stats)
    payload = QueueStatsResponse(
        total=stats.total,
        pending=stats.pending,
        completed=stats.completed_today,
        rejected=stats.rejected,
        by_barangay=stats.by_barangay,
        recent_validations=[RecentValidationResponse.model_validate(asdict(r)) for r in stats.recent_validations],
    )
    return {"success": True, "data": payload.model_dump(by_alias=True, mode="json")}


@router.get("/completed-today")
async def get_completed_today(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None),
    user: AuthUser = Depends(get_current_user),
    queries: QueueQueryService = Depends(get_query_service),
) -> dict[str, Any]:
    """Responses validated during the current local day, newest first."""
    result = await asyncio.to_thread(queries.completed_today, search, _pagination(page, limit))
    return _page_payload(result)


# ========================================
# Adjudication
# ========================================


@router.api_route("/bulk-validate", methods=["PATCH", "POST"])
async def bulk_validate(
    request: BulkValidateRequest,
    user: AuthUser = Depends(get_current_user),
    service: ValidationQueueService = Depends(get_validation_service),
) -> dict[str, Any]:
    """Apply one decision to many entries. Per-item failures are reported, not raised."""
    outcome = await asyncio.to_thread(
        service.bulk_adjudicate, request.ids, request.action, request.comments, user.to_actor()
    )
    payload = BulkValidateResponse(
        total=outcome.total,
        success=outcome.success_count,
        failed=outcome.failure_count,
        results=[BulkItemResponse(id=r.id, success=r.success, message=r.message) for r in outcome.results],
    )
    noun = "item" if outcome.success_count == 1 else "items"
    return {
        "success": True,
        "message": f"Bulk validation completed: {outcome.success_count} {noun} {outcome.action.past_tense}",
        "data": payload.model_dump(by_alias=True, exclude_none=True),
    }


@router.api_route("/{queue_id}/validate", methods=["PATCH", "POST"])
async def validate_item(
    queue_id: str,
    request: ValidateItemRequest,
    user: AuthUser = Depends(get_current_user),
    service: ValidationQueueService = Depends(get_validation_service),
) -> dict[str, Any]:
    result = await asyncio.to_thread(
        service.adjudicate,
        queue_id,
        request.action,
        request.comments,
        user.to_actor(),
        request.update_contact_info,
    )
    payload = ValidateItemResponse(
        queue_id=result.queue_id,
        response_id=result.response_id,
        status=result.status.value,
        validated_by=result.validated_by,
        validated_at=result.validated_at,
    )
    return {
        "success": True,
        "message": f"Survey response {result.action.past_tense} successfully",
        "data": payload.model_dump(by_alias=True, mode="json"),
    }


# ========================================
# Export auditing
# ========================================


async def _record_export(
    service: ValidationQueueService, request: ExportRequest, user: AuthUser
) -> dict[str, Any]:
    receipt = await asyncio.to_thread(service.record_export, request, user.to_actor())
    payload = ExportResponse(
        exported_at=receipt.exported_at,
        total=receipt.total,
        export_type=receipt.export_type,
        format=receipt.format,
    )
    return {"success": True, "data": payload.model_dump(by_alias=True, mode="json")}


@router.get("/export")
async def export_validation_queue(
    format: str = Query(default="json"),
    selected_ids: str | None = Query(default=None, alias="selectedIds", description="Comma-separated queue ids"),
    log_format: str | None = Query(default=None, alias="logFormat"),
    count: int | None = Query(default=None, ge=0),
    status: str | None = Query(default=None),
    user: AuthUser = Depends(get_current_user),
    service: ValidationQueueService = Depends(get_validation_service),
) -> dict[str, Any]:
    request = ExportRequest(
        format=format,
        selected_ids=_split_ids(selected_ids),
        log_format=log_format,
        count=count,
        status=status,
    )
    return await _record_export(service, request, user)


@router.post("/export")
async def export_validation_queue_post(
    body: ExportRequestBody,
    user: AuthUser = Depends(get_current_user),
    service: ValidationQueueService = Depends(get_validation_service),
) -> dict[str, Any]:
    request = ExportRequest(
        format=body.format,
        selected_ids=body.selected_ids,
        log_format=body.log_format,
        count=body.count,
        status=body.status,
    )
    return await _record_export(service, request, user)
