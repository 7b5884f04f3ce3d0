"""Validation queue service.

Entry point used by the HTTP layer. Runs adjudications through the
transaction coordinator and, once they have committed, hands the results
to the fan-out dispatcher. Also records export audit entries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .core import constants
from .core.errors import InvalidInput
from .core.interfaces import AuditLogWriter
from .core.models import Actor, AdjudicationAction, AdjudicationResult, BulkAdjudicationResult
from .fanout.dispatcher import FanOutDispatcher
from .processing import BulkCoordinator, ValidationTransactionCoordinator
from .query import QueueQueryService
from .shared.date_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class ExportRequest:
    """What the client says it exported"""

    format: str = "json"
    selected_ids: list[str] = field(default_factory=list)
    log_format: str | None = None
    count: int | None = None
    status: str | None = None

    @property
    def effective_format(self) -> str:
        return self.log_format or self.format


@dataclass
class ExportReceipt:
    exported_at: datetime
    total: int
    export_type: str
    format: str


class ValidationQueueService:
    """Adjudication and export entry points with post-commit fan-out"""

    def __init__(
        self,
        coordinator: ValidationTransactionCoordinator,
        dispatcher: FanOutDispatcher,
        queries: QueueQueryService,
        audit_writer: AuditLogWriter | None = None,
        bulk_coordinator: BulkCoordinator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.coordinator = coordinator
        self.dispatcher = dispatcher
        self.queries = queries
        self.audit_writer = audit_writer
        self.bulk_coordinator = bulk_coordinator or BulkCoordinator(coordinator)
        self._clock = clock

    def adjudicate(
        self,
        queue_id: str,
        action: AdjudicationAction | str,
        comments: str | None,
        actor: Actor,
        update_contact_info: bool = False,
    ) -> AdjudicationResult:
        """Approve or reject one queue entry, then fan out.

        Errors from the transaction propagate; fan-out never fails the call.
        """
        result = self.coordinator.execute(queue_id, action, comments, actor, update_contact_info)
        self.dispatcher.dispatch(result, actor)
        return result

    def bulk_adjudicate(
        self,
        queue_ids: Sequence[str] | None,
        action: AdjudicationAction | str,
        comments: str | None,
        actor: Actor,
    ) -> BulkAdjudicationResult:
        outcome = self.bulk_coordinator.execute(queue_ids, action, comments, actor)
        self.dispatcher.dispatch_bulk(outcome, actor, comments)
        return outcome

    def record_export(self, request: ExportRequest, actor: Actor) -> ExportReceipt:
        """Audit a client-side export of the queue.

        Explicitly selected ids are recorded as a bulk export; anything else
        (whole queue, filtered page) as a plain export.

        Raises:
            InvalidInput: unsupported format
        """
        if request.format not in constants.EXPORT_FORMATS:
            raise InvalidInput('Invalid export format. Use "csv", "json", "pdf", "excel", or "xlsx"')

        fmt = request.effective_format
        selected = [str(i).strip() for i in request.selected_ids if str(i).strip()]
        try:
            if request.count is not None:
                count = request.count
                export_type = f"status:{request.status}" if request.status else "filtered"
            elif selected:
                count = len(selected)
                export_type = "selected"
            else:
                count = self.queries.queue_size()
                export_type = "all"
        except Exception as e:
            logger.error(f"Validation queue export failed: {e}", exc_info=True)
            self._audit_export_failure(actor, str(e))
            raise

        action = constants.AUDIT_ACTION_BULK_EXPORT if selected else constants.AUDIT_ACTION_EXPORT
        noun = "item" if count == 1 else "items"
        details: dict[str, Any] = {
            "resourceType": constants.AUDIT_RESOURCE_VALIDATION,
            "reportType": "validation-queue",
            "format": fmt,
            "count": count,
            "exportType": export_type,
        }
        if request.status:
            details["filterStatus"] = request.status

        if self.audit_writer is not None:
            log_id = self.audit_writer.record(
                actor,
                action,
                constants.AUDIT_RESOURCE_VALIDATION,
                None,
                details,
                resource_name=f"Validation Queue Export - {fmt.upper()} ({count} {noun})",
                category=constants.AUDIT_CATEGORY_DATA_EXPORT,
            )
            logger.info(f"Export audit entry {log_id}: {action} {fmt} ({count} {noun})")

        return ExportReceipt(exported_at=self._clock(), total=count, export_type=export_type, format=fmt)

    def _audit_export_failure(self, actor: Actor, message: str) -> None:
        if self.audit_writer is None:
            return
        self.audit_writer.record(
            actor,
            constants.AUDIT_ACTION_EXPORT,
            constants.AUDIT_RESOURCE_VALIDATION,
            None,
            {"resourceType": constants.AUDIT_RESOURCE_VALIDATION, "error": message, "exportFailed": True},
            resource_name="Validation Queue Export - Failed",
            category=constants.AUDIT_CATEGORY_DATA_EXPORT,
            success=False,
            error_message=message,
        )

