"""Fan-out dispatcher for committed adjudications.

Runs after the adjudication transaction has committed. Three channels
are driven independently: real-time events, the audit trail and the
notification email. A failure in one channel is logged as a FanOutFailure
and does not affect the others or the already committed result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..core import constants
from ..core.errors import FanOutFailure
from ..core.interfaces import AuditLogWriter, EmailSender, RealtimeBroadcaster, TaskScheduler
from ..core.models import (
    Actor,
    AdjudicationAction,
    AdjudicationResult,
    BulkAdjudicationResult,
)
from ..shared.date_utils import to_iso, utc_now

logger = logging.getLogger(__name__)

CHANNEL_REALTIME = "realtime"
CHANNEL_AUDIT = "audit"
CHANNEL_EMAIL = "email"


def _duplicate_outcome(result: AdjudicationResult) -> dict[str, Any]:
    if result.replaced_response_id:
        return {"outcome": "superseded", "responseId": result.replaced_response_id}
    if result.deleted_response_id:
        return {"outcome": "existing_deleted", "responseId": result.deleted_response_id}
    return {"outcome": "none", "responseId": None}


def _item_summary(result: AdjudicationResult) -> dict[str, Any]:
    return {
        "queueId": result.queue_id,
        "youthId": result.youth_id,
        "youthName": result.youth_name,
        "responseId": result.response_id,
        "batchId": result.batch_id,
        "batchName": result.batch_name,
    }


class FanOutDispatcher:
    """Best-effort side effects for committed adjudications"""

    def __init__(
        self,
        broadcaster: RealtimeBroadcaster | None,
        audit_writer: AuditLogWriter | None,
        email_sender: EmailSender | None,
        scheduler: TaskScheduler | None,
        email_delay: float = 0.1,
        frontend_url: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._broadcaster = broadcaster
        self._audit = audit_writer
        self._email = email_sender
        self._scheduler = scheduler
        self._email_delay = email_delay
        self._frontend_url = frontend_url
        self._clock = clock

    # =========================================================================
    # Single adjudication
    # =========================================================================

    def dispatch(self, result: AdjudicationResult, actor: Actor) -> None:
        """Emit events, write the audit entry and schedule the email. Never raises."""
        context = f"queue item {result.queue_id}"
        self._isolated(CHANNEL_REALTIME, context, lambda: self._broadcast_single(result, actor))
        self._isolated(CHANNEL_AUDIT, context, lambda: self._audit_single(result, actor))
        self._isolated(CHANNEL_EMAIL, context, lambda: self._schedule_email(result))

    def _broadcast_single(self, result: AdjudicationResult, actor: Actor) -> None:
        if self._broadcaster is None:
            return
        payload = {
            "type": result.status.value,
            "responseId": result.response_id,
            "queueId": result.queue_id,
            "youthId": result.youth_id,
            "barangayId": result.barangay_id,
            "batchId": result.batch_id,
            "status": result.status.value,
            "by": actor.user_id,
            "at": to_iso(self._clock()),
        }
        self._emit(constants.EVENT_QUEUE_UPDATED, payload, result.barangay_id)
        self._emit(constants.EVENT_RESPONSES_UPDATED, payload, result.barangay_id)

    def _audit_single(self, result: AdjudicationResult, actor: Actor) -> None:
        if self._audit is None:
            return
        details = {
            "response_id": result.response_id,
            "youth_id": result.youth_id,
            "old_validation_status": result.previous_status.value,
            "new_validation_status": result.status.value,
            "validation_comments": result.comments,
            "validated_by": actor.user_id,
            "queue_id": result.queue_id,
            "batch_id": result.batch_id,
            "duplicate_resolution": _duplicate_outcome(result),
            "contact_updated": result.contact_updated,
        }
        log_id = self._audit.record(
            actor,
            constants.AUDIT_ACTION_VALIDATE,
            constants.AUDIT_RESOURCE_SURVEY_RESPONSE,
            result.response_id,
            details,
            resource_name=f"Survey Response {result.response_id}",
            category=constants.AUDIT_CATEGORY_SURVEY_MANAGEMENT,
        )
        if log_id is None:
            raise FanOutFailure(CHANNEL_AUDIT, "audit entry was not written")

    # =========================================================================
    # Bulk adjudication
    # =========================================================================

    def dispatch_bulk(self, outcome: BulkAdjudicationResult, actor: Actor, comments: str | None) -> None:
        """Per-item audit, one summary entry, one aggregated event, then emails."""
        committed = outcome.committed
        action = outcome.action

        for result in committed:
            self._isolated(
                CHANNEL_AUDIT,
                f"bulk item {result.queue_id}",
                lambda r=result: self._audit_bulk_item(r, action, actor, comments),
            )
        self._isolated(CHANNEL_AUDIT, "bulk summary", lambda: self._audit_bulk_summary(outcome, actor, comments))
        self._isolated(CHANNEL_REALTIME, "bulk summary", lambda: self._broadcast_bulk(outcome, actor))

        for result in committed:
            self._isolated(CHANNEL_EMAIL, f"bulk item {result.queue_id}", lambda r=result: self._schedule_email(r))

    def _audit_bulk_item(
        self,
        result: AdjudicationResult,
        action: AdjudicationAction,
        actor: Actor,
        comments: str | None,
    ) -> None:
        if self._audit is None:
            return
        youth_name = result.youth_name or result.youth_id or "Unknown Youth"
        details = {
            "resourceType": constants.AUDIT_RESOURCE_VALIDATION,
            "queueId": result.queue_id,
            "action": action.value,
            "comments": comments,
            "youthId": result.youth_id,
            "youthName": youth_name,
            "responseId": result.response_id,
            "validationStatus": result.status.value,
            "batchId": result.batch_id,
            "batchName": result.batch_name,
            "isBulkOperation": True,
        }
        audit_action = (
            constants.AUDIT_ACTION_APPROVE if action is AdjudicationAction.APPROVE else constants.AUDIT_ACTION_REJECT
        )
        log_id = self._audit.record(
            actor,
            audit_action,
            constants.AUDIT_RESOURCE_VALIDATION,
            result.youth_id,
            details,
            resource_name=youth_name,
            category=constants.AUDIT_CATEGORY_SURVEY_VALIDATION,
        )
        if log_id is None:
            raise FanOutFailure(CHANNEL_AUDIT, "audit entry was not written")

    def _audit_bulk_summary(self, outcome: BulkAdjudicationResult, actor: Actor, comments: str | None) -> None:
        if self._audit is None:
            return
        bulk_action = (
            constants.AUDIT_ACTION_BULK_APPROVE
            if outcome.action is AdjudicationAction.APPROVE
            else constants.AUDIT_ACTION_BULK_REJECT
        )
        noun = "item" if outcome.success_count == 1 else "items"
        details = {
            "resourceType": constants.AUDIT_RESOURCE_VALIDATION,
            "reportType": "validation-queue",
            "totalItems": outcome.total,
            "successCount": outcome.success_count,
            "failCount": outcome.failure_count,
            "action": outcome.action.value,
            "comments": comments,
            "queueIds": [r.id for r in outcome.results],
            "processedItems": [
                {k: v for k, v in _item_summary(r).items() if k in ("queueId", "youthId", "youthName", "responseId")}
                for r in outcome.committed
            ],
        }
        log_id = self._audit.record(
            actor,
            bulk_action,
            constants.AUDIT_RESOURCE_VALIDATION,
            None,
            details,
            resource_name=f"Validation Queue - {bulk_action} ({outcome.success_count} {noun})",
            category=constants.AUDIT_CATEGORY_SURVEY_VALIDATION,
        )
        if log_id is None:
            raise FanOutFailure(CHANNEL_AUDIT, "audit entry was not written")

    def _broadcast_bulk(self, outcome: BulkAdjudicationResult, actor: Actor) -> None:
        if self._broadcaster is None:
            return
        payload = {
            "type": outcome.action.target_status.value,
            "total": outcome.total,
            "success": outcome.success_count,
            "failed": outcome.failure_count,
            "items": [_item_summary(r) for r in outcome.committed[: constants.BULK_EVENT_ITEM_LIMIT]],
            "by": actor.user_id,
            "at": to_iso(self._clock()),
        }
        self._emit(constants.EVENT_QUEUE_UPDATED, payload, None)
        self._emit(constants.EVENT_RESPONSES_UPDATED, payload, None)

    # =========================================================================
    # Shared
    # =========================================================================

    def _emit(self, event: str, payload: dict[str, Any], barangay_id: str | None) -> None:
        if self._broadcaster is None:
            return
        self._broadcaster.emit_to_admins(event, payload)
        self._broadcaster.emit_to_role(constants.ROLE_STAFF, event, payload)
        if barangay_id:
            self._broadcaster.emit_to_room(f"{constants.BARANGAY_ROOM_PREFIX}{barangay_id}", event, payload)

    def _schedule_email(self, result: AdjudicationResult) -> None:
        if self._email is None or self._scheduler is None:
            return
        if not result.youth_email:
            logger.info(f"Youth {result.youth_id} has no email; skipping {result.status.value} notification")
            return

        template = (
            constants.TEMPLATE_SURVEY_VALIDATED
            if result.action is AdjudicationAction.APPROVE
            else constants.TEMPLATE_SURVEY_REJECTED
        )
        recipient = result.youth_email
        data = {
            "userName": result.youth_name or "Youth",
            "email": recipient,
            "batchName": result.batch_name or constants.DEFAULT_BATCH_NAME,
            "validationDate": to_iso(result.validated_at),
            "responseId": result.response_id,
            "youthId": result.youth_id,
            "submittedAt": to_iso(result.submitted_at),
            "frontendUrl": self._frontend_url or "",
        }
        sender = self._email

        def send() -> None:
            if not sender.send_templated(template, data, recipient):
                logger.warning(f"{template} email to {recipient} was not sent")

        self._scheduler.schedule(send, delay=self._email_delay, name=f"{template}:{result.response_id}")
        logger.debug(f"Scheduled {template} email for response {result.response_id}")

    def _isolated(self, channel: str, context: str, effect: Callable[[], None]) -> None:
        try:
            effect()
        except FanOutFailure as failure:
            logger.error(f"Fan-out {failure.channel} failed for {context}: {failure.message}")
        except Exception as e:
            failure = FanOutFailure(channel, str(e))
            logger.error(f"Fan-out {failure.channel} failed for {context}: {failure.message}", exc_info=True)
