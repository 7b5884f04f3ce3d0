"""Queue Repository - Data access for validation queue entries

Loads a queue entry together with everything an adjudication needs and
removes entries once their response reaches a terminal state."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ...db.tables import SurveyBatch, SurveyResponse, ValidationQueueEntry, YouthProfile

logger = logging.getLogger(__name__)


@dataclass
class QueueContext:
    """A queue entry joined with its response, profile and batch"""

    entry: ValidationQueueEntry
    response: SurveyResponse
    profile: YouthProfile | None
    batch: SurveyBatch | None


class QueueRepository:
    """Repository for validation queue entries"""

    def __init__(self, session: Session) -> None:
        self.session = session

    def load_for_adjudication(self, queue_id: str) -> QueueContext | None:
        """Load and row-lock a queue entry with its response, profile and batch.

        The lock is a no-op on SQLite, where the write transaction already
        holds the database lock.

        Returns:
            QueueContext, or None if the queue entry does not exist
        """
        stmt = (
            select(ValidationQueueEntry, SurveyResponse, YouthProfile, SurveyBatch)
            .join(SurveyResponse, SurveyResponse.response_id == ValidationQueueEntry.response_id)
            .outerjoin(YouthProfile, YouthProfile.youth_id == SurveyResponse.youth_id)
            .outerjoin(SurveyBatch, SurveyBatch.batch_id == SurveyResponse.batch_id)
            .where(ValidationQueueEntry.queue_id == queue_id)
            .with_for_update(of=ValidationQueueEntry)
        )
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        entry, response, profile, batch = row
        return QueueContext(entry=entry, response=response, profile=profile, batch=batch)

    def delete_entry(self, queue_id: str) -> int:
        """Delete one queue entry, returning the number of rows removed."""
        result = self.session.execute(
            delete(ValidationQueueEntry)
            .where(ValidationQueueEntry.queue_id == queue_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def delete_for_response(self, response_id: str) -> int:
        """Delete every queue entry referencing a response."""
        result = self.session.execute(
            delete(ValidationQueueEntry)
            .where(ValidationQueueEntry.response_id == response_id)
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount or 0
        if removed:
            logger.debug(f"Removed {removed} queue entries for response {response_id}")
        return removed
