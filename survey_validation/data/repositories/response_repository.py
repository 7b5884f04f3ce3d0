"""Response Repository - Data access for survey responses

All writes are issued as explicit UPDATE/DELETE statements so they reach
the database in call order. The one-validated-per-batch index depends on
a superseded row being demoted before its replacement is promoted."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ...core.constants import SUPERSEDE_NOTE_PREFIX
from ...core.models import DuplicateMatch, ValidationStatus
from ...db.tables import SurveyResponse

logger = logging.getLogger(__name__)


def build_supersede_note(new_response_id: str, validator_id: str, at: datetime) -> str:
    """Note appended to a validated response that lost to a newer submission."""
    return (
        f"{SUPERSEDE_NOTE_PREFIX} Replaced by response {new_response_id} "
        f"(approved by {validator_id} on {at.isoformat(timespec='seconds')}Z)"
    )


class ResponseRepository:
    """Repository for survey responses"""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, response_id: str) -> SurveyResponse | None:
        return self.session.get(SurveyResponse, response_id)

    def find_competing(self, youth_id: str, batch_id: str, excluding_response_id: str) -> list[DuplicateMatch]:
        """All other responses for the same youth and batch, newest first."""
        stmt = (
            select(SurveyResponse.response_id, SurveyResponse.validation_status)
            .where(
                SurveyResponse.youth_id == youth_id,
                SurveyResponse.batch_id == batch_id,
                SurveyResponse.response_id != excluding_response_id,
            )
            .order_by(SurveyResponse.created_at.desc(), SurveyResponse.response_id.desc())
        )
        return [
            DuplicateMatch(response_id=row.response_id, status=ValidationStatus(row.validation_status))
            for row in self.session.execute(stmt)
        ]

    def supersede(self, response_id: str, new_response_id: str, validator_id: str, at: datetime) -> int:
        """Demote a validated response to rejected and annotate who replaced it."""
        current = self.session.execute(
            select(SurveyResponse.validation_comments).where(SurveyResponse.response_id == response_id)
        ).scalar_one_or_none()
        note = build_supersede_note(new_response_id, validator_id, at)
        comments = f"{current}\n{note}" if current else note

        result = self.session.execute(
            update(SurveyResponse)
            .where(SurveyResponse.response_id == response_id)
            .values(
                validation_status=ValidationStatus.REJECTED.value,
                validation_comments=comments,
                superseded_by_response_id=new_response_id,
                updated_at=at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def delete(self, response_id: str) -> int:
        result = self.session.execute(
            delete(SurveyResponse)
            .where(SurveyResponse.response_id == response_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def set_status(
        self,
        response_id: str,
        status: ValidationStatus,
        validator_id: str,
        at: datetime,
        comments: str | None,
    ) -> int:
        """Write the adjudication outcome onto a response."""
        result = self.session.execute(
            update(SurveyResponse)
            .where(SurveyResponse.response_id == response_id)
            .values(
                validation_status=status.value,
                validated_by=validator_id,
                validation_date=at,
                validation_comments=comments,
                updated_at=at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
