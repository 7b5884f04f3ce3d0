"""Duplicate resolution for survey responses.

Finds the response competing with the one under adjudication: same youth,
same batch, newest first. Only that newest competitor is reconciled. Any
older rows are left as they are and reported in the log.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..core.models import DuplicateMatch
from ..data.repositories import ResponseRepository

logger = logging.getLogger(__name__)


class DuplicateResolver:
    """Classifies the newest competing submission for a youth and batch"""

    def resolve(
        self,
        session: Session,
        batch_id: str,
        youth_id: str,
        excluding_response_id: str,
    ) -> DuplicateMatch | None:
        """Return the newest other response for the same youth and batch.

        Args:
            session: Session of the enclosing adjudication transaction
            batch_id: Survey batch of the response under adjudication
            youth_id: Youth who submitted it
            excluding_response_id: The response under adjudication

        Returns:
            DuplicateMatch (validated means supersede, anything else means
            replace), or None when there is no competing response
        """
        competing = ResponseRepository(session).find_competing(youth_id, batch_id, excluding_response_id)
        if not competing:
            return None

        newest = competing[0]
        if len(competing) > 1:
            stale = [m.response_id for m in competing[1:]]
            logger.warning(
                f"Youth {youth_id} has {len(competing)} competing responses in batch {batch_id}; "
                f"reconciling {newest.response_id} only, leaving {stale}"
            )
        logger.debug(f"Duplicate for response {excluding_response_id}: {newest.response_id} ({newest.status.value})")
        return newest
