"""Bulk adjudication.

Applies the transaction coordinator to each selected queue id in turn.
Every item commits or rolls back on its own; a failing item is recorded
and the loop moves on.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..core.constants import GENERIC_INTERNAL_ERROR
from ..core.errors import InvalidInput, NotFound, SurveyValidationError
from ..core.models import (
    Actor,
    AdjudicationAction,
    BulkAdjudicationResult,
    BulkItemResult,
)
from .transaction_coordinator import ValidationTransactionCoordinator

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Not found"


class BulkCoordinator:
    """Sequential, per-item-isolated adjudication of many queue entries"""

    def __init__(self, coordinator: ValidationTransactionCoordinator) -> None:
        self._coordinator = coordinator

    def execute(
        self,
        queue_ids: Sequence[str] | None,
        action: AdjudicationAction | str,
        comments: str | None,
        actor: Actor,
    ) -> BulkAdjudicationResult:
        """Adjudicate every queue id with the same action and comments.

        Raises:
            InvalidInput: empty selection or bad action, before any item is touched
        """
        if not queue_ids:
            raise InvalidInput("No items selected for validation")
        parsed_action = AdjudicationAction.parse(action)

        outcome = BulkAdjudicationResult(action=parsed_action)
        for queue_id in queue_ids:
            outcome.results.append(self._run_item(queue_id, parsed_action, comments, actor))

        logger.info(
            f"Bulk validation completed: {outcome.success_count} {parsed_action.past_tense}, "
            f"{outcome.failure_count} failed"
        )
        return outcome

    def _run_item(
        self,
        queue_id: str,
        action: AdjudicationAction,
        comments: str | None,
        actor: Actor,
    ) -> BulkItemResult:
        try:
            result = self._coordinator.execute(queue_id, action, comments, actor, update_contact_info=False)
        except NotFound:
            return BulkItemResult(id=queue_id, success=False, message=NOT_FOUND_MESSAGE)
        except SurveyValidationError as e:
            logger.warning(f"Bulk item {queue_id} failed: {e.message}")
            return BulkItemResult(id=queue_id, success=False, message=e.message)
        except Exception as e:
            logger.error(f"Bulk item {queue_id} failed unexpectedly: {e}", exc_info=True)
            return BulkItemResult(id=queue_id, success=False, message=GENERIC_INTERNAL_ERROR)
        return BulkItemResult(id=queue_id, success=True, result=result)
