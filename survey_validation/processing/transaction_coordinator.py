"""Validation transaction coordinator.

Moves one queued survey response to a terminal state inside a single unit
of work:

1. Load the queue entry (row-locked) with its response, profile and batch
2. Parse the response notes for a contact discrepancy
3. On approval of a same-person resubmission, reconcile the newest
   competing response (supersede a validated one, replace anything else)
4. Write the new status onto the adjudicated response
5. On approval, apply corrected contact details and validate the profile
6. Delete the queue entry
7. Commit

Any failure before commit rolls everything back. Side effects that follow
a commit (audit, real-time, email) are not this module's concern.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.orm import Session, sessionmaker

from ..conflict import conflict_parser
from ..core.constants import GENERIC_INTERNAL_ERROR
from ..core.errors import InvalidInput, NotFound, SurveyValidationError, TransactionFailure
from ..core.interfaces import IdentityResolver
from ..core.models import (
    Actor,
    AdjudicationAction,
    AdjudicationResult,
    ConflictDescriptor,
    ValidationStatus,
    format_full_name,
)
from ..data.repositories import (
    ProfileRepository,
    QueueContext,
    QueueRepository,
    ResponseRepository,
)
from ..shared.date_utils import utc_now
from .duplicate_resolver import DuplicateResolver

logger = logging.getLogger(__name__)


class ConcurrentAdjudication(Exception):
    """The queue entry vanished between load and delete."""


class ValidationTransactionCoordinator:
    """Atomic approve/reject of a single validation queue entry"""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        identity_resolver: IdentityResolver | None = None,
        duplicate_resolver: DuplicateResolver | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Args:
            session_factory: Produces one session per adjudication
            identity_resolver: Maps the validator to a canonical user id;
                without one the validator id is written as-is
            duplicate_resolver: Finds competing responses
            clock: Source of naive-UTC timestamps
        """
        self._session_factory = session_factory
        self._identity_resolver = identity_resolver
        self._duplicates = duplicate_resolver or DuplicateResolver()
        self._clock = clock

    def execute(
        self,
        queue_id: str,
        action: AdjudicationAction | str,
        comments: str | None,
        actor: Actor,
        update_contact_info: bool = False,
    ) -> AdjudicationResult:
        """Approve or reject one queue entry.

        Raises:
            InvalidInput: bad action or missing queue id; nothing was done
            NotFound: the queue entry does not exist
            TransactionFailure: the transaction failed and was rolled back
        """
        parsed_action = AdjudicationAction.parse(action)
        if not queue_id:
            raise InvalidInput("Queue item id is required")

        session = self._session_factory()
        try:
            with session.begin():
                result = self._adjudicate(session, queue_id, parsed_action, comments, actor, update_contact_info)
        except SurveyValidationError:
            raise
        except ConcurrentAdjudication as e:
            logger.warning(f"Queue item {queue_id} was adjudicated concurrently: {e}")
            raise TransactionFailure(GENERIC_INTERNAL_ERROR, {"queue_id": queue_id}) from e
        except Exception as e:
            logger.error(f"Adjudication of queue item {queue_id} rolled back: {e}", exc_info=True)
            raise TransactionFailure(GENERIC_INTERNAL_ERROR, {"queue_id": queue_id}) from e
        finally:
            session.close()

        logger.info(
            f"Validation {parsed_action.past_tense}: queue {queue_id} response {result.response_id} by {actor.user_id}"
        )
        return result

    def _adjudicate(
        self,
        session: Session,
        queue_id: str,
        action: AdjudicationAction,
        comments: str | None,
        actor: Actor,
        update_contact_info: bool,
    ) -> AdjudicationResult:
        queues = QueueRepository(session)
        responses = ResponseRepository(session)

        ctx = queues.load_for_adjudication(queue_id)
        if ctx is None:
            raise NotFound("Validation queue item not found", {"queue_id": queue_id})

        response = ctx.response
        response_id = response.response_id
        youth_id = response.youth_id
        batch_id = response.batch_id
        previous_status = ValidationStatus(response.validation_status)
        submitted_at = response.created_at
        now = self._clock()

        descriptor = conflict_parser.parse(response.validation_comments)
        same_person = update_contact_info and descriptor is not None and descriptor.has_new_contact

        result = AdjudicationResult(
            queue_id=queue_id,
            response_id=response_id,
            youth_id=youth_id,
            action=action,
            status=action.target_status,
            previous_status=previous_status,
            validated_by=actor.user_id,
            validated_at=now,
            comments=comments,
            batch_id=batch_id,
            batch_name=ctx.batch.batch_name if ctx.batch else None,
            submitted_at=submitted_at,
            conflict=descriptor.to_dict() if descriptor else None,
        )
        self._describe_youth(ctx, result)

        if action is AdjudicationAction.APPROVE and same_person and batch_id:
            self._reconcile_duplicate(session, result, batch_id, youth_id, actor, now)

        responses.set_status(response_id, action.target_status, actor.user_id, now, comments)

        if action is AdjudicationAction.APPROVE:
            self._update_profile(session, result, actor, descriptor if same_person else None, now)

        if queues.delete_entry(queue_id) == 0:
            raise ConcurrentAdjudication(f"queue entry {queue_id} already removed")

        return result

    def _describe_youth(self, ctx: QueueContext, result: AdjudicationResult) -> None:
        profile = ctx.profile
        if profile is None:
            return
        result.youth_name = format_full_name(
            profile.first_name, profile.last_name, profile.middle_name, profile.suffix
        )
        result.youth_email = profile.email
        result.barangay_id = profile.barangay_id

    def _reconcile_duplicate(
        self,
        session: Session,
        result: AdjudicationResult,
        batch_id: str,
        youth_id: str,
        actor: Actor,
        now: datetime,
    ) -> None:
        match = self._duplicates.resolve(session, batch_id, youth_id, result.response_id)
        if match is None:
            return

        if match.is_validated:
            ResponseRepository(session).supersede(match.response_id, result.response_id, actor.user_id, now)
            result.replaced_response_id = match.response_id
            logger.info(f"Superseded validated response {match.response_id} with {result.response_id}")
        else:
            QueueRepository(session).delete_for_response(match.response_id)
            ResponseRepository(session).delete(match.response_id)
            result.deleted_response_id = match.response_id
            logger.info(f"Deleted {match.status.value} duplicate response {match.response_id} for {result.response_id}")

    def _update_profile(
        self,
        session: Session,
        result: AdjudicationResult,
        actor: Actor,
        descriptor: ConflictDescriptor | None,
        now: datetime,
    ) -> None:
        if not result.youth_id:
            return
        profiles = ProfileRepository(session)

        validator_user_id = None
        if self._identity_resolver is not None:
            validator_user_id = self._identity_resolver.resolve_user_id(session, actor)

        if descriptor is not None:
            result.contact_updated = profiles.apply_contact(result.youth_id, descriptor.new, now)
            if result.contact_updated and descriptor.new.email:
                result.youth_email = descriptor.new.email

        result.profile_updated = profiles.mark_validated(result.youth_id, validator_user_id or actor.user_id, now)
        if not result.profile_updated:
            logger.debug(f"Profile {result.youth_id} already validated; validator left unchanged")
