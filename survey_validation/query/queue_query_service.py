"""Queue query service - read path for the validation review screens.

Three views are served:
- queue-resident items (pending or validated responses still queued)
- dequeued rejected items (rejected responses with no queue entry)
- the union of both, when no specific status is requested

Both halves of the union share one column layout, so filters that apply
to both (search, barangay) are added to each half before combining, and
sorting and pagination run over the combined result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy import (
    ColumnElement,
    Integer,
    Select,
    String,
    and_,
    cast,
    exists,
    func,
    literal,
    null,
    or_,
    select,
    union_all,
)
from sqlalchemy.orm import Session, sessionmaker

from ..conflict import conflict_parser
from ..core.constants import RECENT_VALIDATIONS_LIMIT
from ..core.models import ValidationStatus
from ..data.repositories import ReferenceRepository, ValidatorInfo
from ..db.tables import (
    Barangay,
    SKOfficial,
    Staff,
    SurveyBatch,
    SurveyResponse,
    ValidationQueueEntry,
    YouthProfile,
)
from ..logging_config import TRACE
from ..shared.date_utils import local_day_bounds, utc_now
from .models import (
    DEFAULT_SORT_KEY,
    Pagination,
    QueueFilters,
    QueueItem,
    QueuePage,
    QueueSort,
    QueueStats,
    QueueView,
    RecentValidation,
)

logger = logging.getLogger(__name__)

UNKNOWN_BARANGAY = "Unknown"
SYSTEM_VALIDATOR = "System"

# Sort key -> column of the combined row layout
_SORT_COLUMNS = {
    "submitted_at": "submitted_at",
    "first_name": "first_name",
    "last_name": "last_name",
    "age": "age",
    "barangay": "barangay_id",
    "validated_by": "validator_name",
    "validation_score": "validation_score",
}


def _profile_columns() -> list[Any]:
    return [
        YouthProfile.first_name.label("first_name"),
        YouthProfile.last_name.label("last_name"),
        YouthProfile.middle_name.label("middle_name"),
        YouthProfile.suffix.label("suffix"),
        YouthProfile.age.label("age"),
        YouthProfile.gender.label("gender"),
        YouthProfile.birth_date.label("birth_date"),
        YouthProfile.contact_number.label("contact_number"),
        YouthProfile.email.label("email"),
        YouthProfile.barangay_id.label("barangay_id"),
        Barangay.barangay_name.label("barangay_name"),
    ]


def _display_name(first_name: Any, last_name: Any) -> ColumnElement[Any]:
    full = func.trim(func.coalesce(first_name, "") + literal(" ") + func.coalesce(last_name, ""))
    return func.nullif(full, "")


def _validator_name() -> ColumnElement[Any]:
    """Staff or SK-official display name, falling back to the raw validator id."""
    return func.coalesce(
        _display_name(Staff.first_name, Staff.last_name),
        _display_name(SKOfficial.first_name, SKOfficial.last_name),
        SurveyResponse.validated_by,
    )


def _response_columns() -> list[Any]:
    return [
        SurveyResponse.batch_id.label("batch_id"),
        SurveyBatch.batch_name.label("batch_name"),
        SurveyResponse.validation_status.label("validation_status"),
        SurveyResponse.validated_by.label("validated_by"),
        _validator_name().label("validator_name"),
        SurveyResponse.validation_date.label("validation_date"),
        SurveyResponse.validation_comments.label("validation_comments"),
    ]


def _search_clause(search: str) -> ColumnElement[bool]:
    term = search.strip()
    return or_(
        YouthProfile.first_name.icontains(term, autoescape=True),
        YouthProfile.last_name.icontains(term, autoescape=True),
        YouthProfile.middle_name.icontains(term, autoescape=True),
        YouthProfile.barangay_id.icontains(term, autoescape=True),
        SurveyResponse.validated_by.icontains(term, autoescape=True),
        SurveyBatch.batch_name.icontains(term, autoescape=True),
    )


def _shared_filters(stmt: Select[Any], filters: QueueFilters) -> Select[Any]:
    """Filters applied identically to both halves of the union."""
    if filters.search and filters.search.strip():
        stmt = stmt.where(_search_clause(filters.search))
    if filters.barangay:
        stmt = stmt.where(YouthProfile.barangay_id == filters.barangay)
    return stmt


def queued_items_select(filters: QueueFilters, *, apply_status: bool) -> Select[Any]:
    """Queue-resident items with their response, profile and batch."""
    stmt = (
        select(
            ValidationQueueEntry.queue_id.label("queue_id"),
            SurveyResponse.response_id.label("response_id"),
            SurveyResponse.youth_id.label("youth_id"),
            ValidationQueueEntry.voter_match_type.label("voter_match_type"),
            ValidationQueueEntry.validation_score.label("validation_score"),
            ValidationQueueEntry.created_at.label("submitted_at"),
            *_profile_columns(),
            *_response_columns(),
        )
        .select_from(ValidationQueueEntry)
        .join(SurveyResponse, SurveyResponse.response_id == ValidationQueueEntry.response_id)
        .outerjoin(YouthProfile, YouthProfile.youth_id == SurveyResponse.youth_id)
        .outerjoin(Barangay, Barangay.barangay_id == YouthProfile.barangay_id)
        .outerjoin(SurveyBatch, SurveyBatch.batch_id == SurveyResponse.batch_id)
        .outerjoin(Staff, Staff.lydo_id == SurveyResponse.validated_by)
        .outerjoin(SKOfficial, SKOfficial.sk_id == SurveyResponse.validated_by)
    )
    stmt = _shared_filters(stmt, filters)

    if apply_status and filters.normalized_status:
        stmt = stmt.where(SurveyResponse.validation_status == filters.normalized_status)
    if filters.voter_match:
        stmt = stmt.where(ValidationQueueEntry.voter_match_type == filters.voter_match)
    if filters.score_min is not None:
        stmt = stmt.where(ValidationQueueEntry.validation_score >= filters.score_min)
    if filters.score_max is not None:
        stmt = stmt.where(ValidationQueueEntry.validation_score <= filters.score_max)
    return stmt


def _not_queued() -> ColumnElement[bool]:
    return ~exists().where(ValidationQueueEntry.response_id == SurveyResponse.response_id)


def rejected_items_select(filters: QueueFilters) -> Select[Any]:
    """Rejected responses that no longer have a queue entry.

    Voter match and score lived on the queue entry, so they are null here.
    """
    stmt = (
        select(
            cast(null(), String).label("queue_id"),
            SurveyResponse.response_id.label("response_id"),
            SurveyResponse.youth_id.label("youth_id"),
            cast(null(), String).label("voter_match_type"),
            cast(null(), Integer).label("validation_score"),
            SurveyResponse.created_at.label("submitted_at"),
            *_profile_columns(),
            *_response_columns(),
        )
        .select_from(SurveyResponse)
        .outerjoin(YouthProfile, YouthProfile.youth_id == SurveyResponse.youth_id)
        .outerjoin(Barangay, Barangay.barangay_id == YouthProfile.barangay_id)
        .outerjoin(SurveyBatch, SurveyBatch.batch_id == SurveyResponse.batch_id)
        .outerjoin(Staff, Staff.lydo_id == SurveyResponse.validated_by)
        .outerjoin(SKOfficial, SKOfficial.sk_id == SurveyResponse.validated_by)
        .where(
            SurveyResponse.validation_status == ValidationStatus.REJECTED.value,
            _not_queued(),
        )
    )
    return _shared_filters(stmt, filters)


class QueueQueryService:
    """Read-only listing and statistics over the validation queue"""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        timezone: str = "Asia/Manila",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._timezone = timezone
        self._clock = clock

    # =========================================================================
    # Listing
    # =========================================================================

    def list(
        self,
        filters: QueueFilters | None = None,
        sort: QueueSort | None = None,
        pagination: Pagination | None = None,
    ) -> QueuePage:
        """Filtered, sorted, paginated page of one view, plus its total count."""
        filters = filters or QueueFilters()
        sort = sort or QueueSort()
        pagination = pagination or Pagination()
        view = filters.view

        if view is QueueView.QUEUE:
            combined = queued_items_select(filters, apply_status=True).subquery("queue_items")
        elif view is QueueView.REJECTED:
            combined = rejected_items_select(filters).subquery("rejected_items")
        else:
            combined = union_all(
                queued_items_select(filters, apply_status=False),
                rejected_items_select(filters),
            ).subquery("all_items")

        sort_column = combined.c[self._sort_column_name(view, sort)]
        tie_breaker = combined.c.response_id
        order = (
            (sort_column.asc(), tie_breaker.asc()) if sort.ascending else (sort_column.desc(), tie_breaker.desc())
        )
        page_stmt = select(combined).order_by(*order).limit(pagination.limit).offset(pagination.offset)
        count_stmt = select(func.count()).select_from(combined)

        logger.log(TRACE, f"Queue listing view={view.value} filters={filters} sort={sort} page={pagination}")

        with self._session_factory() as session:
            rows = session.execute(page_stmt).mappings().all()
            total = session.execute(count_stmt).scalar_one()
            items = self._to_items(session, rows)

        logger.debug(f"Found {len(items)} validation items ({total} total) in view {view.value}")
        return QueuePage(items=items, total_count=total, pagination=pagination)

    def completed_today(self, search: str | None = None, pagination: Pagination | None = None) -> QueuePage:
        """Responses validated during the current local day, newest first."""
        pagination = pagination or Pagination()
        start, end = local_day_bounds(self._timezone, self._clock())

        stmt = (
            select(
                cast(null(), String).label("queue_id"),
                SurveyResponse.response_id.label("response_id"),
                SurveyResponse.youth_id.label("youth_id"),
                cast(null(), String).label("voter_match_type"),
                cast(null(), Integer).label("validation_score"),
                SurveyResponse.validation_date.label("submitted_at"),
                *_profile_columns(),
                *_response_columns(),
            )
            .select_from(SurveyResponse)
            .outerjoin(YouthProfile, YouthProfile.youth_id == SurveyResponse.youth_id)
            .outerjoin(Barangay, Barangay.barangay_id == YouthProfile.barangay_id)
            .outerjoin(SurveyBatch, SurveyBatch.batch_id == SurveyResponse.batch_id)
            .outerjoin(Staff, Staff.lydo_id == SurveyResponse.validated_by)
            .outerjoin(SKOfficial, SKOfficial.sk_id == SurveyResponse.validated_by)
            .where(self._validated_between(start, end))
        )
        if search and search.strip():
            stmt = stmt.where(_search_clause(search))

        completed = stmt.subquery("completed_today")
        page_stmt = (
            select(completed)
            .order_by(completed.c.validation_date.desc(), completed.c.response_id.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        count_stmt = select(func.count()).select_from(completed)

        with self._session_factory() as session:
            rows = session.execute(page_stmt).mappings().all()
            total = session.execute(count_stmt).scalar_one()
            items = self._to_items(session, rows)

        return QueuePage(items=items, total_count=total, pagination=pagination)

    # =========================================================================
    # Statistics
    # =========================================================================

    def queue_size(self) -> int:
        """Number of entries currently in the validation queue."""
        with self._session_factory() as session:
            return session.execute(select(func.count()).select_from(ValidationQueueEntry)).scalar_one()

    def stats(self) -> QueueStats:
        """Dashboard counters, pending-by-barangay and recent decisions."""
        start, end = local_day_bounds(self._timezone, self._clock())

        queue_size_stmt = select(func.count()).select_from(ValidationQueueEntry)
        pending_stmt = (
            select(func.count())
            .select_from(ValidationQueueEntry)
            .join(SurveyResponse, SurveyResponse.response_id == ValidationQueueEntry.response_id)
            .where(SurveyResponse.validation_status == ValidationStatus.PENDING.value)
        )
        completed_stmt = select(func.count()).select_from(SurveyResponse).where(self._validated_between(start, end))
        rejected_stmt = (
            select(func.count())
            .select_from(SurveyResponse)
            .where(SurveyResponse.validation_status == ValidationStatus.REJECTED.value, _not_queued())
        )

        barangay_label = func.coalesce(Barangay.barangay_name, YouthProfile.barangay_id, literal(UNKNOWN_BARANGAY))
        pending_count = func.count().label("count")
        by_barangay_stmt = (
            select(barangay_label.label("barangay_name"), pending_count)
            .select_from(ValidationQueueEntry)
            .join(SurveyResponse, SurveyResponse.response_id == ValidationQueueEntry.response_id)
            .outerjoin(YouthProfile, YouthProfile.youth_id == SurveyResponse.youth_id)
            .outerjoin(Barangay, Barangay.barangay_id == YouthProfile.barangay_id)
            .where(SurveyResponse.validation_status == ValidationStatus.PENDING.value)
            .group_by(barangay_label)
            .order_by(pending_count.desc(), barangay_label)
        )

        recent_stmt = (
            select(
                YouthProfile.first_name,
                YouthProfile.last_name,
                Barangay.barangay_name,
                SurveyResponse.validated_by,
                SurveyResponse.validation_status,
                SurveyResponse.validation_date,
            )
            .select_from(SurveyResponse)
            .outerjoin(YouthProfile, YouthProfile.youth_id == SurveyResponse.youth_id)
            .outerjoin(Barangay, Barangay.barangay_id == YouthProfile.barangay_id)
            .where(
                SurveyResponse.validation_status.in_(
                    [ValidationStatus.VALIDATED.value, ValidationStatus.REJECTED.value]
                ),
                SurveyResponse.validation_date.is_not(None),
            )
            .order_by(SurveyResponse.validation_date.desc())
            .limit(RECENT_VALIDATIONS_LIMIT)
        )

        with self._session_factory() as session:
            queue_size = session.execute(queue_size_stmt).scalar_one()
            pending = session.execute(pending_stmt).scalar_one()
            completed = session.execute(completed_stmt).scalar_one()
            rejected = session.execute(rejected_stmt).scalar_one()
            by_barangay = {name: count for name, count in session.execute(by_barangay_stmt)}

            reference = ReferenceRepository(session)
            recent = [
                RecentValidation(
                    first_name=row.first_name,
                    last_name=row.last_name,
                    barangay=row.barangay_name,
                    validated_by=reference.describe_validator(row.validated_by).name or SYSTEM_VALIDATOR,
                    status=row.validation_status,
                    validated_at=row.validation_date,
                )
                for row in session.execute(recent_stmt)
            ]

        return QueueStats(
            total=queue_size + rejected + completed,
            pending=pending,
            completed_today=completed,
            rejected=rejected,
            by_barangay=by_barangay,
            recent_validations=recent,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _sort_column_name(view: QueueView, sort: QueueSort) -> str:
        key = sort.key
        if view is QueueView.REJECTED:
            if key in (None, "validation_score"):
                # Dequeued items have no score; order by decision date instead
                return "validation_date"
            if key == "validated_by":
                return "validated_by"
        return _SORT_COLUMNS[key or DEFAULT_SORT_KEY]

    @staticmethod
    def _validated_between(start: datetime, end: datetime) -> ColumnElement[bool]:
        return and_(
            SurveyResponse.validation_status == ValidationStatus.VALIDATED.value,
            SurveyResponse.validation_date >= start,
            SurveyResponse.validation_date < end,
        )

    @staticmethod
    def _to_items(session: Session, rows: Any) -> list[QueueItem]:
        reference = ReferenceRepository(session)
        validators: dict[str, ValidatorInfo] = {}

        items = []
        for row in rows:
            validated_by = row["validated_by"]
            if validated_by and validated_by not in validators:
                validators[validated_by] = reference.describe_validator(validated_by)
            validator = validators.get(validated_by) if validated_by else None

            notes = row["validation_comments"]
            descriptor = conflict_parser.parse(notes)
            conflicting = conflict_parser.parse_conflicting_profile(notes)

            items.append(
                QueueItem(
                    id=row["queue_id"] or row["response_id"],
                    response_id=row["response_id"],
                    queue_id=row["queue_id"],
                    youth_id=row["youth_id"],
                    first_name=row["first_name"],
                    last_name=row["last_name"],
                    middle_name=row["middle_name"],
                    suffix=row["suffix"],
                    age=row["age"],
                    gender=row["gender"],
                    birth_date=row["birth_date"],
                    contact_number=row["contact_number"],
                    email=row["email"],
                    barangay=row["barangay_name"],
                    barangay_id=row["barangay_id"],
                    batch_id=row["batch_id"],
                    batch_name=row["batch_name"],
                    voter_match=row["voter_match_type"],
                    validation_score=row["validation_score"],
                    status=row["validation_status"],
                    validated_by=validator.name if validator else None,
                    validated_by_user_id=validated_by,
                    validator_role=validator.role if validator else None,
                    validator_position=validator.sk_position if validator else None,
                    validator_barangay=validator.sk_barangay if validator else None,
                    validated_at=row["validation_date"],
                    submitted_at=row["submitted_at"],
                    comments=notes,
                    conflict=descriptor.to_dict() if descriptor else None,
                    conflicting_profile=(
                        {"name": conflicting.name, "youthId": conflicting.youth_id} if conflicting else None
                    ),
                )
            )
        return items
