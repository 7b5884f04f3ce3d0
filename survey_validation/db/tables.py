"""SQLAlchemy ORM models for the survey validation schema."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..shared.date_utils import utc_now


class Base(DeclarativeBase):
    """Declarative base for every table owned by this service."""


# =============================================================================
# Reference data
# =============================================================================


class Barangay(Base):
    __tablename__ = "barangays"

    barangay_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    barangay_name: Mapped[str] = mapped_column(String(255), nullable=False)


class SurveyBatch(Base):
    __tablename__ = "survey_batches"

    batch_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    batch_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)


class Staff(Base):
    """LYDO staff member (office personnel and administrators)."""

    __tablename__ = "lydo_staff"

    lydo_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String(100))
    middle_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    suffix: Mapped[str | None] = mapped_column(String(20))
    role_name: Mapped[str | None] = mapped_column(String(50))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class SKOfficial(Base):
    """Sangguniang Kabataan official, scoped to one barangay."""

    __tablename__ = "sk_officials"

    sk_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String(100))
    middle_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    suffix: Mapped[str | None] = mapped_column(String(20))
    position: Mapped[str | None] = mapped_column(String(100))
    role_name: Mapped[str | None] = mapped_column(String(50))
    barangay_id: Mapped[str | None] = mapped_column(ForeignKey("barangays.barangay_id"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class User(Base):
    """Canonical identity mapping; one row per staff member or SK official."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)
    lydo_id: Mapped[str | None] = mapped_column(ForeignKey("lydo_staff.lydo_id"), unique=True)
    sk_id: Mapped[str | None] = mapped_column(ForeignKey("sk_officials.sk_id"), unique=True)
    youth_id: Mapped[str | None] = mapped_column(String(32))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)


# =============================================================================
# Survey data
# =============================================================================


class YouthProfile(Base):
    __tablename__ = "youth_profiles"

    youth_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String(100))
    middle_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    suffix: Mapped[str | None] = mapped_column(String(20))
    age: Mapped[int | None] = mapped_column(Integer)
    gender: Mapped[str | None] = mapped_column(String(20))
    birth_date: Mapped[date | None] = mapped_column(Date)
    contact_number: Mapped[str | None] = mapped_column(String(32))
    email: Mapped[str | None] = mapped_column(String(255))
    barangay_id: Mapped[str | None] = mapped_column(ForeignKey("barangays.barangay_id"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_anonymized: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    validation_status: Mapped[str | None] = mapped_column(String(20))
    validation_tier: Mapped[str | None] = mapped_column(String(20))
    validated_by: Mapped[str | None] = mapped_column(String(32))
    validation_date: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)


class SurveyResponse(Base):
    __tablename__ = "survey_responses"
    __table_args__ = (
        Index("idx_survey_responses_youth_batch", "youth_id", "batch_id", "created_at"),
        # At most one validated response per (youth, batch)
        Index(
            "uq_survey_responses_one_validated",
            "youth_id",
            "batch_id",
            unique=True,
            sqlite_where=text("validation_status = 'validated'"),
            postgresql_where=text("validation_status = 'validated'"),
        ),
    )

    response_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    youth_id: Mapped[str] = mapped_column(ForeignKey("youth_profiles.youth_id"), nullable=False)
    batch_id: Mapped[str | None] = mapped_column(ForeignKey("survey_batches.batch_id"))
    validation_status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    validated_by: Mapped[str | None] = mapped_column(String(32))
    validation_date: Mapped[datetime | None] = mapped_column(DateTime)
    validation_comments: Mapped[str | None] = mapped_column(Text)
    superseded_by_response_id: Mapped[str | None] = mapped_column(String(32))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)


class ValidationQueueEntry(Base):
    __tablename__ = "validation_queue"

    queue_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    response_id: Mapped[str] = mapped_column(
        ForeignKey("survey_responses.response_id", ondelete="CASCADE"), nullable=False, index=True
    )
    youth_id: Mapped[str | None] = mapped_column(String(32))
    voter_match_type: Mapped[str | None] = mapped_column(String(20))
    validation_score: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)


# =============================================================================
# Audit trail
# =============================================================================


class ActivityLog(Base):
    """Append-only audit entry."""

    __tablename__ = "activity_logs"

    log_id: Mapped[str] = mapped_column(String(40), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(32))
    user_type: Mapped[str | None] = mapped_column(String(20))
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    resource_type: Mapped[str | None] = mapped_column(String(64))
    resource_id: Mapped[str | None] = mapped_column(String(64))
    resource_name: Mapped[str | None] = mapped_column(String(255))
    details: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    category: Mapped[str | None] = mapped_column(String(64))
    success: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False, index=True)
