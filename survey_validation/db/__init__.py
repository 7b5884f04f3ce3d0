"""Persistence layer: ORM tables and engine management."""

from __future__ import annotations

from .engine import DatabaseConfig, DatabaseManager
from .tables import (
    ActivityLog,
    Barangay,
    Base,
    SKOfficial,
    Staff,
    SurveyBatch,
    SurveyResponse,
    User,
    ValidationQueueEntry,
    YouthProfile,
)

__all__ = [
    "ActivityLog",
    "Barangay",
    "Base",
    "DatabaseConfig",
    "DatabaseManager",
    "SKOfficial",
    "Staff",
    "SurveyBatch",
    "SurveyResponse",
    "User",
    "ValidationQueueEntry",
    "YouthProfile",
]
