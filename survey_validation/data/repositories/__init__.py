"""Data repositories for the validation engine.

Every repository is constructed over an explicit SQLAlchemy Session and
never commits; the caller owns the transaction."""

from __future__ import annotations

from .profile_repository import ProfileRepository
from .queue_repository import QueueContext, QueueRepository
from .reference_repository import ReferenceRepository, ValidatorInfo
from .response_repository import ResponseRepository, build_supersede_note

__all__ = [
    "ProfileRepository",
    "QueueContext",
    "QueueRepository",
    "ReferenceRepository",
    "ResponseRepository",
    "ValidatorInfo",
    "build_supersede_note",
]
