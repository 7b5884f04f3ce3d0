"""Core domain models for survey response validation.

These models represent the business concepts of the validation queue and
are independent of the storage layer and the HTTP surface."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .errors import InvalidInput


class ValidationStatus(Enum):
    """Lifecycle status of a survey response.

    PENDING is the only non-terminal state. A VALIDATED response can only
    leave that state through an explicit supersede.
    """

    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"


class AdjudicationAction(Enum):
    """Decision an adjudicator can take on a queued response"""

    APPROVE = "approve"
    REJECT = "reject"

    @property
    def target_status(self) -> ValidationStatus:
        """Status written onto the adjudicated response."""
        return ValidationStatus.VALIDATED if self is AdjudicationAction.APPROVE else ValidationStatus.REJECTED

    @property
    def past_tense(self) -> str:
        return "approved" if self is AdjudicationAction.APPROVE else "rejected"

    @classmethod
    def parse(cls, value: str | AdjudicationAction | None) -> AdjudicationAction:
        """Parse a raw action value, raising InvalidInput for anything else."""
        if isinstance(value, AdjudicationAction):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidInput('Invalid action. Must be "approve" or "reject"') from None


class ConflictType(Enum):
    """Kind of contact discrepancy recorded by pre-screening"""

    MISMATCH = "mismatch"
    CONFLICT = "conflict"


class ConflictSeverity(Enum):
    """Severity attached to a contact discrepancy.

    LOW is part of the stored vocabulary but pre-screening never emits it;
    the parser only produces MEDIUM or HIGH.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UserType(Enum):
    """Populations that can act on the validation queue"""

    ADMIN = "admin"
    LYDO_STAFF = "lydo_staff"
    SK_OFFICIAL = "sk_official"


@dataclass(frozen=True)
class ContactInfo:
    """A contact number / email pair as written in conflict notes"""

    contact: str | None = None
    email: str | None = None

    @property
    def has_any(self) -> bool:
        return bool(self.contact) or bool(self.email)

    def to_dict(self) -> dict[str, str | None]:
        return {"contact": self.contact, "email": self.email}


@dataclass(frozen=True)
class NoConflict:
    """Notes carry no conflict markers; no special handling is needed."""

    @property
    def is_conflict(self) -> bool:
        return False


@dataclass(frozen=True)
class ContactDiscrepancy:
    """Shared shape of the Mismatch and Conflict variants."""

    existing: ContactInfo
    new: ContactInfo
    severity: ConflictSeverity = ConflictSeverity.MEDIUM
    has_cross_profile_conflict: bool = False

    @property
    def is_conflict(self) -> bool:
        return True

    @property
    def conflict_type(self) -> ConflictType:
        raise NotImplementedError

    @property
    def has_new_contact(self) -> bool:
        """True when the notes carry a corrected contact number or email."""
        return self.new.has_any

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the descriptor shape exposed to the review UI."""
        return {
            "type": self.conflict_type.value,
            "existing": self.existing.to_dict(),
            "new": self.new.to_dict(),
            "severity": self.severity.value,
            "hasCrossProfileConflict": self.has_cross_profile_conflict,
        }


@dataclass(frozen=True)
class Mismatch(ContactDiscrepancy):
    """The submission's contact details differ from the profile on file."""

    @property
    def conflict_type(self) -> ConflictType:
        return ConflictType.MISMATCH


@dataclass(frozen=True)
class Conflict(ContactDiscrepancy):
    """The submission's contact details collide with recorded data."""

    @property
    def conflict_type(self) -> ConflictType:
        return ConflictType.CONFLICT


ConflictDescriptor = Mismatch | Conflict
ParsedNotes = NoConflict | Mismatch | Conflict


@dataclass(frozen=True)
class ConflictingProfile:
    """Profile that already owns the contact details a submission used"""

    name: str | None
    youth_id: str | None


@dataclass(frozen=True)
class DuplicateMatch:
    """Newest competing response for the same youth and batch"""

    response_id: str
    status: ValidationStatus

    @property
    def is_validated(self) -> bool:
        return self.status is ValidationStatus.VALIDATED


@dataclass(frozen=True)
class Actor:
    """Identity of whoever is adjudicating.

    user_id is the staff (LYDO) or SK-official identifier written into
    validated_by; the canonical Users id is resolved separately.
    """

    user_id: str
    user_type: UserType = UserType.ADMIN
    display_name: str | None = None

    @property
    def audit_user_id(self) -> str:
        return self.user_id or "SYSTEM"


@dataclass
class AdjudicationResult:
    """Committed outcome of a single adjudication"""

    queue_id: str
    response_id: str
    youth_id: str | None
    action: AdjudicationAction
    status: ValidationStatus
    previous_status: ValidationStatus
    validated_by: str
    validated_at: datetime
    comments: str | None = None
    youth_name: str | None = None
    youth_email: str | None = None
    barangay_id: str | None = None
    batch_id: str | None = None
    batch_name: str | None = None
    submitted_at: datetime | None = None
    replaced_response_id: str | None = None
    deleted_response_id: str | None = None
    contact_updated: bool = False
    profile_updated: bool = False
    conflict: dict[str, Any] | None = None


@dataclass
class BulkItemResult:
    """Outcome of one queue id inside a bulk adjudication"""

    id: str
    success: bool
    message: str | None = None
    result: AdjudicationResult | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "success": self.success}
        if self.message:
            data["message"] = self.message
        return data


@dataclass
class BulkAdjudicationResult:
    """Aggregate outcome of a bulk adjudication"""

    action: AdjudicationAction
    results: list[BulkItemResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def committed(self) -> list[AdjudicationResult]:
        return [r.result for r in self.results if r.success and r.result is not None]


def format_full_name(
    first_name: str | None,
    last_name: str | None,
    middle_name: str | None = None,
    suffix: str | None = None,
) -> str | None:
    """Join name parts with single spaces, skipping blanks. None when all are blank."""
    parts = [p.strip() for p in (first_name, middle_name, last_name, suffix) if p and p.strip()]
    return " ".join(parts) or None
