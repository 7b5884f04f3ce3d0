"""Reference Repository - Read-only lookups for staff, SK officials and batches"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...core.models import format_full_name
from ...db.tables import Barangay, SKOfficial, Staff

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatorInfo:
    """Display data for whoever adjudicated a response"""

    validator_id: str | None
    name: str | None
    role: str | None = None
    sk_position: str | None = None
    sk_barangay: str | None = None


class ReferenceRepository:
    """Repository for reference data the validation queue only reads"""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_staff(self, lydo_id: str) -> Staff | None:
        return self.session.get(Staff, lydo_id)

    def get_sk_official(self, sk_id: str) -> SKOfficial | None:
        return self.session.get(SKOfficial, sk_id)

    def get_barangay_name(self, barangay_id: str | None) -> str | None:
        if not barangay_id:
            return None
        return self.session.execute(
            select(Barangay.barangay_name).where(Barangay.barangay_id == barangay_id)
        ).scalar_one_or_none()

    def describe_validator(self, validator_id: str | None) -> ValidatorInfo:
        """Resolve a validator id to display data.

        Staff full name wins over SK-official full name; when neither record
        exists the raw id is used as the name.
        """
        if not validator_id:
            return ValidatorInfo(validator_id=None, name=None)

        staff = self.get_staff(validator_id)
        if staff is not None:
            name = format_full_name(staff.first_name, staff.last_name, staff.middle_name, staff.suffix)
            return ValidatorInfo(validator_id=validator_id, name=name or validator_id, role=staff.role_name)

        official = self.get_sk_official(validator_id)
        if official is not None:
            name = format_full_name(official.first_name, official.last_name, official.middle_name, official.suffix)
            return ValidatorInfo(
                validator_id=validator_id,
                name=name or validator_id,
                role=official.role_name,
                sk_position=official.position,
                sk_barangay=self.get_barangay_name(official.barangay_id),
            )

        return ValidatorInfo(validator_id=validator_id, name=validator_id)
