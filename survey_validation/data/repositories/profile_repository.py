"""Profile Repository - Youth profile mutations performed on approval"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...core.models import ContactInfo, ValidationStatus
from ...db.tables import YouthProfile

logger = logging.getLogger(__name__)

MANUAL_VALIDATION_TIER = "manual"


class ProfileRepository:
    """Repository for youth profiles"""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, youth_id: str) -> YouthProfile | None:
        return self.session.get(YouthProfile, youth_id)

    def apply_contact(self, youth_id: str, contact: ContactInfo, at: datetime) -> bool:
        """Overwrite contact number and/or email with non-empty corrected values.

        Returns:
            True if at least one field was written
        """
        values: dict[str, object] = {}
        if contact.contact:
            values["contact_number"] = contact.contact
        if contact.email:
            values["email"] = contact.email
        if not values:
            return False

        values["updated_at"] = at
        self.session.execute(
            update(YouthProfile)
            .where(YouthProfile.youth_id == youth_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        logger.info(f"Updated contact info for youth {youth_id}: {sorted(k for k in values if k != 'updated_at')}")
        return True

    def mark_validated(self, youth_id: str, validator_id: str, at: datetime) -> bool:
        """Mark a profile validated unless it already is.

        An already validated profile keeps its original validator and date.

        Returns:
            True if the profile was updated
        """
        result = self.session.execute(
            update(YouthProfile)
            .where(
                YouthProfile.youth_id == youth_id,
                (YouthProfile.validation_status.is_(None))
                | (YouthProfile.validation_status != ValidationStatus.VALIDATED.value),
            )
            .values(
                validation_status=ValidationStatus.VALIDATED.value,
                validation_tier=MANUAL_VALIDATION_TIER,
                validated_by=validator_id,
                validation_date=at,
                updated_at=at,
            )
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)
