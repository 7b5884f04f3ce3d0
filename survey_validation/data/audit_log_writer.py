"""Audit log writer.

Entries are appended in their own short transaction after the primary
work has committed. A failed write is logged and reported as None; it
never propagates to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from ..core import constants
from ..core.models import Actor
from ..db.tables import ActivityLog
from ..shared.date_utils import utc_now
from ..shared.ids import new_log_id

logger = logging.getLogger(__name__)

_USER_MANAGEMENT_RESOURCES = {"staff", "sk-officials", "users"}
_AUTH_ACTIONS = {"LOGIN", "LOGOUT", "PASSWORD_RESET", "PASSWORD_CHANGE", "EMAIL_VERIFICATION"}


def determine_category(action: str, resource_type: str | None) -> str:
    """Pick an audit category from the action and resource type."""
    upper = action.upper()
    resource = (resource_type or "").lower()

    if "EXPORT" in upper:
        return constants.AUDIT_CATEGORY_DATA_EXPORT
    if "IMPORT" in upper:
        return "Data Management"
    if resource in _USER_MANAGEMENT_RESOURCES:
        return "User Management"
    if upper in _AUTH_ACTIONS:
        return "Authentication"
    if resource == constants.AUDIT_RESOURCE_VALIDATION:
        return constants.AUDIT_CATEGORY_SURVEY_VALIDATION
    if resource.startswith("survey"):
        return constants.AUDIT_CATEGORY_SURVEY_MANAGEMENT
    return constants.AUDIT_CATEGORY_SYSTEM


class SqlAuditLogWriter:
    """Writes activity_logs rows through a dedicated session"""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def record(
        self,
        actor: Actor,
        action: str,
        resource_type: str,
        resource_id: str | None,
        details: dict[str, Any],
        *,
        resource_name: str | None = None,
        category: str | None = None,
        success: bool = True,
        error_message: str | None = None,
    ) -> str | None:
        final_category = category or determine_category(action, resource_type)
        log_id = new_log_id()

        try:
            with self._session_factory() as session, session.begin():
                session.add(
                    ActivityLog(
                        log_id=log_id,
                        user_id=actor.audit_user_id,
                        user_type=actor.user_type.value,
                        action=action,
                        resource_type=resource_type,
                        resource_id=resource_id,
                        resource_name=resource_name or resource_id,
                        details=details,
                        category=final_category,
                        success=success,
                        error_message=error_message,
                        created_at=self._clock(),
                    )
                )
        except Exception as e:
            logger.error(f"Failed to write audit log {action} on {resource_type}/{resource_id}: {e}")
            return None

        logger.debug(f"Audit log {log_id}: {action} on {resource_type} ({final_category})")
        return log_id
