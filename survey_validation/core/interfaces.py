"""Protocols for the collaborators the validation engine depends on.

These protocols define the contracts the coordinator and dispatcher are
written against, so tests can substitute in-memory fakes."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from sqlalchemy.orm import Session

from .models import Actor


class IdentityResolver(Protocol):
    """Maps a staff or SK-official identifier to a canonical user id"""

    def resolve_user_id(self, session: Session, actor: Actor) -> str | None:
        """Return the canonical user id, creating the mapping row if needed"""
        ...


class AuditLogWriter(Protocol):
    """Append-only audit trail"""

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
        """Write an entry and return its id, or None when the write failed"""
        ...


class RealtimeBroadcaster(Protocol):
    """Non-blocking, best-effort event delivery to connected dashboards"""

    def emit_to_role(self, role: str, event: str, payload: dict[str, Any]) -> None: ...

    def emit_to_room(self, room: str, event: str, payload: dict[str, Any]) -> None: ...

    def emit_to_admins(self, event: str, payload: dict[str, Any]) -> None: ...


class EmailSender(Protocol):
    """Templated email delivery; never raises"""

    def send_templated(self, template_name: str, data: dict[str, Any], recipient: str) -> bool: ...


class TaskScheduler(Protocol):
    """Runs callables later, off the caller's thread"""

    def schedule(self, func: Callable[[], Any], *, delay: float | None = None, name: str | None = None) -> None: ...
