"""
Realtime Router - WebSocket feed of validation queue events.

Clients connect to /ws/realtime?role=<role>&barangay=<id> and may later send
{"action": "join", "rooms": [...]} to listen to more rooms. In production
mode the bearer token is passed as ?token=, since browsers cannot set
headers on WebSocket upgrades.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from survey_validation.auth import AuthUser, TokenValidator, user_from_claims
from survey_validation.core.constants import ROLE_ADMIN
from survey_validation.fanout import RealtimeHub, Subscription, barangay_room, role_room

from ..dependencies import get_realtime_hub
from ..settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

POLICY_VIOLATION = 1008


def _authenticate(token: str | None) -> AuthUser | None:
    settings = get_settings()
    if settings.get_effective_auth_mode() == "bypass":
        return None
    if not token:
        raise PermissionError("Authentication required")
    validator = TokenValidator(settings.jwt_secret, settings.jwt_algorithm, settings.jwt_audience)
    claims = validator.validate_token(token)
    if not claims:
        raise PermissionError("Invalid token")
    return user_from_claims(claims, settings.admin_group_name)


def _initial_rooms(role: str | None, barangay: str | None, user: AuthUser | None) -> set[str]:
    rooms: set[str] = set()
    if role:
        # Only admins may listen on the admin room
        if role != ROLE_ADMIN or user is None or user.is_admin:
            rooms.add(role_room(role))
    elif user is not None and user.is_admin:
        rooms.add(role_room(ROLE_ADMIN))
    if barangay:
        rooms.add(barangay_room(barangay))
    return rooms


async def _pump(websocket: WebSocket, sub: Subscription) -> None:
    while True:
        message = await sub.next_message()
        await websocket.send_json(message)


async def _listen(websocket: WebSocket, hub: RealtimeHub, sub: Subscription) -> None:
    while True:
        incoming: Any = await websocket.receive_json()
        if isinstance(incoming, dict) and incoming.get("action") == "join":
            rooms = incoming.get("rooms") or []
            if isinstance(rooms, list):
                hub.join(sub, [r for r in rooms if r != role_room(ROLE_ADMIN)])


@router.websocket("/ws/realtime")
async def realtime_feed(
    websocket: WebSocket,
    role: str | None = None,
    barangay: str | None = None,
    token: str | None = None,
    hub: RealtimeHub = Depends(get_realtime_hub),
) -> None:
    try:
        user = _authenticate(token)
    except PermissionError as e:
        logger.warning(f"Rejected realtime connection: {e}")
        await websocket.close(code=POLICY_VIOLATION)
        return

    await websocket.accept()
    sub = hub.subscribe(_initial_rooms(role, barangay, user))
    logger.info(f"Realtime client {sub.id} connected to {sorted(sub.rooms)}")

    pump = asyncio.create_task(_pump(websocket, sub))
    try:
        await _listen(websocket, hub, sub)
    except WebSocketDisconnect:
        logger.debug(f"Realtime client {sub.id} disconnected")
    finally:
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump
        hub.unsubscribe(sub)
