"""Real-time event hub for connected dashboards.

Each WebSocket connection owns a bounded asyncio queue on the event loop
that accepted it. Emitters may run on any thread (adjudications execute
in worker threads); delivery is handed to the owning loop with
call_soon_threadsafe and never blocks the emitter. A full queue drops its
oldest message.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..core.constants import BARANGAY_ROOM_PREFIX, ROLE_ADMIN, ROLE_ROOM_PREFIX
from ..logging_config import TRACE

logger = logging.getLogger(__name__)

Message = dict[str, Any]


def role_room(role: str) -> str:
    return f"{ROLE_ROOM_PREFIX}{role}"


def barangay_room(barangay_id: str) -> str:
    return f"{BARANGAY_ROOM_PREFIX}{barangay_id}"


@dataclass(eq=False)
class Subscription:
    """One connected client and the rooms it listens to"""

    id: int
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue[Message]
    rooms: set[str] = field(default_factory=set)

    async def next_message(self) -> Message:
        return await self.queue.get()


class RealtimeHub:
    """Room-based fan-out of events to WebSocket subscribers"""

    def __init__(self, max_queue_size: int = 100) -> None:
        self.max_queue_size = max_queue_size
        self._subscriptions: dict[int, Subscription] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def subscribe(self, rooms: Iterable[str] = ()) -> Subscription:
        """Register a subscriber on the running event loop."""
        loop = asyncio.get_running_loop()
        sub = Subscription(
            id=next(self._ids),
            loop=loop,
            queue=asyncio.Queue(maxsize=self.max_queue_size),
            rooms={r for r in rooms if r},
        )
        with self._lock:
            self._subscriptions[sub.id] = sub
        logger.debug(f"Realtime subscriber {sub.id} joined {sorted(sub.rooms)}")
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(sub.id, None)
        logger.debug(f"Realtime subscriber {sub.id} left")

    def join(self, sub: Subscription, rooms: Iterable[str]) -> None:
        added = {r for r in rooms if isinstance(r, str) and r}
        with self._lock:
            sub.rooms |= added
        logger.debug(f"Realtime subscriber {sub.id} joined {sorted(added)}")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def emit_to_room(self, room: str, event: str, payload: dict[str, Any]) -> None:
        message: Message = {"event": event, "room": room, "data": payload}
        with self._lock:
            targets = [s for s in self._subscriptions.values() if room in s.rooms]

        for sub in targets:
            try:
                sub.loop.call_soon_threadsafe(self._offer, sub, message)
            except RuntimeError:
                # Loop already closed; the connection is gone
                self.unsubscribe(sub)
        logger.log(TRACE, f"Emitted {event} to {room} ({len(targets)} subscribers)")

    def emit_to_role(self, role: str, event: str, payload: dict[str, Any]) -> None:
        self.emit_to_room(role_room(role), event, payload)

    def emit_to_admins(self, event: str, payload: dict[str, Any]) -> None:
        self.emit_to_role(ROLE_ADMIN, event, payload)

    @staticmethod
    def _offer(sub: Subscription, message: Message) -> None:
        if sub.queue.full():
            with contextlib.suppress(asyncio.QueueEmpty):
                sub.queue.get_nowait()
            logger.debug(f"Realtime subscriber {sub.id} queue full; dropped oldest message")
        sub.queue.put_nowait(message)
