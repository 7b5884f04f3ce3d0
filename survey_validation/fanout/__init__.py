"""Post-commit side effects: real-time events, audit trail and email."""

from __future__ import annotations

from .dispatcher import FanOutDispatcher
from .email_sender import SmtpConfig, SmtpEmailSender
from .realtime import RealtimeHub, Subscription, barangay_room, role_room
from .scheduler import DeferredTaskQueue

__all__ = [
    "DeferredTaskQueue",
    "FanOutDispatcher",
    "RealtimeHub",
    "SmtpConfig",
    "SmtpEmailSender",
    "Subscription",
    "barangay_room",
    "role_room",
]
