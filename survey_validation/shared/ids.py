"""Identifier generation for rows this service creates."""

from __future__ import annotations

import uuid

USER_ID_PREFIX = "USR"
LOG_ID_PREFIX = "ACT"


def new_id(prefix: str, length: int = 12) -> str:
    """Prefix followed by `length` upper-case hex characters (e.g., USR3F9A01C2B7DE)."""
    return f"{prefix}{uuid.uuid4().hex[:length].upper()}"


def new_user_id() -> str:
    return new_id(USER_ID_PREFIX)


def new_log_id() -> str:
    return new_id(LOG_ID_PREFIX, length=16)
