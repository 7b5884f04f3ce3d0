"""Data access layer: repositories, identity mapping and audit trail."""

from __future__ import annotations

from .audit_log_writer import SqlAuditLogWriter, determine_category
from .identity_resolver import UsersTableIdentityResolver

__all__ = [
    "SqlAuditLogWriter",
    "UsersTableIdentityResolver",
    "determine_category",
]
