"""Contact conflict parsing for pre-screening notes."""

from __future__ import annotations

from .conflict_parser import is_contact_mismatch, parse, parse_conflicting_profile, parse_descriptor

__all__ = [
    "is_contact_mismatch",
    "parse",
    "parse_conflicting_profile",
    "parse_descriptor",
]
