"""Conflict parser for pre-screening notes.

Automated pre-screening records contact discrepancies as prose inside a
response's validation notes, e.g.

    POTENTIAL DUPLICATE: same name and birthday but different contact info.
    Existing: 09171234567 / old@example.com. New: 09179876543 / new@example.com.

The notes remain the single stored source of truth; this module turns
them into a typed descriptor whenever the adjudication path needs one.
Parsing never raises.
"""

from __future__ import annotations

import logging
import re

from ..core.constants import (
    CONFLICT_MARKERS,
    MARKER_CONTACT_CONFLICT,
    MARKER_CROSS_PROFILE,
    MARKER_HIGH_PRIORITY,
)
from ..core.models import (
    Conflict,
    ConflictDescriptor,
    ConflictingProfile,
    ConflictSeverity,
    ContactInfo,
    Mismatch,
    NoConflict,
    ParsedNotes,
)

logger = logging.getLogger(__name__)

# "<label>: <contact> / <email>" where neither part crosses a sentence
# period and the email ends before a period, whitespace or end of text
_STRICT_EXISTING = re.compile(
    r"Existing:\s*((?:(?!\.\s)[^/\n])+?)\s*/\s*([^\s/]+?)(?=\.(?:\s|$)|\s|$)", re.IGNORECASE
)
_STRICT_NEW = re.compile(r"New:\s*((?:(?!\.\s)[^/\n])+?)\s*/\s*([^\s/]+?)(?=\.(?:\s|$)|\s|$)", re.IGNORECASE)

# Fallback: take the segment up to the end of its sentence and split it on "/"
_LENIENT_EXISTING = re.compile(r"Existing:\s*([^\n]+?)\s*(?:\.(?:\s|$)|\s+New:|$)", re.IGNORECASE)
_LENIENT_NEW = re.compile(r"New:\s*([^\n]+?)\s*(?:\.(?:\s|$)|$)", re.IGNORECASE)
_SEGMENT_SPLIT = re.compile(r"\s*/\s*")

_CONFLICTING_PROFILE = re.compile(rf"{MARKER_CROSS_PROFILE}:\s*([^(]+)\s*\(([^)]+)\)", re.IGNORECASE)

_LOG_EXCERPT_CHARS = 200


def is_contact_mismatch(notes: str | None) -> bool:
    """True when the notes carry any conflict marker."""
    if not notes:
        return False
    return any(marker in notes for marker in CONFLICT_MARKERS)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _strict_segments(notes: str) -> tuple[ContactInfo, ContactInfo] | None:
    existing = _STRICT_EXISTING.search(notes)
    new = _STRICT_NEW.search(notes)
    if not existing or not new:
        return None
    return (
        ContactInfo(contact=_clean(existing.group(1)), email=_clean(existing.group(2))),
        ContactInfo(contact=_clean(new.group(1)), email=_clean(new.group(2))),
    )


def _split_segment(segment: str) -> ContactInfo:
    parts = _SEGMENT_SPLIT.split(segment.strip())
    contact = parts[0] if parts else None
    email = parts[1] if len(parts) > 1 else None
    return ContactInfo(contact=_clean(contact), email=_clean(email))


def _lenient_segments(notes: str) -> tuple[ContactInfo, ContactInfo] | None:
    existing = _LENIENT_EXISTING.search(notes)
    new = _LENIENT_NEW.search(notes)
    if not existing or not new:
        return None
    return _split_segment(existing.group(1)), _split_segment(new.group(1))


def parse_descriptor(notes: str | None) -> ParsedNotes:
    """Parse notes into NoConflict, Mismatch or Conflict.

    Notes with markers whose contact segments cannot be recovered are
    logged and treated as NoConflict.
    """
    if not notes or not is_contact_mismatch(notes):
        return NoConflict()

    segments = _strict_segments(notes) or _lenient_segments(notes)
    if segments is None:
        logger.warning(f"Could not parse contact mismatch from validation notes: {notes[:_LOG_EXCERPT_CHARS]!r}")
        return NoConflict()

    existing, new = segments
    severity = ConflictSeverity.HIGH if MARKER_HIGH_PRIORITY in notes else ConflictSeverity.MEDIUM
    cross_profile = MARKER_CROSS_PROFILE in notes
    variant = Conflict if MARKER_CONTACT_CONFLICT in notes else Mismatch
    return variant(existing=existing, new=new, severity=severity, has_cross_profile_conflict=cross_profile)


def parse(notes: str | None) -> ConflictDescriptor | None:
    """Parse notes into a conflict descriptor, or None when there is nothing to act on."""
    parsed = parse_descriptor(notes)
    if isinstance(parsed, NoConflict):
        return None
    return parsed


def parse_conflicting_profile(notes: str | None) -> ConflictingProfile | None:
    """Recover the profile that already owns the submitted contact details.

    Matches "already used by another profile: <name> (<youth id>)".
    """
    if not notes or MARKER_CROSS_PROFILE not in notes:
        return None
    match = _CONFLICTING_PROFILE.search(notes)
    if not match:
        return None
    return ConflictingProfile(name=_clean(match.group(1)), youth_id=_clean(match.group(2)))
