"""Shared constants for the validation queue.

Textual markers below are part of the stored-data contract: pre-screening
writes them into response notes and the conflict parser reads them back.
Changing any of them breaks parsing of existing rows.
"""

from __future__ import annotations

# Conflict markers written by automated pre-screening
MARKER_POTENTIAL_DUPLICATE = "POTENTIAL DUPLICATE"
MARKER_CONTACT_CONFLICT = "CONTACT CONFLICT"
MARKER_DIFFERENT_CONTACT = "different contact info"
MARKER_HIGH_PRIORITY = "HIGH PRIORITY"
MARKER_CROSS_PROFILE = "already used by another profile"

CONFLICT_MARKERS = (
    MARKER_POTENTIAL_DUPLICATE,
    MARKER_CONTACT_CONFLICT,
    MARKER_DIFFERENT_CONTACT,
)

# Prefix of the note appended to a response that lost a supersede
SUPERSEDE_NOTE_PREFIX = "[SUPERSEDED]"

# Real-time event names
EVENT_QUEUE_UPDATED = "validation:queueUpdated"
EVENT_RESPONSES_UPDATED = "survey:responsesUpdated"

# Real-time rooms
ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
BARANGAY_ROOM_PREFIX = "barangay:"
ROLE_ROOM_PREFIX = "role:"

# Email templates keyed by adjudication outcome
TEMPLATE_SURVEY_VALIDATED = "surveyValidated"
TEMPLATE_SURVEY_REJECTED = "surveyRejected"
DEFAULT_BATCH_NAME = "Youth Survey"

# Audit trail vocabulary
AUDIT_ACTION_VALIDATE = "VALIDATE_SURVEY_RESPONSE"
AUDIT_ACTION_APPROVE = "Approve"
AUDIT_ACTION_REJECT = "Reject"
AUDIT_ACTION_BULK_APPROVE = "Bulk Approve"
AUDIT_ACTION_BULK_REJECT = "Bulk Reject"
AUDIT_ACTION_EXPORT = "Export"
AUDIT_ACTION_BULK_EXPORT = "Bulk Export"

AUDIT_RESOURCE_SURVEY_RESPONSE = "survey-response"
AUDIT_RESOURCE_VALIDATION = "validation"

AUDIT_CATEGORY_SURVEY_MANAGEMENT = "Survey Management"
AUDIT_CATEGORY_SURVEY_VALIDATION = "Survey Validation"
AUDIT_CATEGORY_DATA_EXPORT = "Data Export"
AUDIT_CATEGORY_SYSTEM = "System Management"

# Bulk real-time payloads carry at most this many item summaries
BULK_EVENT_ITEM_LIMIT = 25

# Number of rows shown in the stats "recent validations" panel
RECENT_VALIDATIONS_LIMIT = 5

EXPORT_FORMATS = ("csv", "json", "pdf", "excel", "xlsx")

GENERIC_INTERNAL_ERROR = "Failed to validate queue item"
