"""Error taxonomy for adjudication and queue queries.

Each error carries the HTTP-equivalent status the API layer reports.
FanOutFailure is never raised to callers; the dispatcher logs it.
"""

from __future__ import annotations

from typing import Any


class SurveyValidationError(Exception):
    """Base class for errors surfaced by the validation engine."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInput(SurveyValidationError):
    """Missing or illegal input; reported before any work is done."""

    status_code = 400


class NotFound(SurveyValidationError):
    """The referenced queue entry does not exist."""

    status_code = 404


class TransactionFailure(SurveyValidationError):
    """The adjudication transaction failed and was rolled back."""

    status_code = 500


class FanOutFailure(SurveyValidationError):
    """A post-commit side effect (audit, broadcast, email) failed."""

    status_code = 500

    def __init__(self, channel: str, message: str):
        super().__init__(message, {"channel": channel})
        self.channel = channel
