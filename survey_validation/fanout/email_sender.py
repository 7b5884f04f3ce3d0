"""Templated notification email over SMTP.

Templates are plain-text; each declares the data keys it requires.
send_templated never raises: an unconfigured sender, a missing field or
an SMTP error is logged and reported as False.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Any

from ..core.constants import TEMPLATE_SURVEY_REJECTED, TEMPLATE_SURVEY_VALIDATED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    body: str
    required_fields: tuple[str, ...] = ()

    def missing_fields(self, data: dict[str, Any]) -> list[str]:
        return [f for f in self.required_fields if f not in data]

    def render(self, data: dict[str, Any]) -> tuple[str, str]:
        values = _DefaultDict(data)
        return self.subject.format_map(values), self.body.format_map(values)


class _DefaultDict(dict[str, Any]):
    def __missing__(self, key: str) -> str:
        return ""


TEMPLATES: dict[str, EmailTemplate] = {
    TEMPLATE_SURVEY_VALIDATED: EmailTemplate(
        subject="Your Survey Has Been Validated - LYDO Youth Governance",
        body=(
            "Hello {userName},\n\n"
            "Your response to the {batchName} survey has been reviewed and validated "
            "on {validationDate}.\n\n"
            "Response ID: {responseId}\n"
            "Submitted: {submittedAt}\n\n"
            "You can view your status at {frontendUrl}\n\n"
            "Thank you for taking part.\n"
            "Local Youth Development Office\n"
        ),
        required_fields=("batchName",),
    ),
    TEMPLATE_SURVEY_REJECTED: EmailTemplate(
        subject="Survey Status Update - LYDO Youth Governance",
        body=(
            "Hello {userName},\n\n"
            "Your response to the {batchName} survey could not be validated "
            "({validationDate}).\n\n"
            "Response ID: {responseId}\n"
            "Submitted: {submittedAt}\n\n"
            "Please contact your barangay SK office or visit {frontendUrl} "
            "if you believe this is a mistake.\n\n"
            "Local Youth Development Office\n"
        ),
        required_fields=("batchName",),
    ),
}


@dataclass(frozen=True)
class SmtpConfig:
    """SMTP connection settings"""

    enabled: bool = False
    host: str | None = None
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    sender: str | None = None
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.host) and bool(self.sender or self.username)


class SmtpEmailSender:
    """Sends templated emails through smtplib"""

    def __init__(self, config: SmtpConfig, templates: dict[str, EmailTemplate] | None = None) -> None:
        self.config = config
        self.templates = templates if templates is not None else TEMPLATES

    def send_templated(self, template_name: str, data: dict[str, Any], recipient: str) -> bool:
        if not self.config.is_configured:
            logger.info(f"Email service not configured. Skipping {template_name} email.")
            return False

        template = self.templates.get(template_name)
        if template is None:
            logger.error(f"Unknown email template '{template_name}'")
            return False

        missing = template.missing_fields(data)
        if missing:
            logger.error(f"Invalid template data for {template_name}: missing fields {', '.join(missing)}")
            return False

        subject, body = template.render(data)
        message = EmailMessage()
        message["From"] = self.config.sender or self.config.username or ""
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)

        try:
            self._deliver(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send template email '{template_name}' to {recipient}: {e}")
            return False

        logger.info(f"Template email '{template_name}' sent to {recipient}")
        return True

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.host or "", self.config.port, timeout=self.config.timeout) as smtp:
            if self.config.use_tls:
                smtp.starttls()
            if self.config.username and self.config.password:
                smtp.login(self.config.username, self.config.password)
            smtp.send_message(message)
