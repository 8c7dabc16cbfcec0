"""Email message builder."""

from dataclasses import dataclass, field
from typing import Any

from notifier.channels import EmailMessage
from notifier.channels.addressing import sanitize_subject, validate_email
from notifier.channels.template import render
from notifier.errors import ComposeError, MissingContent
from notifier.schemas import NotificationRequest, Priority

DEFAULT_SUBJECT = "Notification"
DEFAULT_PRIORITY_HEADER = "3 (Normal)"

PRIORITY_HEADERS = {
    Priority.URGENT.value: "1 (Highest)",
    Priority.HIGH.value: "2 (High)",
    Priority.MEDIUM.value: "3 (Normal)",
    Priority.LOW.value: "4 (Low)",
}


@dataclass(frozen=True)
class EmailOptions:
    """
    Typed view of a request's ``channelConfig`` for the email channel.

    Config shape: {
        "subject": str,              # default "Notification"
        "headers": {str: str},       # extra message headers
    }
    Values of the wrong type, and headers containing line breaks, are
    ignored rather than rejected.
    """
    subject: str = DEFAULT_SUBJECT
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_channel_config(cls, config: dict[str, Any]) -> "EmailOptions":
        subject = config.get("subject")
        if not isinstance(subject, str):
            subject = DEFAULT_SUBJECT

        raw_headers = config.get("headers")
        headers = {}
        if isinstance(raw_headers, dict):
            headers = {
                str(k): v
                for k, v in raw_headers.items()
                if isinstance(v, str) and not _has_line_break(str(k)) and not _has_line_break(v)
            }
        return cls(subject=subject, headers=headers)


def _has_line_break(value: str) -> bool:
    return "\r" in value or "\n" in value


def priority_header(priority: str) -> str:
    """Map a request priority to an ``X-Priority`` header value."""
    return PRIORITY_HEADERS.get(priority, DEFAULT_PRIORITY_HEADER)


def build_email_message(request: NotificationRequest) -> EmailMessage:
    options = EmailOptions.from_channel_config(request.channel_config)

    subject = sanitize_subject(render(options.subject, request.params))
    body = render(request.template_body, request.params)

    headers: dict[str, str] = {}
    if request.priority:
        headers["X-Priority"] = priority_header(request.priority)
    if request.notification_id:
        headers["X-Notification-ID"] = request.notification_id
    headers.update(options.headers)

    to = validate_email(request.to)
    if not subject:
        raise ComposeError("invalid email subject")
    if not body:
        raise MissingContent("missing email content")

    return EmailMessage(to=to, subject=subject, body=body, headers=headers)
