"""Recipient helpers shared by every channel."""

import re
from email.utils import formataddr

from notifier.errors import InvalidRecipient

# International (E.164) format
_PHONE_RE = re.compile(r"^\+[1-9]\d{1,14}$")
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

_PHONE_SEPARATORS = str.maketrans("", "", " -().")

MAX_SUBJECT_LENGTH = 200


def clean_phone_number(phone: str) -> str:
    """
    Normalize a phone number to ``+<digits>``.

    Spaces, dashes, parentheses and dots are stripped and a leading ``+`` is
    added when missing. Raises InvalidRecipient if the result is not E.164.
    """
    if not phone:
        raise InvalidRecipient("invalid phone number: empty")

    cleaned = phone.translate(_PHONE_SEPARATORS)
    if not cleaned.startswith("+"):
        cleaned = "+" + cleaned

    if not _PHONE_RE.match(cleaned):
        raise InvalidRecipient(f"invalid phone number: {phone}")
    return cleaned


def is_valid_phone_number(phone: str) -> bool:
    try:
        clean_phone_number(phone)
    except InvalidRecipient:
        return False
    return True


def validate_email(address: str) -> str:
    """Return the trimmed address, or raise InvalidRecipient."""
    if not address:
        raise InvalidRecipient("invalid recipient email address")
    address = address.strip()
    if not _EMAIL_RE.match(address):
        raise InvalidRecipient(f"invalid email format: {address}")
    return address


def is_valid_email(address: str) -> bool:
    try:
        validate_email(address)
    except InvalidRecipient:
        return False
    return True


def sanitize_subject(subject: str) -> str:
    """Strip header-injection characters and cap the length of a subject line."""
    for ch in ("\r", "\n", "\t"):
        subject = subject.replace(ch, " ")
    subject = subject.strip()
    if len(subject) > MAX_SUBJECT_LENGTH:
        subject = subject[: MAX_SUBJECT_LENGTH - 3] + "..."
    return subject


def format_email_address(address: str, name: str = "") -> str:
    if not name:
        return address
    return formataddr((name, address))
