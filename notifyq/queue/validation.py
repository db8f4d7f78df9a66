"""Enqueue input checks."""
import re

from notifyq.queue.errors import ValidationError

_EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+'-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$")
_MAX_ADDRESS_LENGTH = 254
_MAX_SUBJECT_LENGTH = 998


def is_valid_address(address: str) -> bool:
    if not address or len(address) > _MAX_ADDRESS_LENGTH:
        return False
    return _EMAIL_PATTERN.match(address) is not None


def validate_payload(recipient: str, subject: str, body: str) -> None:
    """Raise ValidationError listing every problem with an enqueue payload."""
    problems: dict[str, str] = {}
    if not isinstance(recipient, str) or not is_valid_address(recipient.strip()):
        problems["recipient"] = "must be a valid email address"
    if not isinstance(subject, str) or not subject.strip():
        problems["subject"] = "cannot be empty"
    elif len(subject) > _MAX_SUBJECT_LENGTH or "\n" in subject or "\r" in subject:
        problems["subject"] = "must be a single line of at most 998 characters"
    if not isinstance(body, str) or not body.strip():
        problems["body"] = "cannot be empty"
    if problems:
        fields = ", ".join(sorted(problems))
        raise ValidationError(f"Invalid notification: {fields}", {"fields": problems})


def mask_address(address: str) -> str:
    """Mask the local part of an address for logs: ``j***@example.com``."""
    local, sep, domain = address.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"
