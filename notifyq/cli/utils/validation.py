"""Input validation utilities for CLI commands."""

from uuid import UUID


def validate_message_id(message_id: str) -> str:
    """Validate and return a message ID. Raises ValueError if invalid."""
    if not message_id or not message_id.strip():
        raise ValueError("Message ID cannot be empty")
    try:
        return str(UUID(message_id.strip()))
    except ValueError as e:
        raise ValueError(f"Message ID must be a valid UUID: {e}") from e


def validate_url(url: str) -> str:
    """Validate and return a provider URL. Raises ValueError if invalid."""
    if not url or not url.strip():
        raise ValueError("URL cannot be empty")
    url = url.strip()
    if not url.startswith(("https://", "http://")):
        raise ValueError("URL must start with http:// or https://")
    if len(url) > 2048:
        raise ValueError("URL cannot exceed 2048 characters")
    return url
