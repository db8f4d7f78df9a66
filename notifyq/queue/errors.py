"""Exception types for the notification queue."""
from typing import Any, Optional


class NotifyQueueError(Exception):
    """Base exception for all queue errors.

    ``status_code`` and ``error_code`` are what the admin API reports
    when the error reaches an HTTP caller.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(NotifyQueueError):
    """Enqueue input was rejected before anything was stored."""

    status_code = 400
    error_code = "INVALID_FORMAT"


class MessageNotFoundError(NotifyQueueError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, message_id: str) -> None:
        super().__init__(f"Message {message_id} not found", {"message_id": message_id})
        self.message_id = message_id


class InvalidStateError(NotifyQueueError):
    """The message is not in a status that allows the operation."""

    status_code = 409
    error_code = "INVALID_STATE"

    def __init__(self, message: str, message_id: str, status: str) -> None:
        super().__init__(message, {"message_id": message_id, "status": status})
        self.message_id = message_id
        self.status = status


class StoreUnavailableError(NotifyQueueError):
    """The queue store could not be read or written."""

    status_code = 503
    error_code = "STORE_UNAVAILABLE"


class DeliveryError(NotifyQueueError):
    """A sender could not deliver a message."""

    status_code = 502
    error_code = "DELIVERY_FAILED"

    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        super().__init__(message, {"error_code": error_code} if error_code else None)
        self.delivery_code = error_code


class TransientDeliveryError(DeliveryError):
    """Delivery failed but may succeed on a later attempt."""


class PermanentDeliveryError(DeliveryError):
    """Delivery can never succeed (e.g. the recipient does not exist)."""
