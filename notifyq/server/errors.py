"""Server-only error types."""
from notifyq.queue.errors import NotifyQueueError


class NotAuthorizedError(NotifyQueueError):
    status_code = 401
    error_code = "NOT_AUTHORIZED"

    def __init__(self, message: str = "Missing or invalid X-Admin-Token") -> None:
        super().__init__(message)
