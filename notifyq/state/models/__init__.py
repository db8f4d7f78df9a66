"""State models."""
from notifyq.state.models.notification import (
    MessageStatus,
    NotificationKind,
    QueuedMessage,
    TERMINAL_STATUSES,
)
__all__ = [
    "MessageStatus",
    "NotificationKind",
    "QueuedMessage",
    "TERMINAL_STATUSES",
]
