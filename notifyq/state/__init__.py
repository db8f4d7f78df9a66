"""State management module."""
from notifyq.state.database import DatabaseManager, DatabaseError, DatabaseNotInitializedError
from notifyq.state.models import MessageStatus, NotificationKind, QueuedMessage, TERMINAL_STATUSES
from notifyq.state.repositories import QueueRepository
__all__ = ["DatabaseManager", "DatabaseError", "DatabaseNotInitializedError",
           "MessageStatus", "NotificationKind", "QueuedMessage", "TERMINAL_STATUSES",
           "QueueRepository"]
