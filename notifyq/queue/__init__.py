"""Notification delivery queue: engine, scheduler, composer, stats, retry."""
from notifyq.queue.composer import NotificationComposer, Portal, RenderedNotification
from notifyq.queue.engine import AttemptResult, CycleResult, QueueEngine, utcnow
from notifyq.queue.errors import (
    DeliveryError,
    InvalidStateError,
    MessageNotFoundError,
    NotifyQueueError,
    PermanentDeliveryError,
    StoreUnavailableError,
    TransientDeliveryError,
    ValidationError,
)
from notifyq.queue.retry import ManualRetryController
from notifyq.queue.scheduler import QueueScheduler
from notifyq.queue.sender import DeliveryOutcome, DeliverySender, LogSender, WebhookSender
from notifyq.queue.settings import QueueSettings, backoff_delay
from notifyq.queue.stats import DeliveryStats, get_stats
from notifyq.queue.store import QueueStore, SqliteQueueStore

__all__ = [
    "NotificationComposer", "Portal", "RenderedNotification",
    "AttemptResult", "CycleResult", "QueueEngine", "utcnow",
    "DeliveryError", "InvalidStateError", "MessageNotFoundError", "NotifyQueueError",
    "PermanentDeliveryError", "StoreUnavailableError", "TransientDeliveryError", "ValidationError",
    "ManualRetryController", "QueueScheduler",
    "DeliveryOutcome", "DeliverySender", "LogSender", "WebhookSender",
    "QueueSettings", "backoff_delay", "DeliveryStats", "get_stats",
    "QueueStore", "SqliteQueueStore",
]
