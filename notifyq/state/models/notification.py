"""Notification queue models."""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class MessageStatus(Enum):
    """Delivery status of a queued notification."""

    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"


class NotificationKind(Enum):
    """What triggered the notification. Informational only."""

    ACCOUNT_CREATED = "account_created"
    PASSWORD_RESET = "password_reset"
    RENEWAL_REMINDER = "renewal_reminder"
    EMERGENCY_ACCESS_ALERT = "emergency_access_alert"
    DOCUMENT_UPLOADED = "document_uploaded"
    PAYMENT_RECEIVED = "payment_received"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    CUSTOM = "custom"


TERMINAL_STATUSES = frozenset({MessageStatus.SENT, MessageStatus.FAILED})


@dataclass(frozen=True)
class QueuedMessage:
    """A notification stored in the delivery queue.

    Attributes:
        message_id: Unique identifier, assigned at creation.
        recipient: Destination email address.
        subject: Rendered subject line.
        body: Rendered HTML body.
        kind: The notification kind this message was composed as.
        created_at: When the message was enqueued.
        updated_at: Last state transition.
        next_attempt_at: Earliest time the message may be claimed.
        status: Current delivery status.
        attempt_count: Delivery attempts made so far, manual ones included.
        max_attempts: Automatic attempt budget.
        user_id: Optional back-reference to the portal user.
        resource_type: Optional type of the object the message is about.
        resource_id: Optional id of the object the message is about.
        last_error: Reason for the most recent failed attempt.
        provider_message_id: Id returned by the sender on success.
        sent_at: When delivery succeeded.
        claim_id: Token of the claim holding the message in processing.
    """

    message_id: str
    recipient: str
    subject: str
    body: str
    kind: NotificationKind
    created_at: datetime
    updated_at: datetime
    next_attempt_at: datetime
    status: MessageStatus = MessageStatus.PENDING
    attempt_count: int = 0
    max_attempts: int = 3
    user_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    last_error: Optional[str] = None
    provider_message_id: Optional[str] = None
    sent_at: Optional[datetime] = None
    claim_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.message_id:
            raise ValueError("message_id cannot be empty")
        if not self.recipient:
            raise ValueError("recipient cannot be empty")
        if self.attempt_count < 0:
            raise ValueError("attempt_count cannot be negative")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def attempts_exhausted(self) -> bool:
        return self.attempt_count >= self.max_attempts

    def with_status(self, status: MessageStatus, **changes) -> "QueuedMessage":
        return replace(self, status=status, **changes)
