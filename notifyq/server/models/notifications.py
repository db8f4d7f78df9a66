"""Pydantic models for the admin notification queue endpoints."""

from typing import Optional

from pydantic import BaseModel, Field

from notifyq.state.models.notification import QueuedMessage


class NotificationResponse(BaseModel):
    """Single queued notification."""

    message_id: str
    recipient: str
    subject: str
    kind: str
    status: str
    attempt_count: int
    max_attempts: int
    next_attempt_at: str
    created_at: str
    updated_at: str
    user_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    last_error: Optional[str] = None
    provider_message_id: Optional[str] = None
    sent_at: Optional[str] = None
    body_preview: str

    @classmethod
    def from_message(cls, m: QueuedMessage) -> "NotificationResponse":
        return cls(
            message_id=m.message_id,
            recipient=m.recipient,
            subject=m.subject,
            kind=m.kind.value,
            status=m.status.value,
            attempt_count=m.attempt_count,
            max_attempts=m.max_attempts,
            next_attempt_at=m.next_attempt_at.isoformat(),
            created_at=m.created_at.isoformat(),
            updated_at=m.updated_at.isoformat(),
            user_id=m.user_id,
            resource_type=m.resource_type,
            resource_id=m.resource_id,
            last_error=m.last_error,
            provider_message_id=m.provider_message_id,
            sent_at=m.sent_at.isoformat() if m.sent_at else None,
            body_preview=m.body[:200],
        )


class NotificationListResponse(BaseModel):
    """Response for GET /api/admin/notifications."""

    count: int
    limit: int
    offset: int
    messages: list[NotificationResponse]


class NotificationStatsResponse(BaseModel):
    """Response for GET /api/admin/notifications/stats."""

    pending: int
    processing: int
    sent: int
    failed: int
    total: int


class SendCustomRequest(BaseModel):
    """Request body for POST /api/admin/notifications/send."""

    recipient: str = Field(min_length=3, max_length=254)
    subject: str = Field(min_length=1, max_length=998)
    body: str = Field(min_length=1)
    user_id: Optional[str] = None


class NotificationQueuedResponse(BaseModel):
    status: str = "queued"
    message_id: str


class RetryResponse(BaseModel):
    status: str = "pending"
    message_id: str
    attempt_count: int
