"""Pydantic models for request/response validation."""
from notifyq.server.models.responses import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    QueueCounts,
)
from notifyq.server.models.notifications import (
    NotificationListResponse,
    NotificationQueuedResponse,
    NotificationResponse,
    NotificationStatsResponse,
    RetryResponse,
    SendCustomRequest,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "QueueCounts",
    "NotificationListResponse",
    "NotificationQueuedResponse",
    "NotificationResponse",
    "NotificationStatsResponse",
    "RetryResponse",
    "SendCustomRequest",
]
