"""Admin endpoints for the notification delivery queue."""

import hmac
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Path, Query, status

from notifyq.queue.composer import NotificationComposer
from notifyq.queue.retry import ManualRetryController
from notifyq.queue.scheduler import QueueScheduler
from notifyq.queue.stats import get_stats
from notifyq.queue.store import QueueStore
from notifyq.queue.errors import MessageNotFoundError, ValidationError
from notifyq.server.errors import NotAuthorizedError
from notifyq.server.models.notifications import (
    NotificationListResponse,
    NotificationQueuedResponse,
    NotificationResponse,
    NotificationStatsResponse,
    RetryResponse,
    SendCustomRequest,
)
from notifyq.state.models.notification import MessageStatus

logger = logging.getLogger(__name__)

_STATUS_FILTERS = {s.value: s for s in MessageStatus}


def create_notifications_router(
    store: QueueStore,
    composer: NotificationComposer,
    retry_controller: ManualRetryController,
    scheduler: Optional[QueueScheduler] = None,
    admin_token: str = "",
) -> APIRouter:
    """Create the admin notification router with injected dependencies.

    Args:
        store: Queue store for reads.
        composer: Used to queue custom admin messages.
        retry_controller: Handles manual retries.
        scheduler: Woken after enqueue/retry so work starts promptly.
        admin_token: Required X-Admin-Token value. Empty disables the check.
    """

    async def require_admin(
        x_admin_token: Annotated[Optional[str], Header()] = None,
    ) -> None:
        if not admin_token:
            return
        if x_admin_token is None or not hmac.compare_digest(x_admin_token, admin_token):
            raise NotAuthorizedError()

    router = APIRouter(
        prefix="/api/admin/notifications",
        tags=["notifications"],
        dependencies=[Depends(require_admin)],
    )

    def _wake() -> None:
        if scheduler is not None and scheduler.is_running:
            scheduler.wake()

    @router.get("/stats", response_model=NotificationStatsResponse)
    async def queue_stats() -> NotificationStatsResponse:
        """Count queued notifications per status."""
        stats = await get_stats(store)
        return NotificationStatsResponse(**stats.as_dict())

    @router.get("", response_model=NotificationListResponse)
    async def list_notifications(
        status_filter: Annotated[
            Optional[str], Query(alias="status", description="pending|processing|sent|failed")
        ] = None,
        limit: Annotated[int, Query(ge=1, le=100, description="Max messages")] = 50,
        offset: Annotated[int, Query(ge=0, description="Messages to skip")] = 0,
    ) -> NotificationListResponse:
        """List queued notifications, oldest first."""
        message_status = None
        if status_filter is not None:
            message_status = _STATUS_FILTERS.get(status_filter)
            if message_status is None:
                raise ValidationError(
                    f"Invalid status '{status_filter}'",
                    {"valid": sorted(_STATUS_FILTERS)},
                )
        messages = await store.list_messages(message_status, limit, offset)
        items = [NotificationResponse.from_message(m) for m in messages]
        return NotificationListResponse(count=len(items), limit=limit, offset=offset, messages=items)

    @router.get("/{message_id}", response_model=NotificationResponse)
    async def get_notification(
        message_id: Annotated[str, Path(description="Message ID")],
    ) -> NotificationResponse:
        """Get a single queued notification."""
        message = await store.get_by_id(message_id)
        if message is None:
            raise MessageNotFoundError(message_id)
        return NotificationResponse.from_message(message)

    @router.post(
        "/send",
        response_model=NotificationQueuedResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def send_custom(request: SendCustomRequest) -> NotificationQueuedResponse:
        """Queue a custom admin-written notification."""
        message = await composer.send_custom(
            request.recipient, request.subject, request.body, user_id=request.user_id,
        )
        _wake()
        return NotificationQueuedResponse(message_id=message.message_id)

    @router.post("/{message_id}/retry", response_model=RetryResponse)
    async def retry_notification(
        message_id: Annotated[str, Path(description="Message ID")],
    ) -> RetryResponse:
        """Re-queue a failed notification."""
        message = await retry_controller.retry(message_id)
        _wake()
        return RetryResponse(message_id=message.message_id, attempt_count=message.attempt_count)

    return router
