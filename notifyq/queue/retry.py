"""Operator-triggered retry of terminally failed messages."""
import logging
from typing import Optional

from notifyq.queue.engine import Clock, utcnow
from notifyq.queue.errors import InvalidStateError, MessageNotFoundError
from notifyq.queue.store import QueueStore
from notifyq.state.models.notification import MessageStatus, QueuedMessage

logger = logging.getLogger(__name__)


class ManualRetryController:
    """Re-queue ``failed`` messages on an operator's request.

    By default the attempt counter continues: the retry adds one to it to
    record the manual action, and because the counter is then past the
    automatic budget a further failure fails the message again at once,
    so each manual retry buys exactly one more delivery attempt. With
    ``reset_attempts`` the counter goes back to zero and the message gets
    the full automatic budget again.
    """

    def __init__(
        self,
        store: QueueStore,
        clock: Optional[Clock] = None,
        reset_attempts: bool = False,
    ) -> None:
        self._store = store
        self._clock = clock or utcnow
        self._reset_attempts = reset_attempts

    @property
    def reset_attempts(self) -> bool:
        return self._reset_attempts

    async def retry(self, message_id: str) -> QueuedMessage:
        """Move a failed message back to pending, due now.

        Raises:
            MessageNotFoundError: No message with this id.
            InvalidStateError: The message is not ``failed``; it is left
                unchanged.
        """
        message = await self._store.get_by_id(message_id)
        if message is None:
            raise MessageNotFoundError(message_id)
        if message.status is not MessageStatus.FAILED:
            raise InvalidStateError(
                f"Only failed messages can be retried; {message_id} is {message.status.value}",
                message_id,
                message.status.value,
            )

        now = self._clock()
        attempt_count = 0 if self._reset_attempts else message.attempt_count + 1
        moved = await self._store.update_status(
            message_id,
            MessageStatus.PENDING,
            MessageStatus.FAILED,
            now,
            attempt_count=attempt_count,
            next_attempt_at=now,
            last_error=None,
        )
        if not moved:
            current = await self._store.get_by_id(message_id)
            status = current.status.value if current else "missing"
            raise InvalidStateError(
                f"Message {message_id} changed state during retry (now {status})",
                message_id,
                status,
            )
        logger.info(
            "Manual retry queued for %s (attempt_count %d -> %d)",
            message_id, message.attempt_count, attempt_count,
        )
        return message.with_status(
            MessageStatus.PENDING,
            attempt_count=attempt_count,
            next_attempt_at=now,
            last_error=None,
            updated_at=now,
        )
