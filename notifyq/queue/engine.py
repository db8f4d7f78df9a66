"""Queue engine: enqueue, batch processing, retry scheduling.

One engine is built per process with its store and sender injected. The
store is the source of truth; the engine holds no authoritative queue
state of its own, so several engines may share one backlog as long as
the store's claim is atomic.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from notifyq.queue.errors import (
    PermanentDeliveryError,
    StoreUnavailableError,
    TransientDeliveryError,
)
from notifyq.queue.sender import DeliveryOutcome, DeliverySender
from notifyq.queue.settings import QueueSettings, backoff_delay
from notifyq.queue.store import QueueStore
from notifyq.queue.validation import mask_address, validate_payload
from notifyq.state.models.notification import (
    MessageStatus,
    NotificationKind,
    QueuedMessage,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttemptResult(Enum):
    """What a single delivery attempt did to its message."""

    SENT = "sent"
    RETRY = "retry"
    FAILED = "failed"


@dataclass
class CycleResult:
    """Summary of one processing cycle."""

    claimed: int = 0
    sent: int = 0
    retried: int = 0
    failed: int = 0
    released: int = 0
    skipped: bool = False
    error: Optional[str] = None

    def record(self, result: AttemptResult) -> None:
        if result is AttemptResult.SENT:
            self.sent += 1
        elif result is AttemptResult.RETRY:
            self.retried += 1
        else:
            self.failed += 1


class QueueEngine:
    """Durable notification queue with bounded retries.

    Args:
        store: Queue store holding every message.
        sender: Transport used to deliver claimed messages.
        settings: Batch size, retry budget, backoff and concurrency.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        store: QueueStore,
        sender: DeliverySender,
        settings: Optional[QueueSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._sender = sender
        self._settings = settings or QueueSettings()
        self._clock = clock or utcnow
        self._cycle_lock = asyncio.Lock()

    @property
    def store(self) -> QueueStore:
        return self._store

    @property
    def settings(self) -> QueueSettings:
        return self._settings

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def is_processing(self) -> bool:
        return self._cycle_lock.locked()

    async def enqueue(
        self,
        recipient: str,
        subject: str,
        body: str,
        kind: NotificationKind,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> QueuedMessage:
        """Validate and store a new pending message.

        Returns:
            The stored message (status pending, no attempts, due now).

        Raises:
            ValidationError: Malformed recipient or empty subject/body.
            StoreUnavailableError: The message could not be stored.
        """
        validate_payload(recipient, subject, body)
        now = self._clock()
        message = QueuedMessage(
            message_id=str(uuid.uuid4()),
            recipient=recipient.strip(),
            subject=subject.strip(),
            body=body,
            kind=NotificationKind(kind),
            created_at=now,
            updated_at=now,
            next_attempt_at=now,
            max_attempts=self._settings.max_attempts,
            user_id=user_id,
            resource_type=resource_type,
            resource_id=resource_id,
        )
        await self._store.insert(message)
        logger.info(
            "Queued %s notification %s to %s",
            message.kind.value, message.message_id, mask_address(message.recipient),
        )
        return message

    async def recover_stale(self) -> int:
        """Put claims older than ``stale_after`` back to pending.

        Recovers messages left in ``processing`` by a process that died
        mid-cycle. Run at startup only: a live claim held by another
        engine past ``stale_after`` would otherwise be sent twice.
        """
        now = self._clock()
        cutoff = now - timedelta(seconds=self._settings.stale_after)
        released = await self._store.release_stale(cutoff, now)
        if released:
            logger.warning("Released %d stale in-flight messages", released)
        return released

    async def process_cycle(self) -> CycleResult:
        """Claim one batch of due messages and attempt delivery.

        Never raises for store or sender faults; those end up in the
        returned result and in message state. A call made while another
        cycle of this engine is running returns a skipped result.
        """
        if self._cycle_lock.locked():
            logger.debug("Previous cycle still running, skipping tick")
            return CycleResult(skipped=True)
        async with self._cycle_lock:
            return await self._run_cycle()

    async def _run_cycle(self) -> CycleResult:
        result = CycleResult()
        try:
            batch = await self._store.claim_batch(self._settings.batch_size, self._clock())
        except StoreUnavailableError as e:
            logger.error("Processing cycle aborted: %s", e)
            result.error = str(e)
            return result

        result.claimed = len(batch)
        if not batch:
            return result
        logger.info("Processing %d queued notifications", len(batch))

        unresolved = {m.message_id: m for m in batch}
        semaphore = asyncio.Semaphore(self._settings.send_concurrency)

        async def _bounded(message: QueuedMessage) -> Optional[AttemptResult]:
            async with semaphore:
                return await self._attempt(message, unresolved)

        try:
            outcomes = await asyncio.gather(*(_bounded(m) for m in batch))
        finally:
            if unresolved:
                result.released = await self._release_unresolved(list(unresolved.values()))

        unrecorded = 0
        for outcome in outcomes:
            if outcome is None:
                unrecorded += 1
            else:
                result.record(outcome)
        if unrecorded:
            result.error = f"{unrecorded} delivery outcome(s) could not be recorded"
        logger.info(
            "Cycle done: claimed=%d sent=%d retried=%d failed=%d",
            result.claimed, result.sent, result.retried, result.failed,
        )
        return result

    async def _attempt(
        self, message: QueuedMessage, unresolved: dict[str, QueuedMessage],
    ) -> Optional[AttemptResult]:
        """Deliver one claimed message and record the outcome.

        Returns None when the outcome could not be stored; the claim then
        stays in ``unresolved`` and is released by the cycle once every
        sibling attempt has settled.
        """
        try:
            outcome, permanent = await self._deliver(message)
            result = await self._record(message, outcome, permanent)
        except StoreUnavailableError as e:
            logger.error("Could not record outcome for %s: %s", message.message_id, e)
            return None
        except Exception:
            logger.exception("Attempt for %s aborted", message.message_id)
            return None
        unresolved.pop(message.message_id, None)
        return result

    async def _deliver(self, message: QueuedMessage) -> tuple[DeliveryOutcome, bool]:
        try:
            outcome = await self._sender.send(message.recipient, message.subject, message.body)
        except PermanentDeliveryError as e:
            return DeliveryOutcome.failed(e.message, e.delivery_code), True
        except TransientDeliveryError as e:
            return DeliveryOutcome.failed(e.message, e.delivery_code), False
        except Exception as e:
            logger.exception("Sender raised for %s", message.message_id)
            return DeliveryOutcome.failed(str(e) or type(e).__name__), False
        if not isinstance(outcome, DeliveryOutcome):
            logger.error(
                "Sender returned %s for %s, treating as failed",
                type(outcome).__name__, message.message_id,
            )
            return DeliveryOutcome.failed(f"Sender returned {type(outcome).__name__}"), False
        if not outcome.success and not outcome.error:
            outcome = DeliveryOutcome.failed("Delivery failed", outcome.error_code)
        permanent = (
            not outcome.success
            and outcome.error_code is not None
            and outcome.error_code in self._settings.permanent_error_codes
        )
        return outcome, permanent

    async def _record(
        self, message: QueuedMessage, outcome: DeliveryOutcome, permanent: bool,
    ) -> AttemptResult:
        now = self._clock()
        mid = message.message_id

        if outcome.success:
            await self._transition(
                message, MessageStatus.SENT, now,
                sent_at=now, provider_message_id=outcome.provider_message_id, last_error=None,
            )
            logger.info("Delivered %s (attempt %d)", mid, message.attempt_count)
            return AttemptResult.SENT

        if permanent or message.attempts_exhausted:
            await self._transition(message, MessageStatus.FAILED, now, last_error=outcome.error)
            logger.warning(
                "Notification %s failed after %d attempts%s: %s",
                mid, message.attempt_count, " (permanent)" if permanent else "", outcome.error,
            )
            return AttemptResult.FAILED

        delay = backoff_delay(
            message.attempt_count, self._settings.backoff_base, self._settings.backoff_max,
        )
        next_attempt_at = now + timedelta(seconds=delay)
        await self._transition(
            message, MessageStatus.PENDING, now,
            next_attempt_at=next_attempt_at, last_error=outcome.error,
        )
        logger.info(
            "Attempt %d for %s failed, retrying at %s: %s",
            message.attempt_count, mid, next_attempt_at.isoformat(), outcome.error,
        )
        return AttemptResult.RETRY

    async def _transition(
        self, message: QueuedMessage, status: MessageStatus, now: datetime, **fields,
    ) -> None:
        moved = await self._store.update_status(
            message.message_id, status, MessageStatus.PROCESSING, now,
            claim_id=message.claim_id, **fields,
        )
        if not moved:
            logger.warning(
                "Message %s is no longer held by this claim; %s not recorded",
                message.message_id, status.value,
            )

    async def _release_unresolved(self, messages: list[QueuedMessage]) -> int:
        now = self._clock()
        released = 0
        for message in sorted(messages, key=lambda m: m.message_id):
            try:
                moved = await self._store.release(message.message_id, now, message.claim_id)
            except StoreUnavailableError as e:
                logger.error(
                    "Could not release %s; it will be recovered as stale: %s",
                    message.message_id, e,
                )
            else:
                if moved:
                    released += 1
                    logger.info("Released unresolved claim %s", message.message_id)
        return released
