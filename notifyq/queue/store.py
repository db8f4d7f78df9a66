"""Queue store backed by the SQLite notification_queue table."""
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar

import aiosqlite

from notifyq.queue.errors import StoreUnavailableError
from notifyq.state.database import DatabaseManager, DatabaseNotInitializedError
from notifyq.state.models.notification import MessageStatus, QueuedMessage
from notifyq.state.repositories.queue import QueueRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueueStore(Protocol):
    """Durable storage the queue engine works against."""

    async def insert(self, message: QueuedMessage) -> None: ...

    async def claim_batch(self, limit: int, now: datetime) -> list[QueuedMessage]: ...

    async def update_status(
        self,
        message_id: str,
        status: MessageStatus,
        expected: MessageStatus,
        now: datetime,
        claim_id: Optional[str] = None,
        **fields: Any,
    ) -> bool: ...

    async def release(
        self, message_id: str, now: datetime, claim_id: Optional[str] = None,
    ) -> bool: ...

    async def release_stale(self, older_than: datetime, now: datetime) -> int: ...

    async def get_by_id(self, message_id: str) -> Optional[QueuedMessage]: ...

    async def count_by_status(self) -> dict[str, int]: ...

    async def list_messages(
        self,
        status: Optional[MessageStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[QueuedMessage]: ...


class SqliteQueueStore:
    """QueueStore that opens one connection per operation.

    Driver errors surface as :class:`StoreUnavailableError` so callers
    deal with a single infrastructure fault type.
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    @property
    def db(self) -> DatabaseManager:
        return self._db

    async def _run(self, op: Callable[[QueueRepository], Awaitable[T]]) -> T:
        if not self._db.is_initialized:
            raise DatabaseNotInitializedError("Database not initialized")
        try:
            async with self._db.connection() as conn:
                return await op(QueueRepository(conn))
        except (aiosqlite.Error, OSError) as e:
            logger.error("Queue store error: %s", e)
            raise StoreUnavailableError(f"Queue store unavailable: {e}") from e

    async def insert(self, message: QueuedMessage) -> None:
        await self._run(lambda repo: repo.insert(message))

    async def claim_batch(self, limit: int, now: datetime) -> list[QueuedMessage]:
        return await self._run(lambda repo: repo.claim_batch(limit, now))

    async def update_status(
        self,
        message_id: str,
        status: MessageStatus,
        expected: MessageStatus,
        now: datetime,
        claim_id: Optional[str] = None,
        **fields: Any,
    ) -> bool:
        return await self._run(
            lambda repo: repo.update_status(
                message_id, status, expected, now, claim_id=claim_id, **fields
            )
        )

    async def release(
        self, message_id: str, now: datetime, claim_id: Optional[str] = None,
    ) -> bool:
        return await self._run(lambda repo: repo.release(message_id, now, claim_id))

    async def release_stale(self, older_than: datetime, now: datetime) -> int:
        return await self._run(lambda repo: repo.release_stale(older_than, now))

    async def get_by_id(self, message_id: str) -> Optional[QueuedMessage]:
        return await self._run(lambda repo: repo.get_by_id(message_id))

    async def count_by_status(self) -> dict[str, int]:
        return await self._run(lambda repo: repo.count_by_status())

    async def list_messages(
        self,
        status: Optional[MessageStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[QueuedMessage]:
        return await self._run(lambda repo: repo.list_messages(status, limit, offset))
