"""Shared wiring for commands that touch the queue database."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from notifyq.cli.utils import CliConfig, ConfigManager
from notifyq.queue import QueueEngine, SqliteQueueStore
from notifyq.server.app import build_sender
from notifyq.state import DatabaseManager, QueuedMessage


@asynccontextmanager
async def open_queue(config: CliConfig | None = None) -> AsyncIterator[QueueEngine]:
    """Yield an engine over the configured database, closing it afterwards."""
    if config is None:
        config = ConfigManager().load()
    db = DatabaseManager(config.db_path)
    await db.initialize()
    try:
        store = SqliteQueueStore(db)
        yield QueueEngine(store, build_sender(config.sender), settings=config.queue)
    finally:
        await db.close()


def message_summary(message: QueuedMessage) -> dict[str, Any]:
    """Flatten a message for JSON output."""
    return {
        "message_id": message.message_id,
        "recipient": message.recipient,
        "subject": message.subject,
        "kind": message.kind.value,
        "status": message.status.value,
        "attempt_count": message.attempt_count,
        "max_attempts": message.max_attempts,
        "last_error": message.last_error,
        "provider_message_id": message.provider_message_id,
        "user_id": message.user_id,
        "created_at": message.created_at.isoformat(),
        "next_attempt_at": message.next_attempt_at.isoformat(),
        "sent_at": message.sent_at.isoformat() if message.sent_at else None,
    }
