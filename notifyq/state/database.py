"""Database connection and lifecycle management."""
import aiosqlite
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

_BUSY_TIMEOUT_SECONDS = 5.0


class DatabaseError(Exception):
    pass


class DatabaseNotInitializedError(DatabaseError):
    pass


class DatabaseManager:
    """Manages SQLite database connections and schema initialization."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._initialized = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Create tables, indexes, and run migrations."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self.connection() as conn:
            await conn.execute("PRAGMA journal_mode = WAL")
            await conn.executescript(_SCHEMA)
            await conn.commit()
            await _migrate_to_1_1_0(conn)
            await _migrate_to_1_2_0(conn)
        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield an async database connection."""
        conn = await aiosqlite.connect(self._db_path, timeout=_BUSY_TIMEOUT_SECONDS)
        conn.row_factory = aiosqlite.Row
        try:
            yield conn
        finally:
            await conn.close()

    async def close(self) -> None:
        """Mark the manager as closed."""
        self._initialized = False


async def _migrate_to_1_1_0(conn: aiosqlite.Connection) -> None:
    """Migrate from schema 1.0.0 to 1.1.0: delivery receipt columns.

    Idempotent -- checks schema_versions before running, and checks
    whether each column already exists (fresh databases get them from
    the DDL).
    """
    cursor = await conn.execute(
        "SELECT 1 FROM schema_versions WHERE version = '1.1.0'"
    )
    if await cursor.fetchone() is not None:
        return

    col_cursor = await conn.execute("PRAGMA table_info(notification_queue)")
    columns = {row[1] for row in await col_cursor.fetchall()}
    if "provider_message_id" not in columns:
        await conn.execute(
            "ALTER TABLE notification_queue ADD COLUMN provider_message_id TEXT"
        )
    if "sent_at" not in columns:
        await conn.execute("ALTER TABLE notification_queue ADD COLUMN sent_at TEXT")

    await conn.execute(
        "INSERT OR IGNORE INTO schema_versions (version, applied_at) "
        "VALUES ('1.1.0', datetime('now'))"
    )
    await conn.commit()


async def _migrate_to_1_2_0(conn: aiosqlite.Connection) -> None:
    """Migrate from schema 1.1.0 to 1.2.0: claim tokens on in-flight rows."""
    cursor = await conn.execute(
        "SELECT 1 FROM schema_versions WHERE version = '1.2.0'"
    )
    if await cursor.fetchone() is not None:
        return

    col_cursor = await conn.execute("PRAGMA table_info(notification_queue)")
    columns = {row[1] for row in await col_cursor.fetchall()}
    if "claim_id" not in columns:
        await conn.execute("ALTER TABLE notification_queue ADD COLUMN claim_id TEXT")

    await conn.execute(
        "INSERT OR IGNORE INTO schema_versions (version, applied_at) "
        "VALUES ('1.2.0', datetime('now'))"
    )
    await conn.commit()


_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_versions (version TEXT PRIMARY KEY, applied_at TEXT NOT NULL);
CREATE TABLE IF NOT EXISTS notification_queue (
    message_id          TEXT PRIMARY KEY,
    recipient           TEXT NOT NULL,
    subject             TEXT NOT NULL,
    body                TEXT NOT NULL,
    kind                TEXT NOT NULL,
    user_id             TEXT,
    resource_type       TEXT,
    resource_id         TEXT,
    status              TEXT NOT NULL DEFAULT 'pending',
    attempt_count       INTEGER NOT NULL DEFAULT 0,
    max_attempts        INTEGER NOT NULL DEFAULT 3,
    next_attempt_at     TEXT NOT NULL,
    last_error          TEXT,
    provider_message_id TEXT,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL,
    sent_at             TEXT,
    claim_id            TEXT,
    CHECK(status IN ('pending', 'processing', 'sent', 'failed')),
    CHECK(attempt_count >= 0)
);
CREATE INDEX IF NOT EXISTS idx_queue_due ON notification_queue(status, next_attempt_at, created_at);
CREATE INDEX IF NOT EXISTS idx_queue_user ON notification_queue(user_id);
INSERT OR IGNORE INTO schema_versions (version, applied_at) VALUES ('1.0.0', datetime('now'));
"""
