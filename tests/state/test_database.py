"""Tests for database initialization and migrations."""
import aiosqlite
import pytest

from notifyq.state.database import DatabaseManager


class TestDatabaseManager:
    @pytest.mark.asyncio
    async def test_initialize_creates_tables(self, db):
        async with db.connection() as conn:
            cursor = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )
            tables = {row[0] for row in await cursor.fetchall()}
        assert {"schema_versions", "notification_queue"} <= tables

    @pytest.mark.asyncio
    async def test_initialize_creates_indexes(self, db):
        async with db.connection() as conn:
            cursor = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='index'"
            )
            indexes = {row[0] for row in await cursor.fetchall()}
        assert "idx_queue_due" in indexes
        assert "idx_queue_user" in indexes

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, db):
        await db.initialize()
        async with db.connection() as conn:
            cursor = await conn.execute("SELECT version FROM schema_versions ORDER BY version")
            versions = [row[0] for row in await cursor.fetchall()]
        assert versions == ["1.0.0", "1.1.0", "1.2.0"]

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path):
        manager = DatabaseManager(tmp_path / "nested" / "dir" / "queue.db")
        await manager.initialize()
        assert manager.db_path.exists()
        assert manager.is_initialized

    @pytest.mark.asyncio
    async def test_close_marks_uninitialized(self, db):
        await db.close()
        assert db.is_initialized is False


class TestMigration:
    @pytest.mark.asyncio
    async def test_adds_receipt_columns_to_1_0_0_table(self, tmp_path):
        db_path = tmp_path / "old.db"
        async with aiosqlite.connect(db_path) as conn:
            await conn.executescript(
                """
                CREATE TABLE schema_versions (version TEXT PRIMARY KEY, applied_at TEXT NOT NULL);
                INSERT INTO schema_versions VALUES ('1.0.0', datetime('now'));
                CREATE TABLE notification_queue (
                    message_id TEXT PRIMARY KEY, recipient TEXT NOT NULL,
                    subject TEXT NOT NULL, body TEXT NOT NULL, kind TEXT NOT NULL,
                    user_id TEXT, resource_type TEXT, resource_id TEXT,
                    status TEXT NOT NULL DEFAULT 'pending',
                    attempt_count INTEGER NOT NULL DEFAULT 0,
                    max_attempts INTEGER NOT NULL DEFAULT 3,
                    next_attempt_at TEXT NOT NULL, last_error TEXT,
                    created_at TEXT NOT NULL, updated_at TEXT NOT NULL
                );
                """
            )
            await conn.commit()

        manager = DatabaseManager(db_path)
        await manager.initialize()

        async with manager.connection() as conn:
            cursor = await conn.execute("PRAGMA table_info(notification_queue)")
            columns = {row[1] for row in await cursor.fetchall()}
            cursor = await conn.execute("SELECT 1 FROM schema_versions WHERE version = '1.1.0'")
            applied = await cursor.fetchone()
        assert {"provider_message_id", "sent_at", "claim_id"} <= columns
        assert applied is not None
