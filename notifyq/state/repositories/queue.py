"""Notification queue repository.

All state transitions are single guarded UPDATE statements: a row only
moves if it is still in the status the caller expects, so two writers
racing on the same message cannot both win.
"""
import aiosqlite
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from notifyq.state.models.notification import (
    MessageStatus,
    NotificationKind,
    QueuedMessage,
)

_MAX_LIST_LIMIT = 100

_UPDATABLE_FIELDS = frozenset({
    "attempt_count",
    "next_attempt_at",
    "last_error",
    "provider_message_id",
    "sent_at",
})


def to_db_time(value: datetime) -> str:
    """Serialise a datetime as fixed-width UTC ISO-8601.

    Fixed width keeps lexicographic order equal to chronological order,
    which the due-date comparison in ``claim_batch`` relies on.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class QueueRepository:
    """Manages queued notifications in the notification_queue table."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert(self, msg: QueuedMessage) -> None:
        """Insert a new message into the queue.

        Args:
            msg: The message to store.
        """
        await self._conn.execute(
            "INSERT INTO notification_queue (message_id, recipient, subject, "
            "body, kind, user_id, resource_type, resource_id, status, "
            "attempt_count, max_attempts, next_attempt_at, last_error, "
            "provider_message_id, created_at, updated_at, sent_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                msg.message_id,
                msg.recipient,
                msg.subject,
                msg.body,
                msg.kind.value,
                msg.user_id,
                msg.resource_type,
                msg.resource_id,
                msg.status.value,
                msg.attempt_count,
                msg.max_attempts,
                to_db_time(msg.next_attempt_at),
                msg.last_error,
                msg.provider_message_id,
                to_db_time(msg.created_at),
                to_db_time(msg.updated_at),
                to_db_time(msg.sent_at) if msg.sent_at else None,
            ),
        )
        await self._conn.commit()

    async def claim_batch(self, limit: int, now: datetime) -> list[QueuedMessage]:
        """Atomically claim up to ``limit`` due messages.

        Selection and the move to ``processing`` happen in one UPDATE, so
        a row can only be returned to one caller. Each claim counts as a
        delivery attempt, and every claimed row is stamped with a fresh
        ``claim_id`` that later writes for this claim must present.

        Returns:
            Claimed messages, oldest first.

        Raises:
            ValueError: If limit is not a positive integer.
        """
        if not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        now_s = to_db_time(now)
        cursor = await self._conn.execute(
            "UPDATE notification_queue "
            "SET status = ?, attempt_count = attempt_count + 1, updated_at = ?, claim_id = ? "
            "WHERE status = ? AND message_id IN ("
            "  SELECT message_id FROM notification_queue "
            "  WHERE status = ? AND next_attempt_at <= ? "
            "  ORDER BY created_at ASC, rowid ASC LIMIT ?"
            ") RETURNING *, rowid AS seq",
            (
                MessageStatus.PROCESSING.value,
                now_s,
                uuid.uuid4().hex,
                MessageStatus.PENDING.value,
                MessageStatus.PENDING.value,
                now_s,
                limit,
            ),
        )
        rows = await cursor.fetchall()
        await self._conn.commit()
        rows = sorted(rows, key=lambda r: (r["created_at"], r["seq"]))
        return [self._row_to_message(r) for r in rows]

    async def update_status(
        self,
        message_id: str,
        status: MessageStatus,
        expected: MessageStatus,
        now: datetime,
        claim_id: Optional[str] = None,
        **fields: Any,
    ) -> bool:
        """Move a message from ``expected`` to ``status``.

        Args:
            message_id: The message to update.
            status: The new status.
            expected: The status the row must currently have.
            now: Timestamp recorded as ``updated_at``.
            claim_id: When given, the row must still carry this claim.
            **fields: Extra columns to set (attempt_count, next_attempt_at,
                last_error, provider_message_id, sent_at).

        Returns:
            True if the row matched and has been updated.

        Raises:
            ValueError: If an unknown field is given.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        assignments = ["status = ?", "updated_at = ?", "claim_id = NULL"]
        params: list[Any] = [status.value, to_db_time(now)]
        for name, value in sorted(fields.items()):
            assignments.append(f"{name} = ?")
            params.append(to_db_time(value) if isinstance(value, datetime) else value)
        where = "message_id = ? AND status = ?"
        params.extend([message_id, expected.value])
        if claim_id is not None:
            where += " AND claim_id = ?"
            params.append(claim_id)
        cursor = await self._conn.execute(
            f"UPDATE notification_queue SET {', '.join(assignments)} WHERE {where}",
            tuple(params),
        )
        await self._conn.commit()
        return cursor.rowcount > 0

    async def release(
        self, message_id: str, now: datetime, claim_id: Optional[str] = None,
    ) -> bool:
        """Return an unresolved claim to ``pending``.

        The attempt recorded by the claim is taken back because its
        outcome was never stored. With ``claim_id`` only that claim is
        released.
        """
        where = "message_id = ? AND status = ?"
        params: list[Any] = [
            MessageStatus.PENDING.value,
            to_db_time(now),
            message_id,
            MessageStatus.PROCESSING.value,
        ]
        if claim_id is not None:
            where += " AND claim_id = ?"
            params.append(claim_id)
        cursor = await self._conn.execute(
            "UPDATE notification_queue SET status = ?, claim_id = NULL, "
            f"attempt_count = MAX(attempt_count - 1, 0), updated_at = ? WHERE {where}",
            tuple(params),
        )
        await self._conn.commit()
        return cursor.rowcount > 0

    async def release_stale(self, older_than: datetime, now: datetime) -> int:
        """Release every claim whose last update is before ``older_than``.

        Returns:
            Number of messages put back to ``pending``.
        """
        cursor = await self._conn.execute(
            "UPDATE notification_queue SET status = ?, claim_id = NULL, "
            "attempt_count = MAX(attempt_count - 1, 0), updated_at = ? "
            "WHERE status = ? AND updated_at < ?",
            (
                MessageStatus.PENDING.value,
                to_db_time(now),
                MessageStatus.PROCESSING.value,
                to_db_time(older_than),
            ),
        )
        await self._conn.commit()
        return cursor.rowcount

    async def get_by_id(self, message_id: str) -> Optional[QueuedMessage]:
        cursor = await self._conn.execute(
            "SELECT * FROM notification_queue WHERE message_id = ?",
            (message_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_message(row) if row else None

    async def count_by_status(self) -> dict[str, int]:
        """Count messages grouped by status in a single query.

        Returns:
            Dict with every status name as a key (zero when absent).
        """
        cursor = await self._conn.execute(
            "SELECT status, COUNT(*) FROM notification_queue GROUP BY status"
        )
        rows = await cursor.fetchall()
        counts: dict[str, int] = {s.value: 0 for s in MessageStatus}
        for row in rows:
            if row[0] in counts:
                counts[row[0]] = row[1]
        return counts

    async def list_messages(
        self,
        status: Optional[MessageStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[QueuedMessage]:
        """List queued messages oldest first, optionally filtered by status.

        Args:
            status: Filter to this status, or None for all statuses.
            limit: Maximum messages to return (capped at 100).
            offset: Number of matching messages to skip.

        Raises:
            ValueError: If limit is not positive or offset is negative.
        """
        if not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        if not isinstance(offset, int) or offset < 0:
            raise ValueError(f"offset must be a non-negative integer, got {offset!r}")
        capped = min(limit, _MAX_LIST_LIMIT)
        if status is not None:
            cursor = await self._conn.execute(
                "SELECT * FROM notification_queue WHERE status = ? "
                "ORDER BY created_at ASC, rowid ASC LIMIT ? OFFSET ?",
                (status.value, capped, offset),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM notification_queue "
                "ORDER BY created_at ASC, rowid ASC LIMIT ? OFFSET ?",
                (capped, offset),
            )
        rows = await cursor.fetchall()
        return [self._row_to_message(r) for r in rows]

    @staticmethod
    def _row_to_message(row: aiosqlite.Row) -> QueuedMessage:
        """Convert a database row to a QueuedMessage."""
        return QueuedMessage(
            message_id=row["message_id"],
            recipient=row["recipient"],
            subject=row["subject"],
            body=row["body"],
            kind=NotificationKind(row["kind"]),
            user_id=row["user_id"],
            resource_type=row["resource_type"],
            resource_id=row["resource_id"],
            status=MessageStatus(row["status"]),
            attempt_count=row["attempt_count"],
            max_attempts=row["max_attempts"],
            next_attempt_at=datetime.fromisoformat(row["next_attempt_at"]),
            last_error=row["last_error"],
            provider_message_id=row["provider_message_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            sent_at=_from_db_time(row["sent_at"]),
            claim_id=row["claim_id"],
        )
