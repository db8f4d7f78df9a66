"""Tests for delivery statistics."""
import pytest

from conftest import ScriptedSender
from notifyq.queue import DeliveryOutcome, DeliveryStats, QueueEngine, get_stats
from notifyq.state import NotificationKind


class TestDeliveryStats:
    def test_total(self):
        assert DeliveryStats(pending=1, processing=2, sent=3, failed=4).total == 10

    def test_as_dict(self):
        stats = DeliveryStats(pending=1, processing=2, sent=3, failed=4)
        assert stats.as_dict() == {
            "pending": 1, "processing": 2, "sent": 3, "failed": 4, "total": 10,
        }

    def test_as_dict_folds_processing_into_pending(self):
        stats = DeliveryStats(pending=1, processing=2, sent=3, failed=4)
        assert stats.as_dict(fold_processing=True) == {
            "pending": 3, "sent": 3, "failed": 4, "total": 10,
        }


class TestGetStats:
    @pytest.mark.asyncio
    async def test_empty_queue(self, store):
        stats = await get_stats(store)
        assert stats == DeliveryStats()
        assert stats.total == 0

    @pytest.mark.asyncio
    async def test_counts_follow_processing(self, store, clock):
        sender = ScriptedSender(
            script=[DeliveryOutcome.failed("bounced", "invalid_recipient"), DeliveryOutcome.failed("later")],
        )
        engine = QueueEngine(store, sender, clock=clock)
        for i in range(5):
            await engine.enqueue(f"u{i}@example.com", "S", "B", NotificationKind.CUSTOM)

        before = await get_stats(store)
        await engine.process_cycle()
        after = await get_stats(store)

        assert before == DeliveryStats(pending=5)
        assert after == DeliveryStats(pending=1, sent=3, failed=1)
        assert after.total == before.total

    @pytest.mark.asyncio
    async def test_in_flight_messages_are_counted(self, store, sender, clock):
        engine = QueueEngine(store, sender, clock=clock)
        await engine.enqueue("a@example.com", "S", "B", NotificationKind.CUSTOM)
        await store.claim_batch(10, clock.now)
        stats = await get_stats(store)
        assert stats.processing == 1
        assert stats.pending == 0
