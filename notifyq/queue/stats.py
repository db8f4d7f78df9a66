"""Point-in-time delivery statistics."""
from dataclasses import dataclass

from notifyq.queue.store import QueueStore
from notifyq.state.models.notification import MessageStatus


@dataclass(frozen=True)
class DeliveryStats:
    pending: int = 0
    processing: int = 0
    sent: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.processing + self.sent + self.failed

    def as_dict(self, fold_processing: bool = False) -> dict[str, int]:
        """Counts keyed by status plus ``total``.

        With ``fold_processing`` the in-flight messages are reported as
        pending, the view dashboards that only know three states expect.
        """
        if fold_processing:
            counts = {
                "pending": self.pending + self.processing,
                "sent": self.sent,
                "failed": self.failed,
            }
        else:
            counts = {
                "pending": self.pending,
                "processing": self.processing,
                "sent": self.sent,
                "failed": self.failed,
            }
        counts["total"] = self.total
        return counts


async def get_stats(store: QueueStore) -> DeliveryStats:
    """Count messages per status from a single store read."""
    counts = await store.count_by_status()
    return DeliveryStats(
        pending=counts.get(MessageStatus.PENDING.value, 0),
        processing=counts.get(MessageStatus.PROCESSING.value, 0),
        sent=counts.get(MessageStatus.SENT.value, 0),
        failed=counts.get(MessageStatus.FAILED.value, 0),
    )
