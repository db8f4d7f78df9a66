"""GET /health endpoint handler."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, status

from notifyq.queue.errors import StoreUnavailableError
from notifyq.queue.scheduler import QueueScheduler
from notifyq.queue.stats import get_stats
from notifyq.queue.store import QueueStore
from notifyq.server.config import ServerConfig
from notifyq.server.models.responses import HealthResponse, QueueCounts

logger = logging.getLogger(__name__)

FAILED_RATIO_THRESHOLD = 0.5
_MIN_SAMPLE = 20


def create_health_router(
    config: ServerConfig,
    store: QueueStore,
    scheduler: Optional[QueueScheduler] = None,
) -> APIRouter:
    """Create health router with injected dependencies."""
    router = APIRouter()

    @router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK, tags=["status"])
    async def health_check() -> HealthResponse:
        """Check that the queue store is reachable and delivery is keeping up."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        running = scheduler is not None and scheduler.is_running
        try:
            stats = await get_stats(store)
        except StoreUnavailableError as e:
            logger.error("Health check could not read queue: %s", e)
            return HealthResponse(
                status="degraded", version=config.version, timestamp=timestamp,
                scheduler_running=running, message="Queue store unavailable",
            )
        counts = QueueCounts(**stats.as_dict())
        finished = stats.sent + stats.failed
        if finished >= _MIN_SAMPLE and stats.failed / finished >= FAILED_RATIO_THRESHOLD:
            return HealthResponse(
                status="degraded", version=config.version, timestamp=timestamp,
                scheduler_running=running, queue=counts,
                message="Failed deliveries exceed threshold",
            )
        if config.scheduler_enabled and not running:
            return HealthResponse(
                status="degraded", version=config.version, timestamp=timestamp,
                scheduler_running=False, queue=counts,
                message="Queue scheduler is not running",
            )
        return HealthResponse(
            status="healthy", version=config.version, timestamp=timestamp,
            scheduler_running=running, queue=counts,
        )

    return router
