"""Periodic driver for the queue engine."""
import asyncio
import logging
from typing import Optional

from notifyq.queue.engine import CycleResult, QueueEngine
from notifyq.queue.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class QueueScheduler:
    """Runs ``QueueEngine.process_cycle`` on a fixed interval.

    A single background task owns the loop, so cycles never overlap. The
    wait between ticks can be cut short with :meth:`wake` and is ended by
    :meth:`stop`, which lets an in-flight batch finish.
    """

    def __init__(self, engine: QueueEngine, interval: Optional[float] = None) -> None:
        self._engine = engine
        self._interval = interval if interval is not None else engine.settings.interval
        if self._interval <= 0:
            raise ValueError("interval must be positive")
        self._stop = asyncio.Event()
        self._wake = asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None
        self._cycles = 0
        self._last_result: Optional[CycleResult] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def last_result(self) -> Optional[CycleResult]:
        return self._last_result

    async def start(self) -> None:
        """Recover stale claims and spawn the processing loop."""
        if self.is_running:
            logger.warning("Queue scheduler is already running")
            return
        try:
            await self._engine.recover_stale()
        except StoreUnavailableError as e:
            logger.error("Stale claim recovery failed, continuing: %s", e)
        self._stop.clear()
        self._wake.clear()
        self._task = asyncio.create_task(self._loop(), name="notification-queue-loop")
        logger.info("Queue scheduler started, interval=%.1fs", self._interval)

    async def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the loop, waiting for the current cycle to finish.

        Args:
            timeout: Seconds to wait before cancelling the loop. A
                cancelled cycle releases its claims back to pending.
        """
        if self._task is None:
            return
        self._stop.set()
        self._wake.set()
        task = self._task
        try:
            if timeout is None:
                await task
            else:
                await asyncio.wait_for(task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Queue scheduler did not stop within %.1fs, cancelled", timeout)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
        finally:
            self._task = None
        logger.info("Queue scheduler stopped after %d cycles", self._cycles)

    def wake(self) -> None:
        """Run the next cycle now instead of waiting for the interval."""
        self._wake.set()

    async def run_once(self) -> CycleResult:
        """Run one cycle outside the loop."""
        result = await self._engine.process_cycle()
        self._record(result)
        return result

    async def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("Unhandled error in notification queue cycle")
            await self._wait()

    async def _wait(self) -> None:
        if self._stop.is_set():
            return
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=self._interval)
        except asyncio.TimeoutError:
            pass
        self._wake.clear()

    def _record(self, result: CycleResult) -> None:
        if not result.skipped:
            self._cycles += 1
        self._last_result = result
