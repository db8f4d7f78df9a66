"""Shared fixtures: a temporary queue database, a controllable clock and
a scripted delivery sender."""
import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Union

import pytest
import pytest_asyncio

from notifyq.queue.sender import DeliveryOutcome
from notifyq.queue.store import SqliteQueueStore
from notifyq.state.database import DatabaseManager

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


Step = Union[DeliveryOutcome, Exception]


class ScriptedSender:
    """Sender that replays a script of outcomes, then repeats ``default``.

    ``gate`` blocks every send until it is set, which lets a test hold a
    cycle in flight.
    """

    def __init__(
        self,
        script: Optional[list[Step]] = None,
        default: Optional[Step] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.script = list(script or [])
        self.default = default or DeliveryOutcome.ok("provider-1")
        self.gate = gate
        self.started = asyncio.Event()
        self.calls: list[tuple[str, str, str]] = []

    async def send(self, recipient: str, subject: str, body: str) -> DeliveryOutcome:
        self.calls.append((recipient, subject, body))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        step = self.script.pop(0) if self.script else self.default
        if isinstance(step, Exception):
            raise step
        return step

    @property
    def recipients(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sender() -> ScriptedSender:
    return ScriptedSender()


@pytest_asyncio.fixture
async def db(tmp_path: Path):
    manager = DatabaseManager(tmp_path / "queue.db")
    await manager.initialize()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def store(db: DatabaseManager) -> SqliteQueueStore:
    return SqliteQueueStore(db)
