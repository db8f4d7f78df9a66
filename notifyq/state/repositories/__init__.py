"""Repositories."""
from notifyq.state.repositories.queue import QueueRepository, to_db_time
__all__ = [
    "QueueRepository",
    "to_db_time",
]
