"""CLI command implementations."""

from .init import init_command
from .list_messages import list_command
from .process import process_command
from .retry import retry_command
from .send import send_command
from .show import show_command
from .stats import stats_command

__all__ = [
    "init_command",
    "list_command",
    "process_command",
    "retry_command",
    "send_command",
    "show_command",
    "stats_command",
]
