"""Show one notification."""

import asyncio

import typer
from rich.console import Console

from notifyq.cli.commands._runtime import message_summary, open_queue
from notifyq.cli.output import format_error, format_key_value, json_output
from notifyq.cli.utils import validate_message_id
from notifyq.cli.utils.config import ConfigError
from notifyq.state import QueuedMessage

console = Console()


async def _show(message_id: str) -> QueuedMessage | None:
    async with open_queue() as engine:
        return await engine.store.get_by_id(message_id)


def show_command(message_id: str, body: bool, json_flag: bool) -> None:
    """Show the state of a notification."""
    try:
        message_id = validate_message_id(message_id)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)

    try:
        message = asyncio.run(_show(message_id))
    except ConfigError as e:
        format_error(console, str(e), hint="Run 'notifyq init' first")
        raise typer.Exit(code=1)
    except Exception as e:
        format_error(console, f"Failed to load notification: {e}")
        raise typer.Exit(code=1)

    if message is None:
        format_error(console, f"Notification {message_id} not found")
        raise typer.Exit(code=1)

    summary = message_summary(message)
    if body:
        summary["body"] = message.body
    if json_flag:
        json_output(console, summary)
        return
    format_key_value(console, summary)
