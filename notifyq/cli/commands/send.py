"""Queue a custom notification."""

import asyncio

import typer
from rich.console import Console

from notifyq.cli.commands._runtime import open_queue
from notifyq.cli.output import format_error, format_success, json_output
from notifyq.cli.utils.config import ConfigError
from notifyq.queue import NotificationComposer, ValidationError
from notifyq.state import QueuedMessage

console = Console()


async def _send(recipient: str, subject: str, body: str, user_id: str | None) -> QueuedMessage:
    async with open_queue() as engine:
        composer = NotificationComposer(engine)
        return await composer.send_custom(recipient, subject, body, user_id=user_id)


def send_command(
    recipient: str,
    subject: str,
    body: str,
    user_id: str | None,
    json_flag: bool,
) -> None:
    """Queue a custom notification for the next processing cycle."""
    try:
        message = asyncio.run(_send(recipient, subject, body, user_id))
    except ValidationError as e:
        format_error(console, e.message)
        raise typer.Exit(code=2)
    except ConfigError as e:
        format_error(console, str(e), hint="Run 'notifyq init' first")
        raise typer.Exit(code=1)
    except Exception as e:
        format_error(console, f"Failed to queue notification: {e}")
        raise typer.Exit(code=1)

    if json_flag:
        json_output(console, {"status": "queued", "message_id": message.message_id})
    else:
        format_success(console, f"Queued notification {message.message_id}")
