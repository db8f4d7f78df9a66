"""Requeue a failed notification."""

import asyncio

import typer
from rich.console import Console

from notifyq.cli.commands._runtime import open_queue
from notifyq.cli.output import format_error, format_success, json_output
from notifyq.cli.utils import validate_message_id
from notifyq.cli.utils.config import ConfigError
from notifyq.queue import InvalidStateError, ManualRetryController, MessageNotFoundError
from notifyq.state import QueuedMessage

console = Console()


async def _retry(message_id: str) -> QueuedMessage:
    async with open_queue() as engine:
        controller = ManualRetryController(
            engine.store,
            clock=engine.clock,
            reset_attempts=engine.settings.manual_retry_resets_attempts,
        )
        return await controller.retry(message_id)


def retry_command(message_id: str, json_flag: bool) -> None:
    """Move a failed notification back to pending."""
    try:
        message_id = validate_message_id(message_id)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)

    try:
        message = asyncio.run(_retry(message_id))
    except MessageNotFoundError as e:
        format_error(console, e.message)
        raise typer.Exit(code=1)
    except InvalidStateError as e:
        format_error(console, e.message, hint="Only failed notifications can be retried")
        raise typer.Exit(code=1)
    except ConfigError as e:
        format_error(console, str(e), hint="Run 'notifyq init' first")
        raise typer.Exit(code=1)
    except Exception as e:
        format_error(console, f"Retry failed: {e}")
        raise typer.Exit(code=1)

    if json_flag:
        json_output(
            console,
            {
                "status": message.status.value,
                "message_id": message.message_id,
                "attempt_count": message.attempt_count,
            },
        )
    else:
        format_success(
            console,
            f"Requeued {message.message_id} (attempts so far: {message.attempt_count})",
        )
