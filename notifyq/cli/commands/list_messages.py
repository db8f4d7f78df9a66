"""List queued notifications."""

import asyncio

import typer
from rich.console import Console

from notifyq.cli.commands._runtime import message_summary, open_queue
from notifyq.cli.output import format_error, format_status, format_table, json_output
from notifyq.cli.utils.config import ConfigError
from notifyq.state import MessageStatus, QueuedMessage

console = Console()


async def _list(status: MessageStatus | None, limit: int, offset: int) -> list[QueuedMessage]:
    async with open_queue() as engine:
        return await engine.store.list_messages(status, limit=limit, offset=offset)


def list_command(status: str | None, limit: int, offset: int, json_flag: bool) -> None:
    """List notifications, oldest first, optionally filtered by status."""
    try:
        status_filter = MessageStatus(status) if status else None
    except ValueError:
        choices = ", ".join(s.value for s in MessageStatus)
        format_error(console, f"Unknown status {status!r}", hint=f"Use one of: {choices}")
        raise typer.Exit(code=2)
    if limit < 1 or offset < 0:
        format_error(console, "--limit must be positive and --offset non-negative")
        raise typer.Exit(code=2)

    try:
        messages = asyncio.run(_list(status_filter, limit, offset))
    except ConfigError as e:
        format_error(console, str(e), hint="Run 'notifyq init' first")
        raise typer.Exit(code=1)
    except Exception as e:
        format_error(console, f"Failed to list notifications: {e}")
        raise typer.Exit(code=1)

    if json_flag:
        json_output(
            console,
            {
                "count": len(messages),
                "limit": min(limit, 100),
                "offset": offset,
                "messages": [message_summary(m) for m in messages],
            },
        )
        return

    if not messages:
        console.print("[dim]No notifications[/dim]")
        return

    rows = [
        (
            m.message_id[:8],
            m.recipient,
            m.subject[:40],
            format_status(m.status.value),
            f"{m.attempt_count}/{m.max_attempts}",
            m.created_at.strftime("%Y-%m-%d %H:%M"),
        )
        for m in messages
    ]
    format_table(
        console,
        "Notifications",
        ["ID", "Recipient", "Subject", "Status", "Attempts", "Created"],
        rows,
    )
