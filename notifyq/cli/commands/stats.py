"""Show delivery statistics."""

import asyncio

import typer
from rich.console import Console

from notifyq.cli.commands._runtime import open_queue
from notifyq.cli.output import format_error, format_status, format_table, json_output
from notifyq.cli.utils.config import ConfigError
from notifyq.queue import DeliveryStats, get_stats

console = Console()


async def _stats() -> DeliveryStats:
    async with open_queue() as engine:
        return await get_stats(engine.store)


def stats_command(json_flag: bool) -> None:
    """Show per-status message counts."""
    try:
        stats = asyncio.run(_stats())
    except ConfigError as e:
        if json_flag:
            json_output(console, {"status": "not_initialized", "error": str(e)})
        else:
            format_error(console, str(e), hint="Run 'notifyq init' first")
        raise typer.Exit(code=1)
    except Exception as e:
        format_error(console, f"Failed to get stats: {e}")
        raise typer.Exit(code=1)

    counts = stats.as_dict()
    if json_flag:
        json_output(console, counts)
        return

    rows = [
        (format_status(name) if name != "total" else "[bold]total[/bold]", str(count))
        for name, count in counts.items()
    ]
    format_table(console, "Delivery Stats", ["Status", "Count"], rows)
