"""Run processing cycles in the foreground."""

import asyncio

import typer
from rich.console import Console

from notifyq.cli.commands._runtime import open_queue
from notifyq.cli.output import format_error, format_warning, json_output
from notifyq.cli.utils.config import ConfigError
from notifyq.queue import CycleResult

console = Console()


async def _process(
    cycles: int, until_empty: bool, recover_stale: bool,
) -> tuple[int, list[CycleResult]]:
    results: list[CycleResult] = []
    recovered = 0
    async with open_queue() as engine:
        if recover_stale:
            recovered = await engine.recover_stale()
        while len(results) < cycles:
            result = await engine.process_cycle()
            results.append(result)
            if result.error or (until_empty and result.claimed == 0):
                break
    return recovered, results


def process_command(
    cycles: int, until_empty: bool, json_flag: bool, recover_stale: bool = False,
) -> None:
    """Claim and deliver due notifications without starting the server.

    ``recover_stale`` first returns claims abandoned by a crashed process
    to pending. Leave it off while a server is processing the same queue.
    """
    if cycles < 1:
        format_error(console, "--cycles must be at least 1")
        raise typer.Exit(code=2)

    try:
        recovered, results = asyncio.run(_process(cycles, until_empty, recover_stale))
    except ConfigError as e:
        format_error(console, str(e), hint="Run 'notifyq init' first")
        raise typer.Exit(code=1)
    except Exception as e:
        format_error(console, f"Processing failed: {e}")
        raise typer.Exit(code=1)

    totals = {
        "recovered": recovered,
        "cycles": len(results),
        "claimed": sum(r.claimed for r in results),
        "sent": sum(r.sent for r in results),
        "retried": sum(r.retried for r in results),
        "failed": sum(r.failed for r in results),
    }
    error = next((r.error for r in results if r.error), None)

    if json_flag:
        json_output(console, {**totals, "error": error})
    else:
        console.print(
            f"Ran {totals['cycles']} cycle(s): claimed={totals['claimed']} "
            f"sent={totals['sent']} retried={totals['retried']} failed={totals['failed']}"
        )
        if recovered:
            format_warning(console, f"Recovered {recovered} stale claim(s)")
        if error:
            format_warning(console, error)
    if error:
        raise typer.Exit(code=1)
