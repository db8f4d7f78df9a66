"""Main CLI entry point for the notification queue."""

import typer
from rich.console import Console

from notifyq.cli.commands.init import init_command
from notifyq.cli.commands.list_messages import list_command
from notifyq.cli.commands.process import process_command
from notifyq.cli.commands.retry import retry_command
from notifyq.cli.commands.send import send_command
from notifyq.cli.commands.show import show_command
from notifyq.cli.commands.stats import stats_command

app = typer.Typer(
    name="notifyq",
    help="notifyq - durable transactional notification queue",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()


@app.command("init")
def init(
    db_path: str = typer.Option(None, "-d", "--db-path", help="SQLite database path"),
    sender: str = typer.Option("log", "-s", "--sender", help="Sender: log or webhook"),
    url: str = typer.Option(None, "-u", "--url", help="Provider endpoint for webhook"),
    api_key: str = typer.Option("", "--api-key", help="Provider API key"),
    from_address: str = typer.Option(
        "noreply@alwr.com", "--from", help="From address on outgoing mail"
    ),
    portal_url: str = typer.Option(None, "--portal-url", help="Base URL used in links"),
    force: bool = typer.Option(False, "-f", "--force", help="Overwrite config"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Initialize configuration and create the queue database."""
    init_command(db_path, sender, url, api_key, from_address, portal_url, force, json_flag)


@app.command("send")
def send(
    to: str = typer.Option(..., "-t", "--to", help="Recipient address"),
    subject: str = typer.Option(..., "-s", "--subject", help="Subject line"),
    body: str = typer.Option(..., "-b", "--body", help="HTML body"),
    user_id: str = typer.Option(None, "-u", "--user", help="Owning user ID"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Queue a custom notification."""
    send_command(to, subject, body, user_id, json_flag)


@app.command("list")
def list_messages(
    status: str = typer.Option(None, "-s", "--status", help="Filter by status"),
    limit: int = typer.Option(50, "-l", "--limit", help="Max notifications (<=100)"),
    offset: int = typer.Option(0, "-o", "--offset", help="Skip this many"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List queued notifications, oldest first."""
    list_command(status, limit, offset, json_flag)


@app.command("show")
def show(
    message_id: str = typer.Argument(..., help="Notification ID"),
    body: bool = typer.Option(False, "--body", help="Include the rendered body"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Show one notification."""
    show_command(message_id, body, json_flag)


@app.command("stats")
def stats(
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show per-status delivery counts."""
    stats_command(json_flag)


@app.command("retry")
def retry(
    message_id: str = typer.Argument(..., help="Failed notification ID"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Requeue a failed notification."""
    retry_command(message_id, json_flag)


@app.command("process")
def process(
    cycles: int = typer.Option(1, "-n", "--cycles", help="Maximum cycles to run"),
    until_empty: bool = typer.Option(
        False, "--until-empty", help="Stop once a cycle claims nothing"
    ),
    recover_stale: bool = typer.Option(
        False, "--recover-stale", help="First requeue claims left by a crashed process"
    ),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Deliver due notifications in the foreground."""
    process_command(cycles, until_empty, json_flag, recover_stale)


def main() -> None:
    """Entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)
