"""Initialize the local notification queue."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from notifyq.cli.output import format_error, format_success, json_output
from notifyq.cli.utils import ConfigManager, validate_url
from notifyq.server.config import PortalConfig, SenderConfig
from notifyq.state import DatabaseManager

console = Console()

_SENDER_METHODS = ("log", "webhook")


def init_command(
    db_path: str | None,
    sender: str,
    url: str | None,
    api_key: str,
    from_address: str,
    portal_url: str | None,
    force: bool,
    json_flag: bool,
) -> None:
    """Write ~/.notifyq/config.yaml and create the queue database.

    The config file is chmod 600 when it holds a provider API key.
    """
    if sender not in _SENDER_METHODS:
        format_error(console, f"Sender must be one of: {', '.join(_SENDER_METHODS)}")
        raise typer.Exit(code=2)
    try:
        if sender == "webhook":
            if not url:
                raise ValueError("--url is required for the webhook sender")
            url = validate_url(url)
        if portal_url:
            portal_url = validate_url(portal_url)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)

    config = ConfigManager()

    if config.exists() and not force:
        format_error(
            console,
            f"Configuration already exists at {config.config_path}",
            hint="Use --force to overwrite existing configuration",
        )
        raise typer.Exit(code=1)

    portal = PortalConfig(url=portal_url) if portal_url else PortalConfig()
    cli_config = config.save(
        db_path=Path(db_path).expanduser() if db_path else None,
        sender=SenderConfig(
            method=sender, url=url or "", api_key=api_key, from_address=from_address,
        ),
        portal=portal,
    )

    try:
        asyncio.run(DatabaseManager(cli_config.db_path).initialize())
    except Exception as e:
        format_error(console, f"Failed to create database: {e}")
        raise typer.Exit(code=1)

    if json_flag:
        json_output(
            console,
            {
                "status": "initialized",
                "sender": sender,
                "db_path": str(cli_config.db_path),
                "config_path": str(config.config_path),
            },
        )
    else:
        format_success(console, "Notification queue initialized")
        console.print(f"[cyan]Sender:[/cyan]    {sender}")
        console.print(f"[cyan]Database:[/cyan]  {cli_config.db_path}")
        console.print(f"[cyan]Config:[/cyan]    {config.config_path}")
