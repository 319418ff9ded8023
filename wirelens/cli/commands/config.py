"""Configuration inspection commands."""
from __future__ import annotations

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from wirelens.workflow.config import Settings

console = Console()


@click.group(name="config")
def config_command():
    """
    Inspect wirelens configuration.

    Settings come from WIRELENS_* environment variables.
    """
    pass


@config_command.command(name="show")
def show_config():
    """Show current configuration."""
    try:
        settings = Settings()
        settings.validate()
    except ValueError as exc:
        raise click.ClickException(f"invalid configuration: {exc}") from exc

    console.print(Panel(
        "[bold cyan]Current Configuration[/bold cyan]",
        border_style="cyan"
    ))
    console.print()

    table = Table(title="Analysis Settings", border_style="blue")
    table.add_column("Setting", style="cyan")
    table.add_column("Environment Variable", style="dim")
    table.add_column("Value", style="yellow")

    timeout = settings.preprocess_timeout
    table.add_row("Environment", "WIRELENS_ENVIRONMENT", settings.environment)
    table.add_row("Log Level", "WIRELENS_LOG_LEVEL", settings.log_level)
    table.add_row("Max Concurrency", "WIRELENS_MAX_CONCURRENCY", str(settings.max_concurrency))
    table.add_row(
        "Preprocess Timeout",
        "WIRELENS_PREPROCESS_TIMEOUT",
        f"{timeout:g}s" if timeout is not None else "disabled",
    )

    console.print(table)
