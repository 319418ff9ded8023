#!/usr/bin/env python3
"""Main CLI entry point for wirelens screenshot analysis."""
from __future__ import annotations

import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from wirelens.workflow.config import get_settings

from .commands import analyze, config

console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@click.group()
@click.option("--log-level", default=None, help="Override WIRELENS_LOG_LEVEL for this run")
@click.version_option(version="0.1.0", prog_name="wirelens")
def cli(log_level: Optional[str]):
    """
    Wirelens - turn UI screenshots into wireframe structure.

    Analyse one or more screenshots of the same product and emit a merged
    wireframe description as JSON.
    """
    configure_logging(log_level or get_settings().log_level)


# Register all commands
cli.add_command(analyze.analyze_command)
cli.add_command(config.config_command)


def main():
    """Entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
