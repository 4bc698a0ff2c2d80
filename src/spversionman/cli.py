#!/usr/bin/env python3
"""
spversionman - SharePoint version history manager

A CLI tool for managing document version limits across many sites.
"""
from typing import Optional

import typer
from rich.console import Console

from . import __version__
from .commands import cleanup, config, policy, sites, tenant
from .errors import ConfigurationError
from .utils.config import Config
from .utils.logging_config import LogLevel, setup_logging

app = typer.Typer(
    help="SharePoint version history manager - apply version limits and trim old file versions across many sites.",
    add_completion=True,
    no_args_is_help=True,
)
console = Console()

app.add_typer(config.app, name="config")
app.add_typer(policy.app, name="policy")
app.add_typer(cleanup.app, name="cleanup")
app.add_typer(tenant.app, name="tenant")
app.add_typer(sites.app, name="sites")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to the console as well"),
    log_level: Optional[LogLevel] = typer.Option(
        None, "--log-level", case_sensitive=False, help="Override the log level"
    ),
):
    """Configure logging before any command runs."""
    try:
        settings = dict(Config().get_logging_config())
        if verbose:
            settings["enable_console_logging"] = True
        if log_level:
            settings["level"] = log_level.value
        setup_logging(settings)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show the application version and exit."""
    console.print(f"spversionman version: {__version__}")
    raise typer.Exit()


if __name__ == "__main__":
    app()
