"""Configuration commands for spversionman."""

import typer
import yaml

from ..errors import ConfigurationError
from ..utils.config import Config
from .common import console

app = typer.Typer(help="Show and edit spversionman configuration.")

SECRET_KEYS = {"access_token"}


def _mask_secrets(data):
    if isinstance(data, dict):
        return {
            key: ("****" if key in SECRET_KEYS and value else _mask_secrets(value))
            for key, value in data.items()
        }
    return data


@app.command("show")
def show_config():
    """Show the effective configuration."""
    config = Config()
    try:
        data = config.get_all()
    except ConfigurationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)
    console.print(yaml.safe_dump(_mask_secrets(data), sort_keys=False), end="", markup=False)

    errors = config.validate()
    for error in errors:
        console.print(f"[yellow]Warning: {error}[/yellow]")


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Dotted key, e.g. retry.max_attempts"),
    value: str = typer.Argument(..., help="Value, parsed as YAML"),
):
    """Set a configuration value."""
    config = Config()
    try:
        config.set(key, value)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Set {key}[/green]")


@app.command("unset")
def unset_value(key: str = typer.Argument(..., help="Dotted key to reset to its default")):
    """Remove a configuration value, restoring its default."""
    Config().delete(key)
    console.print(f"[green]Unset {key}[/green]")


@app.command("path")
def config_path():
    """Print the configuration file location."""
    console.print(str(Config().get_config_file_path()))
