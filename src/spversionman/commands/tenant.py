"""Tenant-wide version settings commands for spversionman."""

from typing import Optional

import typer
from rich.table import Table

from ..errors import SpVersionError
from ..policy.models import PolicyScope, VersionPolicy
from ..policy.prompts import ConsolePrompter
from ..policy.resolver import PolicySettingsResolver, SettingsSource
from .common import build_run_context, console, force_option, handle_error, tenant_call

app = typer.Typer(help="View and change the tenant's default version history limits.")


@app.command("get")
def get_tenant():
    """Show the tenant's version history settings."""
    try:
        ctx = build_run_context()
        config = tenant_call(ctx, lambda api: api.get_tenant_config(), "get-tenant-config")
    except SpVersionError as e:
        handle_error(e)

    table = Table(title=f"Tenant version settings: {ctx.tenant.tenant_name}", show_header=False)
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    table.add_row("Automatic", "Yes" if config.auto_expiration else "No")
    table.add_row(
        "Major version limit", str(config.major_version_limit) if config.has_count_limit else "-"
    )
    table.add_row(
        "Expire after days",
        str(config.expire_after_days) if config.has_age_limit else "Never",
    )
    console.print(table)


@app.command("set")
def set_tenant(
    source: SettingsSource = typer.Option(..., "--source", help="automatic or custom"),
    major_version_limit: Optional[int] = typer.Option(
        None, "--major-version-limit", help="Major versions to keep (minimum 100)"
    ),
    expire_after_days: Optional[int] = typer.Option(
        None,
        "--expire-after-days",
        help="Days before versions expire; values under 30 are raised to 30",
    ),
    force: bool = force_option(),
):
    """Change the tenant's default version history limits.

    New sites and libraries inherit these limits. Existing sites keep theirs.
    """
    if expire_after_days is not None and major_version_limit is None:
        console.print("[red]Error: --expire-after-days needs --major-version-limit.[/red]")
        raise typer.Exit(1)

    try:
        ctx = build_run_context()
        resolver = PolicySettingsResolver(prompter=ConsolePrompter(console))
        policy: VersionPolicy = resolver.resolve_version_policy(
            source,
            scope=PolicyScope.TENANT,
            major_version_limit=major_version_limit,
            expire_after_days=expire_after_days,
        )
    except SpVersionError as e:
        handle_error(e)

    console.print(f"[bold]Tenant policy:[/bold] {policy.describe()}")
    if not force and not typer.confirm("Apply to the tenant?", default=False):
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(0)

    try:
        tenant_call(ctx, lambda api: api.set_tenant_config(policy), "set-tenant-config")
    except SpVersionError as e:
        handle_error(e)
    console.print("[green]Tenant version settings updated.[/green]")
