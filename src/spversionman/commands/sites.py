"""Site discovery commands for spversionman."""

from pathlib import Path
from typing import List, Optional

import typer

from ..catalog import SiteDiscovery
from ..errors import SpVersionError
from .common import (
    build_run_context,
    console,
    exclude_template_option,
    handle_error,
    template_option,
    tenant_call,
)

app = typer.Typer(help="Find the sites a batch should run against.")


@app.callback()
def sites_main():
    """Find the sites a batch should run against."""


@app.command("list")
def list_sites(
    template: Optional[List[str]] = template_option(),
    exclude_template: Optional[List[str]] = exclude_template_option(),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the URLs to a file usable with --sites-file"
    ),
):
    """List sites, optionally filtered by template."""
    try:
        ctx = build_run_context()
        sites = tenant_call(
            ctx,
            lambda api: SiteDiscovery(api).discover(template, exclude_template),
            "list-sites",
        )
    except SpVersionError as e:
        handle_error(e)

    if not sites:
        console.print("[yellow]No sites matched.[/yellow]")
        return

    if output:
        output.write_text("\n".join(sites) + "\n", encoding="utf-8")
        console.print(f"[green]Wrote {len(sites)} site(s) to {output}[/green]")
        return

    for site in sites:
        console.print(site)
    console.print(f"[dim]{len(sites)} site(s)[/dim]")
