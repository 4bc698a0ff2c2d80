"""Site version policy commands for spversionman.

Commands:
    get: Show the version policy of each site
    set: Apply one version policy to many sites
    status: Show progress of policy application on each site

Examples:
    # Apply automatic limits to every team site
    $ spversionman policy set --source automatic --discover --template GROUP#0

    # Apply explicit limits to sites listed in a file
    $ spversionman policy set --source custom --major-version-limit 500 \\
        --expire-after-days 365 --sites-file sites.txt

    # Copy the tenant's current limits onto two sites
    $ spversionman policy set --source tenant -s https://contoso.sharepoint.com/sites/a \\
        -s https://contoso.sharepoint.com/sites/b
"""

from pathlib import Path
from typing import List, Optional

import typer

from ..bulk.operations import GetVersionPolicy, GetVersionPolicyStatus, SetVersionPolicy
from ..errors import SpVersionError
from ..policy.models import PolicyScope
from ..policy.prompts import ConsolePrompter
from ..policy.resolver import PolicySettingsResolver, SettingsSource
from .common import (
    build_run_context,
    confirm_run,
    console,
    discover_option,
    exclude_template_option,
    force_option,
    handle_error,
    output_option,
    progress_option,
    run_batch,
    select_sites,
    site_option,
    sites_file_option,
    template_option,
    tenant_call,
)

app = typer.Typer(help="View and apply version history limits on sites.")


@app.command("get")
def get_policy(
    site: Optional[List[str]] = site_option(),
    sites_file: Optional[Path] = sites_file_option(),
    discover: bool = discover_option(),
    template: Optional[List[str]] = template_option(),
    exclude_template: Optional[List[str]] = exclude_template_option(),
    output: Optional[Path] = output_option(),
    progress: bool = progress_option(),
):
    """Show the version policy of each site."""
    try:
        ctx = build_run_context()
        sites = select_sites(ctx, site, sites_file, discover, template, exclude_template)
    except SpVersionError as e:
        handle_error(e)

    run_batch(ctx, sites, GetVersionPolicy(), "Get version policy", progress, output)


@app.command("set")
def set_policy(
    source: SettingsSource = typer.Option(
        ..., "--source", help="automatic, tenant (copy tenant limits) or custom"
    ),
    major_version_limit: Optional[int] = typer.Option(
        None, "--major-version-limit", help="Major versions to keep (custom, minimum 100)"
    ),
    expire_after_days: Optional[int] = typer.Option(
        None,
        "--expire-after-days",
        help="Days before versions expire (custom, minimum 30; omit to never expire)",
    ),
    site: Optional[List[str]] = site_option(),
    sites_file: Optional[Path] = sites_file_option(),
    discover: bool = discover_option(),
    template: Optional[List[str]] = template_option(),
    exclude_template: Optional[List[str]] = exclude_template_option(),
    force: bool = force_option(),
    output: Optional[Path] = output_option(),
    progress: bool = progress_option(),
):
    """Apply one version policy to many sites.

    The policy is resolved once, before any site is touched. With
    --source custom and no --major-version-limit the values are asked for
    interactively.
    """
    if expire_after_days is not None and major_version_limit is None:
        console.print("[red]Error: --expire-after-days needs --major-version-limit.[/red]")
        raise typer.Exit(1)

    try:
        ctx = build_run_context()
        resolver = PolicySettingsResolver(
            tenant_config_loader=lambda: tenant_call(
                ctx, lambda api: api.get_tenant_config(), "get-tenant-config"
            ),
            prompter=ConsolePrompter(console),
        )
        policy = resolver.resolve_version_policy(
            source,
            scope=PolicyScope.SITE,
            major_version_limit=major_version_limit,
            expire_after_days=expire_after_days,
        )
        sites = select_sites(ctx, site, sites_file, discover, template, exclude_template)
    except SpVersionError as e:
        handle_error(e)

    operation = SetVersionPolicy(policy)
    confirm_run(operation, sites, force)
    run_batch(ctx, sites, operation, operation.describe(), progress, output)


@app.command("status")
def policy_status(
    site: Optional[List[str]] = site_option(),
    sites_file: Optional[Path] = sites_file_option(),
    discover: bool = discover_option(),
    template: Optional[List[str]] = template_option(),
    exclude_template: Optional[List[str]] = exclude_template_option(),
    output: Optional[Path] = output_option(),
    progress: bool = progress_option(),
):
    """Show progress of version policy application on each site."""
    try:
        ctx = build_run_context()
        sites = select_sites(ctx, site, sites_file, discover, template, exclude_template)
    except SpVersionError as e:
        handle_error(e)

    run_batch(
        ctx,
        sites,
        GetVersionPolicyStatus(),
        "Policy application status",
        progress,
        output,
        render=lambda reporter, report: reporter.display_job_statuses(report),
    )
