"""Batch delete job commands for spversionman.

Commands:
    create: Submit a version batch delete job to many sites
    status: Show batch delete job progress on each site
    cancel: Cancel the running batch delete job on each site

Submitting a job is not idempotent: every run creates a new job and deleted
versions cannot be recovered. Jobs are submitted once per site; only
throttled submissions are retried.
"""

from pathlib import Path
from typing import List, Optional

import typer

from ..bulk.operations import CancelBatchDeleteJob, CreateBatchDeleteJob, GetBatchDeleteJobStatus
from ..errors import SpVersionError
from ..policy.prompts import ConsolePrompter
from ..policy.resolver import DeletePreference, PolicySettingsResolver, SettingsSource
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

app = typer.Typer(help="Trim existing file versions with batch delete jobs.")


@app.command("create")
def create_job(
    source: SettingsSource = typer.Option(
        ..., "--source", help="automatic, tenant (use tenant limits) or custom"
    ),
    older_than_days: Optional[int] = typer.Option(
        None, "--older-than-days", help="Delete versions older than this (custom, minimum 30)"
    ),
    keep_versions: Optional[int] = typer.Option(
        None, "--keep-versions", help="Keep this many newest major versions (custom, minimum 100)"
    ),
    delete_by: Optional[DeletePreference] = typer.Option(
        None,
        "--delete-by",
        help="With --source tenant, which limit to use when the tenant sets both",
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
    """Submit a version batch delete job to many sites.

    Exactly one threshold is used: automatic, age (--older-than-days) or
    count (--keep-versions). When the tenant has both a count and an age
    limit, --delete-by picks one; without it you are asked.
    """
    try:
        ctx = build_run_context()
        resolver = PolicySettingsResolver(
            tenant_config_loader=lambda: tenant_call(
                ctx, lambda api: api.get_tenant_config(), "get-tenant-config"
            ),
            prompter=ConsolePrompter(console),
        )
        spec = resolver.resolve_delete_spec(
            source,
            older_than_days=older_than_days,
            keep_versions=keep_versions,
            preference=delete_by,
        )
        sites = select_sites(ctx, site, sites_file, discover, template, exclude_template)
    except SpVersionError as e:
        handle_error(e)

    operation = CreateBatchDeleteJob(spec)
    confirm_run(operation, sites, force)
    run_batch(ctx, sites, operation, operation.describe(), progress, output)


@app.command("status")
def job_status(
    site: Optional[List[str]] = site_option(),
    sites_file: Optional[Path] = sites_file_option(),
    discover: bool = discover_option(),
    template: Optional[List[str]] = template_option(),
    exclude_template: Optional[List[str]] = exclude_template_option(),
    output: Optional[Path] = output_option(),
    progress: bool = progress_option(),
):
    """Show batch delete job progress on each site."""
    try:
        ctx = build_run_context()
        sites = select_sites(ctx, site, sites_file, discover, template, exclude_template)
    except SpVersionError as e:
        handle_error(e)

    run_batch(
        ctx,
        sites,
        GetBatchDeleteJobStatus(),
        "Batch delete job status",
        progress,
        output,
        render=lambda reporter, report: reporter.display_job_statuses(report),
    )


@app.command("cancel")
def cancel_job(
    site: Optional[List[str]] = site_option(),
    sites_file: Optional[Path] = sites_file_option(),
    discover: bool = discover_option(),
    template: Optional[List[str]] = template_option(),
    exclude_template: Optional[List[str]] = exclude_template_option(),
    force: bool = force_option(),
    output: Optional[Path] = output_option(),
    progress: bool = progress_option(),
):
    """Cancel the running batch delete job on each site."""
    try:
        ctx = build_run_context()
        sites = select_sites(ctx, site, sites_file, discover, template, exclude_template)
    except SpVersionError as e:
        handle_error(e)

    operation = CancelBatchDeleteJob()
    confirm_run(operation, sites, force)
    run_batch(ctx, sites, operation, "Cancel batch delete jobs", progress, output)
