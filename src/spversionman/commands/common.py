"""Common command infrastructure for spversionman CLI commands.

This module provides shared functionality for all CLI commands including:
- Site selection options (static list, explicit URLs, discovery)
- Building the tenant context, sessions and retry policy from configuration
- The pre-run confirmation gate
- Consistent error reporting and exit codes
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar

import typer
from rich.console import Console

from ..api.client import SharePointAdminClient
from ..api.session import SessionManager, TenantContext, TokenAuthenticator
from ..bulk.executor import BatchExecutor, BatchReport
from ..bulk.operations import Operation
from ..bulk.reporting import ReportGenerator
from ..bulk.retry import RetryPolicy
from ..catalog import SiteDiscovery, SiteListProcessor, dedupe, normalize_site_url
from ..errors import ConfigurationError, EmptyBatchError, SpVersionError
from ..utils.config import Config

console = Console()
logger = logging.getLogger(__name__)

T = TypeVar("T")

EXIT_BATCH_FAILURES = 2


@dataclass
class RunContext:
    """Everything a command needs to talk to the tenant."""

    config: Config
    tenant: TenantContext
    session_manager: SessionManager
    retry_policy: RetryPolicy


def build_run_context(config: Optional[Config] = None) -> RunContext:
    """Build a RunContext from configuration.

    Raises:
        ConfigurationError: If the tenant is not configured or settings are invalid
    """
    config = config or Config()
    errors = config.validate()
    if errors:
        raise ConfigurationError("; ".join(errors))

    admin_url = config.get("tenant.admin_url")
    if not admin_url:
        raise ConfigurationError(
            "No tenant admin URL configured. Run: spversionman config set tenant.admin_url <url>"
        )
    tenant = TenantContext(
        tenant_name=config.get("tenant.name", admin_url),
        admin_url=str(admin_url).rstrip("/"),
    )

    authenticator = TokenAuthenticator(
        access_token=config.get("auth.access_token"),
        interactive=bool(config.get("auth.interactive", True)),
    )
    session_manager = SessionManager(
        authenticator, timeout=float(config.get("api.timeout_seconds", 60))
    )
    retry_policy = RetryPolicy(
        max_attempts=int(config.get("retry.max_attempts", 5)),
        base_delay=float(config.get("retry.base_delay_seconds", 30)),
    )
    return RunContext(config, tenant, session_manager, retry_policy)


def tenant_call(ctx: RunContext, call: Callable[[SharePointAdminClient], T], label: str) -> T:
    """Run a tenant-level API call through the retry policy."""
    with ctx.session_manager.acquire_tenant(ctx.tenant) as session:
        return ctx.retry_policy.execute(lambda: call(session.api), context=label)


# Options


def site_option() -> Any:
    return typer.Option(None, "--site", "-s", help="Site URL to process (repeatable)")


def sites_file_option() -> Any:
    return typer.Option(
        None, "--sites-file", help="File with site URLs (.txt, .csv with a Url column, or .json)"
    )


def discover_option() -> Any:
    return typer.Option(False, "--discover", help="Discover sites through the admin API")


def template_option() -> Any:
    return typer.Option(
        None, "--template", "-t", help="Only discovered sites with this template (repeatable)"
    )


def exclude_template_option() -> Any:
    return typer.Option(
        None, "--exclude-template", help="Skip discovered sites with this template (repeatable)"
    )


def force_option() -> Any:
    return typer.Option(False, "--force", "-f", help="Skip the confirmation prompt")


def output_option() -> Any:
    return typer.Option(None, "--output", "-o", help="Save the report as .json or .csv")


def progress_option() -> Any:
    return typer.Option(True, "--progress/--no-progress", help="Show a progress bar")


def select_sites(
    ctx: RunContext,
    sites: Optional[List[str]] = None,
    sites_file: Optional[Path] = None,
    discover: bool = False,
    templates: Optional[List[str]] = None,
    exclude_templates: Optional[List[str]] = None,
) -> List[str]:
    """Build the ordered site list from exactly one source.

    Raises:
        typer.Exit: If no source or more than one source is given
    """
    chosen = sum([bool(sites), sites_file is not None, discover])
    if chosen != 1:
        console.print("[red]Error: Use exactly one of --site, --sites-file or --discover.[/red]")
        raise typer.Exit(1)

    if sites:
        return dedupe(normalize_site_url(site) for site in sites)
    if sites_file is not None:
        return SiteListProcessor(sites_file).load()

    console.print("[blue]Discovering sites...[/blue]")
    return tenant_call(
        ctx,
        lambda api: SiteDiscovery(api).discover(templates, exclude_templates),
        "list-sites",
    )


def confirm_run(operation: Operation, sites: List[str], force: bool) -> None:
    """Show what will run and ask for confirmation.

    Raises:
        typer.Exit: If the operator declines
    """
    console.print(f"[bold]{operation.describe()}[/bold] on [cyan]{len(sites)}[/cyan] site(s)")
    for site in sites[:10]:
        console.print(f"  {site}")
    if len(sites) > 10:
        console.print(f"  ... and {len(sites) - 10} more")

    if not operation.idempotent:
        console.print(
            "[yellow]Warning: each run submits a new job and deleted versions "
            "cannot be recovered.[/yellow]"
        )

    if force:
        return
    if not typer.confirm("Proceed?", default=False):
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(0)


def run_batch(
    ctx: RunContext,
    sites: List[str],
    operation: Operation,
    description: str,
    show_progress: bool = True,
    output: Optional[Path] = None,
    render: Optional[Callable[[ReportGenerator, BatchReport], None]] = None,
) -> BatchReport:
    """Run a batch, print the report and exit non-zero if any site failed."""
    executor = BatchExecutor(
        ctx.session_manager,
        ctx.tenant,
        retry_policy=ctx.retry_policy,
        console=console,
        show_progress=show_progress,
    )
    try:
        report = executor.run(sites, operation, description)
    except EmptyBatchError as e:
        console.print(f"[yellow]{e.message}. Nothing to do.[/yellow]")
        raise typer.Exit(0)

    reporter = ReportGenerator(console)
    if render:
        render(reporter, report)
    else:
        reporter.generate_detailed_report(report)
    reporter.generate_summary_report(report)
    if output:
        reporter.save_report(report, output)

    if report.has_failures():
        raise typer.Exit(EXIT_BATCH_FAILURES)
    return report


def handle_error(error: SpVersionError) -> None:
    """Print an error raised before a batch started and exit."""
    logger.error("Aborted: %s", error.message, extra={"error_type": type(error).__name__})
    console.print(f"[red]Error: {error.message}[/red]")
    raise typer.Exit(1)
