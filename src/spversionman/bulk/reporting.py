"""Reporting components for batch runs.

This module renders BatchReport objects with Rich formatting and exports
them to JSON or CSV files.

Classes:
    ReportGenerator: Generates formatted reports for batch results
"""

import csv
import json
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..policy.jobs import JobState, JobStatus
from ..policy.models import VersionPolicy
from .executor import BatchReport, OperationResult

_STATE_STYLES = {
    JobState.QUEUED: "yellow",
    JobState.PROCESSING: "cyan",
    JobState.COMPLETED: "green",
    JobState.FAILED: "red",
    JobState.CANCELLED: "magenta",
    JobState.NO_JOB: "dim",
}


def format_bytes(size: int) -> str:
    """Format a byte count for display."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if value < 1024 or unit == "TB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


class ReportGenerator:
    """Generates summary and detailed reports for batch runs."""

    def __init__(self, console: Console):
        """Initialize report generator.

        Args:
            console: Rich console for output
        """
        self.console = console

    def generate_summary_report(self, report: BatchReport):
        """Display a summary panel for a batch run."""
        summary_table = Table(show_header=False, box=None, padding=(0, 1))
        summary_table.add_column("Metric", style="bold cyan")
        summary_table.add_column("Value", style="bold")

        summary_table.add_row("Operation", report.description)
        summary_table.add_row("Total Sites", str(report.total))
        summary_table.add_row("Successful", f"[green]{report.success_count}[/green]")
        summary_table.add_row("Failed", f"[red]{report.failure_count}[/red]")
        summary_table.add_row("Success Rate", f"{report.success_rate:.1f}%")
        summary_table.add_row("Duration", self._format_duration(report.duration))
        if report.start_time:
            summary_table.add_row(
                "Started", time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(report.start_time))
            )

        self.console.print()
        self.console.print(
            Panel(summary_table, title="[bold]Batch Summary[/bold]", border_style="blue")
        )

    def generate_detailed_report(self, report: BatchReport, show_successful: bool = True):
        """Display one row per site, in processing order."""
        table = Table(title="Results", show_lines=False)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Site", style="cyan", overflow="fold")
        table.add_column("Status")
        table.add_column("Attempts", justify="right")
        table.add_column("Detail", overflow="fold")

        for index, result in enumerate(report.results, start=1):
            if result.is_success and not show_successful:
                continue
            table.add_row(
                str(index),
                result.resource,
                "[green]Success[/green]" if result.is_success else "[red]Failed[/red]",
                str(result.attempts_used),
                self._result_detail(result),
            )

        self.console.print(table)

    def display_job_statuses(self, report: BatchReport):
        """Display job progress gathered by a status batch."""
        table = Table(title="Job Status")
        table.add_column("Site", style="cyan", overflow="fold")
        table.add_column("State")
        table.add_column("Completed (UTC)")
        table.add_column("Released", justify="right")
        table.add_column("Versions Deleted", justify="right")

        for result in report.results:
            if not result.is_success:
                table.add_row(result.resource, "[red]error[/red]", "-", "-", "-")
                continue
            status: JobStatus = result.payload
            style = _STATE_STYLES.get(status.state, "white")
            completed = (
                status.completed_at.strftime("%Y-%m-%d %H:%M:%S") if status.completed_at else "-"
            )
            table.add_row(
                result.resource,
                f"[{style}]{status.state.value}[/{style}]",
                completed,
                format_bytes(status.bytes_released),
                str(status.versions_deleted),
            )

        self.console.print(table)

    def save_report(self, report: BatchReport, output_file: Path):
        """Write the report as JSON or CSV, chosen by file extension."""
        output_file.parent.mkdir(parents=True, exist_ok=True)
        if output_file.suffix.lower() == ".csv":
            with open(output_file, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(
                    ["resource", "status", "error_kind", "error_message", "attempts_used", "detail"]
                )
                for result in report.results:
                    writer.writerow(
                        [
                            result.resource,
                            result.status.value,
                            result.error_kind.value if result.error_kind else "",
                            result.error_message or "",
                            result.attempts_used,
                            self._result_detail(result) if result.is_success else "",
                        ]
                    )
        else:
            with open(output_file, "w", encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2, default=str)

        self.console.print(f"[green]Report saved to {output_file}[/green]")

    def _result_detail(self, result: OperationResult) -> str:
        if not result.is_success:
            kind = result.error_kind.value if result.error_kind else "error"
            return f"{kind}: {result.error_message}"
        payload = result.payload
        if isinstance(payload, VersionPolicy):
            return payload.describe()
        if isinstance(payload, JobStatus):
            return f"{payload.state.value}, {format_bytes(payload.bytes_released)} released"
        if isinstance(payload, dict):
            return ", ".join(f"{key}={value}" for key, value in payload.items() if key != "resource")
        return "" if payload is None else str(payload)

    def _format_duration(self, seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes, secs = divmod(int(seconds), 60)
        if minutes < 60:
            return f"{minutes}m {secs}s"
        hours, minutes = divmod(minutes, 60)
        return f"{hours}h {minutes}m {secs}s"
