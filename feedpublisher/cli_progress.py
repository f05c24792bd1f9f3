"""Console rendering helpers for the feed-publish CLI."""
from __future__ import annotations

from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .models import OutcomeStatus
from .orchestrator.models import PublishReport

console = Console()

_STATUS_STYLE = {
    OutcomeStatus.CREATED: ("✓ created", "green"),
    OutcomeStatus.SKIPPED_IDENTICAL: ("= identical", "cyan"),
    OutcomeStatus.FAILED: ("✗ failed", "red"),
}


def render_configuration_summary(config: Dict[str, Any], target: Optional[Console] = None) -> None:
    """Render startup configuration summary."""
    out = target or console
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else escape(str(value))
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]feed-publish[/bold green]",
        subtitle="[dim]feedpublisher CLI[/dim]",
        border_style="blue",
    )
    out.print(panel)


def render_publish_report(report: PublishReport, target: Optional[Console] = None) -> None:
    """Render per-item outcomes followed by a consolidated failure list."""
    out = target or console

    if report.outcomes:
        table = Table(title="Publish results", show_lines=False)
        table.add_column("Status", no_wrap=True)
        table.add_column("Kind")
        table.add_column("Remote key", overflow="fold")
        table.add_column("Detail", overflow="fold")
        for outcome in report.outcomes:
            label, style = _STATUS_STYLE[outcome.status]
            table.add_row(
                f"[{style}]{label}[/{style}]",
                outcome.item.kind.value,
                escape(outcome.item.remote_key),
                escape(outcome.detail or ""),
            )
        out.print(table)

    summary = (
        f"{len(report.created)} created, "
        f"{len(report.skipped)} skipped (identical), "
        f"{len(report.failed)} failed"
    )
    if report.success:
        out.print(f"[bold green]Publish succeeded:[/bold green] {summary}")
        return

    out.print(f"[bold red]Publish failed:[/bold red] {summary}")
    for line in report.failure_summary().splitlines():
        out.print(f"  [red]-[/red] {escape(line)}", highlight=False)
