"""Rich console rendering for batch summaries, integrity and readiness reports."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..execution.data_models import BatchSummary, RunStatus
from ..integrity.data_models import IntegrityReport
from ..verdict import Verdict
from .data_models import ChecklistStatus, ReadinessReport

_STATUS_STYLE = {
    RunStatus.PASSED: "green",
    RunStatus.WARNING: "yellow",
    RunStatus.FAILED: "red",
}
_VERDICT_STYLE = {Verdict.PASS: "green", Verdict.WARN: "yellow", Verdict.FAIL: "red"}
_CHECKLIST_ICON = {
    ChecklistStatus.COMPLETE: "✅",
    ChecklistStatus.PENDING: "⏳",
    ChecklistStatus.FAILED: "❌",
}


class ConsoleReporter:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render_batch(self, summary: BatchSummary) -> None:
        table = Table(title=f"Validation Batch {summary.batch_id}", show_header=True)
        table.add_column("Validation", style="cyan")
        table.add_column("Status")
        table.add_column("Duration", justify="right")
        table.add_column("Outcome")
        for record in summary.records:
            style = _STATUS_STYLE.get(record.status, "white")
            duration = record.duration_seconds
            table.add_row(
                record.validation_id,
                f"[{style}]{record.status.value}[/{style}]",
                f"{duration:.2f}s" if duration is not None else "-",
                record.outcome,
            )
        self.console.print(table)

        lines = [
            f"Total: {summary.total_tests}  "
            f"[green]Passed: {summary.passed_tests}[/green]  "
            f"[yellow]Warnings: {summary.warning_tests}[/yellow]  "
            f"[red]Failed: {summary.failed_tests}[/red]",
            f"Success rate: {summary.success_rate:.1f}%",
        ]
        if summary.overall_compliance_score is not None:
            lines.append(f"Compliance score: {summary.overall_compliance_score:.1f}")
        if summary.cancelled:
            lines.append(f"[yellow]Cancelled; not started: {', '.join(summary.not_started) or 'none'}[/yellow]")
        for name, ok in summary.critical_success_indicators.items():
            lines.append(f"{'✅' if ok else '❌'} {name}")
        self.console.print(Panel("\n".join(lines), title="Summary", expand=False))

    def render_integrity(self, report: IntegrityReport) -> None:
        table = Table(title="Data Integrity", show_header=True)
        table.add_column("Check", style="cyan")
        table.add_column("Verdict")
        table.add_column("Score", justify="right")
        table.add_column("Records", justify="right")
        table.add_column("Detail")
        for name, result in report.checks.items():
            style = _VERDICT_STYLE[result.verdict]
            table.add_row(
                name,
                f"[{style}]{result.verdict.value}[/{style}]",
                f"{result.score:.1f}",
                f"{result.records:,}",
                result.detail,
            )
        self.console.print(table)
        style = _VERDICT_STYLE[report.verdict]
        self.console.print(
            f"Overall integrity score: [bold]{report.overall_score:.1f}[/bold] "
            f"([{style}]{report.verdict.value}[/{style}])"
        )

    def render_readiness(self, report: ReadinessReport) -> None:
        colour = "green" if report.readiness_score >= 80 else "yellow" if report.readiness_score >= 60 else "red"
        self.console.print(Panel(
            f"[bold {colour}]{report.readiness_score:.0f}/100[/bold {colour}]",
            title="Production Readiness",
            expand=False,
        ))
        if report.critical_issues:
            self.console.print("\n[bold red]Critical issues[/bold red]")
            for issue in report.critical_issues:
                self.console.print(f"  • {issue}")

        table = Table(title="Deployment Checklist", show_header=True)
        table.add_column("Gate", style="cyan")
        table.add_column("Status")
        table.add_column("Detail")
        for item in report.checklist:
            table.add_row(item.item, f"{_CHECKLIST_ICON[item.status]} {item.status.value}", item.description)
        self.console.print(table)

        self.console.print(f"\nEstimated monthly cost: ${report.estimated_monthly_cost:,.2f}")
        for name, cost in report.cost_breakdown.items():
            self.console.print(f"  {name}: ${cost:,.2f}")
        self.console.print("\n[bold]Recommendations[/bold]")
        for recommendation in report.recommendations:
            self.console.print(f"  • {recommendation}")
