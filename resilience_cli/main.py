#!/usr/bin/env python3
"""
Resilience Validation CLI

Rich-based CLI for the validation engine: run batches, scan data
integrity, score readiness and manage recurring schedules.
"""

from __future__ import annotations

import sys
from typing import List, Optional

import typer
from rich.console import Console

from .commands.catalog import show_catalog
from .commands.integrity import run_integrity
from .commands.readiness import assess_readiness
from .commands.run import run_validations
from .commands.schedule import (
    add_schedule,
    list_schedules,
    remove_schedule,
    run_due_schedules,
    set_schedule_active,
)
from .utils.config_helpers import split_ids

# Initialize Rich console
console = Console()

# Main app
app = typer.Typer(
    name="resilience",
    help="Resilience Validation CLI - compliance and data-integrity validation engine",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=True,
)


def version_callback(value: bool):
    if value:
        from resilience_cli import __version__
        console.print(f"Resilience Validation Engine v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version information"
    ),
):
    """
    [bold blue]Resilience Validation CLI[/bold blue]

    Runs the validation catalog against production data and integrations
    and records the results as regulatory evidence.

    [dim]Examples:[/dim]
        resilience catalog --priority critical      # What would run
        resilience run --ids mock-data-scan         # Run one validation
        resilience readiness --summary artifacts/runs/<batch>/summary.json
    """
    pass


@app.command("run")
def run(
    ids: Optional[List[str]] = typer.Option(None, "--ids", help="Validation ids to run (comma-separated or multiple flags)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to validation config YAML"),
    database: Optional[str] = typer.Option(None, "--database", help="Path to DuckDB database file"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Concurrent validations"),
    artifacts_dir: Optional[str] = typer.Option(None, "--artifacts-dir", help="Directory for run artifacts"),
    no_audit: bool = typer.Option(False, "--no-audit", help="Do not append to the audit trail"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
):
    """🚀 Run a validation batch and write its artifacts."""
    run_validations(
        ids=split_ids(ids),
        config=config,
        database=database,
        workers=workers,
        artifacts_dir=artifacts_dir,
        audit=not no_audit,
        verbose=verbose,
    )


@app.command("catalog")
def catalog(
    category: Optional[str] = typer.Option(None, "--category", help="workflow, database, integration, performance, compliance"),
    priority: Optional[str] = typer.Option(None, "--priority", help="critical, high, medium"),
    phase: Optional[str] = typer.Option(None, "--phase", help="Rollout phase label"),
    as_json: bool = typer.Option(False, "--json", help="Print the entries as JSON"),
):
    """📋 List the validation catalog."""
    show_catalog(category=category, priority=priority, phase=phase, as_json=as_json)


@app.command("integrity")
def integrity(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to validation config YAML"),
    database: Optional[str] = typer.Option(None, "--database", help="Path to DuckDB database file"),
    freshness: bool = typer.Option(False, "--freshness", help="Include the wall-clock freshness check"),
    export: Optional[str] = typer.Option(None, "--export", help="Write the report as JSON"),
):
    """🔍 Run the sampled data-integrity suite."""
    run_integrity(config=config, database=database, include_freshness=freshness, export=export)


@app.command("readiness")
def readiness(
    summary: Optional[str] = typer.Option(None, "--summary", "-s", help="Batch summary.json to score"),
    success_rate: Optional[float] = typer.Option(None, "--success-rate", help="Test success rate, percent"),
    error_rate: Optional[float] = typer.Option(None, "--error-rate", help="Error rate, percent"),
    daily_cost: float = typer.Option(0.0, "--daily-cost", help="Observed daily spend"),
    compliance_score: Optional[float] = typer.Option(None, "--compliance-score", help="Compliance score, 0-100"),
    security_score: float = typer.Option(100.0, "--security-score", help="Security score, 0-100"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to validation config YAML"),
    export: Optional[str] = typer.Option(None, "--export", help="Write the report as JSON"),
):
    """✅ Score production readiness."""
    assess_readiness(
        summary=summary,
        success_rate=success_rate,
        error_rate=error_rate,
        daily_cost=daily_cost,
        compliance_score=compliance_score,
        security_score=security_score,
        config=config,
        export=export,
    )


# Schedule commands
schedule_app = typer.Typer(
    name="schedule",
    help="Recurring validation schedules",
    no_args_is_help=True,
)

@schedule_app.command("add")
def schedule_add_cmd(
    frequency: str = typer.Argument(..., help="daily, weekly or monthly"),
    time: str = typer.Argument(..., help="Time of day, HH:MM"),
    suites: Optional[List[str]] = typer.Option(None, "--suites", help="Validation ids (default: whole catalog)"),
    recipients: Optional[List[str]] = typer.Option(None, "--recipient", "-r", help="Notification email address"),
    store: Optional[str] = typer.Option(None, "--store", help="Schedule store YAML"),
):
    """Add a recurring schedule."""
    add_schedule(frequency=frequency, time=time, suites=split_ids(suites), recipients=recipients, store=store)

@schedule_app.command("list")
def schedule_list_cmd(
    due: bool = typer.Option(False, "--due", help="Only schedules that are due now"),
    store: Optional[str] = typer.Option(None, "--store", help="Schedule store YAML"),
):
    """List schedules and their next run."""
    list_schedules(store=store, due_only=due)

@schedule_app.command("remove")
def schedule_remove_cmd(
    schedule_id: str = typer.Argument(..., help="Schedule id"),
    store: Optional[str] = typer.Option(None, "--store", help="Schedule store YAML"),
):
    """Remove a schedule."""
    remove_schedule(schedule_id, store=store)

@schedule_app.command("pause")
def schedule_pause_cmd(
    schedule_id: str = typer.Argument(..., help="Schedule id"),
    store: Optional[str] = typer.Option(None, "--store", help="Schedule store YAML"),
):
    """Pause a schedule."""
    set_schedule_active(schedule_id, False, store=store)

@schedule_app.command("resume")
def schedule_resume_cmd(
    schedule_id: str = typer.Argument(..., help="Schedule id"),
    store: Optional[str] = typer.Option(None, "--store", help="Schedule store YAML"),
):
    """Resume a paused schedule."""
    set_schedule_active(schedule_id, True, store=store)

@schedule_app.command("run-due")
def schedule_run_due_cmd(
    store: Optional[str] = typer.Option(None, "--store", help="Schedule store YAML"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to validation config YAML"),
    database: Optional[str] = typer.Option(None, "--database", help="Path to DuckDB database file"),
):
    """Run every due schedule once (call from cron)."""
    run_due_schedules(store=store, config=config, database=database)

app.add_typer(schedule_app, name="schedule")


def cli_main():
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n🛑 [yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n❌ [bold red]Error:[/bold red] {e}")
        sys.exit(1)

if __name__ == "__main__":
    cli_main()
