"""
Schedule commands for the Resilience Validation CLI

Manage recurring validation schedules in the YAML schedule store.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from resilience_orchestrator.catalog import build_default_catalog
from resilience_orchestrator.scheduling import ScheduleConfig, ScheduleStore

from ..utils.config_helpers import default_schedule_store

console = Console()


def _store(store: Optional[str]) -> ScheduleStore:
    return ScheduleStore(Path(store) if store else default_schedule_store())


def add_schedule(
    frequency: str,
    time: str,
    suites: Optional[List[str]] = None,
    recipients: Optional[List[str]] = None,
    store: Optional[str] = None,
) -> ScheduleConfig:
    catalog = build_default_catalog()
    unknown = [s for s in suites or [] if s not in catalog]
    if unknown:
        console.print(f"❌ [red]Unknown validation id(s): {', '.join(unknown)}[/red]")
        raise typer.Exit(1)
    try:
        schedule = ScheduleConfig(
            frequency=frequency,
            time=time,
            target_suites=suites or [],
            recipients=recipients or [],
        )
    except ValidationError as e:
        console.print(f"❌ [red]Invalid schedule:[/red] {e}")
        raise typer.Exit(1)

    schedule = _store(store).add(schedule)
    console.print(
        f"✅ [green]Schedule {schedule.id} saved[/green]; "
        f"next run {schedule.next_execution:%Y-%m-%d %H:%M %Z}"
    )
    return schedule


def list_schedules(store: Optional[str] = None, due_only: bool = False) -> None:
    schedule_store = _store(store)
    schedules = schedule_store.due() if due_only else schedule_store.list_schedules()
    if not schedules:
        console.print("❌ [yellow]No schedules found[/yellow]" if not due_only else "⏳ Nothing is due")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("ID", style="cyan")
    table.add_column("Frequency")
    table.add_column("Time", justify="center")
    table.add_column("Suites")
    table.add_column("Recipients")
    table.add_column("Last run", style="dim")
    table.add_column("Next run")
    table.add_column("Active", justify="center")
    for s in schedules:
        table.add_row(
            s.id,
            s.frequency.value,
            s.time,
            ", ".join(s.target_suites) or "all",
            ", ".join(s.recipients) or "-",
            f"{s.last_executed:%Y-%m-%d %H:%M}" if s.last_executed else "never",
            f"{s.next_execution:%Y-%m-%d %H:%M}" if s.next_execution else "-",
            "✅" if s.active else "⏸",
        )
    console.print(table)


def remove_schedule(schedule_id: str, store: Optional[str] = None) -> None:
    if _store(store).remove(schedule_id):
        console.print(f"🗑  Removed schedule {schedule_id}")
    else:
        console.print(f"❌ [red]Unknown schedule '{schedule_id}'[/red]")
        raise typer.Exit(1)


def set_schedule_active(schedule_id: str, active: bool, store: Optional[str] = None) -> None:
    try:
        _store(store).set_active(schedule_id, active)
    except KeyError:
        console.print(f"❌ [red]Unknown schedule '{schedule_id}'[/red]")
        raise typer.Exit(1)
    console.print(f"{'▶️ ' if active else '⏸ '} Schedule {schedule_id} {'resumed' if active else 'paused'}")


def run_due_schedules(
    store: Optional[str] = None,
    config: Optional[str] = None,
    database: Optional[str] = None,
) -> int:
    """Run every due schedule once and advance it; meant to be called from cron."""
    from .run import run_validations

    schedule_store = _store(store)
    due = schedule_store.due()
    if not due:
        console.print("⏳ Nothing is due")
        return 0

    failed = 0
    for schedule in due:
        console.print(f"📅 [bold]Schedule {schedule.id}[/bold]")
        try:
            run_validations(ids=schedule.target_suites or None, config=config, database=database)
        except typer.Exit as e:
            # 2 means the batch never ran; leave the schedule due for the next tick
            if e.exit_code == 2:
                raise
            failed += 1
        schedule_store.mark_executed(schedule.id)

    if failed:
        raise typer.Exit(1)
    return len(due)
