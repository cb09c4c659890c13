"""
Catalog command for the Resilience Validation CLI

Lists the registered validation entries, optionally filtered.
"""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from resilience_orchestrator.catalog import Priority, ValidationCategory, build_default_catalog
from resilience_orchestrator.execution import DEFAULT_CHECKS

console = Console()

_PRIORITY_STYLE = {
    Priority.CRITICAL: "bold red",
    Priority.HIGH: "yellow",
    Priority.MEDIUM: "cyan",
}


def show_catalog(
    category: Optional[str] = None,
    priority: Optional[str] = None,
    phase: Optional[str] = None,
    as_json: bool = False,
) -> None:
    catalog = build_default_catalog()
    specs = list(catalog)
    try:
        if category:
            specs = [s for s in specs if s.category == ValidationCategory(category)]
        if priority:
            specs = [s for s in specs if s.priority == Priority(priority)]
    except ValueError as e:
        console.print(f"❌ [red]{e}[/red]")
        raise typer.Exit(1)
    if phase:
        specs = [s for s in specs if s.phase == phase]

    if as_json:
        console.print_json(json.dumps([s.to_dict() for s in specs]))
        return

    if not specs:
        console.print("❌ [yellow]No validations match the given filters[/yellow]")
        return

    table = Table(title=f"Validation Catalog v{catalog.version}", show_header=True, header_style="bold blue")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Phase", style="dim")
    table.add_column("Category")
    table.add_column("Priority")
    table.add_column("Principles")
    table.add_column("Check", justify="center")
    for spec in specs:
        style = _PRIORITY_STYLE.get(spec.priority, "white")
        table.add_row(
            spec.id,
            spec.name,
            spec.phase,
            spec.category.value,
            f"[{style}]{spec.priority.value}[/{style}]",
            ", ".join(spec.principles) or "-",
            "✅" if spec.id in DEFAULT_CHECKS else "⏳",
        )
    console.print(table)
    console.print(f"[dim]{len(specs)} of {len(catalog)} entries[/dim]")
