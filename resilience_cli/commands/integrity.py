"""
Integrity command for the Resilience Validation CLI

Runs the sampled data-integrity suite directly, outside a batch.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from resilience_orchestrator.exceptions import DataAccessError
from resilience_orchestrator.integrations import DuckDBRepository
from resilience_orchestrator.integrity import DataIntegrityAnalyzer
from resilience_orchestrator.reports import ConsoleReporter
from resilience_orchestrator.verdict import Verdict

from ..utils.config_helpers import load_config, resolve_database

console = Console()


def run_integrity(
    config: Optional[str] = None,
    database: Optional[str] = None,
    include_freshness: bool = False,
    export: Optional[str] = None,
) -> None:
    try:
        cfg = load_config(config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"❌ [bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(2)

    repository = DuckDBRepository(resolve_database(database))
    try:
        repository.ping()
        analyzer = DataIntegrityAnalyzer(repository, cfg.integrity, scope=cfg.execution.scope)
        with console.status("[bold blue]Scanning sampled records..."):
            report = analyzer.run_full_suite(include_freshness=include_freshness)
    except DataAccessError as e:
        console.print(f"❌ [bold red]Database unavailable:[/bold red] {e.message}")
        raise typer.Exit(2)
    finally:
        repository.close()

    ConsoleReporter(console).render_integrity(report)
    if export:
        path = Path(export)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report.to_dict(), indent=2))
        console.print(f"📁 Report written to [dim]{path}[/dim]")
    if report.verdict == Verdict.FAIL:
        raise typer.Exit(1)
