"""
Run command for the Resilience Validation CLI

Executes a validation batch against the DuckDB repository, writes the
run artifacts and a readiness assessment and appends the batch to the
audit trail.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console

from resilience_orchestrator.config import get_artifacts_dir
from resilience_orchestrator.exceptions import BatchAbortedError
from resilience_orchestrator.execution import BatchSummary, ValidationOrchestrator
from resilience_orchestrator.integrations import DuckDBRepository, probes_from_env
from resilience_orchestrator.logger import ProductionLogger
from resilience_orchestrator.reports import (
    AuditTrailGenerator,
    AuditTrailStore,
    ReadinessInputs,
    ReadinessReporter,
)
from resilience_orchestrator.run_summary import RunSummaryGenerator

from ..utils.config_helpers import load_config, resolve_database

console = Console()


def run_validations(
    ids: Optional[List[str]] = None,
    config: Optional[str] = None,
    database: Optional[str] = None,
    workers: Optional[int] = None,
    artifacts_dir: Optional[str] = None,
    audit: bool = True,
    verbose: bool = False,
) -> BatchSummary:
    """Run ``ids`` (or the whole catalog) and exit non-zero on any failure."""
    try:
        cfg = load_config(config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"❌ [bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(2)

    artifacts = Path(artifacts_dir) if artifacts_dir else get_artifacts_dir()
    logger = ProductionLogger(
        log_level="DEBUG" if verbose else "INFO",
        logs_dir=artifacts / "logs",
        console=verbose,
    )
    repository = DuckDBRepository(resolve_database(database))
    orchestrator = ValidationOrchestrator(
        repository,
        cfg,
        probes=probes_from_env(),
        logger=logger,
        max_workers=workers,
    )

    cancel_event = threading.Event()
    console.print(
        f"🚀 [bold blue]Running {len(ids) if ids else len(orchestrator.catalog)} validation(s)[/bold blue] "
        f"with {orchestrator.max_workers} worker(s)"
    )
    try:
        summary = _run_interruptible(orchestrator, ids, cancel_event)
    except BatchAbortedError as e:
        console.print(f"❌ [bold red]Batch aborted:[/bold red] {e.message}")
        raise typer.Exit(2)
    finally:
        repository.close()

    generator = RunSummaryGenerator(summary.batch_id, logger, artifacts, console)
    generator.set_configuration({
        "environment": cfg.environment,
        "catalog_version": summary.catalog_version,
        "max_workers": orchestrator.max_workers,
        "requested_ids": ids or "all",
    })
    generator.generate_summary(summary)

    readiness_settings = cfg.reporting.readiness
    readiness = ReadinessReporter(readiness_settings).assess(
        ReadinessInputs.from_batch(summary, bounds=readiness_settings.bounds)
    )
    readiness.export_json(generator.artifacts_dir / "readiness.json")

    if audit:
        store = AuditTrailStore(artifacts / cfg.reporting.audit.store_filename)
        entries = AuditTrailGenerator(orchestrator.catalog, cfg.reporting.audit, store).generate(summary.records)
        console.print(f"📜 {len(entries)} audit trail entries appended to [dim]{store.path}[/dim]")

    console.print(f"📁 Artifacts: [dim]{generator.artifacts_dir}[/dim]")
    if summary.failed_tests:
        raise typer.Exit(1)
    return summary


def _run_interruptible(
    orchestrator: ValidationOrchestrator,
    ids: Optional[List[str]],
    cancel_event: threading.Event,
) -> BatchSummary:
    """Run the batch on a worker thread so Ctrl-C cancels instead of killing it.

    On interrupt no further entries launch; in-flight entries finish or
    time out and the partial summary is still reported.
    """
    outcome: Dict[str, Any] = {}

    def target() -> None:
        try:
            outcome["summary"] = orchestrator.run(ids, cancel_event=cancel_event)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=target, name="batch", daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(0.2)
    except KeyboardInterrupt:
        cancel_event.set()
        console.print("\n🛑 [yellow]Cancelling: waiting for in-flight validations[/yellow]")
        worker.join()

    if "error" in outcome:
        raise outcome["error"]
    return outcome["summary"]
