"""
Readiness command for the Resilience Validation CLI

Scores production readiness from a saved batch summary or from
measurements given on the command line.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console

from resilience_orchestrator.reports import ConsoleReporter, ReadinessInputs, ReadinessReporter

from ..utils.config_helpers import load_config

console = Console()


def inputs_from_summary(document: Dict[str, Any], **overrides: Any) -> ReadinessInputs:
    """Build inputs from a ``summary.json`` document (or its ``batch`` section)."""
    batch = document.get("batch", document)
    counts = batch.get("summary", {})
    total = counts.get("total_tests", 0)
    failed = counts.get("failed_tests", 0)
    compliance = batch.get("overall_compliance_score")
    values: Dict[str, Any] = {
        "success_rate_pct": counts.get("success_rate", 0.0),
        "error_rate_pct": failed / total * 100 if total else 0.0,
        "compliance_score": 100.0 if compliance is None else compliance,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ReadinessInputs(**values)


def assess_readiness(
    summary: Optional[str] = None,
    success_rate: Optional[float] = None,
    error_rate: Optional[float] = None,
    daily_cost: float = 0.0,
    compliance_score: Optional[float] = None,
    security_score: float = 100.0,
    config: Optional[str] = None,
    export: Optional[str] = None,
) -> None:
    cfg = load_config(config)
    overrides = {
        "daily_cost": daily_cost,
        "security_score": security_score,
        "security_validated": security_score >= cfg.reporting.readiness.bounds.min_security_score,
        "success_rate_pct": success_rate,
        "error_rate_pct": error_rate,
        "compliance_score": compliance_score,
    }
    if summary:
        path = Path(summary)
        if not path.exists():
            console.print(f"❌ [red]Summary file not found: {path}[/red]")
            raise typer.Exit(1)
        inputs = inputs_from_summary(json.loads(path.read_text()), **overrides)
    else:
        if success_rate is None or error_rate is None:
            console.print("❌ [red]Pass --summary or both --success-rate and --error-rate[/red]")
            raise typer.Exit(1)
        inputs = ReadinessInputs(**{k: v for k, v in overrides.items() if v is not None})

    report = ReadinessReporter(cfg.reporting.readiness).assess(inputs)
    ConsoleReporter(console).render_readiness(report)
    if export:
        report.export_json(Path(export))
        console.print(f"📁 Report written to [dim]{export}[/dim]")
    if report.critical_issues:
        raise typer.Exit(1)
