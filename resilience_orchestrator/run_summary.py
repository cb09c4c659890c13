"""
Batch summary artifacts.

Writes ``artifacts/runs/<batch_id>/summary.json`` (plus ``errors.json`` and
``warnings.json`` when the batch produced any) so every batch leaves an
audit trail on disk, and prints a rich console summary.
"""

import json
import os
import platform
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

from _version import get_version_dict

from .config.paths import get_artifacts_dir
from .execution.data_models import BatchSummary, RunStatus
from .logger import ProductionLogger
from .reports.formatters import ConsoleReporter


@dataclass
class RunIssue:
    """Container for batch issues (errors and warnings)"""

    level: str  # 'error' or 'warning'
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp,
        }


class RunSummaryGenerator:
    """
    Collects issues for one batch and turns its BatchSummary into
    on-disk artifacts and a console report.
    """

    def __init__(
        self,
        batch_id: str,
        logger: ProductionLogger,
        artifacts_dir: Optional[Path] = None,
        console: Optional[Console] = None,
    ):
        self.batch_id = batch_id
        self.logger = logger
        self.artifacts_dir = Path(artifacts_dir or get_artifacts_dir()) / "runs" / batch_id
        self.console = console or Console()
        self.configuration: Dict[str, Any] = {}
        self.errors: List[RunIssue] = []
        self.warnings: List[RunIssue] = []

    def _environment(self) -> Dict[str, Any]:
        return {
            "python_version": sys.version.split()[0],
            "platform": platform.platform(),
            "hostname": platform.node(),
            "working_directory": os.getcwd(),
            "user": os.getenv("USER", "unknown"),
        }

    def set_configuration(self, config: Dict[str, Any]) -> None:
        self.configuration = config

    def add_error(self, error: str, context: Optional[Dict[str, Any]] = None) -> None:
        issue = RunIssue(level="error", message=error, context=context or {})
        self.errors.append(issue)
        safe_context = {k: v for k, v in issue.context.items() if k not in ("level", "message")}
        self.logger.error(f"Batch error: {error}", **safe_context)

    def add_warning(self, warning: str, context: Optional[Dict[str, Any]] = None) -> None:
        issue = RunIssue(level="warning", message=warning, context=context or {})
        self.warnings.append(issue)
        safe_context = {k: v for k, v in issue.context.items() if k not in ("level", "message")}
        self.logger.warning(f"Batch warning: {warning}", **safe_context)

    def _collect_issues(self, summary: BatchSummary) -> None:
        for record in summary.records:
            context = {"validation_id": record.validation_id, "run_id": record.run_id}
            if record.status == RunStatus.FAILED:
                context["error_kind"] = record.result.error_kind if record.result else None
                self.errors.append(RunIssue("error", record.error or record.outcome, context))
            elif record.status == RunStatus.WARNING:
                self.warnings.append(RunIssue("warning", record.outcome, context))
        if summary.not_started:
            self.warnings.append(RunIssue(
                "warning",
                f"{len(summary.not_started)} entries not started",
                {"validation_ids": list(summary.not_started)},
            ))

    def generate_summary(self, summary: BatchSummary, print_console: bool = True) -> Dict[str, Any]:
        """Build the summary document, write artifacts and optionally print it."""
        self._collect_issues(summary)
        if summary.failed_tests:
            status = "failed"
        elif summary.cancelled or summary.warning_tests:
            status = "partial"
        else:
            status = "success"

        document = {
            "run_metadata": {
                "batch_id": self.batch_id,
                "status": status,
                "version": get_version_dict(),
                "configuration": self.configuration,
                "environment": self._environment(),
            },
            "batch": summary.to_dict(),
            "issues": {
                "errors": [i.to_dict() for i in self.errors],
                "warnings": [i.to_dict() for i in self.warnings],
            },
        }
        self._save_summary_artifacts(document)
        self.logger.info(
            "Batch summary generated",
            batch_id=self.batch_id,
            status=status,
            errors=len(self.errors),
            warnings=len(self.warnings),
        )
        if print_console:
            ConsoleReporter(self.console).render_batch(summary)
        return document

    def _save_summary_artifacts(self, document: Dict[str, Any]) -> None:
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)

        with open(self.artifacts_dir / "summary.json", "w") as f:
            json.dump(document, f, indent=2, ensure_ascii=False, default=str)

        if self.errors:
            with open(self.artifacts_dir / "errors.json", "w") as f:
                json.dump([e.to_dict() for e in self.errors], f, indent=2, default=str)

        if self.warnings:
            with open(self.artifacts_dir / "warnings.json", "w") as f:
                json.dump([w.to_dict() for w in self.warnings], f, indent=2, default=str)

        self.logger.info("Summary artifacts saved", artifacts_directory=str(self.artifacts_dir))
