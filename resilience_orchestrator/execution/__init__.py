"""Batch execution: run records, checks, fixtures, hooks and the orchestrator."""

from .checks import DEFAULT_CHECKS, CheckContext, CheckRegistry
from .data_models import (
    BatchSummary,
    ExecutionLog,
    ResultStatus,
    RunRecord,
    RunStateError,
    RunStatus,
    ValidationResult,
)
from .fixtures import FixtureScope, FixtureScopeClosedError
from .hooks import Hook, HookManager, HookType
from .orchestrator import ValidationOrchestrator, new_batch_id

__all__ = [
    "BatchSummary",
    "CheckContext",
    "CheckRegistry",
    "DEFAULT_CHECKS",
    "ExecutionLog",
    "FixtureScope",
    "FixtureScopeClosedError",
    "Hook",
    "HookManager",
    "HookType",
    "ResultStatus",
    "RunRecord",
    "RunStateError",
    "RunStatus",
    "ValidationOrchestrator",
    "ValidationResult",
    "new_batch_id",
]
