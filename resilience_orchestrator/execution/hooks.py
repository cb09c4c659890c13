"""
Batch lifecycle hooks.

Callbacks can be attached before/after a batch and before/after each
entry without touching the orchestrator. A failing hook is logged and
skipped; it never changes the outcome of the entry or the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..catalog.models import ValidationCategory

logger = logging.getLogger(__name__)


class HookType(Enum):
    """Execution points where callbacks can be injected.

    - PRE_BATCH: before any entry of a batch is launched
    - POST_BATCH: after the batch summary is built
    - PRE_ENTRY: before a single entry starts
    - POST_ENTRY: after a single entry reaches a terminal status
    """
    PRE_BATCH = "pre_batch"
    POST_BATCH = "post_batch"
    PRE_ENTRY = "pre_entry"
    POST_ENTRY = "post_entry"


@dataclass
class Hook:
    """Hook definition.

    Attributes:
        hook_type: When the hook runs
        callback: Receives the context dictionary
        category_filter: Only for PRE_ENTRY/POST_ENTRY; restricts to one category
        name: Used in log lines
    """
    hook_type: HookType
    callback: Callable[[Dict[str, Any]], None]
    category_filter: Optional[ValidationCategory] = None
    name: str = "unnamed_hook"

    def __post_init__(self):
        if self.category_filter is not None and self.hook_type not in (HookType.PRE_ENTRY, HookType.POST_ENTRY):
            raise ValueError(
                f"category_filter can only be used with PRE_ENTRY/POST_ENTRY hooks, got {self.hook_type}"
            )


class HookManager:
    """Registers hooks and runs them with error isolation.

    Example:
        >>> manager = HookManager()
        >>> manager.register_hook(Hook(HookType.POST_ENTRY, lambda ctx: print(ctx["status"])))
        >>> manager.execute_hooks(HookType.POST_ENTRY, {"status": "passed"})
    """

    def __init__(self) -> None:
        self._hooks: Dict[HookType, List[Hook]] = {hook_type: [] for hook_type in HookType}

    def register_hook(self, hook: Hook) -> None:
        """Hooks of one type run in registration order."""
        self._hooks[hook.hook_type].append(hook)
        logger.debug(f"Registered hook {hook.name} ({hook.hook_type.value})")

    def execute_hooks(self, hook_type: HookType, context: Dict[str, Any]) -> List[str]:
        """Run every applicable hook; return the names of hooks that raised."""
        category = context.get("category")
        applicable = [
            h for h in self._hooks[hook_type]
            if h.category_filter is None or h.category_filter == category
        ]
        failed: List[str] = []
        for hook in applicable:
            try:
                hook.callback(context)
            except Exception as e:
                logger.error(f"Hook '{hook.name}' failed during {hook_type.value}: {e}")
                failed.append(hook.name)
        return failed

    def clear_hooks(self, hook_type: Optional[HookType] = None) -> None:
        if hook_type is None:
            for ht in HookType:
                self._hooks[ht] = []
        else:
            self._hooks[hook_type] = []

    def get_hook_count(self, hook_type: HookType) -> int:
        return len(self._hooks[hook_type])

    def list_hooks(self) -> Dict[str, List[str]]:
        return {
            hook_type.value: [h.name for h in hooks]
            for hook_type, hooks in self._hooks.items()
            if hooks
        }
