"""
Scoped ownership of transient resources created by a check.

A check that writes probe rows or opens subscriptions does it through a
``FixtureScope``. The scope remembers exactly what was created, keyed by a
generated id, and releases it in reverse order when the scope exits.

Usage:
    with FixtureScope(repository, owner="breach-realtime-db") as fixtures:
        row = fixtures.acquire("kri_logs", {"actual_value": 95})
        ...
    # row is deleted here, whether the block raised or not
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from ..exceptions import ResilienceError
from ..integrations.repository import Record, Repository

logger = logging.getLogger(__name__)


class FixtureScopeClosedError(ResilienceError):
    """Raised when a closed scope is asked to acquire another resource."""

    error_kind = "exception"


@dataclass
class ReleaseHandle:
    """Release callback for one transient resource."""

    label: str
    release: Callable[[], Any]
    released: bool = False


class FixtureScope:
    """Owns the transient resources of a single entry execution.

    ``close`` is idempotent and thread-safe: the orchestrator calls it when
    an entry times out while the check's own thread may still call it on
    exit. After closing, further ``acquire``/``track`` calls are refused so
    an abandoned check cannot leak new rows.
    """

    def __init__(self, repository: Repository, owner: str = "unknown"):
        self.repository = repository
        self.owner = owner
        self._handles: List[ReleaseHandle] = []
        self._lock = threading.Lock()
        self._closed = False
        self.rows_created = 0
        self.release_errors: List[str] = []

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        with self._lock:
            return sum(1 for h in self._handles if not h.released)

    def _register(self, handle: ReleaseHandle) -> ReleaseHandle:
        with self._lock:
            if self._closed:
                refused = True
            else:
                self._handles.append(handle)
                refused = False
        if refused:
            # Undo immediately; nobody will release it later
            handle.released = True
            self._release_one(handle)
            raise FixtureScopeClosedError(
                f"Fixture scope for '{self.owner}' is closed; refused {handle.label}"
            )
        return handle

    def acquire(self, table: str, record: Record) -> Record:
        """Insert ``record`` under a fresh id and own it until the scope closes."""
        if self._closed:
            raise FixtureScopeClosedError(f"Fixture scope for '{self.owner}' is closed")
        row = dict(record)
        row["id"] = str(uuid.uuid4())
        inserted = self.repository.insert(table, row)
        record_id = str(inserted.get("id", row["id"]))
        self.rows_created += 1
        self._register(ReleaseHandle(
            label=f"{table}:{record_id}",
            release=lambda: self.repository.delete(table, record_id),
        ))
        logger.debug(f"[{self.owner}] acquired fixture {table}:{record_id}")
        return inserted

    def track(self, resource: Any, label: Optional[str] = None) -> Any:
        """Own any resource exposing ``close()`` (subscriptions, sessions)."""
        handle = ReleaseHandle(label=label or type(resource).__name__, release=resource.close)
        self._register(handle)
        return resource

    def defer(self, release: Callable[[], Any], label: str) -> None:
        """Own an arbitrary release callback."""
        self._register(ReleaseHandle(label=label, release=release))

    def _release_one(self, handle: ReleaseHandle) -> None:
        try:
            handle.release()
        except Exception as e:
            message = f"Failed to release {handle.label}: {e}"
            logger.error(f"[{self.owner}] {message}")
            self.release_errors.append(message)

    def close(self) -> List[str]:
        """Release every owned resource, newest first; return release errors."""
        with self._lock:
            self._closed = True
            handles = [h for h in reversed(self._handles) if not h.released]
            for handle in handles:
                handle.released = True
        for handle in handles:
            self._release_one(handle)
        if handles:
            logger.debug(f"[{self.owner}] released {len(handles)} fixture(s)")
        return list(self.release_errors)

    def __enter__(self) -> "FixtureScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False
