#!/usr/bin/env python3
"""
Utility helpers for the validation engine.

Includes:
- DatabaseConnectionPool: per-thread DuckDB cursors over one database handle
- DatabaseConnectionManager: connection/transaction helpers with retry
- time_block: context manager for timing code blocks
"""

from __future__ import annotations

import atexit
import logging
import random
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Generator, Optional, Set, TypeVar

import duckdb

T = TypeVar("T")

logger = logging.getLogger(__name__)


class DatabaseConnectionPool:
    """Thread-safe pool of DuckDB cursors.

    DuckDB connections must not be shared across threads, so each worker
    thread checks out its own cursor derived from a single root connection.
    Cursors are cached per thread id and reused across checkouts.
    """

    def __init__(self, db_path: Path, pool_size: int = 8, read_only: bool = False):
        self.db_path = db_path
        self.pool_size = pool_size
        self.read_only = read_only
        self._root: Optional[duckdb.DuckDBPyConnection] = None
        self._pool: Dict[str, duckdb.DuckDBPyConnection] = {}
        self._lock = threading.Lock()
        self._in_use: Set[str] = set()

    def _root_connection(self) -> duckdb.DuckDBPyConnection:
        if self._root is None:
            self._root = duckdb.connect(str(self.db_path), read_only=self.read_only)
        return self._root

    @contextmanager
    def get_connection(self, thread_id: Optional[str] = None) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """Check out the cursor owned by ``thread_id``.

        Usage:
            with pool.get_connection() as conn:
                conn.execute("SELECT COUNT(*) FROM kri_logs").fetchone()

        Raises:
            RuntimeError: If the pool is exhausted
        """
        thread_id = thread_id or threading.current_thread().name

        with self._lock:
            if thread_id in self._in_use:
                raise RuntimeError(f"Connection for thread '{thread_id}' is already checked out")
            conn = self._pool.get(thread_id)
            if conn is None:
                if len(self._pool) >= self.pool_size:
                    idle = set(self._pool) - self._in_use
                    if not idle:
                        raise RuntimeError(
                            f"Connection pool exhausted (size={self.pool_size}). "
                            "All connections are in use."
                        )
                    # Retire an idle cursor to make room for this thread
                    self._pool.pop(idle.pop()).close()
                conn = self._root_connection().cursor()
                self._pool[thread_id] = conn
            self._in_use.add(thread_id)

        try:
            yield conn
        finally:
            with self._lock:
                self._in_use.discard(thread_id)

    def close_all(self) -> None:
        """Close every cursor and the root connection."""
        with self._lock:
            for conn in self._pool.values():
                try:
                    conn.close()
                except duckdb.Error as e:
                    logger.warning(f"Error closing cursor: {e}")
            self._pool.clear()
            self._in_use.clear()
            if self._root is not None:
                self._root.close()
                self._root = None


class DatabaseConnectionManager:
    """DuckDB access with pooled per-thread cursors, transactions and retry."""

    def __init__(self, db_path: Optional[Path] = None, pool_size: int = 8, read_only: bool = False):
        """
        Args:
            db_path: Path to the database file. Defaults to data/resilience.duckdb
            pool_size: Maximum cursors kept open at once
            read_only: Open the database read-only
        """
        self.db_path = Path(db_path) if db_path else Path("data/resilience.duckdb")
        self._pool = DatabaseConnectionPool(self.db_path, pool_size=pool_size, read_only=read_only)
        atexit.register(self.close_all)

    @contextmanager
    def get_connection(self, *, thread_id: Optional[str] = None) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        with self._pool.get_connection(thread_id=thread_id) as conn:
            yield conn

    @contextmanager
    def transaction(self, *, thread_id: Optional[str] = None) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """Run the block inside BEGIN/COMMIT, rolling back on error."""
        with self._pool.get_connection(thread_id=thread_id) as conn:
            conn.begin()
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()

    def execute_with_retry(
        self,
        fn: Callable[[duckdb.DuckDBPyConnection], T],
        *,
        retries: int = 3,
        backoff_seconds: float = 0.5,
        retry_on: tuple = (duckdb.IOException, duckdb.TransactionException),
        thread_id: Optional[str] = None,
    ) -> T:
        """Execute ``fn`` in a transaction, retrying transient failures with jittered backoff.

        Errors not listed in ``retry_on`` propagate immediately.
        """
        attempt = 0
        while True:
            try:
                with self.transaction(thread_id=thread_id) as conn:
                    return fn(conn)
            except retry_on as e:
                if attempt >= retries:
                    raise
                sleep_time = backoff_seconds * (2 ** attempt) * (0.5 + random.random() * 0.5)
                logger.warning(f"Retrying after {type(e).__name__} (attempt {attempt + 1}/{retries}): {e}")
                time.sleep(sleep_time)
                attempt += 1

    def close_all(self) -> None:
        self._pool.close_all()


@contextmanager
def time_block(label: str, sink: Optional[Dict[str, float]] = None) -> Generator[None, None, None]:
    """Measure execution time of a block in milliseconds.

    Example:
        timings = {}
        with time_block("kri_logs_recent", timings):
            repository.fetch("kri_logs", limit=100)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        dur = (time.perf_counter() - start) * 1000
        if sink is not None:
            sink[label] = dur
        logger.debug(f"{label}: {dur:.1f} ms")
