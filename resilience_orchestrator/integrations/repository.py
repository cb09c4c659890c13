"""
Repository port used by every check that reads or writes operational data.

Checks never talk to a data store directly; they receive a ``Repository``.
Two implementations ship with the engine:

- ``InMemoryRepository``: thread-safe dict-of-lists store with a change feed,
  used by tests and dry runs
- ``DuckDBRepository``: DuckDB-backed store built on DatabaseConnectionManager
"""

from __future__ import annotations

import logging
import re
import threading
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

import duckdb

from ..exceptions import DataAccessError
from ..utils import DatabaseConnectionManager

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
ChangeCallback = Callable[[str, Record], None]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@runtime_checkable
class Repository(Protocol):
    """Queryable store of operational records."""

    def fetch(
        self,
        table: str,
        *,
        scope: Optional[str] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
    ) -> List[Record]:
        ...

    def count(self, table: str, *, scope: Optional[str] = None) -> int:
        ...

    def insert(self, table: str, record: Record) -> Record:
        ...

    def delete(self, table: str, record_id: str) -> bool:
        ...


@dataclass
class Subscription:
    """Handle returned by ``subscribe``; ``close`` stops delivery."""

    table: str
    callback: ChangeCallback
    subscription_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    _on_close: Optional[Callable[["Subscription"], None]] = None
    closed: bool = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close(self)


def _ordered(rows: List[Record], field_name: str, descending: bool) -> List[Record]:
    present = [r for r in rows if r.get(field_name) is not None]
    missing = [r for r in rows if r.get(field_name) is None]
    present.sort(key=lambda r: r[field_name], reverse=descending)
    return present + missing


class InMemoryRepository:
    """Thread-safe in-memory repository with a per-table change feed.

    Reads return copies so callers can never mutate stored rows.
    """

    def __init__(self, tables: Optional[Dict[str, Iterable[Record]]] = None, scope_field: str = "org_id"):
        self.scope_field = scope_field
        self._tables: Dict[str, List[Record]] = {}
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._lock = threading.RLock()
        for name, rows in (tables or {}).items():
            self.create_table(name, rows)

    def create_table(self, table: str, rows: Iterable[Record] = ()) -> None:
        with self._lock:
            self._tables[table] = [dict(r) for r in rows]

    def drop_table(self, table: str) -> None:
        with self._lock:
            self._tables.pop(table, None)

    def tables(self) -> List[str]:
        with self._lock:
            return list(self._tables)

    def _rows(self, table: str) -> List[Record]:
        try:
            return self._tables[table]
        except KeyError:
            raise DataAccessError(f"Table '{table}' does not exist", table=table) from None

    def fetch(
        self,
        table: str,
        *,
        scope: Optional[str] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
    ) -> List[Record]:
        with self._lock:
            rows = [dict(r) for r in self._rows(table)]
        if scope is not None:
            rows = [r for r in rows if r.get(self.scope_field) == scope]
        if order_by:
            rows = _ordered(rows, order_by, descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def count(self, table: str, *, scope: Optional[str] = None) -> int:
        with self._lock:
            rows = self._rows(table)
            if scope is None:
                return len(rows)
            return sum(1 for r in rows if r.get(self.scope_field) == scope)

    def insert(self, table: str, record: Record) -> Record:
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        with self._lock:
            self._rows(table).append(row)
            subscribers = list(self._subscribers.get(table, ()))
        for subscription in subscribers:
            subscription.callback("INSERT", dict(row))
        return dict(row)

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            rows = self._rows(table)
            for i, row in enumerate(rows):
                if row.get("id") == record_id:
                    del rows[i]
                    return True
        return False

    def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        """Deliver ``(event, record)`` for every insert into ``table``."""
        with self._lock:
            self._rows(table)
            subscription = Subscription(table=table, callback=callback, _on_close=self._unsubscribe)
            self._subscribers.setdefault(table, []).append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscribers.get(subscription.table, [])
            if subscription in subs:
                subs.remove(subscription)

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            return len(self._subscribers.get(table, ()))

    def ping(self) -> None:
        """In-memory stores are always reachable."""


def _quote(identifier: str) -> str:
    if not _IDENTIFIER.match(identifier):
        raise DataAccessError(f"Invalid identifier: {identifier!r}")
    return f'"{identifier}"'


def _to_python(value: Any) -> Any:
    # DuckDB returns UUID objects for UUID columns
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


class DuckDBRepository:
    """Repository over a DuckDB database.

    Every call checks out the calling thread's cursor from the shared
    DatabaseConnectionManager, so worker threads never share a cursor.
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        *,
        scope_field: str = "org_id",
        manager: Optional[DatabaseConnectionManager] = None,
    ):
        self.scope_field = scope_field
        self.manager = manager or DatabaseConnectionManager(db_path)

    def _query(self, table: str, sql: str, params: List[Any]) -> Tuple[List[str], List[tuple]]:
        try:
            with self.manager.get_connection() as conn:
                cursor = conn.execute(sql, params)
                columns = [d[0] for d in cursor.description] if cursor.description else []
                return columns, cursor.fetchall()
        except duckdb.Error as e:
            raise DataAccessError(str(e), table=table, original_exception=e) from e

    def fetch(
        self,
        table: str,
        *,
        scope: Optional[str] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
    ) -> List[Record]:
        sql = f"SELECT * FROM {_quote(table)}"
        params: List[Any] = []
        if scope is not None:
            sql += f" WHERE {_quote(self.scope_field)} = ?"
            params.append(scope)
        if order_by:
            sql += f" ORDER BY {_quote(order_by)} {'DESC' if descending else 'ASC'} NULLS LAST"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        columns, rows = self._query(table, sql, params)
        return [{c: _to_python(v) for c, v in zip(columns, row)} for row in rows]

    def count(self, table: str, *, scope: Optional[str] = None) -> int:
        sql = f"SELECT COUNT(*) FROM {_quote(table)}"
        params: List[Any] = []
        if scope is not None:
            sql += f" WHERE {_quote(self.scope_field)} = ?"
            params.append(scope)
        _, rows = self._query(table, sql, params)
        return int(rows[0][0])

    def insert(self, table: str, record: Record) -> Record:
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        columns = ", ".join(_quote(c) for c in row)
        placeholders = ", ".join("?" for _ in row)
        sql = f"INSERT INTO {_quote(table)} ({columns}) VALUES ({placeholders})"
        try:
            self.manager.execute_with_retry(lambda conn: conn.execute(sql, list(row.values())))
        except duckdb.Error as e:
            raise DataAccessError(str(e), table=table, original_exception=e) from e
        return row

    def delete(self, table: str, record_id: str) -> bool:
        sql = f"DELETE FROM {_quote(table)} WHERE {_quote('id')} = ? RETURNING {_quote('id')}"
        try:
            deleted = self.manager.execute_with_retry(lambda conn: conn.execute(sql, [record_id]).fetchall())
        except duckdb.Error as e:
            raise DataAccessError(str(e), table=table, original_exception=e) from e
        return bool(deleted)

    def ping(self) -> None:
        """Raise DataAccessError when the database cannot be queried."""
        self._query("(ping)", "SELECT 1", [])

    def create_table(self, table: str, columns: Dict[str, str]) -> None:
        """Create ``table`` if missing; ``columns`` maps name -> DuckDB type."""
        ddl = ", ".join(f"{_quote(name)} {sql_type}" for name, sql_type in columns.items())
        with self.manager.transaction() as conn:
            conn.execute(f"CREATE TABLE IF NOT EXISTS {_quote(table)} ({ddl})")

    def close(self) -> None:
        self.manager.close_all()


def coerce_datetime(value: Any) -> Optional[datetime]:
    """Parse the timestamp shapes repositories return into an aware UTC datetime.

    Naive values are taken to be UTC. Returns None when the value is empty
    or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
