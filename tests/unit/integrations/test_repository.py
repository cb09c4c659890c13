"""Tests for the repository implementations and timestamp coercion."""

from datetime import date, datetime, timezone

import duckdb
import pytest

from resilience_orchestrator.exceptions import DataAccessError
from resilience_orchestrator.integrations import (
    DuckDBRepository,
    InMemoryRepository,
    Repository,
    coerce_datetime,
)


@pytest.fixture
def repository():
    return InMemoryRepository({
        "kri_logs": [
            {"id": "a", "org_id": "org-1", "created_at": "2026-01-03T00:00:00+00:00"},
            {"id": "b", "org_id": "org-2", "created_at": "2026-01-01T00:00:00+00:00"},
            {"id": "c", "org_id": "org-1", "created_at": None},
            {"id": "d", "org_id": "org-1", "created_at": "2026-01-02T00:00:00+00:00"},
        ]
    })


class TestInMemoryRepository:
    def test_satisfies_protocol(self, repository):
        assert isinstance(repository, Repository)

    def test_fetch_scope_order_limit(self, repository):
        rows = repository.fetch("kri_logs", scope="org-1", order_by="created_at", limit=2)
        assert [r["id"] for r in rows] == ["a", "d"]

    def test_null_sort_keys_go_last(self, repository):
        rows = repository.fetch("kri_logs", order_by="created_at", descending=False)
        assert [r["id"] for r in rows] == ["b", "d", "a", "c"]

    def test_count(self, repository):
        assert repository.count("kri_logs") == 4
        assert repository.count("kri_logs", scope="org-2") == 1

    def test_fetch_returns_copies(self, repository):
        repository.fetch("kri_logs")[0]["id"] = "mutated"
        assert repository.fetch("kri_logs", order_by="id", descending=False)[0]["id"] == "a"

    def test_missing_table_raises(self, repository):
        with pytest.raises(DataAccessError) as exc_info:
            repository.count("controls")
        assert exc_info.value.table == "controls"

    def test_insert_assigns_id_and_delete(self, repository):
        row = repository.insert("kri_logs", {"org_id": "org-1"})
        assert row["id"]
        assert repository.count("kri_logs") == 5
        assert repository.delete("kri_logs", row["id"]) is True
        assert repository.delete("kri_logs", row["id"]) is False
        assert repository.count("kri_logs") == 4

    def test_subscription_delivers_inserts_until_closed(self, repository):
        received = []
        subscription = repository.subscribe("kri_logs", lambda event, record: received.append((event, record["id"])))
        assert repository.subscriber_count("kri_logs") == 1

        repository.insert("kri_logs", {"id": "e"})
        subscription.close()
        subscription.close()
        repository.insert("kri_logs", {"id": "f"})

        assert received == [("INSERT", "e")]
        assert repository.subscriber_count("kri_logs") == 0

    def test_tables_and_drop(self, repository):
        repository.create_table("controls", [{"id": "ctl-1"}])
        assert set(repository.tables()) == {"kri_logs", "controls"}
        repository.drop_table("controls")
        assert repository.tables() == ["kri_logs"]


@pytest.mark.database
class TestDuckDBRepository:
    @pytest.fixture
    def duck(self, tmp_path):
        repo = DuckDBRepository(tmp_path / "resilience.duckdb")
        repo.create_table("controls", {"id": "VARCHAR", "org_id": "VARCHAR", "title": "VARCHAR"})
        yield repo
        repo.close()

    def test_insert_fetch_delete(self, duck):
        duck.insert("controls", {"id": "ctl-1", "org_id": "org-1", "title": "Access review"})
        duck.insert("controls", {"id": "ctl-2", "org_id": "org-2", "title": "Reconciliation"})

        assert duck.count("controls") == 2
        assert duck.fetch("controls", scope="org-1") == [{"id": "ctl-1", "org_id": "org-1", "title": "Access review"}]
        assert [r["id"] for r in duck.fetch("controls", order_by="id", descending=False)] == ["ctl-1", "ctl-2"]

        assert duck.delete("controls", "ctl-1") is True
        assert duck.delete("controls", "ctl-1") is False
        assert duck.count("controls") == 1

    def test_missing_table_is_data_access_error(self, duck):
        with pytest.raises(DataAccessError):
            duck.count("kri_logs")

    def test_rejects_unsafe_identifiers(self, duck):
        with pytest.raises(DataAccessError, match="Invalid identifier"):
            duck.fetch("controls; DROP TABLE controls")

    def test_ping(self, duck):
        duck.ping()

    def test_writes_retry_transient_failures(self, duck, monkeypatch):
        original = duck.manager.execute_with_retry
        failures = []

        def flaky(fn, **kwargs):
            def wrapped(conn):
                if len(failures) < 2:
                    failures.append(1)
                    raise duckdb.IOException("transient")
                return fn(conn)
            return original(wrapped, backoff_seconds=0.001)

        monkeypatch.setattr(duck.manager, "execute_with_retry", flaky)
        duck.insert("controls", {"id": "ctl-1", "org_id": "org-1", "title": "Access review"})
        assert duck.count("controls") == 1
        assert duck.delete("controls", "ctl-1") is True
        assert len(failures) == 2


class TestCoerceDatetime:
    def test_iso_string_with_z(self):
        assert coerce_datetime("2026-03-01T12:00:00Z") == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)

    def test_naive_values_are_utc(self):
        assert coerce_datetime(datetime(2026, 3, 1)).tzinfo == timezone.utc
        assert coerce_datetime("2026-03-01T08:30:00").tzinfo == timezone.utc

    def test_date(self):
        assert coerce_datetime(date(2026, 3, 1)) == datetime(2026, 3, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "not a date", 12345])
    def test_unparseable_is_none(self, value):
        assert coerce_datetime(value) is None
