"""Tests for scoped ownership of transient check resources."""

import threading

import pytest

from resilience_orchestrator.execution import FixtureScope, FixtureScopeClosedError
from resilience_orchestrator.integrations import InMemoryRepository


@pytest.fixture
def repository():
    return InMemoryRepository({"kri_logs": [{"id": "existing", "actual_value": 1.0}]})


def test_rows_released_on_exit(repository):
    with FixtureScope(repository, owner="probe") as fixtures:
        row = fixtures.acquire("kri_logs", {"actual_value": 95.0})
        assert repository.count("kri_logs") == 2
        assert fixtures.pending == 1
    assert repository.count("kri_logs") == 1
    assert fixtures.closed
    assert row["id"] != "existing"


def test_rows_released_when_block_raises(repository):
    with pytest.raises(RuntimeError):
        with FixtureScope(repository) as fixtures:
            fixtures.acquire("kri_logs", {"actual_value": 95.0})
            raise RuntimeError("check blew up")
    assert repository.count("kri_logs") == 1


def test_caller_id_is_never_reused(repository):
    with FixtureScope(repository) as fixtures:
        row = fixtures.acquire("kri_logs", {"id": "existing", "actual_value": 2.0})
        assert row["id"] != "existing"
    assert [r["id"] for r in repository.fetch("kri_logs")] == ["existing"]


def test_release_order_is_newest_first(repository):
    released = []
    scope = FixtureScope(repository)
    scope.defer(lambda: released.append("first"), label="first")
    scope.defer(lambda: released.append("second"), label="second")
    scope.close()
    assert released == ["second", "first"]


def test_close_is_idempotent(repository):
    calls = []
    scope = FixtureScope(repository)
    scope.defer(lambda: calls.append(1), label="once")
    scope.close()
    scope.close()
    assert calls == [1]


def test_closed_scope_refuses_new_resources(repository):
    scope = FixtureScope(repository, owner="late")
    scope.close()
    with pytest.raises(FixtureScopeClosedError):
        scope.acquire("kri_logs", {"actual_value": 1.0})
    assert repository.count("kri_logs") == 1


def test_tracked_resource_registered_after_close_is_released(repository):
    scope = FixtureScope(repository)
    subscription = repository.subscribe("kri_logs", lambda event, record: None)
    scope.close()
    with pytest.raises(FixtureScopeClosedError):
        scope.track(subscription)
    assert subscription.closed
    assert repository.subscriber_count("kri_logs") == 0


def test_release_errors_collected(repository):
    def broken():
        raise RuntimeError("delete failed")

    scope = FixtureScope(repository, owner="x")
    scope.defer(broken, label="row:1")
    errors = scope.close()
    assert errors == ["Failed to release row:1: delete failed"]


def test_concurrent_close_releases_once(repository):
    calls = []
    scope = FixtureScope(repository)
    for i in range(20):
        scope.defer(lambda i=i: calls.append(i), label=str(i))

    threads = [threading.Thread(target=scope.close) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(calls) == list(range(20))
