"""Unit tests for schedule computation and the YAML schedule store."""

from datetime import datetime, timezone

import pytest
import yaml
from pydantic import ValidationError

from resilience_orchestrator.scheduling import (
    Frequency,
    ScheduleConfig,
    ScheduleStore,
    compute_next_execution,
)

NOW = datetime(2026, 10, 17, 10, 0, tzinfo=timezone.utc)


def _at(day: int, hour: int, minute: int = 0, month: int = 10, year: int = 2026) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


class TestComputeNextExecution:
    def test_later_today(self):
        assert compute_next_execution(Frequency.DAILY, "11:30", NOW) == _at(17, 11, 30)

    @pytest.mark.parametrize(
        "frequency,expected",
        [
            (Frequency.DAILY, _at(18, 9)),
            (Frequency.WEEKLY, _at(24, 9)),
            (Frequency.MONTHLY, _at(17, 9, month=11)),
        ],
    )
    def test_passed_slot_advances_one_period(self, frequency, expected):
        assert compute_next_execution(frequency, "09:00", NOW) == expected

    def test_slot_equal_to_now_advances(self):
        assert compute_next_execution(Frequency.DAILY, "10:00", NOW) == _at(18, 10)

    def test_monthly_clamps_day(self):
        end_of_january = datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc)
        assert compute_next_execution("monthly", "06:00", end_of_january) == datetime(
            2026, 2, 28, 6, 0, tzinfo=timezone.utc
        )

    def test_monthly_wraps_year(self):
        december = datetime(2026, 12, 20, 23, 0, tzinfo=timezone.utc)
        assert compute_next_execution(Frequency.MONTHLY, "01:00", december) == datetime(
            2027, 1, 20, 1, 0, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", ["24:00", "9:00", "09:60", "noon", ""])
    def test_invalid_time_of_day(self, value):
        with pytest.raises(ValueError):
            compute_next_execution(Frequency.DAILY, value, NOW)


class TestScheduleConfig:
    def test_defaults(self):
        schedule = ScheduleConfig(frequency="weekly", time="02:00")
        assert schedule.frequency == Frequency.WEEKLY
        assert schedule.id.startswith("schedule-")
        assert schedule.active
        assert schedule.target_suites == []
        assert schedule.next_execution is None

    def test_rejects_bad_time(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(frequency="daily", time="25:00")

    def test_rejects_bad_recipient(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(frequency="daily", time="02:00", recipients=["risk-team"])

    def test_rejects_unknown_frequency(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(frequency="hourly", time="02:00")

    def test_due_after_first_slot_following_creation(self):
        schedule = ScheduleConfig(frequency="daily", time="09:00", created_at=_at(17, 8))
        assert not schedule.is_due(_at(17, 8, 59))
        assert schedule.is_due(_at(17, 9))

    def test_paused_schedule_is_never_due(self):
        schedule = ScheduleConfig(frequency="daily", time="09:00", created_at=_at(1, 8), active=False)
        assert not schedule.is_due(_at(17, 12))


class TestScheduleStore:
    @pytest.fixture
    def store(self, tmp_path):
        return ScheduleStore(tmp_path / "config" / "schedules.yaml")

    def test_add_and_get(self, store):
        saved = store.add(
            ScheduleConfig(frequency="daily", time="02:00", recipients=["cro@example.com"]), now=NOW
        )
        assert saved.next_execution == _at(18, 2)
        loaded = store.get(saved.id)
        assert loaded.recipients == ["cro@example.com"]
        assert loaded.frequency == Frequency.DAILY

    def test_get_unknown(self, store):
        with pytest.raises(KeyError):
            store.get("schedule-missing")

    def test_add_replaces_same_id(self, store):
        store.add(ScheduleConfig(id="nightly", frequency="daily", time="02:00"), now=NOW)
        store.add(ScheduleConfig(id="nightly", frequency="weekly", time="03:00"), now=NOW)
        schedules = store.list_schedules(NOW)
        assert len(schedules) == 1
        assert schedules[0].frequency == Frequency.WEEKLY

    def test_list_recomputes_next_execution(self, store):
        store.add(ScheduleConfig(id="nightly", frequency="daily", time="02:00"), now=NOW)
        document = yaml.safe_load(store.path.read_text())
        document["schedules"][0]["next_execution"] = "2030-01-01T00:00:00Z"
        store.path.write_text(yaml.safe_dump(document))

        assert store.list_schedules(NOW)[0].next_execution == _at(18, 2)

    def test_remove(self, store):
        saved = store.add(ScheduleConfig(frequency="daily", time="02:00"), now=NOW)
        assert store.remove(saved.id)
        assert not store.remove(saved.id)
        assert store.list_schedules(NOW) == []

    def test_set_active(self, store):
        saved = store.add(ScheduleConfig(frequency="daily", time="02:00"), now=NOW)
        store.set_active(saved.id, False)
        assert store.get(saved.id).active is False
        with pytest.raises(KeyError):
            store.set_active("schedule-missing", True)

    def test_due_and_mark_executed(self, store):
        store.add(ScheduleConfig(id="morning", frequency="daily", time="09:00", created_at=_at(17, 8)), now=_at(17, 8))
        store.add(ScheduleConfig(id="weekly", frequency="weekly", time="09:00", created_at=_at(17, 9, 30)), now=_at(17, 9, 30))

        assert store.due(_at(17, 8, 30)) == []
        assert [s.id for s in store.due(_at(17, 9))] == ["morning"]

        executed = store.mark_executed("morning", when=_at(17, 9, 1))
        assert executed.last_executed == _at(17, 9, 1)
        assert executed.next_execution == _at(18, 9)
        assert store.due(_at(17, 12)) == []
        assert [s.id for s in store.due(_at(18, 9))] == ["morning"]
        assert [s.id for s in store.due(_at(24, 9))] == ["morning", "weekly"]

    def test_mark_executed_unknown(self, store):
        with pytest.raises(KeyError):
            store.mark_executed("schedule-missing", when=NOW)

    def test_missing_file_is_empty(self, store):
        assert store.list_schedules(NOW) == []
        assert store.due(NOW) == []
