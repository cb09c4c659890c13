"""
Recurring validation schedules.

Pure data plus next-run computation: triggering a batch when a schedule
is due belongs to an external timer or cron job, which asks ``due(now)``
and calls ``mark_executed`` after launching the run.

The next execution time is always derived from frequency and time of
day. It is written to the YAML file for operators to read but recomputed
on load, never trusted.
"""

from __future__ import annotations

import calendar
import logging
import re
import threading
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def _add_month(moment: datetime) -> datetime:
    year, month = (moment.year + 1, 1) if moment.month == 12 else (moment.year, moment.month + 1)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def compute_next_execution(
    frequency: Frequency,
    time_of_day: str,
    now: Optional[datetime] = None,
) -> datetime:
    """Today at ``time_of_day``; if that is not after ``now``, advance one period.

    Monthly schedules advance one calendar month with the day clamped to
    the length of the target month.
    """
    match = _TIME_OF_DAY.match(time_of_day)
    if not match:
        raise ValueError(f"Time of day must be HH:MM, got {time_of_day!r}")
    now = now or datetime.now(timezone.utc)
    candidate = now.replace(hour=int(match.group(1)), minute=int(match.group(2)), second=0, microsecond=0)
    if candidate > now:
        return candidate
    frequency = Frequency(frequency)
    if frequency == Frequency.DAILY:
        return candidate + timedelta(days=1)
    if frequency == Frequency.WEEKLY:
        return candidate + timedelta(days=7)
    return _add_month(candidate)


class ScheduleConfig(BaseModel):
    """A recurring validation run."""

    id: str = Field(default_factory=lambda: f"schedule-{uuid.uuid4().hex[:12]}")
    frequency: Frequency
    time: str = Field(..., description="Time of day, HH:MM (24h)")
    target_suites: List[str] = Field(default_factory=list, description="Validation ids; empty means the whole catalog")
    recipients: List[str] = Field(default_factory=list)
    active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_executed: Optional[datetime] = None
    next_execution: Optional[datetime] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not _TIME_OF_DAY.match(v):
            raise ValueError(f"time must be HH:MM, got {v!r}")
        return v

    @field_validator("recipients")
    @classmethod
    def validate_recipients(cls, v: List[str]) -> List[str]:
        for recipient in v:
            if "@" not in recipient:
                raise ValueError(f"recipient {recipient!r} is not an email address")
        return v

    def refresh(self, now: Optional[datetime] = None) -> "ScheduleConfig":
        self.next_execution = compute_next_execution(self.frequency, self.time, now)
        return self

    def is_due(self, now: datetime) -> bool:
        """Due once the first slot after the last run (or creation) has passed."""
        if not self.active:
            return False
        reference = self.last_executed or self.created_at
        return compute_next_execution(self.frequency, self.time, reference) <= now


class ScheduleStore:
    """Schedules persisted in a YAML file.

    Example:
        store = ScheduleStore(Path("config/schedules.yaml"))
        store.add(ScheduleConfig(frequency="daily", time="02:00"))
        for schedule in store.due():
            ...
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, ScheduleConfig]:
        if not self.path.exists():
            return {}
        with open(self.path, "r") as f:
            raw = yaml.safe_load(f) or {}
        schedules: Dict[str, ScheduleConfig] = {}
        for item in raw.get("schedules", []):
            schedule = ScheduleConfig(**item)
            schedules[schedule.id] = schedule
        return schedules

    def _write(self, schedules: Dict[str, ScheduleConfig]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document: Dict[str, Any] = {
            "schedules": [s.model_dump(mode="json") for s in schedules.values()]
        }
        with open(self.path, "w") as f:
            yaml.safe_dump(document, f, sort_keys=False)

    def add(self, schedule: ScheduleConfig, now: Optional[datetime] = None) -> ScheduleConfig:
        """Insert or replace a schedule, recomputing its next execution."""
        schedule.refresh(now)
        with self._lock:
            schedules = self._read()
            schedules[schedule.id] = schedule
            self._write(schedules)
        logger.info(
            f"Saved schedule {schedule.id} ({schedule.frequency.value} at {schedule.time}), "
            f"next run {schedule.next_execution.isoformat()}"
        )
        return schedule

    def get(self, schedule_id: str) -> ScheduleConfig:
        with self._lock:
            schedules = self._read()
        if schedule_id not in schedules:
            raise KeyError(f"Unknown schedule '{schedule_id}'")
        return schedules[schedule_id]

    def list_schedules(self, now: Optional[datetime] = None) -> List[ScheduleConfig]:
        with self._lock:
            schedules = list(self._read().values())
        return [s.refresh(now) for s in schedules]

    def remove(self, schedule_id: str) -> bool:
        with self._lock:
            schedules = self._read()
            removed = schedules.pop(schedule_id, None) is not None
            if removed:
                self._write(schedules)
        return removed

    def set_active(self, schedule_id: str, active: bool) -> ScheduleConfig:
        with self._lock:
            schedules = self._read()
            if schedule_id not in schedules:
                raise KeyError(f"Unknown schedule '{schedule_id}'")
            schedules[schedule_id].active = active
            self._write(schedules)
            return schedules[schedule_id]

    def due(self, now: Optional[datetime] = None) -> List[ScheduleConfig]:
        """Active schedules whose next execution is at or before ``now``."""
        now = now or datetime.now(timezone.utc)
        with self._lock:
            schedules = list(self._read().values())
        return [s for s in schedules if s.is_due(now)]

    def mark_executed(self, schedule_id: str, when: Optional[datetime] = None) -> ScheduleConfig:
        """Record a run and advance the schedule to its following slot."""
        when = when or datetime.now(timezone.utc)
        with self._lock:
            schedules = self._read()
            if schedule_id not in schedules:
                raise KeyError(f"Unknown schedule '{schedule_id}'")
            schedule = schedules[schedule_id]
            schedule.last_executed = when
            schedule.refresh(when)
            self._write(schedules)
        logger.info(f"Schedule {schedule_id} executed at {when.isoformat()}; next {schedule.next_execution.isoformat()}")
        return schedule
