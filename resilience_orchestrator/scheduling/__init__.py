"""Recurring validation schedules."""

from .scheduler import Frequency, ScheduleConfig, ScheduleStore, compute_next_execution

__all__ = ["Frequency", "ScheduleConfig", "ScheduleStore", "compute_next_execution"]
