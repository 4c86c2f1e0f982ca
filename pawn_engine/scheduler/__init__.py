"""Interval job scheduling."""

from pawn_engine.scheduler.context import JobContext
from pawn_engine.scheduler.runner import JobRun, ScheduledJob, Scheduler
from pawn_engine.scheduler.schedule import parse_duration, parse_schedule

__all__ = [
    "JobContext",
    "JobRun",
    "ScheduledJob",
    "Scheduler",
    "parse_duration",
    "parse_schedule",
]
