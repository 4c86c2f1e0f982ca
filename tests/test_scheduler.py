"""Tests for schedule parsing, job context and the scheduler."""

import logging
import threading
import time
from datetime import timedelta

import pytest

from pawn_engine.exceptions import ConfigurationError, JobCancelledError, ScheduleError
from pawn_engine.scheduler import (
    JobContext,
    ScheduledJob,
    Scheduler,
    parse_duration,
    parse_schedule,
)


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestParseSchedule:
    """Tests for schedule expressions."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("hourly", timedelta(hours=1)),
            ("daily", timedelta(days=1)),
            ("every:1m", timedelta(minutes=1)),
            ("every:6h", timedelta(hours=6)),
            ("every:90s", timedelta(seconds=90)),
            ("every:1h30m", timedelta(minutes=90)),
            ("every:500ms", timedelta(milliseconds=500)),
            ("  daily ", timedelta(days=1)),
        ],
    )
    def test_valid(self, expression: str, expected: timedelta) -> None:
        assert parse_schedule(expression) == expected

    @pytest.mark.parametrize(
        "expression",
        ["weekly", "", "every:", "every:0s", "every:5x", "every:5", "0 * * * *", "every:1h junk"],
    )
    def test_invalid(self, expression: str) -> None:
        with pytest.raises(ScheduleError):
            parse_schedule(expression)

    def test_parse_duration(self) -> None:
        assert parse_duration("2h") == timedelta(hours=2)
        with pytest.raises(ScheduleError):
            parse_duration("")


class TestJobContext:
    """Tests for cancellation and deadlines."""

    def test_background_not_cancelled(self) -> None:
        ctx = JobContext.background("report")
        assert not ctx.cancelled
        assert ctx.remaining is None
        ctx.raise_if_cancelled()

    def test_cancel(self) -> None:
        ctx = JobContext("report")
        ctx.cancel()
        assert ctx.cancelled
        with pytest.raises(JobCancelledError, match="report"):
            ctx.raise_if_cancelled()

    def test_stop_event(self) -> None:
        event = threading.Event()
        ctx = JobContext("report", stop_event=event)
        event.set()
        assert ctx.cancelled

    def test_deadline(self) -> None:
        ctx = JobContext("report", timeout=0.0)
        assert ctx.cancelled
        assert ctx.remaining == 0.0

    def test_wait_returns_early_when_cancelled(self) -> None:
        ctx = JobContext("report")
        ctx.cancel()
        start = time.monotonic()
        assert ctx.wait(5.0)
        assert time.monotonic() - start < 1.0


class TestSchedulerRegistry:
    """Tests for job registration and one-off runs."""

    def test_add_job(self) -> None:
        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("report", "daily", lambda ctx: None))
        assert [job.name for job in scheduler.jobs] == ["report"]
        assert scheduler.stats()["report"]["interval"] == timedelta(days=1)

    def test_duplicate_name_rejected(self) -> None:
        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("report", "daily", lambda ctx: None))
        with pytest.raises(ConfigurationError, match="already registered"):
            scheduler.add_job(ScheduledJob("report", "hourly", lambda ctx: None))

    def test_invalid_schedule_not_registered(self) -> None:
        scheduler = Scheduler()
        with pytest.raises(ScheduleError):
            scheduler.add_job(ScheduledJob("report", "fortnightly", lambda ctx: None))
        assert scheduler.jobs == []

    def test_run_job_success(self) -> None:
        calls: list[JobContext] = []
        scheduler = Scheduler(job_timeout=30.0)
        scheduler.add_job(ScheduledJob("report", "daily", calls.append))

        run = scheduler.run_job("report")

        assert run.success
        assert run.error is None
        assert run.duration is not None
        assert calls[0].job_name == "report"
        assert calls[0].remaining is not None

    def test_run_job_failure_is_recorded(self) -> None:
        def boom(ctx: JobContext) -> None:
            raise RuntimeError("database is down")

        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("overdue", "hourly", boom))

        run = scheduler.run_job("overdue")

        assert not run.success
        assert "RuntimeError" in run.error
        assert scheduler.stats()["overdue"]["failures"] == 1

    def test_run_job_cancelled(self) -> None:
        def cancelled(ctx: JobContext) -> None:
            raise JobCancelledError("deadline exceeded")

        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("overdue", "hourly", cancelled))

        run = scheduler.run_job("overdue")

        assert not run.success
        assert run.error == "deadline exceeded"

    def test_run_job_ignores_enabled_flag(self) -> None:
        calls: list[JobContext] = []
        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("interest", "daily", calls.append, enabled=False))

        assert scheduler.run_job("interest").success
        assert len(calls) == 1

    def test_run_logs_carry_job_context(self, caplog: pytest.LogCaptureFixture) -> None:
        def boom(ctx: JobContext) -> None:
            raise RuntimeError("database is down")

        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("report", "daily", lambda ctx: None))
        scheduler.add_job(ScheduledJob("overdue", "hourly", boom))

        with caplog.at_level(logging.INFO, logger="pawn_engine.scheduler"):
            scheduler.run_job("report")
            scheduler.run_job("overdue")

        finished = {
            r.context["job"]: r.context
            for r in caplog.records
            if getattr(r, "context", {}).get("success") is not None
        }
        assert finished["report"]["success"] is True
        assert finished["report"]["duration"] >= 0
        assert finished["overdue"]["success"] is False

    def test_run_unknown_job(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown job"):
            Scheduler().run_job("nope")


class TestSchedulerLifecycle:
    """Tests for start/stop and per-job threads."""

    def test_runs_immediately_on_start(self) -> None:
        started = threading.Event()
        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("report", "daily", lambda ctx: started.set()))

        scheduler.start()
        try:
            assert started.wait(2.0)
        finally:
            scheduler.stop(timeout=2.0)

    def test_failing_job_keeps_running_and_isolated(self) -> None:
        good: list[int] = []
        bad: list[int] = []

        def failing(ctx: JobContext) -> None:
            bad.append(1)
            raise RuntimeError("boom")

        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("good", "every:10ms", lambda ctx: good.append(1)))
        scheduler.add_job(ScheduledJob("bad", "every:10ms", failing))

        scheduler.start()
        try:
            assert _wait_for(lambda: len(good) >= 3 and len(bad) >= 3)
        finally:
            scheduler.stop(timeout=2.0)

        assert not scheduler.running
        assert scheduler.stats()["bad"]["failures"] >= 3

    def test_disabled_job_never_invoked(self) -> None:
        enabled = threading.Event()
        disabled: list[int] = []
        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("enabled", "every:10ms", lambda ctx: enabled.set()))
        scheduler.add_job(
            ScheduledJob("disabled", "every:10ms", lambda ctx: disabled.append(1), enabled=False)
        )

        scheduler.start()
        try:
            assert enabled.wait(2.0)
            time.sleep(0.05)
        finally:
            scheduler.stop(timeout=2.0)

        assert disabled == []

    def test_start_twice_is_noop(self) -> None:
        calls: list[int] = []
        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("report", "daily", lambda ctx: calls.append(1)))

        scheduler.start()
        scheduler.start()
        try:
            assert _wait_for(lambda: len(calls) >= 1)
            time.sleep(0.05)
        finally:
            scheduler.stop(timeout=2.0)

        assert len(calls) == 1

    def test_stop_cancels_running_job(self) -> None:
        started = threading.Event()
        observed: list[bool] = []

        def long_job(ctx: JobContext) -> None:
            started.set()
            while not ctx.wait(0.01):
                pass
            observed.append(ctx.cancelled)

        scheduler = Scheduler()
        scheduler.add_job(ScheduledJob("long", "daily", long_job))
        scheduler.start()
        assert started.wait(2.0)

        scheduler.stop(timeout=2.0)

        assert observed == [True]

    def test_job_added_while_running_starts(self) -> None:
        started = threading.Event()
        scheduler = Scheduler()
        scheduler.start()
        try:
            scheduler.add_job(ScheduledJob("late", "daily", lambda ctx: started.set()))
            assert started.wait(2.0)
        finally:
            scheduler.stop(timeout=2.0)

    def test_stop_when_not_running(self) -> None:
        scheduler = Scheduler()
        scheduler.stop()
        assert not scheduler.running
