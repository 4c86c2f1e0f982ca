"""Interval scheduler running each registered job on its own thread."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from pawn_engine.exceptions import ConfigurationError, JobCancelledError
from pawn_engine.logging import log_context
from pawn_engine.scheduler.context import JobContext
from pawn_engine.scheduler.schedule import parse_schedule

logger = logging.getLogger(__name__)

DEFAULT_JOB_TIMEOUT = 300.0

JobHandler = Callable[[JobContext], object]


@dataclass
class ScheduledJob:
    """A named unit of work run on a fixed interval.

    The handler signals failure by raising; its return value is ignored.
    """

    name: str
    schedule: str  # "every:5m", "hourly", "daily"
    handler: JobHandler
    enabled: bool = True


@dataclass
class JobRun:
    """Outcome of a single job invocation."""

    job_name: str
    started_at: datetime
    finished_at: datetime | None = None
    success: bool = False
    error: str | None = None

    @property
    def duration(self) -> timedelta | None:
        if self.finished_at is None:
            return None
        return self.finished_at - self.started_at


@dataclass
class _JobRunner:
    job: ScheduledJob
    interval: timedelta
    thread: threading.Thread | None = None
    runs: int = 0
    failures: int = 0
    last_run: JobRun | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)


class Scheduler:
    """Owns the job registry and the start/stop lifecycle of the worker.

    Every enabled job gets its own thread: it runs once on start, then again
    each time its interval elapses after the previous invocation returned.
    The same job never overlaps with itself, while different jobs run
    concurrently. A failing handler is logged and rescheduled; it never
    unregisters the job or stops the scheduler.

    Parameters
    ----------
    job_timeout : float | None
        Deadline in seconds handed to each invocation's ``JobContext``.
    """

    def __init__(self, job_timeout: float | None = DEFAULT_JOB_TIMEOUT) -> None:
        self.job_timeout = job_timeout
        self._runners: dict[str, _JobRunner] = {}
        self._stop_event = threading.Event()
        self._running = False
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def jobs(self) -> list[ScheduledJob]:
        """All registered jobs, enabled or not, in registration order."""
        return [runner.job for runner in self._runners.values()]

    def add_job(self, job: ScheduledJob) -> None:
        """Register a job.

        Disabled jobs are kept in the registry but never invoked.

        Raises
        ------
        ScheduleError
            If the schedule expression is invalid.
        ConfigurationError
            If a job with the same name is already registered.
        """
        interval = parse_schedule(job.schedule)

        with self._lock:
            if job.name in self._runners:
                raise ConfigurationError(f"Job {job.name!r} is already registered")
            runner = _JobRunner(job=job, interval=interval)
            self._runners[job.name] = runner
            if self._running and job.enabled:
                self._spawn(runner)

        if job.enabled:
            logger.info(
                "Job registered: job=%s schedule=%s interval=%s",
                job.name,
                job.schedule,
                interval,
            )
        else:
            logger.info("Job registered but disabled: job=%s", job.name)

    def start(self) -> None:
        """Start one thread per enabled job. Calling it twice is a no-op."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._stop_event = threading.Event()
            enabled = [r for r in self._runners.values() if r.job.enabled]
            logger.info("Starting scheduler: jobs=%d enabled=%d", len(self._runners), len(enabled))
            for runner in enabled:
                self._spawn(runner)

    def stop(self, timeout: float | None = None) -> None:
        """Signal every job to stop and wait for the threads to finish.

        In-flight handlers see their context cancelled and are expected to
        abandon the remainder of their batch.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._stop_event.set()
            threads = [r.thread for r in self._runners.values() if r.thread is not None]

        logger.info("Stopping scheduler...")
        for thread in threads:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Job thread did not stop in time: thread=%s", thread.name)

        for runner in self._runners.values():
            runner.thread = None
        logger.info("Scheduler stopped")

    def run_job(self, name: str) -> JobRun:
        """Run a registered job once, synchronously, regardless of ``enabled``."""
        try:
            runner = self._runners[name]
        except KeyError:
            raise ConfigurationError(f"Unknown job: {name!r}") from None
        return self._execute(runner)

    def stats(self) -> dict[str, dict[str, object]]:
        """Run counters and last outcome per job."""
        return {
            name: {
                "enabled": runner.job.enabled,
                "interval": runner.interval,
                "runs": runner.runs,
                "failures": runner.failures,
                "last_success": runner.last_run.success if runner.last_run else None,
            }
            for name, runner in self._runners.items()
        }

    def _spawn(self, runner: _JobRunner) -> None:
        runner.thread = threading.Thread(
            target=self._loop,
            args=(runner, self._stop_event),
            name=f"job-{runner.job.name}",
            daemon=True,
        )
        runner.thread.start()

    def _loop(self, runner: _JobRunner, stop_event: threading.Event) -> None:
        # Run immediately on start, then once per interval
        self._execute(runner, stop_event)
        while not stop_event.wait(runner.interval.total_seconds()):
            self._execute(runner, stop_event)

    def _execute(self, runner: _JobRunner, stop_event: threading.Event | None = None) -> JobRun:
        job = runner.job
        ctx = JobContext(
            job_name=job.name,
            stop_event=stop_event or self._stop_event,
            timeout=self.job_timeout,
        )
        run = JobRun(job_name=job.name, started_at=datetime.now())
        start = time.monotonic()

        with runner.lock:
            logger.info(
                "Starting job execution: job=%s", job.name, extra=log_context(job=job.name)
            )
            try:
                job.handler(ctx)
            except JobCancelledError as e:
                run.error = str(e)
                duration = time.monotonic() - start
                logger.warning(
                    "Job execution cancelled: job=%s duration=%.3fs",
                    job.name,
                    duration,
                    extra=log_context(job=job.name, duration=round(duration, 3), success=False),
                )
            except Exception as e:
                run.error = f"{type(e).__name__}: {e}"
                duration = time.monotonic() - start
                logger.exception(
                    "Job execution failed: job=%s duration=%.3fs error=%s",
                    job.name,
                    duration,
                    e,
                    extra=log_context(job=job.name, duration=round(duration, 3), success=False),
                )
            else:
                run.success = True
                duration = time.monotonic() - start
                logger.info(
                    "Job execution completed: job=%s duration=%.3fs",
                    job.name,
                    duration,
                    extra=log_context(job=job.name, duration=round(duration, 3), success=True),
                )
            run.finished_at = datetime.now()
            runner.runs += 1
            if not run.success:
                runner.failures += 1
            runner.last_run = run

        return run
