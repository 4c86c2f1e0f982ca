"""Cancellation-aware execution context handed to job handlers."""

from __future__ import annotations

import threading
import time

from pawn_engine.exceptions import JobCancelledError


class JobContext:
    """Carries the stop signal and deadline for one job invocation.

    Handlers poll ``cancelled`` between units of work (e.g. between loans)
    and abandon the rest of the batch when it turns True. Work already
    written stays written.

    Parameters
    ----------
    job_name : str
        Name of the job being executed.
    stop_event : threading.Event | None
        Event set when the scheduler shuts down.
    timeout : float | None
        Seconds after which the context counts as cancelled.
    """

    def __init__(
        self,
        job_name: str = "",
        stop_event: threading.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        self.job_name = job_name
        self._stop_event = stop_event or threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    @classmethod
    def background(cls, job_name: str = "") -> "JobContext":
        """A context that is never cancelled unless ``cancel`` is called."""
        return cls(job_name=job_name)

    @property
    def cancelled(self) -> bool:
        if self._stop_event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None if there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        self._stop_event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise JobCancelledError(f"Job {self.job_name or '<anonymous>'} was cancelled")

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled meanwhile."""
        limit = seconds if self.remaining is None else min(seconds, self.remaining)
        self._stop_event.wait(limit)
        return self.cancelled
