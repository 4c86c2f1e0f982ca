"""Schedule expression parsing."""

from __future__ import annotations

import re
from datetime import timedelta

from pawn_engine.exceptions import ScheduleError

ALIASES = {
    "hourly": timedelta(hours=1),
    "daily": timedelta(days=1),
}

EVERY_PREFIX = "every:"

_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}

_COMPONENT = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")


def parse_duration(text: str) -> timedelta:
    """Parse a compound duration such as ``90s``, ``6h`` or ``1h30m``."""
    text = text.strip()
    if not text:
        raise ScheduleError("Empty duration")

    total = timedelta()
    pos = 0
    for match in _COMPONENT.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()

    if pos != len(text):
        raise ScheduleError(f"Invalid duration: {text!r}")
    return total


def parse_schedule(expression: str) -> timedelta:
    """Convert a schedule expression into a fixed interval.

    Supported forms are ``every:<duration>`` (``every:1m``, ``every:6h``)
    and the aliases ``hourly`` and ``daily``.

    Raises
    ------
    ScheduleError
        If the expression is not recognised or the interval is not positive.
    """
    expression = expression.strip()
    if expression in ALIASES:
        return ALIASES[expression]

    if not expression.startswith(EVERY_PREFIX):
        raise ScheduleError(f"Unsupported schedule: {expression!r}")

    interval = parse_duration(expression[len(EVERY_PREFIX):])
    if interval <= timedelta():
        raise ScheduleError(f"Schedule interval must be positive: {expression!r}")
    return interval
