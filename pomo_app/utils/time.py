"""
Clock abstraction and time helpers for session timing.

The session runner never calls ``time`` or ``datetime`` directly. It asks
a Clock for monotonic readings (used for remaining-time arithmetic), for
wall-clock UTC timestamps (used for stored interval boundaries) and to
block on its control condition until a deadline.
"""

import math
import threading
import time
from datetime import datetime, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    """Time source used by the session runner."""

    def monotonic(self) -> float:
        """Seconds from an arbitrary fixed point, never decreasing."""
        ...

    def now(self) -> datetime:
        """Current wall-clock time as a UTC datetime."""
        ...

    def wait(self, condition: threading.Condition, timeout: Optional[float]) -> None:
        """
        Block on ``condition`` (already held by the caller) for at most
        ``timeout`` seconds of this clock's time.
        """
        ...


class SystemClock:
    """Clock backed by the process monotonic clock and UTC wall time."""

    def monotonic(self) -> float:
        return time.monotonic()

    def now(self) -> datetime:
        return utc_now()

    def wait(self, condition: threading.Condition, timeout: Optional[float]) -> None:
        condition.wait(timeout)


def utc_now() -> datetime:
    """
    Get the current wall-clock time.

    Returns:
        Timezone-aware UTC datetime
    """
    return datetime.now(timezone.utc)


def truncate_seconds(seconds: float) -> int:
    """
    Truncate a duration to whole seconds toward zero.

    Args:
        seconds: Duration in (possibly fractional) seconds

    Returns:
        Whole seconds
    """
    return int(math.trunc(seconds))


def format_duration(seconds: int) -> str:
    """
    Format whole seconds in the compact ``1h2m3s`` style used for
    durations in configuration and logs.

    Args:
        seconds: Non-negative duration in seconds

    Returns:
        Formatted duration, ``0s`` for zero
    """
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return "".join(parts)


def ensure_utc(ts: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """
    Format a timestamp for storage and event payloads.

    Args:
        ts: Timestamp to format

    Returns:
        ISO8601 formatted UTC string
    """
    return ensure_utc(ts).isoformat()


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO8601 timestamp written by ``format_timestamp``."""
    return ensure_utc(datetime.fromisoformat(raw))
