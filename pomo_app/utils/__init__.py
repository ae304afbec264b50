"""
Utility functions module.

Time handling shared across the session engine.

Time Semantics:
- Interval timing uses the monotonic clock so wall-clock jumps never
  shorten or extend a running interval
- Stored interval boundaries use timezone-aware UTC wall-clock time
- All time access goes through a Clock so tests can drive time manually
"""
from .time import Clock, SystemClock, format_duration, truncate_seconds, utc_now

__all__ = ["Clock", "SystemClock", "format_duration", "truncate_seconds", "utc_now"]
