"""Tests for the clock and time helpers."""

import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from pomo_app.utils.time import (
    SystemClock,
    ensure_utc,
    format_duration,
    format_timestamp,
    parse_timestamp,
    truncate_seconds,
    utc_now,
)


class TestSystemClock:
    """Real time source."""

    def test_monotonic_never_decreases(self):
        clock = SystemClock()
        first = clock.monotonic()
        assert clock.monotonic() >= first

    def test_now_is_utc(self):
        assert SystemClock().now().tzinfo == timezone.utc

    def test_wait_times_out(self):
        cond = threading.Condition()
        started = time.monotonic()

        with cond:
            SystemClock().wait(cond, 0.05)

        assert time.monotonic() - started >= 0.04

    def test_wait_wakes_on_notify(self):
        cond = threading.Condition()
        woke = threading.Event()

        def waiter():
            with cond:
                SystemClock().wait(cond, 10)
            woke.set()

        thread = threading.Thread(target=waiter)
        thread.start()
        time.sleep(0.05)
        with cond:
            cond.notify_all()

        assert woke.wait(2)


class TestTimeHelpers:
    """Formatting and parsing."""

    def test_utc_now(self):
        assert utc_now().tzinfo == timezone.utc

    @pytest.mark.parametrize("seconds,expected", [
        (0.0, 0), (419.99, 419), (420.0, 420), (-0.5, 0), (-1.5, -1),
    ])
    def test_truncate_seconds(self, seconds, expected):
        assert truncate_seconds(seconds) == expected

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0s"), (45, "45s"), (1500, "25m"), (3723, "1h2m3s"), (7200, "2h"), (-5, "0s"),
    ])
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_ensure_utc(self):
        naive = datetime(2024, 1, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

        offset = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        converted = ensure_utc(offset)
        assert converted.tzinfo == timezone.utc
        assert converted.hour == 12

    def test_timestamp_format(self):
        ts = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)

        assert format_timestamp(ts) == "2024-01-01T09:30:00+00:00"
        assert parse_timestamp("2024-01-01T09:30:00+00:00") == ts
        assert parse_timestamp("2024-01-01T09:30:00").tzinfo == timezone.utc
