"""Pytest configuration and shared fixtures."""

import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from pomo_app.delivery.base import BaseStateDelivery, DeliveryResult, DeliveryStatus
from pomo_app.delivery.notifier import BaseNotifier
from pomo_app.persistence.interval_store import IntervalStore
from pomo_app.state.models import StateEvent

EPOCH = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


class ManualClock:
    """Clock whose time only moves when a test advances it."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self._lock = threading.Lock()

    def monotonic(self) -> float:
        with self._lock:
            return self._now

    def now(self) -> datetime:
        return EPOCH + timedelta(seconds=self.monotonic())

    def wait(self, condition: threading.Condition, timeout: Optional[float]) -> None:
        # Re-check simulated time frequently; signals still wake immediately
        condition.wait(0.005)

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds


class SignalOnlyClock(ManualClock):
    """Manual clock whose waits end only when the condition is notified."""

    def wait(self, condition: threading.Condition, timeout: Optional[float]) -> None:
        condition.wait()


class RecordingHook(BaseStateDelivery):
    """State hook that remembers every event it receives."""

    def __init__(self, name: str = "recorder", fail: bool = False):
        super().__init__(name)
        self.events: list[StateEvent] = []
        self.fail = fail

    def deliver(self, event: StateEvent) -> DeliveryResult:
        self.events.append(event)
        if self.fail:
            return DeliveryResult(status=DeliveryStatus.FAILED, message="recorder failure")
        return DeliveryResult(status=DeliveryStatus.SUCCESS)

    def health_check(self) -> bool:
        return True

    @property
    def states(self) -> list[str]:
        return [str(event.state) for event in self.events]


class RecordingNotifier(BaseNotifier):
    """Notifier that remembers every notification."""

    backend = "recording"

    def __init__(self):
        super().__init__()
        self.messages: list[tuple[str, str]] = []

    def notify(self, title: str, message: str) -> None:
        self.messages.append((title, message))


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` in real time until it holds or ``timeout`` passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.002)
    return predicate()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def signal_clock() -> SignalOnlyClock:
    return SignalOnlyClock()


@pytest.fixture
def hook() -> RecordingHook:
    return RecordingHook()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store(tmp_path) -> IntervalStore:
    return IntervalStore(str(tmp_path / "pomo.db"))


@pytest.fixture
def failing_hook() -> RecordingHook:
    return RecordingHook(name="failing", fail=True)


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    return wait_for
