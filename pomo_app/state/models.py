"""
Session state data models.

A running session is always in exactly one phase. Each phase is a small
immutable record carrying only the data meaningful in that state, so a
resumed session can never read timing data left over from an earlier
state.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from ..utils.time import format_timestamp


class SessionState(str, Enum):
    """Session lifecycle states, rendered by canonical name."""
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    BREAKING = "BREAKING"
    COMPLETE = "COMPLETE"

    def __str__(self) -> str:
        return self.value


class ControlSignal(str, Enum):
    """Requests delivered from controllers into the runner thread."""
    PAUSE = "pause"
    RESUME = "resume"
    TOGGLE = "toggle"


@dataclass(frozen=True)
class Created:
    """Runner constructed, background loop not started."""
    state = SessionState.CREATED


@dataclass(frozen=True)
class Running:
    """An interval is being timed."""
    interval_started_at: datetime    # Wall-clock start, stored with the interval
    resumed_at: float                # Monotonic reference for remaining time
    duration: float                  # Seconds left when resumed_at was taken

    state = SessionState.RUNNING


@dataclass(frozen=True)
class Paused:
    """The open interval is suspended."""
    interval_started_at: datetime
    remaining: float                 # Seconds left at the moment of pause
    paused_at: float                 # Monotonic time the pause began

    state = SessionState.PAUSED


@dataclass(frozen=True)
class Breaking:
    """Between intervals, waiting for the user to acknowledge the break."""
    state = SessionState.BREAKING


@dataclass(frozen=True)
class Complete:
    """All target intervals recorded."""
    state = SessionState.COMPLETE


Phase = Union[Created, Running, Paused, Breaking, Complete]


@dataclass(frozen=True)
class Status:
    """Read-only snapshot of a session."""
    state: SessionState
    count: int                       # Intervals completed so far
    n_pomodoros: int                 # Target interval count
    remaining: int                   # Whole seconds left in the current interval
    pause_duration: int              # Whole seconds since the pause began

    @property
    def is_finished(self) -> bool:
        return self.state == SessionState.COMPLETE

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": str(self.state),
            "count": self.count,
            "n_pomodoros": self.n_pomodoros,
            "remaining": self.remaining,
            "pause_duration": self.pause_duration,
        }


@dataclass(frozen=True)
class StateEvent:
    """Payload handed to every state hook on a transition."""
    task_id: Optional[int]
    state: SessionState
    count: int
    n_pomodoros: int
    timestamp: datetime
    previous_state: Optional[SessionState] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "state": str(self.state),
            "previous_state": str(self.previous_state) if self.previous_state else None,
            "count": self.count,
            "n_pomodoros": self.n_pomodoros,
            "timestamp": format_timestamp(self.timestamp),
        }
