"""
Session runner: the background state machine driving one task.

The runner owns a single daemon thread that times intervals one at a
time. Controllers talk to it only through ``pause``, ``resume``,
``toggle_pause`` and ``resume_break``; each call places one signal in the
runner's inbox and returns once the runner thread has handled it. The
thread blocks on whichever comes first: the interval deadline or a
signal. Each signal is stamped with the phase its sender observed; a
signal whose phase has since ended, or which has no meaning in the
current phase, is drained and ignored.

Remaining time is tracked without accumulating pause time: a pause
captures what is left of the interval, and a resume re-arms the timer
with exactly that amount measured from the resume instant.
"""

import threading
from collections import deque
from collections.abc import Sequence
from typing import Optional

from ..data.models import Interval, Task
from ..delivery.base import BaseStateDelivery
from ..delivery.notifier import BaseNotifier, NullNotifier
from ..errors import InvalidTaskError
from ..logging.config import get_state_logger, log_state_transition
from ..persistence.interval_store import IntervalStore
from ..utils.time import Clock, SystemClock, format_duration, truncate_seconds
from .models import (
    Breaking,
    Complete,
    ControlSignal,
    Created,
    Paused,
    Phase,
    Running,
    SessionState,
    StateEvent,
    Status,
)

NOTIFY_TITLE = "Pomo"
BREAK_MESSAGE = "It is time to take a break!"
COMPLETE_MESSAGE = "Pomo session has completed!"


class SessionRunner:
    """
    Runs a persisted task's remaining intervals on a background thread.

    Preconditions (not runtime-recovered): the task has been stored and
    carries an id, and ``start`` is called at most once per instance.
    """

    def __init__(
        self,
        task: Task,
        store: IntervalStore,
        notifier: Optional[BaseNotifier] = None,
        hooks: Optional[Sequence[BaseStateDelivery]] = None,
        clock: Optional[Clock] = None,
        notify_title: str = NOTIFY_TITLE,
    ):
        if task.id is None:
            raise InvalidTaskError("Task must be persisted before it can run", field="id")

        self.task_id = task.id
        self.message = task.message
        self.n_pomodoros = task.n_pomodoros
        self.duration = task.duration_seconds

        self._store = store
        self._notifier = notifier or NullNotifier()
        self._hooks = list(hooks or [])
        self._clock = clock or SystemClock()
        self._notify_title = notify_title
        self.logger = get_state_logger(__name__).bind(task_id=self.task_id)

        # Guards phase, count and the inbox; waited on by the runner thread
        self._cond = threading.Condition()
        # Serializes controllers so overlapping control calls never interleave
        self._send_lock = threading.Lock()

        self._phase: Phase = Created()
        self._count = task.completed
        self._inbox: deque[tuple[ControlSignal, Phase]] = deque()
        self._sent = 0
        self._handled = 0
        self._closed = False

        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()
        self._finished = threading.Event()
        self._error: Optional[BaseException] = None

    # Controller-facing API

    def start(self) -> None:
        """
        Start the background session and return once it has left CREATED.

        Returns as soon as the first phase is in place; hooks for that
        transition run on the session thread and never delay the caller.

        Calling ``start`` twice is unsupported; the second call is ignored.
        """
        if self._thread is not None:
            self.logger.warning("Session runner already started")
            return

        self._thread = threading.Thread(
            target=self._run,
            name=f"pomo-session-{self.task_id}",
            daemon=True,
        )
        self._thread.start()
        self._started.wait()

    def pause(self) -> None:
        """Pause the running interval. No-op in every other state."""
        self._send(ControlSignal.PAUSE, {SessionState.RUNNING})

    def resume(self) -> None:
        """Resume a paused interval. No-op in every other state."""
        self._send(ControlSignal.RESUME, {SessionState.PAUSED})

    def toggle_pause(self) -> None:
        """Pause when running, resume when paused."""
        with self._cond:
            state = self._phase.state
        if state == SessionState.RUNNING:
            self.pause()
        elif state == SessionState.PAUSED:
            self.resume()

    def resume_break(self) -> None:
        """
        Acknowledge a break and begin the next interval.

        While paused this resumes the interval. In every other state
        except BREAKING it is a no-op.
        """
        with self._cond:
            state = self._phase.state
        if state == SessionState.PAUSED:
            self.resume()
        else:
            self._send(ControlSignal.TOGGLE, {SessionState.BREAKING})

    def status(self) -> Status:
        """Consistent snapshot of state, counters and timing."""
        with self._cond:
            now = self._clock.monotonic()
            return Status(
                state=self._phase.state,
                count=self._count,
                n_pomodoros=self.n_pomodoros,
                remaining=self._remaining_locked(now),
                pause_duration=self._paused_locked(now),
            )

    def time_remaining(self) -> int:
        """Whole seconds left in the current interval, never negative."""
        with self._cond:
            return self._remaining_locked(self._clock.monotonic())

    def time_paused(self) -> int:
        """Whole seconds since the current pause began; 0 when not paused."""
        with self._cond:
            return self._paused_locked(self._clock.monotonic())

    @property
    def state(self) -> SessionState:
        with self._cond:
            return self._phase.state

    @property
    def error(self) -> Optional[BaseException]:
        """Error that ended the session early, if any."""
        return self._error

    @property
    def is_finished(self) -> bool:
        return self._finished.is_set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the session loop to end.

        Returns:
            True if the loop has ended, False on timeout

        Raises:
            The persistence error that ended the session early
        """
        if self._thread is not None:
            self._thread.join(timeout)
        if self._error is not None:
            raise self._error
        return self._finished.is_set()

    def on_state_change(self, state: SessionState,
                        previous: Optional[SessionState] = None) -> None:
        """
        Report a transition to every hook, synchronously.

        Hook failures are logged and never interrupt the session.
        """
        with self._cond:
            count = self._count
        event = StateEvent(
            task_id=self.task_id,
            state=state,
            previous_state=previous,
            count=count,
            n_pomodoros=self.n_pomodoros,
            timestamp=self._clock.now(),
        )

        for hook in self._hooks:
            try:
                hook.dispatch(event)
            except Exception as e:
                self.logger.warning(
                    "State hook raised",
                    hook=getattr(hook, "name", repr(hook)),
                    state=str(state),
                    error=str(e)
                )

    # Signal delivery

    def _send(self, signal: ControlSignal, accepted: set) -> None:
        with self._send_lock:
            with self._cond:
                if self._closed or self._phase.state not in accepted:
                    return

                self._inbox.append((signal, self._phase))
                self._sent += 1
                ticket = self._sent
                self._cond.notify_all()

                while self._handled < ticket and not self._closed:
                    self._cond.wait()

    def _ack(self) -> None:
        with self._cond:
            self._handled += 1
            self._cond.notify_all()

    def _next_signal(self) -> Optional[ControlSignal]:
        """
        Block until a signal arrives or the running interval's deadline
        passes. Returns None when the deadline passed first.
        """
        with self._cond:
            while True:
                phase = self._phase
                if self._inbox:
                    signal, seen = self._inbox.popleft()
                    if seen is phase:
                        return signal
                    # Sent before the phase it targeted ended
                    self.logger.debug("Dropping stale control signal", signal=signal.value,
                                      state=str(phase.state))
                    self._handled += 1
                    self._cond.notify_all()
                    continue

                if isinstance(phase, Running):
                    left = phase.duration - (self._clock.monotonic() - phase.resumed_at)
                    if left <= 0:
                        return None
                    self._clock.wait(self._cond, left)
                else:
                    self._clock.wait(self._cond, None)

    # Session loop

    def _run(self) -> None:
        try:
            if self._count < self.n_pomodoros:
                self._begin_interval(trigger="start")

                while True:
                    self._time_interval()
                    with self._cond:
                        done = self._count >= self.n_pomodoros
                    if done:
                        break
                    self._take_break()

            self._complete()

        except Exception as e:
            self._error = e
            self.logger.error(
                "Session ended early",
                state=str(self.state),
                count=self._count,
                error=str(e),
                exc_info=True
            )

        finally:
            with self._cond:
                self._closed = True
                self._inbox.clear()
                self._handled = self._sent
                self._cond.notify_all()
            self._finished.set()
            self._started.set()

    def _begin_interval(self, trigger: str) -> None:
        now = self._clock.now()
        self._transition(
            Running(
                interval_started_at=now,
                resumed_at=self._clock.monotonic(),
                duration=float(self.duration),
            ),
            trigger=trigger,
        )

    def _time_interval(self) -> None:
        """Time the open interval through any pauses, then record it."""
        while True:
            signal = self._next_signal()
            if signal is None:
                break

            with self._cond:
                phase = self._phase
                now = self._clock.monotonic()

            if isinstance(phase, Running) and signal == ControlSignal.PAUSE:
                remaining = phase.duration - (now - phase.resumed_at)
                if remaining > 0:
                    self._transition(
                        Paused(
                            interval_started_at=phase.interval_started_at,
                            remaining=remaining,
                            paused_at=now,
                        ),
                        trigger="pause",
                        context={"remaining": truncate_seconds(remaining)},
                    )
            elif isinstance(phase, Paused) and signal == ControlSignal.RESUME:
                self._transition(
                    Running(
                        interval_started_at=phase.interval_started_at,
                        resumed_at=now,
                        duration=phase.remaining,
                    ),
                    trigger="resume",
                    context={"paused_for": truncate_seconds(now - phase.paused_at)},
                )
            else:
                self.logger.debug("Ignoring control signal", signal=signal.value,
                                  state=str(phase.state))
            self._ack()

        with self._cond:
            phase = self._phase
        end = max(self._clock.now(), phase.interval_started_at)
        interval = Interval(start=phase.interval_started_at, end=end)

        # Count becomes visible only after the interval is durable
        self._store.append_interval(self.task_id, interval)
        with self._cond:
            self._count += 1
            count = self._count

        self.logger.info(
            "Pomodoro completed",
            count=count,
            n_pomodoros=self.n_pomodoros,
            elapsed=format_duration(truncate_seconds(interval.duration_seconds))
        )

    def _take_break(self) -> None:
        self._transition(Breaking(), trigger="interval_complete")
        self._notify(BREAK_MESSAGE)

        while True:
            signal = self._next_signal()
            if signal == ControlSignal.TOGGLE:
                self._begin_interval(trigger="break_acknowledged")
                self._ack()
                return
            self.logger.debug("Ignoring control signal", signal=signal.value,
                              state=str(SessionState.BREAKING))
            self._ack()

    def _complete(self) -> None:
        self._notify(COMPLETE_MESSAGE)
        self._transition(Complete(), trigger="all_intervals_complete")

    def _transition(self, phase: Phase, trigger: str, context: Optional[dict] = None) -> None:
        with self._cond:
            previous = self._phase.state
            self._phase = phase
            count = self._count
        # start() waits only for the first phase, not for its hooks
        self._started.set()

        log_state_transition(
            self.logger,
            task_id=self.task_id,
            from_state=str(previous),
            to_state=str(phase.state),
            trigger=trigger,
            context={"count": count, "n_pomodoros": self.n_pomodoros, **(context or {})},
        )
        self.on_state_change(phase.state, previous)

    def _notify(self, message: str) -> None:
        try:
            self._notifier.notify(self._notify_title, message)
        except Exception as e:
            self.logger.warning(
                "Notification failed",
                notification=message,
                error=str(e)
            )

    # Timing helpers, called with the condition held

    def _remaining_locked(self, now: float) -> int:
        phase = self._phase
        if isinstance(phase, Running):
            return max(0, truncate_seconds(phase.duration - (now - phase.resumed_at)))
        if isinstance(phase, Paused):
            return max(0, truncate_seconds(phase.remaining))
        if isinstance(phase, Complete):
            return 0
        return self.duration

    def _paused_locked(self, now: float) -> int:
        phase = self._phase
        if isinstance(phase, Paused):
            return max(0, truncate_seconds(now - phase.paused_at))
        return 0
