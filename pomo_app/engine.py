"""
Session controller.

Wires configuration, the interval store, notifier and state hooks
together, creates projects and tasks, starts session runners for tasks and relays
control requests to the runner owning a task.
"""

import sys
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, Optional

import structlog

from .config.defaults import PomoConfig
from .config.loader import ConfigLoader, ensure_paths
from .data.filters import filters_from_strings
from .data.models import Project, Task
from .data.parsers import parse_duration, parse_project_json, parse_tags
from .delivery.base import BaseStateDelivery
from .delivery.factory import build_hooks, build_notifier
from .delivery.notifier import BaseNotifier
from .errors import InvalidProjectError, StateTransitionError
from .logging.config import configure_logging
from .persistence.interval_store import IntervalStore
from .state.models import SessionState, Status
from .state.runner import SessionRunner
from .utils.time import Clock, format_duration

logger = structlog.get_logger(__name__)


class PomodoroEngine:
    """
    Main coordinator for pomodoro sessions.

    Manages the session pipeline:
    Task creation → Store → Session runner → Hooks / Notifier
    """

    def __init__(
        self,
        config: Optional[PomoConfig] = None,
        store: Optional[IntervalStore] = None,
        notifier: Optional[BaseNotifier] = None,
        hooks: Optional[Sequence[BaseStateDelivery]] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.logger = logger
        self.config = config or PomoConfig()

        if store is None:
            ensure_paths(self.config)
            store = IntervalStore(self.config.db_path)
        self.store = store
        self.notifier = notifier if notifier is not None else build_notifier(self.config)
        self.hooks = list(hooks) if hooks is not None else build_hooks(self.config)
        self.clock = clock

        self.runners: dict[int, SessionRunner] = {}

        self.logger.info(
            "Pomodoro engine initialized",
            db_path=str(self.store.db_path),
            hooks=[hook.name for hook in self.hooks],
            notifier=self.notifier.backend
        )

    @classmethod
    def from_config_file(
        cls,
        config_path: Optional[Path] = None,
        overrides: Optional[dict[str, Any]] = None,
    ) -> "PomodoroEngine":
        """Load configuration, set up logging and build an engine from it."""
        config = ConfigLoader.create(config_path).load(overrides)
        configure_logging(level=config.logging.level, format_json=config.logging.format_json)
        return cls(config=config)

    # Tasks

    def create_task(
        self,
        message: str,
        duration: Optional[str] = None,
        pomodoros: Optional[int] = None,
        tags: Iterable[str] = (),
        project_id: Optional[int] = None,
    ) -> Task:
        """
        Validate and persist a new task, applying configured defaults.

        Raises:
            TaskValidationError: If duration, count or tags are invalid
        """
        session = self.config.session
        task = Task(
            message=message,
            duration_seconds=parse_duration(duration or session.default_duration),
            n_pomodoros=pomodoros if pomodoros is not None else session.default_pomodoros,
            tags=parse_tags(tags),
            project_id=project_id,
        )
        return self.store.create_task(task)

    def get_task(self, task_id: int) -> Task:
        return self.store.get_task(task_id)

    def list_tasks(self, filter_args: Iterable[str] = ()) -> list[Task]:
        """List stored tasks matching ``name`` / ``key=value`` filter arguments."""
        return self.store.list_tasks(filters_from_strings(filter_args))

    def delete_task(self, task_id: int) -> None:
        """
        Delete a stored task.

        Raises:
            StateTransitionError: If a session for the task is still running
        """
        runner = self.runners.get(task_id)
        if runner is not None and not runner.is_finished:
            raise StateTransitionError(
                f"Task {task_id} has an active session",
                current_state=str(runner.state),
                attempted_transition="delete",
            )
        self.runners.pop(task_id, None)
        self.store.delete_task(task_id)

    def update_task(
        self,
        task_id: int,
        message: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Task:
        """
        Edit a stored task's message, or replace its tags when ``tags``
        is given (an empty iterable clears them).

        Raises:
            TaskNotFoundError: If no such task exists
            InvalidTagError: For malformed tag arguments
        """
        parsed = parse_tags(tags) if tags is not None else None
        return self.store.update_task(task_id, message=message, tags=parsed)

    # Projects

    def create_project(
        self,
        title: Optional[str] = None,
        parent_id: Optional[int] = None,
        source: Optional[str] = None,
    ) -> Project:
        """
        Create a project from arguments, a JSON definition file, or both.

        ``source`` is a path to a JSON object with ``title`` and optional
        ``parent_id``; ``-`` reads it from stdin. Explicit ``title`` and
        ``parent_id`` arguments take precedence over the file's values.

        Raises:
            InvalidProjectError: If no title results or the file is malformed
            ProjectNotFoundError: If the parent project does not exist
        """
        fields: dict[str, Any] = {}
        if source is not None:
            fields = parse_project_json(self._read_source(source))

        if title is not None:
            fields["title"] = title
        if parent_id is not None:
            fields["parent_id"] = parent_id

        return self.store.create_project(Project.from_dict(fields))

    def get_project(self, project_id: int) -> Project:
        return self.store.get_project(project_id)

    def list_projects(self, parent_id: Optional[int] = None) -> list[Project]:
        return self.store.list_projects(parent_id)

    def _read_source(self, source: str) -> str:
        if source == "-":
            return sys.stdin.read()
        try:
            return Path(source).read_text(encoding="utf-8")
        except OSError as e:
            raise InvalidProjectError(f"Cannot read project file {source}: {e}",
                                      field="source", value=source) from e

    # Sessions

    def begin(self, task_id: int) -> SessionRunner:
        """
        Start a session for an existing task, continuing after any
        intervals it already has.

        Raises:
            StateTransitionError: If the task already has an active session
        """
        self._prune_finished()
        existing = self.runners.get(task_id)
        if existing is not None:
            raise StateTransitionError(
                f"Task {task_id} already has an active session",
                current_state=str(existing.state),
                attempted_transition="begin",
            )

        task = self.store.get_task(task_id)
        runner = SessionRunner(
            task,
            self.store,
            notifier=self.notifier,
            hooks=self.hooks,
            clock=self.clock,
            notify_title=self.config.notifications.title,
        )
        self.runners[task_id] = runner

        self.logger.info(
            "Beginning session",
            task_id=task_id,
            message=task.message,
            completed=task.completed,
            n_pomodoros=task.n_pomodoros,
            duration=format_duration(task.duration_seconds)
        )
        runner.start()
        return runner

    def start(
        self,
        message: str,
        duration: Optional[str] = None,
        pomodoros: Optional[int] = None,
        tags: Iterable[str] = (),
        project_id: Optional[int] = None,
    ) -> SessionRunner:
        """Create a task and immediately begin its session."""
        task = self.create_task(message, duration, pomodoros, tags, project_id)
        return self.begin(task.id)

    def get_runner(self, task_id: int) -> SessionRunner:
        runner = self.runners.get(task_id)
        if runner is None:
            raise StateTransitionError(
                f"No session for task {task_id}",
                current_state=str(SessionState.CREATED),
            )
        return runner

    def status(self, task_id: int) -> Status:
        return self.get_runner(task_id).status()

    def pause(self, task_id: int) -> Status:
        runner = self.get_runner(task_id)
        runner.pause()
        return runner.status()

    def resume(self, task_id: int) -> Status:
        runner = self.get_runner(task_id)
        runner.resume()
        return runner.status()

    def toggle_pause(self, task_id: int) -> Status:
        runner = self.get_runner(task_id)
        runner.toggle_pause()
        return runner.status()

    def resume_break(self, task_id: int) -> Status:
        runner = self.get_runner(task_id)
        runner.resume_break()
        return runner.status()

    def _prune_finished(self) -> None:
        """Forget ended sessions; their progress lives in the store."""
        finished = [task_id for task_id, runner in self.runners.items() if runner.is_finished]
        for task_id in finished:
            del self.runners[task_id]

    def get_active_session_count(self) -> int:
        return sum(1 for runner in self.runners.values() if not runner.is_finished)

    def get_runtime_stats(self) -> dict[str, Any]:
        """Store totals, hook delivery statistics and session states."""
        return {
            "store": self.store.get_stats(),
            "hooks": [hook.get_stats() for hook in self.hooks],
            "active_sessions": self.get_active_session_count(),
            "sessions": {
                task_id: runner.status().to_dict()
                for task_id, runner in self.runners.items()
            },
        }
