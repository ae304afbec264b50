"""
Canonical data models for tasks and their completed intervals.

Tasks and intervals are immutable. A task's interval tuple grows only
through the interval store; ``with_interval`` returns a new task rather
than mutating an existing one.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

from ..errors import InvalidProjectError, InvalidTagError, InvalidTaskError

DEFAULT_DURATION_SECONDS = 25 * 60
DEFAULT_POMODOROS = 4


@dataclass(frozen=True)
class Interval:
    """A single completed pomodoro with UTC wall-clock boundaries."""
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidTaskError(
                "Interval end precedes its start",
                field="end",
                value=self.end,
            )

    @property
    def duration_seconds(self) -> float:
        """Wall-clock length of the interval, pauses included."""
        return (self.end - self.start).total_seconds()


class Tags(Mapping):
    """Ordered, immutable key/value tags attached to a task."""

    def __init__(self, pairs: Optional[Iterable[tuple[str, str]]] = None):
        self._items: dict[str, str] = {}
        for key, value in pairs or ():
            if not key:
                raise InvalidTagError("Tag key must not be empty", tag=f"={value}")
            if key in self._items:
                raise InvalidTagError(f"Duplicate tag key: {key}", tag=key)
            self._items[key] = value

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, str]]) -> "Tags":
        return cls((data or {}).items())

    def __getitem__(self, key: str) -> str:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._items) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._items.items()))

    def __repr__(self) -> str:
        return f"Tags({self._items!r})"

    def has_tag(self, key: str) -> bool:
        return key in self._items

    def to_dict(self) -> dict[str, str]:
        return dict(self._items)


@dataclass(frozen=True)
class Task:
    """
    A unit of work executed as ``n_pomodoros`` intervals of
    ``duration_seconds`` each.

    ``id`` is None until the task has been persisted.
    """
    message: str
    duration_seconds: int = DEFAULT_DURATION_SECONDS
    n_pomodoros: int = DEFAULT_POMODOROS
    intervals: tuple[Interval, ...] = ()
    tags: Tags = field(default_factory=Tags)
    id: Optional[int] = None
    project_id: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.duration_seconds, int) or self.duration_seconds <= 0:
            raise InvalidTaskError(
                "Task duration must be a positive number of seconds",
                field="duration_seconds",
                value=self.duration_seconds,
            )
        if not isinstance(self.n_pomodoros, int) or self.n_pomodoros < 1:
            raise InvalidTaskError(
                "Task must target at least one pomodoro",
                field="n_pomodoros",
                value=self.n_pomodoros,
            )
        if len(self.intervals) > self.n_pomodoros:
            raise InvalidTaskError(
                "Task has more completed intervals than its target count",
                field="intervals",
                value=len(self.intervals),
            )
        # Normalize containers so equality and hashing behave
        if not isinstance(self.intervals, tuple):
            object.__setattr__(self, "intervals", tuple(self.intervals))
        if not isinstance(self.tags, Tags):
            object.__setattr__(self, "tags", Tags.from_dict(self.tags))

    @property
    def completed(self) -> int:
        return len(self.intervals)

    @property
    def is_complete(self) -> bool:
        return self.completed >= self.n_pomodoros

    def with_id(self, task_id: int) -> "Task":
        return replace(self, id=task_id)

    def with_interval(self, interval: Interval) -> "Task":
        """Return a copy of this task with ``interval`` appended."""
        return replace(self, intervals=self.intervals + (interval,))


@dataclass(frozen=True)
class Project:
    """
    A titled group of tasks. Projects nest through ``parent_id``.

    ``id`` is None until the project has been persisted.
    """
    title: str
    parent_id: Optional[int] = None
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise InvalidProjectError(
                "Project title must not be empty",
                field="title",
                value=self.title,
            )
        if self.parent_id is not None and (
            not isinstance(self.parent_id, int) or isinstance(self.parent_id, bool)
        ):
            raise InvalidProjectError(
                "Project parent must be a project id",
                field="parent_id",
                value=self.parent_id,
            )
        if self.id is not None and self.parent_id == self.id:
            raise InvalidProjectError(
                "Project cannot be its own parent",
                field="parent_id",
                value=self.parent_id,
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        """Build a project from ``title`` / ``parent_id`` keys; others are ignored."""
        return cls(title=data.get("title", ""), parent_id=data.get("parent_id"))

    def with_id(self, project_id: int) -> "Project":
        return replace(self, id=project_id)
