"""Task filters for narrowing stored tasks by name, tag or id."""

from collections.abc import Callable, Iterable

from .models import Task

TaskFilter = Callable[[Task], bool]


def filter_by_name(name: str) -> TaskFilter:
    """Match tasks whose message contains ``name``."""
    def _match(task: Task) -> bool:
        return name in task.message
    return _match


def filter_by_tag(key: str, value: str) -> TaskFilter:
    """Match tasks carrying tag ``key`` with exactly ``value``."""
    def _match(task: Task) -> bool:
        return task.tags.has_tag(key) and task.tags[key] == value
    return _match


def filter_by_id(task_id: int) -> TaskFilter:
    def _match(task: Task) -> bool:
        return task.id == task_id
    return _match


def any_of(*filters: TaskFilter) -> TaskFilter:
    def _match(task: Task) -> bool:
        return any(f(task) for f in filters)
    return _match


def filters_from_strings(args: Iterable[str]) -> list[TaskFilter]:
    """
    Build filters from command-style arguments.

    A bare ``word`` matches a task whose message contains it or which has
    a ``word`` tag with an empty value. ``key=value`` matches that tag.
    Arguments with more than one ``=`` are ignored.
    """
    filters: list[TaskFilter] = []
    for arg in args:
        split = arg.split("=")
        if len(split) == 1:
            filters.append(any_of(filter_by_tag(split[0], ""), filter_by_name(split[0])))
        elif len(split) == 2:
            filters.append(filter_by_tag(split[0], split[1]))
    return filters


def apply_filters(tasks: Iterable[Task], filters: Iterable[TaskFilter]) -> list[Task]:
    """Return the tasks matching every filter, preserving order."""
    filters = list(filters)
    return [task for task in tasks if all(f(task) for f in filters)]
