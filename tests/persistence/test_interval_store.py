"""Tests for the SQLite task and interval store."""

import sqlite3
import threading
from datetime import datetime, timedelta, timezone

import pytest

from pomo_app.data.filters import filter_by_name, filter_by_tag
from pomo_app.data.models import Interval, Project, Tags, Task
from pomo_app.errors import PersistenceError, ProjectNotFoundError, TaskNotFoundError
from pomo_app.persistence.interval_store import IntervalStore

START = datetime(2024, 2, 1, 10, 0, tzinfo=timezone.utc)


def interval(index=0, minutes=25):
    start = START + timedelta(hours=index)
    return Interval(start=start, end=start + timedelta(minutes=minutes))


class TestTaskPersistence:
    """Creating, loading and deleting tasks."""

    def test_schema_created(self, store):
        with sqlite3.connect(store.db_path) as conn:
            tables = {row[0] for row in conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )}
        assert {"projects", "tasks", "tags", "intervals"} <= tables

    def test_create_assigns_id(self, store):
        task = store.create_task(Task(message="write report", duration_seconds=600,
                                      n_pomodoros=2))

        assert task.id is not None
        assert task.message == "write report"

    def test_ids_are_distinct(self, store):
        first = store.create_task(Task(message="a"))
        second = store.create_task(Task(message="b"))
        assert first.id != second.id

    def test_round_trip(self, store):
        project = store.create_project(Project(title="reading"))
        created = store.create_task(Task(
            message="read paper",
            duration_seconds=900,
            n_pomodoros=3,
            tags=Tags([("area", "home"), ("urgent", "")]),
            intervals=(interval(0),),
            project_id=project.id,
        ))

        loaded = store.get_task(created.id)

        assert loaded == created
        assert list(loaded.tags.items()) == [("area", "home"), ("urgent", "")]
        assert loaded.intervals[0].start.tzinfo is not None

    def test_get_missing_task(self, store):
        with pytest.raises(TaskNotFoundError) as exc_info:
            store.get_task(999)
        assert exc_info.value.task_id == 999
        assert "999" in str(exc_info.value)

    def test_missing_task_is_persistence_error(self, store):
        with pytest.raises(PersistenceError):
            store.get_task(999)

    def test_delete_cascades(self, store):
        task = store.create_task(Task(message="x", tags=Tags([("a", "1")])))
        store.append_interval(task.id, interval())

        store.delete_task(task.id)

        with pytest.raises(TaskNotFoundError):
            store.get_task(task.id)
        with sqlite3.connect(store.db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM intervals").fetchone()[0] == 0
            assert conn.execute("SELECT COUNT(*) FROM tags").fetchone()[0] == 0

    def test_delete_missing_task(self, store):
        with pytest.raises(TaskNotFoundError):
            store.delete_task(42)

    def test_reopen_keeps_data(self, tmp_path):
        path = str(tmp_path / "reopen.db")
        task = IntervalStore(path).create_task(Task(message="persist"))

        assert IntervalStore(path).get_task(task.id).message == "persist"


class TestAppendInterval:
    """Recording completed intervals."""

    def test_append_and_read_back(self, store):
        task = store.create_task(Task(message="x", n_pomodoros=2))

        store.append_interval(task.id, interval(0))
        store.append_interval(task.id, interval(1))

        assert store.get_intervals(task.id) == [interval(0), interval(1)]
        assert store.get_task(task.id).completed == 2

    def test_intervals_ordered_by_start(self, store):
        task = store.create_task(Task(message="x", n_pomodoros=2))

        store.append_interval(task.id, interval(2))
        store.append_interval(task.id, interval(1))

        assert [i.start for i in store.get_intervals(task.id)] == [
            interval(1).start, interval(2).start
        ]

    def test_unknown_task(self, store):
        with pytest.raises(TaskNotFoundError):
            store.append_interval(12345, interval())

    def test_beyond_target_rejected(self, store):
        task = store.create_task(Task(message="x", n_pomodoros=1))
        store.append_interval(task.id, interval(0))

        with pytest.raises(PersistenceError, match="already has 1 of 1"):
            store.append_interval(task.id, interval(1))

        assert len(store.get_intervals(task.id)) == 1

    def test_empty_intervals(self, store):
        task = store.create_task(Task(message="x"))
        assert store.get_intervals(task.id) == []

    def test_concurrent_appends_respect_target(self, store):
        """Appends from several threads never exceed the target count."""
        task = store.create_task(Task(message="x", n_pomodoros=3))
        errors = []

        def append(index):
            try:
                store.append_interval(task.id, interval(index))
            except PersistenceError as e:
                errors.append(e)

        threads = [threading.Thread(target=append, args=(i,)) for i in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(store.get_intervals(task.id)) == 3
        assert len(errors) == 3


class TestQueries:
    """Listing and statistics."""

    def test_list_in_creation_order(self, store):
        for name in ("c", "a", "b"):
            store.create_task(Task(message=name))

        assert [t.message for t in store.list_tasks()] == ["c", "a", "b"]

    def test_list_with_filters(self, store):
        store.create_task(Task(message="write report", tags=Tags([("area", "work")])))
        store.create_task(Task(message="read report", tags=Tags([("area", "home")])))
        store.create_task(Task(message="cook", tags=Tags([("area", "home")])))

        tasks = store.list_tasks([filter_by_name("report"), filter_by_tag("area", "home")])

        assert [t.message for t in tasks] == ["read report"]

    def test_stats(self, store):
        done = store.create_task(Task(message="done", n_pomodoros=1))
        store.append_interval(done.id, interval())
        store.create_task(Task(message="todo", n_pomodoros=2))

        assert store.get_stats() == {
            "total_projects": 0,
            "total_tasks": 2,
            "total_intervals": 1,
            "completed_tasks": 1,
        }


class TestProjects:
    """Project hierarchy and task membership."""

    def test_create_and_get(self, store):
        project = store.create_project(Project(title="thesis"))

        assert project.id is not None
        assert store.get_project(project.id) == project

    def test_nested_projects(self, store):
        root = store.create_project(Project(title="thesis"))
        child = store.create_project(Project(title="chapter 1", parent_id=root.id))
        store.create_project(Project(title="garden"))

        assert child.parent_id == root.id
        assert [p.title for p in store.list_projects()] == ["thesis", "chapter 1", "garden"]
        assert store.list_projects(parent_id=root.id) == [child]

    def test_unknown_parent_rejected(self, store):
        with pytest.raises(ProjectNotFoundError) as exc_info:
            store.create_project(Project(title="orphan", parent_id=42))

        assert exc_info.value.project_id == 42
        assert store.list_projects() == []

    def test_get_missing_project(self, store):
        with pytest.raises(ProjectNotFoundError):
            store.get_project(7)

    def test_task_with_unknown_project_rejected(self, store):
        with pytest.raises(ProjectNotFoundError):
            store.create_task(Task(message="stray", project_id=3))

        assert store.list_tasks() == []

    def test_projects_counted_in_stats(self, store):
        store.create_project(Project(title="thesis"))

        assert store.get_stats()["total_projects"] == 1


class TestUpdateTask:
    """Editing message and tags of stored tasks."""

    def test_update_message_keeps_tags(self, store):
        task = store.create_task(Task(message="draft", tags=Tags([("area", "work")])))

        updated = store.update_task(task.id, message="final draft")

        assert updated.message == "final draft"
        assert updated.tags == {"area": "work"}
        assert store.get_task(task.id) == updated

    def test_replace_tags_keeps_intervals(self, store):
        task = store.create_task(Task(message="draft", n_pomodoros=2,
                                      tags=Tags([("area", "work")]),
                                      intervals=(interval(0),)))

        updated = store.update_task(task.id, tags=Tags([("urgent", "")]))

        assert updated.message == "draft"
        assert updated.tags == {"urgent": ""}
        assert updated.intervals == task.intervals

    def test_clear_tags(self, store):
        task = store.create_task(Task(message="draft", tags=Tags([("area", "work")])))

        assert store.update_task(task.id, tags=Tags()).tags == {}

    def test_update_missing_task(self, store):
        with pytest.raises(TaskNotFoundError):
            store.update_task(404, message="nothing")


class TestFailures:
    """Database errors surface as PersistenceError."""

    def test_unwritable_database(self, tmp_path):
        with pytest.raises(PersistenceError):
            IntervalStore(str(tmp_path / "missing-dir" / "pomo.db"))

    def test_sqlite_error_wrapped(self, store):
        with pytest.raises(PersistenceError) as exc_info:
            with store.transaction() as conn:
                conn.execute("SELECT * FROM no_such_table")

        assert isinstance(exc_info.value.__cause__, sqlite3.Error)
        assert exc_info.value.operation == "transaction"

    def test_other_errors_roll_back(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction() as conn:
                conn.execute(
                    "INSERT INTO tasks (message, duration_seconds, n_pomodoros, created_at) "
                    "VALUES ('ghost', 60, 1, 'now')"
                )
                raise RuntimeError("abort")

        assert store.list_tasks() == []
