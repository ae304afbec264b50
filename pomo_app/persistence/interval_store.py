"""Task and interval persistence layer."""

import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

from ..data.filters import TaskFilter, apply_filters
from ..data.models import Interval, Project, Tags, Task
from ..errors import PersistenceError, ProjectNotFoundError, TaskNotFoundError
from ..logging.config import get_logger
from ..utils.time import format_timestamp, parse_timestamp, utc_now

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS projects (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        parent_id INTEGER REFERENCES projects(id) ON DELETE SET NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        message TEXT NOT NULL,
        duration_seconds INTEGER NOT NULL CHECK(duration_seconds > 0),
        n_pomodoros INTEGER NOT NULL CHECK(n_pomodoros > 0),
        project_id INTEGER REFERENCES projects(id) ON DELETE SET NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tags (
        task_id INTEGER NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
        key TEXT NOT NULL,
        value TEXT NOT NULL DEFAULT '',
        PRIMARY KEY (task_id, key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS intervals (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        task_id INTEGER NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
        started_at TEXT NOT NULL,
        ended_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_intervals_task_id ON intervals(task_id)",
    "CREATE INDEX IF NOT EXISTS idx_tags_key ON tags(key)",
    "CREATE INDEX IF NOT EXISTS idx_projects_parent_id ON projects(parent_id)",
)


class IntervalStore:
    """
    SQLite-backed store of projects, tasks and their completed intervals.

    Every public write runs in its own transaction on a fresh connection,
    so one store may be shared by several session runners.
    """

    def __init__(self, db_path: str = "pomo.db"):
        self.db_path = Path(db_path).expanduser()
        self.logger = get_logger("pomo.store")
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self.transaction() as conn:
            for statement in SCHEMA:
                conn.execute(statement)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run a unit of work atomically.

        Commits when the block exits normally and rolls back when it
        raises. SQLite errors are re-raised as PersistenceError.
        """
        conn = None
        try:
            conn = self._connect()
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", db_path=str(self.db_path), error=str(e))
            raise PersistenceError(
                f"Database error: {e}",
                operation="transaction",
                target=str(self.db_path),
            ) from e
        except BaseException:
            if conn:
                conn.rollback()
            raise
        finally:
            if conn:
                conn.close()

    def create_task(self, task: Task) -> Task:
        """
        Persist a new task with its tags and any existing intervals.

        Returns:
            The task carrying its assigned id

        Raises:
            ProjectNotFoundError: If the task names an unknown project
        """
        with self._lock:
            with self.transaction() as conn:
                if task.project_id is not None:
                    self._require_project(conn, task.project_id)

                cursor = conn.execute("""
                    INSERT INTO tasks (
                        message, duration_seconds, n_pomodoros, project_id, created_at
                    ) VALUES (?, ?, ?, ?, ?)
                """, (
                    task.message,
                    task.duration_seconds,
                    task.n_pomodoros,
                    task.project_id,
                    format_timestamp(utc_now()),
                ))
                task_id = cursor.lastrowid

                conn.executemany(
                    "INSERT INTO tags (task_id, key, value) VALUES (?, ?, ?)",
                    [(task_id, key, value) for key, value in task.tags.items()],
                )
                conn.executemany(
                    "INSERT INTO intervals (task_id, started_at, ended_at) VALUES (?, ?, ?)",
                    [
                        (task_id, format_timestamp(i.start), format_timestamp(i.end))
                        for i in task.intervals
                    ],
                )

        self.logger.info(
            "Task created",
            task_id=task_id,
            duration_seconds=task.duration_seconds,
            n_pomodoros=task.n_pomodoros
        )
        return task.with_id(task_id)

    def append_interval(self, task_id: int, interval: Interval) -> None:
        """
        Record one completed interval under a task.

        Runs as a single transaction. Callers invoke this exactly once per
        completed interval; failures are raised, never retried.

        Raises:
            PersistenceError: If the task is unknown or the write fails
        """
        if interval.end < interval.start:
            raise PersistenceError(
                "Interval end precedes its start",
                operation="append_interval",
                target="intervals",
            )

        with self._lock:
            with self.transaction() as conn:
                row = conn.execute("""
                    SELECT t.n_pomodoros,
                           (SELECT COUNT(*) FROM intervals i WHERE i.task_id = t.id) AS completed
                    FROM tasks t WHERE t.id = ?
                """, (task_id,)).fetchone()
                if row is None:
                    raise TaskNotFoundError(task_id)
                if row["completed"] >= row["n_pomodoros"]:
                    raise PersistenceError(
                        f"Task {task_id} already has {row['completed']} of "
                        f"{row['n_pomodoros']} intervals",
                        operation="append_interval",
                        target="intervals",
                    )

                conn.execute(
                    "INSERT INTO intervals (task_id, started_at, ended_at) VALUES (?, ?, ?)",
                    (task_id, format_timestamp(interval.start), format_timestamp(interval.end)),
                )

        self.logger.info(
            "Interval stored",
            task_id=task_id,
            start=format_timestamp(interval.start),
            end=format_timestamp(interval.end)
        )

    def get_task(self, task_id: int) -> Task:
        """
        Load a task with its tags and intervals.

        Raises:
            TaskNotFoundError: If no such task exists
        """
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ?", (task_id,)
            ).fetchone()
            if row is None:
                raise TaskNotFoundError(task_id)
            return self._row_to_task(conn, row)

    def list_tasks(self, filters: Optional[Iterable[TaskFilter]] = None) -> list[Task]:
        """List all tasks in creation order, keeping those matching every filter."""
        with self.transaction() as conn:
            rows = conn.execute("SELECT * FROM tasks ORDER BY id").fetchall()
            tasks = [self._row_to_task(conn, row) for row in rows]

        return apply_filters(tasks, filters or ())

    def get_intervals(self, task_id: int) -> list[Interval]:
        """Completed intervals of a task in the order they occurred."""
        with self.transaction() as conn:
            return self._load_intervals(conn, task_id)

    def delete_task(self, task_id: int) -> None:
        """
        Delete a task with its tags and intervals.

        Raises:
            TaskNotFoundError: If no such task exists
        """
        with self._lock:
            with self.transaction() as conn:
                cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
                if cursor.rowcount == 0:
                    raise TaskNotFoundError(task_id)

        self.logger.info("Task deleted", task_id=task_id)

    def update_task(self, task_id: int, message: Optional[str] = None,
                    tags: Optional[Tags] = None) -> Task:
        """
        Edit a task's message and/or replace its tags.

        Fields passed as None are left unchanged. Intervals are never
        edited here.

        Raises:
            TaskNotFoundError: If no such task exists
        """
        with self._lock:
            with self.transaction() as conn:
                if conn.execute("SELECT 1 FROM tasks WHERE id = ?", (task_id,)).fetchone() is None:
                    raise TaskNotFoundError(task_id)

                if message is not None:
                    conn.execute("UPDATE tasks SET message = ? WHERE id = ?", (message, task_id))

                if tags is not None:
                    conn.execute("DELETE FROM tags WHERE task_id = ?", (task_id,))
                    conn.executemany(
                        "INSERT INTO tags (task_id, key, value) VALUES (?, ?, ?)",
                        [(task_id, key, value) for key, value in tags.items()],
                    )

        self.logger.info(
            "Task updated",
            task_id=task_id,
            message_changed=message is not None,
            tags_changed=tags is not None
        )
        return self.get_task(task_id)

    def create_project(self, project: Project) -> Project:
        """
        Persist a new project.

        Returns:
            The project carrying its assigned id

        Raises:
            ProjectNotFoundError: If the parent project does not exist
        """
        with self._lock:
            with self.transaction() as conn:
                if project.parent_id is not None:
                    self._require_project(conn, project.parent_id)

                cursor = conn.execute(
                    "INSERT INTO projects (title, parent_id, created_at) VALUES (?, ?, ?)",
                    (project.title, project.parent_id, format_timestamp(utc_now())),
                )
                project_id = cursor.lastrowid

        self.logger.info("Project created", project_id=project_id, parent_id=project.parent_id)
        return project.with_id(project_id)

    def get_project(self, project_id: int) -> Project:
        """
        Load a single project.

        Raises:
            ProjectNotFoundError: If no such project exists
        """
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT id, title, parent_id FROM projects WHERE id = ?", (project_id,)
            ).fetchone()
        if row is None:
            raise ProjectNotFoundError(project_id)
        return Project(id=row["id"], title=row["title"], parent_id=row["parent_id"])

    def list_projects(self, parent_id: Optional[int] = None) -> list[Project]:
        """List projects in creation order, optionally only the children of ``parent_id``."""
        query = "SELECT id, title, parent_id FROM projects"
        params: tuple = ()
        if parent_id is not None:
            query += " WHERE parent_id = ?"
            params = (parent_id,)

        with self.transaction() as conn:
            rows = conn.execute(query + " ORDER BY id", params).fetchall()
        return [Project(id=row["id"], title=row["title"], parent_id=row["parent_id"]) for row in rows]

    def get_stats(self) -> dict[str, Any]:
        """Get database statistics."""
        with self.transaction() as conn:
            project_count = conn.execute("SELECT COUNT(*) FROM projects").fetchone()[0]
            task_count = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()[0]
            interval_count = conn.execute("SELECT COUNT(*) FROM intervals").fetchone()[0]
            complete_count = conn.execute("""
                SELECT COUNT(*) FROM tasks t
                WHERE (SELECT COUNT(*) FROM intervals i WHERE i.task_id = t.id) >= t.n_pomodoros
            """).fetchone()[0]

        return {
            "total_projects": project_count,
            "total_tasks": task_count,
            "total_intervals": interval_count,
            "completed_tasks": complete_count,
        }

    def _require_project(self, conn: sqlite3.Connection, project_id: int) -> None:
        if conn.execute("SELECT 1 FROM projects WHERE id = ?", (project_id,)).fetchone() is None:
            raise ProjectNotFoundError(project_id)

    def _load_intervals(self, conn: sqlite3.Connection, task_id: int) -> list[Interval]:
        rows = conn.execute(
            "SELECT started_at, ended_at FROM intervals WHERE task_id = ? ORDER BY started_at, id",
            (task_id,),
        ).fetchall()
        return [
            Interval(start=parse_timestamp(row["started_at"]), end=parse_timestamp(row["ended_at"]))
            for row in rows
        ]

    def _row_to_task(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Task:
        """Convert database row to Task object."""
        tag_rows = conn.execute(
            "SELECT key, value FROM tags WHERE task_id = ? ORDER BY rowid",
            (row["id"],),
        ).fetchall()
        return Task(
            id=row["id"],
            message=row["message"],
            duration_seconds=row["duration_seconds"],
            n_pomodoros=row["n_pomodoros"],
            project_id=row["project_id"],
            intervals=tuple(self._load_intervals(conn, row["id"])),
            tags=Tags((r["key"], r["value"]) for r in tag_rows),
        )
