"""Tests for error classification."""

import pytest

from pomo_app.errors import (
    ConfigurationError,
    HookExecutionError,
    InvalidDurationError,
    InvalidProjectError,
    InvalidTagError,
    InvalidTaskError,
    NotificationError,
    PersistenceError,
    ProjectNotFoundError,
    StateTransitionError,
    SystemFailureError,
    TaskNotFoundError,
    TaskValidationError,
)


class TestValidationErrors:
    """Caller-side precondition failures."""

    @pytest.mark.parametrize("error", [
        InvalidDurationError("bad", raw_value="xx"),
        InvalidTagError("bad", tag="a=b=c"),
        InvalidTaskError("bad", field="n_pomodoros", value=0),
        InvalidProjectError("bad", field="title", value=""),
    ])
    def test_hierarchy(self, error):
        assert isinstance(error, TaskValidationError)
        assert isinstance(error, ValueError)
        assert error.recoverable is False

    def test_attributes(self):
        assert InvalidDurationError("bad", raw_value="xx").raw_value == "xx"
        assert InvalidTagError("bad", tag="=v").tag == "=v"
        error = InvalidTaskError("bad", field="n_pomodoros", value=0,
                                 context={"source": "cli"})
        assert (error.field, error.value) == ("n_pomodoros", 0)
        assert error.context == {"source": "cli"}

    def test_configuration_error(self):
        error = ConfigurationError("invalid", errors=["a"], path="/etc/pomo.yaml")

        assert isinstance(error, ValueError)
        assert error.errors == ["a"]
        assert error.path == "/etc/pomo.yaml"
        assert ConfigurationError("invalid").errors == []


class TestSystemFailures:
    """Runtime failures."""

    def test_persistence_errors_are_fatal(self):
        error = PersistenceError("disk full", operation="append_interval", target="intervals")

        assert isinstance(error, SystemFailureError)
        assert error.recoverable is False
        assert error.operation == "append_interval"

    def test_task_not_found(self):
        error = TaskNotFoundError(17)

        assert isinstance(error, PersistenceError)
        assert str(error) == "Task 17 not found"
        assert error.task_id == 17
        assert error.target == "tasks"

    def test_project_not_found(self):
        error = ProjectNotFoundError(3)

        assert isinstance(error, PersistenceError)
        assert str(error) == "Project 3 not found"
        assert error.project_id == 3
        assert error.target == "projects"

    def test_delivery_errors_are_recoverable(self):
        hook_error = HookExecutionError("exit 1", hook_name="on_event", state="RUNNING",
                                        exit_code=1)
        notify_error = NotificationError("no display", backend="desktop")

        assert hook_error.recoverable
        assert hook_error.exit_code == 1
        assert notify_error.recoverable
        assert notify_error.backend == "desktop"

    def test_state_transition_error(self):
        error = StateTransitionError("busy", current_state="RUNNING",
                                     attempted_transition="begin")

        assert error.current_state == "RUNNING"
        assert error.attempted_transition == "begin"
