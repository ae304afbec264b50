"""
System failure error classifications.

PersistenceError ends a running session. Hook and notification errors are
reported by the delivery layer and logged by the runner; they never stop
a session.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for system-level failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class PersistenceError(SystemFailureError):
    """Database persistence failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class TaskNotFoundError(PersistenceError):
    """Requested task does not exist in the store."""

    def __init__(self, task_id: int, **kwargs):
        super().__init__(f"Task {task_id} not found", operation="lookup",
                         target="tasks", **kwargs)
        self.task_id = task_id


class ProjectNotFoundError(PersistenceError):
    """Requested project does not exist in the store."""

    def __init__(self, project_id: int, **kwargs):
        super().__init__(f"Project {project_id} not found", operation="lookup",
                         target="projects", **kwargs)
        self.project_id = project_id


class StateTransitionError(SystemFailureError):
    """Session runner was driven outside its supported lifecycle."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted_transition = attempted_transition


class HookExecutionError(SystemFailureError):
    """State hook could not be executed or exited unsuccessfully."""

    def __init__(self, message: str, hook_name: Optional[str] = None,
                 state: Optional[str] = None, exit_code: Optional[int] = None,
                 **kwargs):
        super().__init__(message, **kwargs)
        self.hook_name = hook_name
        self.state = state
        self.exit_code = exit_code
        self.recoverable = True


class NotificationError(SystemFailureError):
    """User-facing notification could not be shown."""

    def __init__(self, message: str, backend: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.backend = backend
        self.recoverable = True
