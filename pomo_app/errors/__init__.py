"""
Error classification for the pomo session engine.

Validation errors are precondition failures raised to the caller before a
session exists. System failures cover persistence and event delivery;
only persistence failures are fatal to a running session.
"""

from .validation import (
    TaskValidationError,
    InvalidDurationError,
    InvalidTagError,
    InvalidTaskError,
    InvalidProjectError,
    ConfigurationError,
)
from .system_failures import (
    SystemFailureError,
    PersistenceError,
    TaskNotFoundError,
    ProjectNotFoundError,
    StateTransitionError,
    HookExecutionError,
    NotificationError,
)

__all__ = [
    # Validation Errors
    "TaskValidationError",
    "InvalidDurationError",
    "InvalidTagError",
    "InvalidTaskError",
    "InvalidProjectError",
    "ConfigurationError",
    # System Failures
    "SystemFailureError",
    "PersistenceError",
    "TaskNotFoundError",
    "ProjectNotFoundError",
    "StateTransitionError",
    "HookExecutionError",
    "NotificationError",
]
