"""
Validation error classifications for task and configuration input.

These are caller-side precondition failures. They are raised before a
session runner is constructed and are never recovered at runtime.
"""

from typing import Optional, Dict, Any


class TaskValidationError(ValueError):
    """Base class for invalid task parameters."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class InvalidDurationError(TaskValidationError):
    """Duration string could not be parsed or is not positive."""

    def __init__(self, message: str, raw_value: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_value = raw_value


class InvalidTagError(TaskValidationError):
    """Tag argument is malformed or duplicated."""

    def __init__(self, message: str, tag: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.tag = tag


class InvalidProjectError(TaskValidationError):
    """Project definition is missing a title or has malformed fields."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class InvalidTaskError(TaskValidationError):
    """Task violates a model invariant (count, duration, intervals)."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class ConfigurationError(ValueError):
    """Configuration file is unreadable or contains invalid values."""

    def __init__(self, message: str, errors: Optional[list] = None,
                 path: Optional[str] = None):
        super().__init__(message)
        self.errors = errors or []
        self.path = path
