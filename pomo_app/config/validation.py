"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from ..data.parsers import parse_duration
from ..errors import InvalidDurationError

NOTIFICATION_BACKENDS = ("desktop", "log", "none")
STDOUT_FORMATS = ("pretty", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_session_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate session defaults."""
        errors = []

        if "default_duration" in params:
            value = params["default_duration"]
            try:
                parse_duration(value)
            except InvalidDurationError:
                errors.append(ValidationError(
                    field="session.default_duration",
                    message="Must be a positive duration such as 25m or 1h",
                    value=value
                ))

        if "default_pomodoros" in params:
            value = params["default_pomodoros"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                errors.append(ValidationError(
                    field="session.default_pomodoros",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_notification_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate notifier settings."""
        errors = []

        if "enabled" in params and not isinstance(params["enabled"], bool):
            errors.append(ValidationError(
                field="notifications.enabled",
                message="Must be a boolean",
                value=params["enabled"]
            ))

        if "backend" in params and params["backend"] not in NOTIFICATION_BACKENDS:
            errors.append(ValidationError(
                field="notifications.backend",
                message=f"Must be one of {', '.join(NOTIFICATION_BACKENDS)}",
                value=params["backend"]
            ))

        return errors

    @staticmethod
    def validate_hook_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate stdout, file and http hook settings."""
        errors = []

        stdout = params.get("stdout") or {}
        if "format" in stdout and stdout["format"] not in STDOUT_FORMATS:
            errors.append(ValidationError(
                field="hooks.stdout.format",
                message=f"Must be one of {', '.join(STDOUT_FORMATS)}",
                value=stdout["format"]
            ))

        file_hook = params.get("file") or {}
        if file_hook.get("enabled") and not file_hook.get("output_path"):
            errors.append(ValidationError(
                field="hooks.file.output_path",
                message="Required when the file hook is enabled",
                value=file_hook.get("output_path")
            ))
        max_size = file_hook.get("max_file_size_mb")
        if max_size is not None and (not isinstance(max_size, int) or max_size <= 0):
            errors.append(ValidationError(
                field="hooks.file.max_file_size_mb",
                message="Must be a positive integer",
                value=max_size
            ))

        http = params.get("http") or {}
        if http.get("enabled") and not http.get("url"):
            errors.append(ValidationError(
                field="hooks.http.url",
                message="Required when the http hook is enabled",
                value=http.get("url")
            ))
        timeout = http.get("timeout_seconds")
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
            errors.append(ValidationError(
                field="hooks.http.timeout_seconds",
                message="Must be a positive number",
                value=timeout
            ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if not config.get("db_path"):
            errors.append(ValidationError(
                field="db_path",
                message="Must be a non-empty path",
                value=config.get("db_path")
            ))

        on_event = config.get("on_event")
        if on_event is not None and (
            not isinstance(on_event, (list, tuple))
            or not all(isinstance(arg, str) for arg in on_event)
        ):
            errors.append(ValidationError(
                field="on_event",
                message="Must be a list of command arguments",
                value=on_event
            ))

        if "session" in config:
            errors.extend(ConfigValidator.validate_session_params(config["session"]))

        if "notifications" in config:
            errors.extend(ConfigValidator.validate_notification_params(config["notifications"]))

        if "hooks" in config:
            errors.extend(ConfigValidator.validate_hook_params(config["hooks"]))

        level = (config.get("logging") or {}).get("level")
        if level is not None and str(level).upper() not in LOG_LEVELS:
            errors.append(ValidationError(
                field="logging.level",
                message=f"Must be one of {', '.join(LOG_LEVELS)}",
                value=level
            ))

        return errors
