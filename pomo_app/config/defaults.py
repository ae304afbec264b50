"""Default configuration parameters for the pomo session engine."""

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_CONFIG_DIR = "~/.pomo"


@dataclass(frozen=True)
class SessionParams:
    """Defaults applied to newly created tasks."""
    default_duration: str = "25m"            # Length of each pomodoro
    default_pomodoros: int = 4               # Target interval count


@dataclass(frozen=True)
class NotificationParams:
    """User-facing notifier settings."""
    enabled: bool = True
    backend: str = "desktop"                 # desktop | log | none
    title: str = "Pomo"


@dataclass(frozen=True)
class StdoutHookParams:
    """Print each state change to stdout."""
    enabled: bool = False
    format: str = "pretty"                   # pretty | json


@dataclass(frozen=True)
class FileHookParams:
    """Append each state change to a JSONL file."""
    enabled: bool = False
    output_path: str = f"{DEFAULT_CONFIG_DIR}/events.jsonl"
    max_file_size_mb: Optional[int] = None
    rotation_enabled: bool = False


@dataclass(frozen=True)
class HttpHookParams:
    """POST each state change to a webhook."""
    enabled: bool = False
    url: Optional[str] = None
    timeout_seconds: int = 5


@dataclass(frozen=True)
class HookParams:
    """State hooks fired on every transition, besides ``on_event``."""
    stdout: StdoutHookParams = field(default_factory=StdoutHookParams)
    file: FileHookParams = field(default_factory=FileHookParams)
    http: HttpHookParams = field(default_factory=HttpHookParams)


@dataclass(frozen=True)
class LoggingParams:
    """Structured logging output."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class PomoConfig:
    """Complete default configuration."""
    db_path: str = f"{DEFAULT_CONFIG_DIR}/pomo.db"
    icon_path: Optional[str] = None
    on_event: tuple[str, ...] = ()           # argv run on every state change
    session: SessionParams = field(default_factory=SessionParams)
    notifications: NotificationParams = field(default_factory=NotificationParams)
    hooks: HookParams = field(default_factory=HookParams)
    logging: LoggingParams = field(default_factory=LoggingParams)


def get_default_config() -> PomoConfig:
    """Get the default configuration instance."""
    return PomoConfig()
