"""
Event delivery module.

State hooks fired on every session transition (external command, stdout,
JSONL file, HTTP webhook) and user-facing notifiers shown when a break
starts and when a session completes.
"""
from .base import BaseStateDelivery, DeliveryResult, DeliveryStatus, StateDeliveryError
from .command_delivery import CommandHookDelivery
from .factory import build_hooks, build_notifier
from .file_delivery import FileStateDelivery
from .http_delivery import HttpStateDelivery
from .notifier import BaseNotifier, DesktopNotifier, LogNotifier, NullNotifier
from .stdout_delivery import StdoutStateDelivery

__all__ = [
    "BaseNotifier",
    "BaseStateDelivery",
    "CommandHookDelivery",
    "DeliveryResult",
    "DeliveryStatus",
    "DesktopNotifier",
    "FileStateDelivery",
    "HttpStateDelivery",
    "LogNotifier",
    "NullNotifier",
    "StateDeliveryError",
    "StdoutStateDelivery",
    "build_hooks",
    "build_notifier",
]
