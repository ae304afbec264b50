"""User-facing notifiers shown when a break starts and when a session ends."""

import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..errors import NotificationError
from ..logging.config import get_delivery_logger

NOTIFY_SEND = "notify-send"


class BaseNotifier(ABC):
    """Displays a short title and message to the user."""

    backend = "base"

    def __init__(self):
        self.logger = get_delivery_logger(f"pomo.notifier.{self.backend}")

    @abstractmethod
    def notify(self, title: str, message: str) -> None:
        """
        Show a notification.

        Raises:
            NotificationError: If the notification could not be shown
        """
        pass


class DesktopNotifier(BaseNotifier):
    """Desktop notification through the freedesktop ``notify-send`` tool."""

    backend = "desktop"

    def __init__(self, icon_path: Optional[str] = None, command: str = NOTIFY_SEND,
                 timeout_seconds: float = 5.0):
        super().__init__()
        self.icon_path = str(Path(icon_path).expanduser()) if icon_path else None
        self.command = command
        self.timeout_seconds = timeout_seconds

    def notify(self, title: str, message: str) -> None:
        argv = [self.command]
        if self.icon_path:
            argv.extend(["--icon", self.icon_path])
        argv.extend([title, message])

        try:
            subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout_seconds,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise NotificationError(
                f"{self.command} exited with status {e.returncode}",
                backend=self.backend,
            ) from e
        except (OSError, subprocess.SubprocessError) as e:
            raise NotificationError(
                f"Unable to run {self.command}: {e}",
                backend=self.backend,
            ) from e

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None


class LogNotifier(BaseNotifier):
    """Writes notifications to the structured log instead of the desktop."""

    backend = "log"

    def notify(self, title: str, message: str) -> None:
        self.logger.info("Notification", title=title, notification=message)


class NullNotifier(BaseNotifier):
    """Discards notifications."""

    backend = "none"

    def notify(self, title: str, message: str) -> None:
        return None
