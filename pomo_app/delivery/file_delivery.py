"""JSONL file state hook."""

import fcntl
import json
from datetime import datetime
from pathlib import Path

from ..config.defaults import FileHookParams
from ..state.models import StateEvent
from .base import BaseStateDelivery, DeliveryResult, DeliveryStatus


class FileStateDelivery(BaseStateDelivery):
    """Append each state change as one JSON line to a log file."""

    def __init__(self, name: str = "file", config: FileHookParams = FileHookParams()):
        super().__init__(name, config)
        self.config: FileHookParams = config

        self.output_path = Path(config.output_path).expanduser()
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def deliver(self, event: StateEvent) -> DeliveryResult:
        try:
            if self.config.max_file_size_mb and self._check_file_size_limit():
                if self.config.rotation_enabled:
                    self._rotate_file()
                else:
                    return DeliveryResult(
                        status=DeliveryStatus.FAILED,
                        message=f"File size limit exceeded: {self.config.max_file_size_mb}MB"
                    )

            with open(self.output_path, "a") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                json.dump(event.to_dict(), f)
                f.write("\n")

        except OSError as e:
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"File system error: {e}",
                error=e
            )

        return DeliveryResult(
            status=DeliveryStatus.SUCCESS,
            message=f"Written to {self.output_path}"
        )

    def _check_file_size_limit(self) -> bool:
        """Check if file size exceeds the configured limit."""
        if not self.output_path.exists():
            return False

        file_size_mb = self.output_path.stat().st_size / (1024 * 1024)
        return file_size_mb > self.config.max_file_size_mb

    def _rotate_file(self) -> None:
        """Move the current log aside with a timestamp suffix."""
        if not self.output_path.exists():
            return

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        rotated_name = f"{self.output_path.stem}_{timestamp}{self.output_path.suffix}"
        rotated_path = self.output_path.parent / rotated_name

        self.output_path.rename(rotated_path)

        self.logger.info(
            "File rotated due to size limit",
            delivery_name=self.name,
            original_path=str(self.output_path),
            rotated_path=str(rotated_path)
        )

    def health_check(self) -> bool:
        """Check if file system is writable."""
        try:
            test_file = self.output_path.parent / ".health_check_test"
            test_file.write_text("test")
            test_file.unlink()
            return True

        except OSError as e:
            self.logger.warning(
                "Health check failed",
                delivery_name=self.name,
                error=str(e)
            )
            return False
