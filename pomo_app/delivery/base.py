"""Base classes for state hook delivery mechanisms."""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..logging.config import get_delivery_logger
from ..state.models import StateEvent


class DeliveryStatus(Enum):
    """State hook delivery status."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class DeliveryResult:
    """Result of one hook delivery attempt."""
    status: DeliveryStatus
    message: Optional[str] = None
    delivery_time_ms: Optional[int] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == DeliveryStatus.SUCCESS


class StateDeliveryError(Exception):
    """Hook cannot be constructed from its configuration."""
    pass


class BaseStateDelivery(ABC):
    """
    Base class for hooks fired on every session state change.

    Hooks are best-effort: ``dispatch`` never raises, it converts any
    failure into a FAILED result and counts it.
    """

    def __init__(self, name: str, config: Any = None):
        self.name = name
        self.config = config
        self.logger = get_delivery_logger(f"pomo.delivery.{name}")
        self._delivery_count = 0
        self._error_count = 0
        # One hook instance is shared by every session runner
        self._stats_lock = threading.Lock()

    @abstractmethod
    def deliver(self, event: StateEvent) -> DeliveryResult:
        """
        Deliver a state change to the configured destination.

        Args:
            event: The transition that just happened

        Returns:
            Delivery result for the event
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if delivery mechanism is healthy."""
        pass

    def dispatch(self, event: StateEvent) -> DeliveryResult:
        """Deliver ``event``, timing the attempt and updating statistics."""
        start_time = time.monotonic()
        try:
            result = self.deliver(event)
        except Exception as e:
            result = DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"Unexpected error: {e}",
                error=e
            )
        result.delivery_time_ms = int((time.monotonic() - start_time) * 1000)

        with self._stats_lock:
            if result.ok:
                self._delivery_count += 1
            else:
                self._error_count += 1

        if not result.ok:
            self.logger.warning(
                "State hook delivery failed",
                delivery_name=self.name,
                state=str(event.state),
                task_id=event.task_id,
                error=result.message
            )
        return result

    def get_stats(self) -> dict[str, Any]:
        """Get delivery statistics."""
        with self._stats_lock:
            delivered, failed = self._delivery_count, self._error_count
        return {
            "name": self.name,
            "delivery_count": delivered,
            "error_count": failed,
            "success_rate": delivered / (delivered + failed) if (delivered + failed) > 0 else 0.0
        }

    def reset_stats(self):
        """Reset delivery statistics."""
        with self._stats_lock:
            self._delivery_count = 0
            self._error_count = 0
