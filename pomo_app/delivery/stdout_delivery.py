"""Standard output state hook."""

import json
import sys
from typing import Optional, TextIO

from ..config.defaults import StdoutHookParams
from ..state.models import StateEvent
from ..utils.time import format_timestamp
from .base import BaseStateDelivery, DeliveryResult, DeliveryStatus


class StdoutStateDelivery(BaseStateDelivery):
    """Print each state change as a pretty line or a JSON object."""

    def __init__(self, name: str = "stdout", config: StdoutHookParams = StdoutHookParams(),
                 stream: Optional[TextIO] = None):
        super().__init__(name, config)
        self.config: StdoutHookParams = config
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved per call so redirected stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def deliver(self, event: StateEvent) -> DeliveryResult:
        try:
            print(self._format_event(event), file=self.stream, flush=True)
        except (OSError, ValueError) as e:
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"Stdout error: {e}",
                error=e
            )

        return DeliveryResult(
            status=DeliveryStatus.SUCCESS,
            message="Printed to stdout"
        )

    def _format_event(self, event: StateEvent) -> str:
        if self.config.format == "pretty":
            output = f"[{format_timestamp(event.timestamp)}] {event.state}"
            if event.task_id is not None:
                output += f" task={event.task_id}"
            output += f" ({event.count}/{event.n_pomodoros})"
            return output
        return json.dumps(event.to_dict())

    def health_check(self) -> bool:
        """Check if stdout is available."""
        try:
            return self.stream.writable()
        except (OSError, ValueError):
            return False
