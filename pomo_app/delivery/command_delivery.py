"""External command state hook."""

import os
import shutil
import subprocess
from collections.abc import Sequence
from typing import Optional

from ..errors import HookExecutionError
from ..state.models import StateEvent
from .base import BaseStateDelivery, DeliveryResult, DeliveryStatus, StateDeliveryError

STATE_ENV_VAR = "POMO_STATE"


class CommandHookDelivery(BaseStateDelivery):
    """
    Run a configured command on every state change.

    The command inherits the caller's environment plus ``POMO_STATE``,
    set to the canonical name of the new state.
    """

    def __init__(self, argv: Sequence[str], name: str = "on_event",
                 timeout_seconds: Optional[float] = None):
        if not argv:
            raise StateDeliveryError("Command hook requires at least one argument")
        super().__init__(name, list(argv))
        self.argv = list(argv)
        self.timeout_seconds = timeout_seconds

    def deliver(self, event: StateEvent) -> DeliveryResult:
        env = dict(os.environ)
        env[STATE_ENV_VAR] = str(event.state)

        try:
            completed = subprocess.run(
                self.argv,
                env=env,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            error = HookExecutionError(
                f"Unable to run {self.argv[0]}: {e}",
                hook_name=self.name,
                state=str(event.state),
            )
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=str(error),
                error=error
            )

        if completed.returncode != 0:
            error = HookExecutionError(
                f"{self.argv[0]} exited with status {completed.returncode}",
                hook_name=self.name,
                state=str(event.state),
                exit_code=completed.returncode,
            )
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=str(error),
                error=error
            )

        self.logger.debug(
            "State hook command ran",
            delivery_name=self.name,
            command=self.argv[0],
            state=str(event.state)
        )
        return DeliveryResult(
            status=DeliveryStatus.SUCCESS,
            message=f"{self.argv[0]} exited with status 0"
        )

    def health_check(self) -> bool:
        """Check that the command resolves to an executable."""
        command = self.argv[0]
        if os.path.sep in command:
            return os.access(command, os.X_OK)
        return shutil.which(command) is not None
