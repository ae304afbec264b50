"""Build hooks and notifiers from configuration."""

from ..config.defaults import PomoConfig
from ..logging.config import get_logger
from .base import BaseStateDelivery
from .command_delivery import CommandHookDelivery
from .file_delivery import FileStateDelivery
from .http_delivery import HttpStateDelivery
from .notifier import BaseNotifier, DesktopNotifier, LogNotifier, NullNotifier
from .stdout_delivery import StdoutStateDelivery

logger = get_logger(__name__)


def build_hooks(config: PomoConfig) -> list[BaseStateDelivery]:
    """Create every state hook enabled in ``config``, ``on_event`` first."""
    hooks: list[BaseStateDelivery] = []

    if config.on_event:
        hooks.append(CommandHookDelivery(config.on_event))

    if config.hooks.stdout.enabled:
        hooks.append(StdoutStateDelivery(config=config.hooks.stdout))

    if config.hooks.file.enabled:
        hooks.append(FileStateDelivery(config=config.hooks.file))

    if config.hooks.http.enabled:
        hooks.append(HttpStateDelivery(config=config.hooks.http))

    logger.debug("State hooks configured", hooks=[hook.name for hook in hooks])
    return hooks


def build_notifier(config: PomoConfig) -> BaseNotifier:
    """Create the notifier selected by ``config.notifications``."""
    params = config.notifications
    if not params.enabled or params.backend == "none":
        return NullNotifier()

    if params.backend == "log":
        return LogNotifier()

    notifier = DesktopNotifier(icon_path=config.icon_path)
    if not notifier.is_available():
        logger.warning(
            "Desktop notifier unavailable, logging notifications instead",
            command=notifier.command
        )
        return LogNotifier()
    return notifier
