"""
Centralized logging configuration for the pomo session engine.

All components log through structlog so that session transitions, store
writes and hook deliveries share one structured format. Call
``configure_logging`` once at process start; modules obtain loggers with
``get_logger(__name__)``.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(level: str = "INFO", format_json: bool = False) -> None:
    """
    Configure structlog for the entire application from the ``logging``
    section of the pomo config.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: Emit one JSON object per line instead of console output
    """
    # Session output goes to stdout; keep log lines on stderr
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
        format="%(message)s"
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if format_json
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for session state transitions.

    The returned logger is bound with the ``state_machine`` subsystem so
    transition records can be filtered out of the general log stream.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for state transitions
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="state_machine",
        audit_trail=True
    )


def get_delivery_logger(name: str) -> FilteringBoundLogger:
    """Get a logger bound to the event delivery subsystem."""
    return get_logger(name).bind(subsystem="delivery")


def log_state_transition(
    logger: FilteringBoundLogger,
    task_id: Optional[int],
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a state transition with standardized format.

    Args:
        logger: Structlog logger instance
        task_id: ID of the task whose session is transitioning
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        task_id=task_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")
