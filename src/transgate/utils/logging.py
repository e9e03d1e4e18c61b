"""Logging configuration for Transgate."""

import logging
import sys
from typing import Optional, Union

import structlog


def _resolve_level(level: Union[str, int]) -> int:
    """Turn a level name such as ``"debug"`` into its numeric value."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_logging(level: Union[str, int] = "INFO", json: bool = False) -> None:
    """Configure structured logging for the gateway.

    Args:
        level: The logging level to use. Defaults to "INFO".
        json: Whether to output logs in JSON format. Defaults to False.

    Raises:
        ValueError: If the level name is not recognised
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.set_exc_info
            if not json
            else structlog.processors.format_exc_info,
            structlog.processors.dict_tracebacks
            if json
            else structlog.processors.ExceptionPrettyPrinter(),
            structlog.processors.JSONRenderer()
            if json
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional name for the logger. Defaults to None.

    Returns:
        A structured logger instance.
    """
    return structlog.get_logger(name)
