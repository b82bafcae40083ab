"""Structured logging for the render service."""

import logging
import sys
from typing import Optional

import structlog

from .config import Settings, settings

# Loggers that log every outbound request or browser step at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


def resolve_log_level(level: int | str | None = None, app_settings: Optional[Settings] = None) -> int:
    """Pick the effective level: explicit argument, then LOG_LEVEL, then DEBUG flag."""

    app_settings = app_settings or settings
    chosen = level or app_settings.log_level
    if chosen is None:
        return logging.DEBUG if app_settings.debug else logging.INFO
    if isinstance(chosen, int):
        return chosen

    resolved = logging.getLevelName(chosen.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {chosen}")
    return resolved


def configure_logging(level: int | str | None = None, app_settings: Optional[Settings] = None) -> int:
    """Configure structlog and the stdlib root logger; returns the level applied."""

    app_settings = app_settings or settings
    log_level = resolve_log_level(level, app_settings)

    if app_settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    # basicConfig is a no-op once uvicorn has installed handlers, so set the level directly.
    logging.getLogger().setLevel(log_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    return log_level


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Create a structured logger."""

    return structlog.get_logger(name or "shadow_render")
