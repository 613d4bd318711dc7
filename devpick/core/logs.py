"""structlog setup for devpick.

Diagnostics go to stderr through the stdlib logging tree; user-facing output
is written with click and never passes through here.
"""

from __future__ import annotations

import os
import logging
import logging.config

import structlog

LOG_LEVEL_ENV = "DEVPICK_LOG_LEVEL"
LOG_FORMAT_ENV = "DEVPICK_LOG_FORMAT"
DEFAULT_LOG_LEVEL = "WARNING"

# Shared by structlog loggers and foreign stdlib records
foreign_pre_chain: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def logging_config(level: str, formatter: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processor": structlog.dev.ConsoleRenderer(colors=False),
                "foreign_pre_chain": foreign_pre_chain,
            },
            "json": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processor": structlog.processors.JSONRenderer(),
                "foreign_pre_chain": foreign_pre_chain,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "devpick": {"handlers": ["console"], "level": level, "propagate": False},
        },
    }


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog and the `devpick` stdlib logger.

    `verbose` forces DEBUG; otherwise the level comes from DEVPICK_LOG_LEVEL.
    """
    level = "DEBUG" if verbose else os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        level = DEFAULT_LOG_LEVEL
    formatter = os.getenv(LOG_FORMAT_ENV, "default")
    if formatter not in {"default", "json"}:
        formatter = "default"

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *foreign_pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(logging_config(level, formatter))
