"""Structured logging for pipeline runs.

Logs go to stderr; stdout is kept for the JSON run result printed by the CLI.
"""
import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

from pages_pipeline.config.settings import settings

QUIET_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


def add_run_id_prefix(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Prefix the event with ``[<run_id>]`` so interleaved runs stay readable."""
    run_id = event_dict.get("run_id")
    if run_id:
        event_dict["event"] = f"[{run_id}] {event_dict.get('event', '')}"
    return event_dict


def _stderr_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if settings.logging.format == "json":
        handler.setFormatter(jsonlogger.JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    handler.setLevel(level)
    return handler


def configure_logging() -> None:
    """Route structlog through the stdlib root logger using the ``LOG_`` settings."""
    level = getattr(logging, settings.logging.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(_stderr_handler(level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.logging.format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_run_id_prefix,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a module, typically called with ``__name__``."""
    return structlog.get_logger(name)
