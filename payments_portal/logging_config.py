"""
Structured logging configuration.

Uses structlog for JSON-formatted logs rendered through the standard
library root logger.
"""
import logging
import sys
from typing import Any

import structlog

from .config import APP_ENV, APP_NAME, LOG_LEVEL


def add_app_context(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Stamp every event with the application name and environment."""
    event_dict["app_name"] = APP_NAME
    event_dict["app_env"] = APP_ENV
    return event_dict


def setup_logging() -> None:
    """
    Configure structlog and the root logger.

    Safe to call more than once; existing root handlers are replaced.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_app_context,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)
