"""
Structured logging configuration using structlog.

Moderation stages log provider failures and fallbacks here so operators can
spot degraded accuracy. User-submitted text must never reach a log line:
modules log ``content_length`` instead, and the ``drop_user_content``
processor strips any content field that slips through.
"""

import logging
from typing import Any, MutableMapping, Optional, TextIO

import structlog

from .config import Settings, settings as default_settings

# Event keys that would carry submitted text
USER_CONTENT_KEYS = frozenset({"content", "text", "input", "comment"})


def drop_user_content(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor replacing user-content fields with their length."""
    for key in USER_CONTENT_KEYS.intersection(event_dict):
        value = event_dict.pop(key)
        if isinstance(value, str):
            event_dict.setdefault("content_length", len(value))
    return event_dict


def setup_logging(config: Optional[Settings] = None, stream: Optional[TextIO] = None) -> None:
    """
    Configure structlog for the moderation service.

    Processor chain: contextvars merge, user-content redaction, log level,
    exception info, ISO timestamps, then JSON or console rendering depending
    on ``log_json``. Events below ``log_level`` are dropped.

    Args:
        config: Settings to read log level/format from (defaults to global settings)
        stream: Where log lines are written (the CLI passes stderr to keep stdout as JSON)
    """
    config = config or default_settings

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            drop_user_content,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.processors.JSONRenderer()
                if config.log_json
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )
