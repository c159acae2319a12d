"""
Structured Logging
==================

structlog over the stdlib root logger. JSON lines in production, console
output in development. Request context (domain, target) travels through
contextvars, so concurrent questions never mix their fields.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from text2sql_engine.config import get_settings

MAX_SQL_CHARS = 500

QUIET_LOGGERS = ("sqlalchemy.engine", "pymongo", "httpx")


def clip_sql(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    """Cap ``sql`` fields; generated statements can be very long."""
    sql = event_dict.get("sql")
    if isinstance(sql, str) and len(sql) > MAX_SQL_CHARS:
        event_dict["sql"] = sql[:MAX_SQL_CHARS] + "..."
    return event_dict


def drop_row_data(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    """Replace any row payload with its count; result data never reaches logs."""
    rows = event_dict.get("rows")
    if isinstance(rows, (list, tuple)):
        event_dict["rows"] = len(rows)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        clip_sql,
        drop_row_data,
    ]


def setup_logging(
    level: str | None = None,
    json_format: bool | None = None,
) -> None:
    """
    Configure structlog and the root logger.

    Args:
        level: Log level (default: ``Settings.log_level``)
        json_format: JSON output (default: ``Settings.log_format == "json"``
            or a production environment)
    """
    settings = get_settings()
    log_level = (level or settings.log_level).upper()
    if json_format is None:
        json_format = (
            settings.log_format.lower() == "json"
            or settings.environment == "production"
        )

    shared = _shared_processors()
    if json_format:
        shared.append(structlog.processors.format_exc_info)
        # Chinese names and values stay readable in the JSON lines
        renderer: Processor = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    ))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, log_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind fields to every log line of the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
