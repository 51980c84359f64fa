"""Structured logging for the Universal Wallpaper API.

Events from our own code go through structlog; records from the standard
library (uvicorn, pymongo) are rendered by the same `ProcessorFormatter`,
so every line in a deployment has one shape. JSON is meant for
production, the console renderer for local work.

A request's correlation ID is bound with `structlog.contextvars`, which
`merge_contextvars` copies into every event logged while the request is
being handled.

    from wallpaper.observability.logging import configure_logging, get_logger

    configure_logging(level="INFO", format="json")
    log = get_logger(__name__)
    log.info("database_connected", connection_time_ms=12.5)
"""

import logging
import logging.handlers
import sys
import uuid
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.types import EventDict, Processor

SERVICE_NAME = "universal-wallpaper-api"
CORRELATION_KEY = "correlation_id"

# Third-party loggers that are too chatty below WARNING
_QUIET_LOGGERS = ("pymongo", "uvicorn.access")


def add_service_name(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _shared_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _renderer(format: str) -> Processor:
    if format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _build_handlers(
    log_file: Optional[Path], max_bytes: int, backup_count: int
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )
    return handlers


def configure_logging(
    level: str = "INFO",
    format: str = "console",
    log_file: Optional[Path] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """(Re)configure structlog and the root logger.

    Args:
        level: Level name applied to the root logger
        format: "json" or "console"
        log_file: Also write to this file, rotated by size
        max_bytes: Size at which the log file is rotated
        backup_count: Rotated files kept next to `log_file`
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(format),
        ],
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    for handler in _build_handlers(log_file, max_bytes, backup_count):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation ID to the current context.

    A fresh `req-<12 hex>` ID is generated when none (or an empty one)
    is supplied. Returns the bound ID.
    """
    correlation_id = correlation_id or f"req-{uuid.uuid4().hex[:12]}"
    structlog.contextvars.bind_contextvars(**{CORRELATION_KEY: correlation_id})
    return correlation_id


def clear_correlation_id() -> None:
    structlog.contextvars.unbind_contextvars(CORRELATION_KEY)


def get_correlation_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get(CORRELATION_KEY)


# Console output until the entry point applies the configured settings
configure_logging()


__all__ = [
    "CORRELATION_KEY",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
]
