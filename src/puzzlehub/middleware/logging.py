"""Structured logging configuration with structlog."""

import logging

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from puzzlehub.config import Settings

# Loggers that are too chatty at INFO for a request-per-line service
_QUIET_LOGGERS = ("sqlalchemy.engine", "asyncio")


def _add_app_context(settings: Settings) -> Processor:
    def processor(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("environment", settings.environment)
        event_dict.setdefault("version", settings.app_version)
        return event_dict

    return processor


def setup_logging(settings: Settings) -> None:
    """Configure structlog; ``log_format`` picks JSON lines or the dev console."""
    if settings.log_format == "json":
        tail: list[Processor] = [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        tail = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_app_context(settings),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            *tail,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = logging.getLevelName(settings.log_level.upper())
    logging.basicConfig(level=level if isinstance(level, int) else logging.INFO, format="%(message)s")
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if settings.debug else logging.WARNING)
