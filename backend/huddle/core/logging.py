"""
Structured logging configuration using structlog.

JSON lines in production, console output everywhere else. Request context
(request id, method, path) is merged in from contextvars so that workflow
log lines such as ``join_accepted`` can be correlated with the request
that produced them.
"""

import logging
import sys

import structlog

from huddle.core.config import get_settings

_HANDLER_NAME = "huddle-structlog"

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "passlib")


def _build_processors(production: bool) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if production:
        processors.append(structlog.processors.format_exc_info)
    return processors


def _install_handler(formatter: logging.Formatter, level: int) -> None:
    root = logging.getLogger()
    # Lifespan can run more than once per process (tests, reloader)
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level)


def setup_logging() -> None:
    settings = get_settings()
    production = settings.ENVIRONMENT == "production"

    if production:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "development")

    structlog.configure(
        processors=[
            *_build_processors(production),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    _install_handler(formatter, getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
