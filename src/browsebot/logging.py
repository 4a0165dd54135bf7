"""structlog rendering for stdlib loggers: JSON in production, console otherwise."""

import logging
import sys
from typing import TextIO

import structlog

_QUIET_LOGGERS = ("httpx", "httpcore")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(
    level: str,
    json_output: bool | None = None,
    *,
    stream: TextIO | None = None,
) -> None:
    """Route every logger through one structlog formatter on the root handler.

    Args:
        level: Log level name; unknown names mean INFO.
        json_output: Force JSON lines. None picks JSON when ``APP_ENV`` is prod.
        stream: Destination, stderr by default.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    if json_output is None:
        from browsebot.config import get_settings

        json_output = get_settings().app_env == "prod"

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[*_shared_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)
    # one line per request at INFO would drown the chat transcript
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def level_for(debug_mode: bool, level: str) -> str:
    return "DEBUG" if debug_mode else level


def bind_context(**kwargs: object) -> None:
    """Attach conversation fields (id, provider) to every following log line."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
