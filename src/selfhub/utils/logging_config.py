"""Structured logging for the hub.

Hub events go through structlog. Library loggers (SQLAlchemy, aiosqlite) use
the stdlib ``logging`` module; unless the host application has already set up
logging they go to stderr at the same level as hub events.
"""

import logging
import sys
from typing import Any

import structlog

_NOISY_LIBRARIES = ("aiosqlite", "asyncio")


def _add_app_name(app_name: str) -> Any:
    def processor(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("app", app_name)
        return event_dict

    return processor


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True,
    app_name: str = "selfhub",
) -> None:
    """Configure structlog for hub events and the stdlib root logger for libraries.

    Every hub event carries ``app`` (the configured application name),
    ``level`` and an ISO ``timestamp``. ``json_output=False`` switches to the
    human-readable console renderer.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_app_name(app_name),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=level,
        format=f"%(asctime)s [%(levelname)s] {app_name} %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # Driver debug chatter is only wanted when explicitly asked for.
    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger; events render with the processors set by ``configure_logging``."""
    return structlog.get_logger(name)
