"""Logging bootstrap for AgentFS.

Every module logs through ``structlog.get_logger()`` with snake_case event
names and key/value context. This module decides how those events are
rendered; call :func:`configure_logging` once at process start.
"""

from __future__ import annotations

import logging
from typing import Any, List

import structlog


_LOG_CONFIGURED = False

# uvicorn logs through stdlib logging; its access log repeats what the
# request_failed events already carry
_NOISY_LOGGERS = ("uvicorn.access",)


def _processors(json_logs: bool) -> List[Any]:
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging(level: str = "INFO", json_logs: bool = False, *, force: bool = False) -> None:
    """Configure stdlib logging and structlog once per process.

    Later calls are ignored unless `force` is set.
    """
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED and not force:
        return

    log_level = logging.getLevelName(str(level or "INFO").upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(level=log_level, format="%(message)s", force=force)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=_processors(json_logs),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _LOG_CONFIGURED = True


def bind_store_context(root: str, patch_mode: str) -> None:
    """Attach the served root and patch mode to every later event."""
    structlog.contextvars.bind_contextvars(root=root, patch_mode=patch_mode)
