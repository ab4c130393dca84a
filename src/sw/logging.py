"""
Structured logging for the offline cache controller.

Every record carries the worker's cache version, the event being handled and
the originating page, taken from context variables that the event dispatcher
sets with log_context(). Output goes to a rich console handler.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

_cache_version_var: ContextVar[str | None] = ContextVar("cache_version", default=None)
_event_var: ContextVar[str | None] = ContextVar("event", default=None)
_client_id_var: ContextVar[str | None] = ContextVar("client_id", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "cache_version": _cache_version_var,
    "event": _event_var,
    "client_id": _client_id_var,
}

_setup_done: bool = False


def current_context() -> dict[str, str]:
    """Logging context that is currently set, by name."""
    return {name: value for name, var in _CONTEXT_VARS.items() if (value := var.get())}


@contextmanager
def log_context(
    cache_version: str | None = None,
    event: str | None = None,
    client_id: str | None = None,
) -> Generator[None, None, None]:
    """Set logging context for the duration of a block.

    Arguments left as None keep whatever value is already set.
    """
    values = {"cache_version": cache_version, "event": event, "client_id": client_id}
    tokens = [
        _CONTEXT_VARS[name].set(value) for name, value in values.items() if value is not None
    ]
    try:
        yield
    finally:
        for token in reversed(tokens):
            token.var.reset(token)


class WorkerRichHandler(RichHandler):
    """Rich handler that prefixes the level with version, event and page."""

    def get_level_text(self, record: logging.LogRecord) -> Text:
        level_text = super().get_level_text(record)
        context = current_context()

        parts: list[str] = []
        if "cache_version" in context:
            parts.append(f"[dim]{context['cache_version']}[/dim]")
        if "event" in context:
            parts.append(f"[cyan]{context['event']}[/cyan]")
        if "client_id" in context:
            # Client IDs are long UUIDs; the tail is enough to tell pages apart
            parts.append(f"[magenta]{context['client_id'][-8:]}[/magenta]")

        if not parts:
            return level_text
        return Text.from_markup(f"{level_text} {' '.join(parts)}")


class ContextLogger:
    """Logger wrapper taking keyword fields.

    ``logger.info("Deleted old cache", namespace=name)`` stores the keyword
    fields, plus the current context, in the record's ``extra`` payload.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, exc_info: bool = False, **fields: Any) -> None:
        extra = {**current_context(), **fields}
        self._logger.log(level, msg, exc_info=exc_info, extra={"extra": extra})

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, msg, exc_info=exc_info, **fields)


def setup_logging(log_level: str = "INFO") -> None:
    """Attach the rich console handler to the ``sw`` logger.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    global _setup_done

    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger("sw")
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = WorkerRichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        markup=True,
    )
    handler.setLevel(level)
    root_logger.addHandler(handler)
    root_logger.propagate = False

    for noisy_logger in ["httpx", "httpcore"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    _setup_done = True


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger under the ``sw`` namespace."""
    if not _setup_done:
        setup_logging()
    if not name.startswith("sw"):
        name = f"sw.{name}"
    return ContextLogger(logging.getLogger(name))
