"""
Structured logging for stepglue.

Glue loading happens once per test run, before any scenario executes, so its
logs are the only record of which definitions were found, which advice was
woven onto which step, and why a run refused to start.

Manifesto:
    - **Structured:** Event names plus key/value fields, never prose
    - **Quiet by default:** Per-definition events at DEBUG, summaries at INFO
    - **Batch-scoped:** Every event of one glue batch carries its ``glue_batch`` id

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="stepglue")
            ↓
        structlog processor chain:
          1. TimeStamper (iso, optional)
          2. merge_contextvars          ← LogContext(glue_batch=...)
          3. add_log_level / add_logger_name
          4. _add_service               ← service=stepglue
          5. JSONRenderer (CI) or ConsoleRenderer (tty)

        log_step("glue.load")  →  glue.load.start / glue.load.end / glue.load.failed

Examples:
    >>> from stepglue.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG")
    >>> logger = get_logger(__name__)
    >>> logger.debug("step_definition_registered", pattern="^I have (\\d+) cukes$")

Tags:
    logging, structlog, observability, stepglue

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service = "stepglue"


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", _service)
    return event_dict


def _processors(json_format: bool, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service,
    ]
    if add_timestamp:
        chain.insert(0, structlog.processors.TimeStamper(fmt="iso"))
    if json_format:
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "stepglue",
    add_timestamp: bool = True,
) -> None:
    """Route stepglue's structlog events through the stdlib root logger.

    Args:
        level: Minimum level name (DEBUG shows every registration event)
        json_format: JSON lines if True, console if False, JSON when stdout is
            not a terminal if None
        service: Value of the ``service`` field on every event
        add_timestamp: Prefix events with an ISO timestamp
    """
    global _service
    _service = service
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")
    if json_format is None:
        json_format = not sys.stdout.isatty()

    structlog.configure(
        processors=_processors(json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def configure_from_settings(settings: Any) -> None:
    """Apply ``log_level`` and ``log_format`` from :class:`~stepglue.core.settings.GlueSettings`."""
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


class LogContext:
    """Bind fields to every event logged inside the block.

    Example:
        with LogContext(glue_batch="a1b2c3d4"):
            logger.debug("advice_woven", ...)   # carries glue_batch
    """

    def __init__(self, **fields: Any):
        self._fields = fields
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._fields)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)


@dataclass
class StepTimer:
    """Wall-clock duration of a logged step plus counters reported at its end."""

    event: str
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None
    counts: dict[str, Any] = field(default_factory=dict)

    def add_metric(self, key: str, value: Any) -> StepTimer:
        self.counts[key] = value
        return self

    def stop(self) -> StepTimer:
        if self.finished is None:
            self.finished = time.perf_counter()
        return self

    @property
    def duration_ms(self) -> float:
        end = time.perf_counter() if self.finished is None else self.finished
        return (end - self.started) * 1000

    def fields(self) -> dict[str, Any]:
        return {**self.counts, "duration_ms": round(self.duration_ms, 2)}


@contextmanager
def log_step(event: str, level: str = "info", **extra: Any) -> Iterator[StepTimer]:
    """
    Time a block and log how it ended.

    Logs ``<event>.start`` at DEBUG, then either ``<event>.end`` at *level*
    with ``duration_ms`` and every metric added to the timer, or
    ``<event>.failed`` at ERROR when the block raises. Exceptions propagate.

    Usage:
        with log_step("glue.load", glue_source=paths) as timer:
            timer.add_metric("registered", count)
    """
    log = get_logger("stepglue.timing")
    timer = StepTimer(event=event, counts=dict(extra))
    log.debug(f"{event}.start", **extra)
    try:
        yield timer
    except Exception as e:
        log.error(
            f"{event}.failed",
            error_type=type(e).__name__,
            error_message=str(e),
            **timer.stop().fields(),
        )
        raise
    getattr(log, level)(f"{event}.end", **timer.stop().fields())


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "LogContext",
    "StepTimer",
    "log_step",
]
