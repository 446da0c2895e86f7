"""Structured logging configuration -- structlog + stdlib integration.

:func:`setup_logging` configures **structlog** and Python's built-in
:mod:`logging` so that pool events and any third-party ``logging`` output
flow through one processor pipeline and renderer.

Processors added to every log event:

* **timestamp** -- UTC ISO-8601
* **log level** and **logger name**
* **run_id** -- bound by :meth:`WorkerPool.execute` through
  :mod:`structlog.contextvars` for the duration of a run

With ``json_output=True`` events are rendered as single-line JSON; otherwise
:class:`structlog.dev.ConsoleRenderer` is used.
"""
from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from taskpool.config import PoolSettings


def setup_logging(
    level: str = "info",
    json_output: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure structlog with stdlib logging integration.

    Args:
        level: Log level string (``debug``, ``info``, ``warning``, ``error``,
            ``critical``).
        json_output: If ``True``, output JSON lines; otherwise human-readable
            console output.
        log_file: Optional file path for log output **in addition** to
            stderr. File output is always JSON.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            pad_event=32,
        )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        file_formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
            foreign_pre_chain=shared_processors,
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)
    for handler in handlers:
        root_logger.addHandler(handler)

    structlog.get_logger().info(
        "logging_configured",
        level=level,
        json_output=json_output,
        log_file=log_file or "none",
    )


def configure_from_settings(settings: PoolSettings | None = None) -> None:
    """Configure logging from ``TASKPOOL_LOG_LEVEL`` and ``TASKPOOL_LOG_JSON``."""
    if settings is None:
        from taskpool.config import get_settings

        settings = get_settings()
    setup_logging(level=settings.log_level, json_output=settings.log_json)


def get_logger(name: str | None = None) -> Any:
    """Return a structlog bound logger."""
    return structlog.get_logger(name)


def bind_run_id(run_id: str) -> None:
    """Bind ``run_id`` to every subsequent log event in this context.

    :meth:`WorkerPool.execute` binds its own id; this helper is for callers
    that want one id across several pool runs.
    """
    structlog.contextvars.bind_contextvars(run_id=run_id)


def log_report(report: Any, logger: Any | None = None) -> None:
    """Emit an :class:`ExecutionReport` summary, one log line per row."""
    log = logger or structlog.get_logger(__name__)
    for line in report.summary():
        log.info(line)


__all__ = ["bind_run_id", "configure_from_settings", "get_logger", "log_report", "setup_logging"]
