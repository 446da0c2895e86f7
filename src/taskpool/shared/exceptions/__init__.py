"""Exception hierarchy for the task pool.

Every exception carries a machine-readable ``error_code``, a ``severity``
indicator, and an arbitrary ``context`` dict for structured logging.

Task-level failures (:class:`TaskExecutionError` and subclasses) are
recovered by the pool and recorded on the task; only configuration and
usage errors ever propagate out of :meth:`WorkerPool.execute`.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Severity levels
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    """Severity levels for pool exceptions."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class TaskPoolError(Exception):
    """Root exception for every task pool failure.

    Attributes:
        message:    Human-readable description.
        error_code: Machine-readable code (e.g. ``"POOL_CONFIG_ERROR"``).
        severity:   Impact severity.
        context:    Arbitrary key-value context for structured logging.
    """

    def __init__(
        self,
        message: str = "Task pool error",
        error_code: str = "TASKPOOL_ERROR",
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.context: dict[str, Any] = context or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"error_code={self.error_code!r}, "
            f"severity={self.severity.value!r}, "
            f"message={self.message!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the exception for logs and reports."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
        }


# ---------------------------------------------------------------------------
# Usage / configuration exceptions
# ---------------------------------------------------------------------------

class PoolConfigurationError(TaskPoolError):
    """Raised when the pool or a task descriptor is misconfigured."""

    def __init__(self, message: str = "Invalid pool configuration", **kwargs: Any) -> None:
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "POOL_CONFIG_ERROR"),
            severity=kwargs.pop("severity", Severity.HIGH),
            **kwargs,
        )


class PoolBusyError(TaskPoolError):
    """Raised when ``execute()`` is called on a pool that is already running."""

    def __init__(self, message: str = "Pool is already executing", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "POOL_BUSY"), **kwargs)


class InvalidTransitionError(TaskPoolError):
    """Raised on an illegal task status transition."""

    def __init__(self, message: str = "Invalid task status transition", **kwargs: Any) -> None:
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "TASK_INVALID_TRANSITION"),
            severity=kwargs.pop("severity", Severity.HIGH),
            **kwargs,
        )


# ---------------------------------------------------------------------------
# Task execution exceptions
# ---------------------------------------------------------------------------

class TaskExecutionError(TaskPoolError):
    """Raised when a single task attempt fails."""

    def __init__(self, message: str = "Task execution failed", **kwargs: Any) -> None:
        super().__init__(message, error_code=kwargs.pop("error_code", "TASK_EXECUTION_ERROR"), **kwargs)


class TaskTimeoutError(TaskExecutionError):
    """Raised when a task attempt exceeds the configured timeout."""

    def __init__(
        self,
        message: str | None = None,
        *,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> None:
        if message is None:
            message = f"Task timed out after {timeout}s" if timeout is not None else "Task timeout"
        context = dict(kwargs.pop("context", None) or {})
        if timeout is not None:
            context.setdefault("timeout", timeout)
        self.timeout = timeout
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "TASK_TIMEOUT"),
            context=context,
            **kwargs,
        )


__all__ = [
    "InvalidTransitionError",
    "PoolBusyError",
    "PoolConfigurationError",
    "Severity",
    "TaskExecutionError",
    "TaskPoolError",
    "TaskTimeoutError",
]
