"""Task descriptor and task record entities.

A :class:`TaskDescriptor` is the immutable unit of work a caller submits.
A :class:`TaskRecord` is the mutable runtime state the pool tracks for it
while it runs and after it settles.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Awaitable, Callable

from taskpool.shared.exceptions import InvalidTransitionError, PoolConfigurationError

TaskFn = Callable[..., Awaitable[Any]]


class TaskStatus(StrEnum):
    """Lifecycle status of a single task."""

    PENDING = "pending"
    RUNNING = "running"
    RETRYING = "retrying"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES: frozenset[TaskStatus] = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED})

_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.RUNNING}),
    TaskStatus.RUNNING: frozenset(
        {TaskStatus.COMPLETED, TaskStatus.RETRYING, TaskStatus.FAILED}
    ),
    TaskStatus.RETRYING: frozenset({TaskStatus.RUNNING}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


@dataclass(frozen=True)
class TaskDescriptor:
    """Immutable description of one unit of work.

    Attributes:
        fn: Async callable to execute.
        args: Positional arguments forwarded to *fn*.
        kwargs: Keyword arguments forwarded to *fn*.
        id: Optional caller-supplied identifier; the pool derives
            ``task-<index>`` when omitted.
    """

    fn: TaskFn
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    id: str | None = None

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise PoolConfigurationError(
                f"Task fn must be callable, got {type(self.fn).__name__}",
                context={"task_id": self.id},
            )
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "kwargs", MappingProxyType(dict(self.kwargs)))

    @classmethod
    def coerce(cls, item: Any) -> TaskDescriptor:
        """Build a descriptor from a descriptor, a mapping or a bare callable.

        Mappings use the keys ``id``, ``fn``, ``args`` and ``kwargs``.
        """
        if isinstance(item, TaskDescriptor):
            return item
        if isinstance(item, Mapping):
            if "fn" not in item:
                raise PoolConfigurationError(
                    "Task mapping is missing 'fn'",
                    context={"keys": sorted(str(k) for k in item)},
                )
            return cls(
                fn=item["fn"],
                args=tuple(item.get("args") or ()),
                kwargs=item.get("kwargs") or {},
                id=item.get("id") or None,
            )
        if callable(item):
            return cls(fn=item)
        raise PoolConfigurationError(
            f"Cannot build a task from {type(item).__name__}",
        )


@dataclass(eq=False)
class TaskRecord:
    """Mutable runtime state for a submitted task.

    ``result`` and ``error`` are mutually exclusive once the record is
    terminal. ``duration`` is the wall-clock seconds of the last attempt.
    """

    id: str
    fn: TaskFn
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    status: TaskStatus = TaskStatus.PENDING
    attempts: int = 0
    result: Any = None
    error: str | None = None
    error_type: str | None = None
    duration: float = 0.0
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @classmethod
    def from_descriptor(cls, descriptor: TaskDescriptor, index: int) -> TaskRecord:
        return cls(
            id=descriptor.id or f"task-{index}",
            fn=descriptor.fn,
            args=descriptor.args,
            kwargs=descriptor.kwargs,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition(self, target: TaskStatus) -> None:
        """Validate and perform a status transition."""
        allowed = _TRANSITIONS.get(self.status, frozenset())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition task {self.id} from {self.status.value} to {target.value}. "
                f"Allowed: {', '.join(s.value for s in allowed) or 'none'}",
                context={"task_id": self.id},
            )
        self.status = target

    def mark_running(self) -> None:
        self.transition(TaskStatus.RUNNING)
        self.attempts += 1
        if self.started_at is None:
            self.started_at = datetime.now(timezone.utc)

    def mark_completed(self, result: Any, duration: float) -> None:
        self.transition(TaskStatus.COMPLETED)
        self.result = result
        self.error = None
        self.error_type = None
        self.duration = duration
        self.finished_at = datetime.now(timezone.utc)

    def record_error(self, exc: BaseException) -> None:
        self.error = str(exc) or type(exc).__name__
        self.error_type = type(exc).__name__

    def mark_retrying(self) -> None:
        self.transition(TaskStatus.RETRYING)

    def mark_failed(self, duration: float) -> None:
        self.transition(TaskStatus.FAILED)
        self.result = None
        self.duration = duration
        self.finished_at = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view without the callable or its arguments."""
        return {
            "id": self.id,
            "status": self.status.value,
            "attempts": self.attempts,
            "result": self.result,
            "error": self.error,
            "error_type": self.error_type,
            "duration": round(self.duration, 4),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


__all__ = [
    "TERMINAL_STATUSES",
    "TaskDescriptor",
    "TaskFn",
    "TaskRecord",
    "TaskStatus",
]
