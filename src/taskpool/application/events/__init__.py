"""Task event bus — notifies observers about task and batch outcomes.

The bus is created by the caller and injected into the pool; there is no
process-wide registry. Handlers may be plain functions or coroutines.
A failing handler is logged and skipped; it never affects the run.
"""
from __future__ import annotations

import inspect
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

import structlog

from taskpool.domain.entities.task import TaskRecord

logger = structlog.get_logger(__name__)


class TaskEventType(StrEnum):
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    TASK_RETRYING = "task_retrying"
    BATCH_STARTED = "batch_started"
    BATCH_FINISHED = "batch_finished"


@dataclass(frozen=True)
class TaskEvent:
    """A single notification published by the pool.

    Task events carry the :class:`TaskRecord`; batch events carry the batch
    position and size in ``payload``.
    """

    event_type: TaskEventType
    record: TaskRecord | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[TaskEvent], "Awaitable[None] | None"]


@runtime_checkable
class TaskObserver(Protocol):
    """Object-style observer for terminal task outcomes."""

    def on_task_completed(self, record: TaskRecord) -> Any: ...

    def on_task_failed(self, record: TaskRecord) -> Any: ...


class TaskEventBus:
    """In-process event bus for task outcome notifications."""

    def __init__(self) -> None:
        self._handlers: dict[TaskEventType, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: TaskEventType | str, handler: EventHandler) -> None:
        event_type = TaskEventType(event_type)
        self._handlers[event_type].append(handler)
        logger.debug("event_handler_registered", event_type=event_type.value, handler=_name(handler))

    def unsubscribe(self, event_type: TaskEventType | str, handler: EventHandler) -> None:
        event_type = TaskEventType(event_type)
        if event_type in self._handlers:
            self._handlers[event_type] = [h for h in self._handlers[event_type] if h != handler]

    def attach(self, observer: TaskObserver) -> None:
        """Subscribe an observer's completion and failure callbacks."""

        def on_completed(event: TaskEvent) -> Any:
            return observer.on_task_completed(event.record)

        def on_failed(event: TaskEvent) -> Any:
            return observer.on_task_failed(event.record)

        on_completed.__name__ = f"{type(observer).__name__}.on_task_completed"
        on_failed.__name__ = f"{type(observer).__name__}.on_task_failed"
        self.subscribe(TaskEventType.TASK_COMPLETED, on_completed)
        self.subscribe(TaskEventType.TASK_FAILED, on_failed)

    def handler_count(self, event_type: TaskEventType | str) -> int:
        return len(self._handlers.get(TaskEventType(event_type), []))

    async def publish(self, event: TaskEvent) -> None:
        handlers = list(self._handlers.get(event.event_type, []))
        logger.debug(
            "event_published",
            event_type=event.event_type.value,
            event_id=event.event_id,
            task_id=event.record.id if event.record else None,
            handler_count=len(handlers),
        )

        for handler in handlers:
            try:
                outcome = handler(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(
                    "event_handler_failed",
                    event_type=event.event_type.value,
                    event_id=event.event_id,
                    handler=_name(handler),
                    error=str(e),
                )


def _name(handler: Callable[..., Any]) -> str:
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "EventHandler",
    "TaskEvent",
    "TaskEventBus",
    "TaskEventType",
    "TaskObserver",
]
