"""Bounded-concurrency async task pool.

Runs many independent, slow, rate-limited async jobs with a concurrency
ceiling, per-task timeouts, linear-backoff retries, admission pacing and
aggregated run statistics.
"""
from __future__ import annotations

from taskpool.application.events import TaskEvent, TaskEventBus, TaskEventType, TaskObserver
from taskpool.domain.entities.task import TaskDescriptor, TaskRecord, TaskStatus
from taskpool.engine.executor import (
    ExecutionReport,
    PoolConfig,
    RunStats,
    WorkerPool,
    create_batches,
    run_tasks,
)
from taskpool.shared.exceptions import (
    InvalidTransitionError,
    PoolBusyError,
    PoolConfigurationError,
    TaskExecutionError,
    TaskPoolError,
    TaskTimeoutError,
)

__version__ = "0.1.0"

__all__ = [
    "ExecutionReport",
    "InvalidTransitionError",
    "PoolBusyError",
    "PoolConfig",
    "PoolConfigurationError",
    "RunStats",
    "TaskDescriptor",
    "TaskEvent",
    "TaskEventBus",
    "TaskEventType",
    "TaskExecutionError",
    "TaskObserver",
    "TaskPoolError",
    "TaskRecord",
    "TaskStatus",
    "TaskTimeoutError",
    "WorkerPool",
    "create_batches",
    "run_tasks",
]
