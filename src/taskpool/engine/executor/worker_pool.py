"""Bounded-concurrency worker pool.

Runs submitted async tasks in sequential batches. Inside a batch at most
``max_concurrency`` tasks run at once (``asyncio.Semaphore``), each
admission is followed by a fixed ``rate_limit_delay`` pause, and every
task is guarded by a timeout and retried with linear backoff.
"""
from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Iterable
from typing import Any

import structlog

from taskpool.application.events import TaskEvent, TaskEventBus, TaskEventType
from taskpool.config import get_settings
from taskpool.domain.entities.task import TaskDescriptor, TaskRecord, TaskStatus
from taskpool.engine.executor.batching import create_batches
from taskpool.engine.executor.config import PoolConfig
from taskpool.engine.executor.stats import ExecutionReport, RunStats
from taskpool.shared.exceptions import PoolBusyError, TaskTimeoutError

logger = structlog.get_logger(__name__)


class WorkerPool:
    """Async task pool with batching, a concurrency ceiling and retries.

    Usage::

        pool = WorkerPool(PoolConfig(max_concurrency=2), event_bus=bus)
        pool.add_tasks([{"id": "q-1", "fn": generate, "args": [topic]}])
        report = await pool.execute()

    Task failures never propagate out of :meth:`execute`; inspect
    ``report.failed`` instead.
    """

    def __init__(
        self,
        config: PoolConfig | None = None,
        *,
        event_bus: TaskEventBus | None = None,
        **overrides: Any,
    ) -> None:
        base = config or get_settings().to_pool_config()
        self._config = base.merged(**overrides) if overrides else base
        self._event_bus = event_bus or TaskEventBus()
        self._queue: list[TaskRecord] = []
        self._ids: set[str] = set()
        self._stats = RunStats()
        self._executing = False
        logger.debug(
            "worker_pool_init",
            max_concurrency=self._config.max_concurrency,
            task_timeout=self._config.task_timeout,
            retry_attempts=self._config.retry_attempts,
            rate_limit_delay=self._config.rate_limit_delay,
            batch_size=self._config.batch_size,
        )

    # -- introspection ------------------------------------------------------

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def event_bus(self) -> TaskEventBus:
        return self._event_bus

    @property
    def stats(self) -> RunStats:
        """Counters of the current (or most recent) run."""
        return self._stats

    @property
    def tasks(self) -> list[TaskRecord]:
        return list(self._queue)

    @property
    def pending_count(self) -> int:
        return sum(1 for t in self._queue if t.status == TaskStatus.PENDING)

    @property
    def running_count(self) -> int:
        return sum(1 for t in self._queue if t.status == TaskStatus.RUNNING)

    # -- submission ---------------------------------------------------------

    def add_tasks(self, tasks: Iterable[Any]) -> WorkerPool:
        """Queue tasks as PENDING records and return the pool for chaining.

        Each item may be a :class:`TaskDescriptor`, a mapping with ``fn`` and
        optional ``id``/``args``/``kwargs``, or a bare async callable.
        """
        descriptors = [TaskDescriptor.coerce(item) for item in tasks]
        for descriptor in descriptors:
            record = TaskRecord.from_descriptor(descriptor, len(self._queue))
            record.id = self._unique_id(record.id)
            self._ids.add(record.id)
            self._queue.append(record)
        logger.debug("tasks_added", count=len(descriptors), queued=len(self._queue))
        return self

    def _unique_id(self, task_id: str) -> str:
        if task_id not in self._ids:
            return task_id
        suffix = 2
        while f"{task_id}-{suffix}" in self._ids:
            suffix += 1
        unique = f"{task_id}-{suffix}"
        logger.warning("task_id_duplicate", task_id=task_id, assigned=unique)
        return unique

    # -- execution ----------------------------------------------------------

    async def execute(self) -> ExecutionReport:
        """Run every PENDING task and return the report for this run."""
        if self._executing:
            raise PoolBusyError(context={"queued": len(self._queue)})
        self._executing = True

        run_tasks = [t for t in self._queue if t.status == TaskStatus.PENDING]
        self._stats = RunStats()
        self._stats.start(len(run_tasks))
        run_id = uuid.uuid4().hex[:12]

        try:
            with structlog.contextvars.bound_contextvars(run_id=run_id):
                batches = create_batches(run_tasks, self._config.batch_size)
                logger.info(
                    "pool_execute_started",
                    tasks=len(run_tasks),
                    batches=len(batches),
                    max_concurrency=self._config.max_concurrency,
                    batch_size=self._config.batch_size,
                )

                for index, batch in enumerate(batches, start=1):
                    logger.info("batch_started", batch=index, batches=len(batches), size=len(batch))
                    await self._publish(
                        TaskEventType.BATCH_STARTED,
                        payload={"batch": index, "batches": len(batches), "size": len(batch)},
                    )
                    await self._process_batch(batch)
                    await self._publish(
                        TaskEventType.BATCH_FINISHED,
                        payload={"batch": index, "batches": len(batches), "size": len(batch)},
                    )

                self._stats.finish()
                report = ExecutionReport(tasks=run_tasks, stats=self._stats)
                logger.info(
                    "pool_execute_finished",
                    total=self._stats.total,
                    completed=self._stats.completed,
                    failed=self._stats.failed,
                    retried=self._stats.retried,
                    duration=round(self._stats.duration, 2),
                    tasks_per_second=self._stats.tasks_per_second,
                )
                return report
        finally:
            self._executing = False

    async def _process_batch(self, batch: list[TaskRecord]) -> None:
        """Admit tasks into free slots, pacing each admission."""
        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        in_flight: list[asyncio.Task[TaskRecord]] = []

        try:
            for record in batch:
                await semaphore.acquire()
                in_flight.append(
                    asyncio.create_task(
                        self._run_admitted(record, semaphore),
                        name=f"taskpool-{record.id}",
                    )
                )
                await asyncio.sleep(self._config.rate_limit_delay)

            await asyncio.gather(*in_flight)
        except asyncio.CancelledError:
            for t in in_flight:
                t.cancel()
            raise

    async def _run_admitted(self, record: TaskRecord, semaphore: asyncio.Semaphore) -> TaskRecord:
        try:
            return await self._run_task(record)
        finally:
            semaphore.release()

    async def _run_task(self, record: TaskRecord) -> TaskRecord:
        """Drive *record* to COMPLETED or FAILED, retrying on failure."""
        cfg = self._config

        while True:
            record.mark_running()
            start = time.monotonic()

            deadline = asyncio.timeout(cfg.task_timeout)
            try:
                async with deadline:
                    result = await record.fn(*record.args, **record.kwargs)
            except asyncio.CancelledError as exc:
                # Only a cancellation aimed at this runner stops the run.
                if _being_cancelled():
                    raise
                error: BaseException = exc
            except TimeoutError as exc:
                if deadline.expired():
                    error = TaskTimeoutError(
                        timeout=cfg.task_timeout,
                        context={"task_id": record.id, "attempt": record.attempts},
                    )
                else:
                    error = exc
            except Exception as exc:
                error = exc
            else:
                record.mark_completed(result, time.monotonic() - start)
                self._stats.completed += 1
                logger.info(
                    "task_completed",
                    task_id=record.id,
                    duration=round(record.duration, 4),
                    attempts=record.attempts,
                )
                await self._publish(TaskEventType.TASK_COMPLETED, record)
                return record

            duration = time.monotonic() - start
            record.record_error(error)

            if record.attempts < cfg.max_attempts:
                record.mark_retrying()
                self._stats.retried += 1
                backoff = cfg.retry_delay * record.attempts
                logger.warning(
                    "task_retrying",
                    task_id=record.id,
                    attempt=record.attempts,
                    next_attempt=record.attempts + 1,
                    backoff=backoff,
                    error=record.error,
                    error_type=record.error_type,
                )
                await self._publish(TaskEventType.TASK_RETRYING, record)
                await asyncio.sleep(backoff)
                continue

            record.mark_failed(duration)
            self._stats.failed += 1
            logger.error(
                "task_failed",
                task_id=record.id,
                attempts=record.attempts,
                error=record.error,
                error_type=record.error_type,
            )
            await self._publish(TaskEventType.TASK_FAILED, record)
            return record

    async def _publish(
        self,
        event_type: TaskEventType,
        record: TaskRecord | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        event = TaskEvent(event_type=event_type, record=record, payload=payload or {})
        try:
            await self._event_bus.publish(event)
        except Exception as e:
            logger.error("event_publish_failed", event_type=event_type.value, error=str(e))


def _being_cancelled() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


async def run_tasks(
    tasks: Iterable[Any],
    config: PoolConfig | None = None,
    *,
    event_bus: TaskEventBus | None = None,
    **overrides: Any,
) -> ExecutionReport:
    """Build a pool, submit *tasks* and execute them in one call."""
    pool = WorkerPool(config, event_bus=event_bus, **overrides)
    return await pool.add_tasks(tasks).execute()


__all__ = ["WorkerPool", "run_tasks"]
