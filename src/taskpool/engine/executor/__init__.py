"""Executor subsystem — batched async task execution with retry and concurrency control.

Exports:
    WorkerPool      -- Bounded-concurrency batch runner.
    run_tasks       -- One-shot helper around ``WorkerPool``.
    PoolConfig      -- Pydantic configuration model.
    ExecutionReport -- Final report of a run.
    RunStats        -- Run-wide counters and throughput.
    create_batches  -- Ordered fixed-size batch splitter.
"""

from taskpool.engine.executor.batching import create_batches
from taskpool.engine.executor.config import PoolConfig
from taskpool.engine.executor.stats import ExecutionReport, RunStats
from taskpool.engine.executor.worker_pool import WorkerPool, run_tasks

__all__ = [
    "ExecutionReport",
    "PoolConfig",
    "RunStats",
    "WorkerPool",
    "create_batches",
    "run_tasks",
]
