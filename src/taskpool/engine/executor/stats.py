"""Run-wide statistics and the final execution report."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from taskpool.domain.entities.task import TaskRecord, TaskStatus

_RULE = "=" * 60


@dataclass
class RunStats:
    """Counters accumulated while a run executes.

    Attributes:
        total: Number of tasks in the run.
        completed: Tasks that reached COMPLETED.
        failed: Tasks that reached FAILED.
        retried: Number of retries scheduled across all tasks.
        started_at: UTC timestamp when the run started.
        finished_at: UTC timestamp when the run finished.
        duration: Wall-clock seconds for the whole run.
        tasks_per_second: ``total / duration`` rounded to two decimals.
    """

    total: int = 0
    completed: int = 0
    failed: int = 0
    retried: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration: float = 0.0
    tasks_per_second: float = 0.0
    _clock_start: float | None = field(default=None, repr=False, compare=False)

    def start(self, total: int) -> None:
        self.total = total
        self.completed = 0
        self.failed = 0
        self.retried = 0
        self.started_at = datetime.now(timezone.utc)
        self.finished_at = None
        self.duration = 0.0
        self.tasks_per_second = 0.0
        self._clock_start = time.monotonic()

    def finish(self) -> None:
        self.finished_at = datetime.now(timezone.utc)
        if self._clock_start is not None:
            self.duration = time.monotonic() - self._clock_start
        if self.duration > 0:
            self.tasks_per_second = round(self.total / self.duration, 2)
        else:
            self.tasks_per_second = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "failed": self.failed,
            "retried": self.retried,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration": round(self.duration, 4),
            "tasks_per_second": self.tasks_per_second,
        }


@dataclass
class ExecutionReport:
    """Final outcome of :meth:`WorkerPool.execute`.

    ``tasks`` keeps submission order; ``completed`` and ``failed`` are
    filtered views that preserve that order.
    """

    tasks: list[TaskRecord]
    stats: RunStats

    @property
    def completed(self) -> list[TaskRecord]:
        return [t for t in self.tasks if t.status == TaskStatus.COMPLETED]

    @property
    def failed(self) -> list[TaskRecord]:
        return [t for t in self.tasks if t.status == TaskStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> list[str]:
        """Human-readable summary lines for CLI or log output."""
        return [
            _RULE,
            "EXECUTION RESULTS",
            _RULE,
            f"Total: {self.stats.total}",
            f"Completed: {self.stats.completed}",
            f"Failed: {self.stats.failed}",
            f"Retried: {self.stats.retried}",
            f"Duration: {self.stats.duration:.2f}s",
            f"Throughput: {self.stats.tasks_per_second:.2f} tasks/sec",
            _RULE,
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "completed": [t.id for t in self.completed],
            "failed": [t.id for t in self.failed],
            "stats": self.stats.to_dict(),
        }


__all__ = ["ExecutionReport", "RunStats"]
