from taskpool.domain.entities.task import (
    TERMINAL_STATUSES,
    TaskDescriptor,
    TaskFn,
    TaskRecord,
    TaskStatus,
)

__all__ = [
    "TERMINAL_STATUSES",
    "TaskDescriptor",
    "TaskFn",
    "TaskRecord",
    "TaskStatus",
]
