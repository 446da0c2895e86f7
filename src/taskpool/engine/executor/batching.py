"""Split the submitted task list into ordered, fixed-size batches."""
from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from taskpool.shared.exceptions import PoolConfigurationError

T = TypeVar("T")


def create_batches(items: Sequence[T], batch_size: int) -> list[list[T]]:
    """Partition *items* into consecutive batches of *batch_size*.

    Every batch is full except possibly the last. Order is preserved;
    batches exist to bound per-batch work, not to express priority.
    """
    if batch_size < 1:
        raise PoolConfigurationError(
            f"batch_size must be >= 1, got {batch_size}",
            context={"batch_size": batch_size},
        )
    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]


__all__ = ["create_batches"]
