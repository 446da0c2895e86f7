"""Pool configuration model."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from taskpool.shared.exceptions import PoolConfigurationError


class PoolConfig(BaseModel):
    """Configuration for the :class:`~taskpool.engine.executor.WorkerPool`.

    All durations are in seconds.

    Attributes:
        max_concurrency: Maximum number of tasks running at once.
        task_timeout: Wall-clock limit for a single attempt.
        retry_attempts: Additional attempts allowed after the first failure.
        retry_delay: Base retry backoff; the wait before retry *n* is
            ``retry_delay * n`` (linear).
        rate_limit_delay: Pause after admitting each task, independent of
            how many slots are free.
        batch_size: Tasks per batch. Batches run one after another.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_concurrency: int = Field(default=4, ge=1)
    task_timeout: float = Field(default=60.0, gt=0)
    retry_attempts: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)
    rate_limit_delay: float = Field(default=0.5, ge=0)
    batch_size: int = Field(default=10, ge=1)

    @property
    def max_attempts(self) -> int:
        """Total attempts a task may make, first try included."""
        return self.retry_attempts + 1

    @classmethod
    def build(cls, **values: Any) -> PoolConfig:
        """Validate *values*, raising :class:`PoolConfigurationError` on bad input."""
        try:
            return cls(**values)
        except ValidationError as exc:
            raise PoolConfigurationError(
                f"Invalid pool configuration: {exc.error_count()} error(s)",
                context={
                    "errors": [
                        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                        for err in exc.errors()
                    ]
                },
            ) from exc

    def merged(self, **overrides: Any) -> PoolConfig:
        """Return a copy with every non-``None`` override applied."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return self.build(**values)


__all__ = ["PoolConfig"]
