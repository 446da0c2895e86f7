"""Process-wide settings for the task pool, loaded from the environment."""
from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from taskpool.engine.executor.config import PoolConfig


class PoolSettings(BaseSettings):
    """Pool defaults overridable through ``TASKPOOL_*`` environment variables."""

    max_concurrency: int = 4
    task_timeout: float = 60.0
    retry_attempts: int = 2
    retry_delay: float = 1.0
    rate_limit_delay: float = 0.5
    batch_size: int = 10

    log_level: str = "info"
    log_json: bool = False

    model_config = {"env_prefix": "TASKPOOL_", "env_file": ".env", "extra": "ignore"}

    def to_pool_config(self) -> PoolConfig:
        from taskpool.engine.executor.config import PoolConfig

        return PoolConfig.build(
            max_concurrency=self.max_concurrency,
            task_timeout=self.task_timeout,
            retry_attempts=self.retry_attempts,
            retry_delay=self.retry_delay,
            rate_limit_delay=self.rate_limit_delay,
            batch_size=self.batch_size,
        )


@lru_cache(maxsize=1)
def get_settings() -> PoolSettings:
    return PoolSettings()


__all__ = ["PoolSettings", "get_settings"]
