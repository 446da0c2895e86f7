"""Workload helpers: adapt domain generator calls into pool tasks.

Each helper takes the items to generate for and the async generator
function to call (question, blog, post or challenge generators live with
the caller). Heavier workloads default to a lower concurrency.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable

import structlog

from taskpool.application.events import TaskEventBus
from taskpool.domain.entities.task import TaskDescriptor, TaskFn
from taskpool.engine.executor.config import PoolConfig
from taskpool.engine.executor.stats import ExecutionReport
from taskpool.engine.executor.worker_pool import WorkerPool

logger = structlog.get_logger(__name__)

_ID_SNIPPET = 20


@dataclass(frozen=True)
class WorkloadProfile:
    """Default pool sizing for one kind of generation job."""

    name: str
    concurrency: int
    batch_size: int


QUESTIONS = WorkloadProfile(name="questions", concurrency=4, batch_size=5)
BLOGS = WorkloadProfile(name="blogs", concurrency=2, batch_size=3)
LINKEDIN_POSTS = WorkloadProfile(name="linkedin_posts", concurrency=4, batch_size=10)
CHALLENGES = WorkloadProfile(name="challenges", concurrency=2, batch_size=3)


async def run_workload(
    profile: WorkloadProfile,
    items: Iterable[Any],
    fn: TaskFn,
    *,
    id_for: Callable[[Any], str],
    args_for: Callable[[Any], tuple[Any, ...]] = lambda item: (item,),
    concurrency: int | None = None,
    batch_size: int | None = None,
    config: PoolConfig | None = None,
    event_bus: TaskEventBus | None = None,
) -> ExecutionReport:
    """Run *fn* once per item using *profile*'s pool sizing.

    ``concurrency`` and ``batch_size`` override the profile; any other
    setting comes from *config* (or the environment settings).
    """
    tasks = [TaskDescriptor(fn=fn, args=args_for(item), id=id_for(item)) for item in items]
    pool = WorkerPool(
        config,
        event_bus=event_bus,
        max_concurrency=concurrency if concurrency is not None else profile.concurrency,
        batch_size=batch_size if batch_size is not None else profile.batch_size,
    )
    logger.info(
        "workload_started",
        workload=profile.name,
        tasks=len(tasks),
        max_concurrency=pool.config.max_concurrency,
        batch_size=pool.config.batch_size,
    )
    return await pool.add_tasks(tasks).execute()


def _snippet(value: Any) -> str | None:
    if not value:
        return None
    return str(value)[:_ID_SNIPPET]


def _question_args(channel: Mapping[str, Any]) -> tuple[Any, ...]:
    return (
        {
            "channel": channel["channel"],
            "sub_channel": channel.get("sub_channel") or "general",
            "difficulty": channel.get("difficulty") or "intermediate",
            "tags": list(channel.get("tags") or []),
            "target_companies": list(channel.get("companies") or []),
        },
    )


async def generate_questions_parallel(
    channels: Iterable[Mapping[str, Any]],
    generate_question: TaskFn,
    *,
    concurrency: int | None = None,
    batch_size: int | None = None,
    config: PoolConfig | None = None,
    event_bus: TaskEventBus | None = None,
) -> ExecutionReport:
    """Generate one question per channel entry."""
    return await run_workload(
        QUESTIONS,
        channels,
        generate_question,
        id_for=lambda c: f"question-{c['channel']}-{c.get('difficulty') or 'intermediate'}",
        args_for=_question_args,
        concurrency=concurrency,
        batch_size=batch_size,
        config=config,
        event_bus=event_bus,
    )


async def generate_blogs_parallel(
    topics: Iterable[Mapping[str, Any]],
    generate_blog_post: TaskFn,
    *,
    concurrency: int | None = None,
    batch_size: int | None = None,
    config: PoolConfig | None = None,
    event_bus: TaskEventBus | None = None,
) -> ExecutionReport:
    """Generate one blog post per topic."""
    return await run_workload(
        BLOGS,
        topics,
        generate_blog_post,
        id_for=lambda t: f"blog-{t.get('id') or _snippet(t.get('question'))}",
        concurrency=concurrency,
        batch_size=batch_size,
        config=config,
        event_bus=event_bus,
    )


async def generate_linkedin_posts_parallel(
    posts: Iterable[Mapping[str, Any]],
    generate_linkedin_post: TaskFn,
    *,
    concurrency: int | None = None,
    batch_size: int | None = None,
    config: PoolConfig | None = None,
    event_bus: TaskEventBus | None = None,
) -> ExecutionReport:
    """Generate one LinkedIn post per entry."""
    return await run_workload(
        LINKEDIN_POSTS,
        posts,
        generate_linkedin_post,
        id_for=lambda p: f"linkedin-{p.get('post_id') or _snippet(p.get('title'))}",
        concurrency=concurrency,
        batch_size=batch_size,
        config=config,
        event_bus=event_bus,
    )


async def generate_challenges_parallel(
    challenges: Iterable[Mapping[str, Any]],
    generate_coding_challenge: TaskFn,
    *,
    concurrency: int | None = None,
    batch_size: int | None = None,
    config: PoolConfig | None = None,
    event_bus: TaskEventBus | None = None,
) -> ExecutionReport:
    """Generate one coding challenge per entry.

    Challenge generation runs candidate solutions, so it defaults to two
    concurrent tasks.
    """
    return await run_workload(
        CHALLENGES,
        challenges,
        generate_coding_challenge,
        id_for=lambda c: f"challenge-{c.get('category')}-{c.get('difficulty')}",
        concurrency=concurrency,
        batch_size=batch_size,
        config=config,
        event_bus=event_bus,
    )


__all__ = [
    "BLOGS",
    "CHALLENGES",
    "LINKEDIN_POSTS",
    "QUESTIONS",
    "WorkloadProfile",
    "generate_blogs_parallel",
    "generate_challenges_parallel",
    "generate_linkedin_posts_parallel",
    "generate_questions_parallel",
    "run_workload",
]
