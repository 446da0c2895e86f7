"""Tests for the workload helpers."""
from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from taskpool.application.events import TaskEventBus, TaskEventType
from taskpool.application.workloads import (
    BLOGS,
    CHALLENGES,
    LINKEDIN_POSTS,
    QUESTIONS,
    WorkloadProfile,
    generate_blogs_parallel,
    generate_challenges_parallel,
    generate_linkedin_posts_parallel,
    generate_questions_parallel,
    run_workload,
)
from taskpool.domain.entities.task import TaskStatus
from taskpool.engine.executor import PoolConfig
from taskpool.shared.exceptions import PoolConfigurationError


@pytest.fixture
def quick_config() -> PoolConfig:
    return PoolConfig(rate_limit_delay=0.0, retry_delay=0.0, task_timeout=1.0)


class TestProfiles:
    def test_heavier_workloads_use_lower_concurrency(self) -> None:
        assert QUESTIONS.concurrency == 4 and QUESTIONS.batch_size == 5
        assert BLOGS.concurrency == 2 and BLOGS.batch_size == 3
        assert LINKEDIN_POSTS.concurrency == 4 and LINKEDIN_POSTS.batch_size == 10
        assert CHALLENGES.concurrency == 2 and CHALLENGES.batch_size == 3


class TestRunWorkload:
    @pytest.mark.asyncio
    async def test_profile_sizing_applies(self, quick_config: PoolConfig) -> None:
        bus = TaskEventBus()
        sizes: list[int] = []
        bus.subscribe(TaskEventType.BATCH_STARTED, lambda e: sizes.append(e.payload["size"]))
        fn = AsyncMock(side_effect=lambda item: item * 2)

        profile = WorkloadProfile(name="doubles", concurrency=1, batch_size=2)
        report = await run_workload(
            profile, [1, 2, 3], fn, id_for=lambda i: f"n-{i}", config=quick_config, event_bus=bus
        )

        assert sizes == [2, 1]
        assert [t.result for t in report.tasks] == [2, 4, 6]
        assert [t.id for t in report.tasks] == ["n-1", "n-2", "n-3"]

    @pytest.mark.asyncio
    async def test_explicit_sizing_overrides_profile(self, quick_config: PoolConfig) -> None:
        bus = TaskEventBus()
        sizes: list[int] = []
        bus.subscribe(TaskEventType.BATCH_STARTED, lambda e: sizes.append(e.payload["size"]))

        await run_workload(
            QUESTIONS,
            range(4),
            AsyncMock(return_value=None),
            id_for=str,
            batch_size=4,
            config=quick_config,
            event_bus=bus,
        )

        assert sizes == [4]

    @pytest.mark.asyncio
    async def test_zero_concurrency_is_rejected(self, quick_config: PoolConfig) -> None:
        with pytest.raises(PoolConfigurationError):
            await run_workload(
                QUESTIONS,
                range(2),
                AsyncMock(return_value=None),
                id_for=str,
                concurrency=0,
                config=quick_config,
            )


class TestGenerators:
    @pytest.mark.asyncio
    async def test_questions(self, quick_config: PoolConfig) -> None:
        generate_question = AsyncMock(return_value={"question": "What is Kafka?"})
        channels = [
            {"channel": "kafka", "difficulty": "advanced", "tags": ["streams"], "companies": ["acme"]},
            {"channel": "sql"},
        ]

        report = await generate_questions_parallel(channels, generate_question, config=quick_config)

        assert [t.id for t in report.tasks] == ["question-kafka-advanced", "question-sql-intermediate"]
        assert len(report.completed) == 2
        first_call, second_call = generate_question.await_args_list
        assert first_call.args[0] == {
            "channel": "kafka",
            "sub_channel": "general",
            "difficulty": "advanced",
            "tags": ["streams"],
            "target_companies": ["acme"],
        }
        assert second_call.args[0]["difficulty"] == "intermediate"
        assert second_call.args[0]["tags"] == []

    @pytest.mark.asyncio
    async def test_blogs_id_falls_back_to_question_snippet(self, quick_config: PoolConfig) -> None:
        generate_blog_post = AsyncMock(return_value="post")
        topics: list[dict[str, Any]] = [
            {"id": "b42"},
            {"question": "How does consistent hashing work in practice?"},
        ]

        report = await generate_blogs_parallel(topics, generate_blog_post, config=quick_config)

        assert [t.id for t in report.tasks] == ["blog-b42", "blog-How does consistent "]
        generate_blog_post.assert_any_await(topics[0])

    @pytest.mark.asyncio
    async def test_linkedin_posts(self, quick_config: PoolConfig) -> None:
        generate = AsyncMock(return_value="ok")
        posts = [{"post_id": "p1"}, {"title": "Scaling Postgres reads"}]

        report = await generate_linkedin_posts_parallel(posts, generate, config=quick_config)

        assert [t.id for t in report.tasks] == ["linkedin-p1", "linkedin-Scaling Postgres rea"]

    @pytest.mark.asyncio
    async def test_challenges_failures_are_reported(self, quick_config: PoolConfig) -> None:
        generate = AsyncMock(side_effect=RuntimeError("sandbox crashed"))
        challenges = [{"category": "arrays", "difficulty": "easy"}]

        report = await generate_challenges_parallel(
            challenges, generate, config=quick_config.merged(retry_attempts=1)
        )

        record = report.tasks[0]
        assert record.id == "challenge-arrays-easy"
        assert record.status == TaskStatus.FAILED
        assert record.attempts == 2
        assert record.error == "sandbox crashed"
        assert generate.await_count == 2
