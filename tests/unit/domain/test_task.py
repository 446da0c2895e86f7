"""Tests for task descriptors and records."""
from __future__ import annotations

import pytest

from taskpool.domain.entities.task import TaskDescriptor, TaskRecord, TaskStatus
from taskpool.shared.exceptions import InvalidTransitionError, PoolConfigurationError


async def generate(topic: str) -> str:
    return topic.upper()


class TestTaskDescriptor:
    def test_coerce_bare_callable(self) -> None:
        descriptor = TaskDescriptor.coerce(generate)
        assert descriptor.fn is generate
        assert descriptor.args == ()
        assert descriptor.id is None

    def test_coerce_mapping(self) -> None:
        descriptor = TaskDescriptor.coerce(
            {"id": "q-1", "fn": generate, "args": ["kafka"], "kwargs": {"lang": "en"}}
        )
        assert descriptor.id == "q-1"
        assert descriptor.args == ("kafka",)
        assert dict(descriptor.kwargs) == {"lang": "en"}

    def test_coerce_passes_descriptor_through(self) -> None:
        descriptor = TaskDescriptor(fn=generate, args=("x",))
        assert TaskDescriptor.coerce(descriptor) is descriptor

    def test_mapping_without_fn(self) -> None:
        with pytest.raises(PoolConfigurationError):
            TaskDescriptor.coerce({"id": "x"})

    def test_non_callable_rejected(self) -> None:
        with pytest.raises(PoolConfigurationError):
            TaskDescriptor.coerce(123)

    def test_descriptor_is_immutable(self) -> None:
        kwargs = {"a": 1}
        descriptor = TaskDescriptor(fn=generate, kwargs=kwargs)
        kwargs["a"] = 2
        assert descriptor.kwargs["a"] == 1
        with pytest.raises(TypeError):
            descriptor.kwargs["b"] = 3  # type: ignore[index]


class TestTaskRecord:
    def test_from_descriptor_derives_id(self) -> None:
        record = TaskRecord.from_descriptor(TaskDescriptor(fn=generate), 7)
        assert record.id == "task-7"
        assert record.status == TaskStatus.PENDING
        assert record.attempts == 0

    def test_from_descriptor_keeps_caller_id(self) -> None:
        record = TaskRecord.from_descriptor(TaskDescriptor(fn=generate, id="blog-1"), 0)
        assert record.id == "blog-1"

    def test_success_lifecycle(self) -> None:
        record = TaskRecord(id="t", fn=generate)
        record.mark_running()
        assert record.status == TaskStatus.RUNNING
        assert record.attempts == 1
        assert record.started_at is not None
        record.mark_completed("done", 0.25)
        assert record.status == TaskStatus.COMPLETED
        assert record.is_terminal
        assert record.result == "done"
        assert record.error is None
        assert record.duration == 0.25
        assert record.finished_at is not None

    def test_retry_then_fail_lifecycle(self) -> None:
        record = TaskRecord(id="t", fn=generate)
        record.mark_running()
        record.record_error(RuntimeError("first"))
        record.mark_retrying()
        assert record.status == TaskStatus.RETRYING
        record.mark_running()
        assert record.attempts == 2
        record.record_error(ValueError("second"))
        record.mark_failed(0.1)
        assert record.status == TaskStatus.FAILED
        assert record.error == "second"
        assert record.error_type == "ValueError"
        assert record.result is None

    def test_error_without_message_uses_type_name(self) -> None:
        record = TaskRecord(id="t", fn=generate)
        record.record_error(KeyError())
        assert record.error == "KeyError"

    def test_completion_clears_previous_error(self) -> None:
        record = TaskRecord(id="t", fn=generate)
        record.mark_running()
        record.record_error(RuntimeError("flaky"))
        record.mark_retrying()
        record.mark_running()
        record.mark_completed(42, 0.01)
        assert record.error is None
        assert record.error_type is None

    @pytest.mark.parametrize(
        "path",
        [
            [TaskStatus.COMPLETED],
            [TaskStatus.RUNNING, TaskStatus.PENDING],
            [TaskStatus.RUNNING, TaskStatus.COMPLETED, TaskStatus.RUNNING],
            [TaskStatus.RUNNING, TaskStatus.FAILED, TaskStatus.RETRYING],
            [TaskStatus.RUNNING, TaskStatus.RETRYING, TaskStatus.FAILED],
        ],
    )
    def test_invalid_transitions(self, path: list[TaskStatus]) -> None:
        record = TaskRecord(id="t", fn=generate)
        with pytest.raises(InvalidTransitionError):
            for status in path:
                record.transition(status)

    def test_to_dict_omits_callable(self) -> None:
        record = TaskRecord(id="t", fn=generate, args=("secret",))
        data = record.to_dict()
        assert data["id"] == "t"
        assert data["status"] == "pending"
        assert "fn" not in data
        assert "args" not in data
