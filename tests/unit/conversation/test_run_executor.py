"""Tests for run submission, draining and polling."""

import itertools

import pytest
import pytest_asyncio

from plancoach.core.exceptions import RunFailedError, RunTimeoutError
from plancoach.schemas.assistant import RunStatus
from plancoach.services.conversation.run_executor import (
    EXAMPLES_INSTRUCTION,
    RunExecutor,
    build_run_instructions,
    needs_examples,
)
from tests.fakes import ScriptedRun, no_sleep


@pytest_asyncio.fixture
async def thread_id(assistant):
    return await assistant.create_thread()


class TestRunInstructions:
    """Per-run instruction heuristics."""

    @pytest.mark.parametrize(
        "message",
        ["Can you give me an example?", "I need HELP", "I'm not sure what to write", "Any guidance?"],
    )
    def test_example_requests_detected(self, message):
        assert needs_examples(message)

    def test_plain_message_not_detected(self):
        assert not needs_examples("Our vision is to be the top bakery in town")

    def test_examples_instruction_mentions_topic(self):
        instructions = build_run_instructions("Show me an example", "vision or goals")

        assert instructions == EXAMPLES_INSTRUCTION.format(topic="vision or goals")
        assert "Would you like to use one of these examples as your vision or goals?" in instructions

    def test_base_instructions_come_first(self):
        instructions = build_run_instructions("help", "pricing", base_instructions="  Section prompt  ")

        assert instructions.startswith("Section prompt\n\n")
        assert "pricing" in instructions

    def test_nothing_to_add(self):
        assert build_run_instructions("Our mission is simple", "mission") is None


@pytest.mark.asyncio
async def test_submit_returns_latest_assistant_reply(assistant, executor, thread_id):
    assistant.queue(ScriptedRun(text="Great vision!", polls=2))

    reply = await executor.submit(thread_id, "We bake bread", "asst_1", instructions="Be brief")

    assert reply.text == "Great vision!"
    assert reply.thread_id == thread_id
    assert assistant.transcript(thread_id) == ["user: We bake bread", "assistant: Great vision!"]
    assert reply.user_message_id == assistant.threads[thread_id][0].id
    assert assistant.run_requests[-1]["instructions"] == "Be brief"
    assert assistant.run_requests[-1]["assistant_id"] == "asst_1"


@pytest.mark.asyncio
async def test_failed_run_raises_with_reason(assistant, executor, thread_id):
    assistant.queue(ScriptedRun(status=RunStatus.FAILED, last_error="rate_limit_exceeded"))

    with pytest.raises(RunFailedError) as exc_info:
        await executor.submit(thread_id, "hello", "asst_1")

    assert exc_info.value.reason == "rate_limit_exceeded"
    assert exc_info.value.status == "failed"
    assert "rate_limit_exceeded" in str(exc_info.value)


@pytest.mark.asyncio
async def test_cancelled_run_without_error_has_status_reason(assistant, executor, thread_id):
    assistant.queue(ScriptedRun(status=RunStatus.CANCELLED))

    with pytest.raises(RunFailedError) as exc_info:
        await executor.submit(thread_id, "hello", "asst_1")

    assert "cancelled" in exc_info.value.reason


@pytest.mark.asyncio
async def test_timeout_after_max_poll_attempts(assistant, thread_id):
    executor = RunExecutor(assistant, max_poll_attempts=3, max_poll_seconds=600, sleep=no_sleep)
    assistant.queue(ScriptedRun(polls=50))

    with pytest.raises(RunTimeoutError) as exc_info:
        await executor.submit(thread_id, "hello", "asst_1")

    assert exc_info.value.status == "in_progress"


@pytest.mark.asyncio
async def test_timeout_after_wall_clock_ceiling(assistant, thread_id):
    ticks = itertools.count(0, 100)
    executor = RunExecutor(
        assistant,
        max_poll_attempts=1000,
        max_poll_seconds=150,
        sleep=no_sleep,
        clock=lambda: float(next(ticks)),
    )
    assistant.queue(ScriptedRun(polls=50))

    with pytest.raises(RunTimeoutError):
        await executor.submit(thread_id, "hello", "asst_1")

    # Far fewer polls than the attempt bound
    state = assistant.runs[thread_id][0]
    assert state.polls_left > 40


@pytest.mark.asyncio
async def test_active_run_is_drained_before_submitting(assistant, executor, thread_id):
    assistant.queue(ScriptedRun(text="earlier reply", polls=3), ScriptedRun(text="new reply"))
    await assistant.create_run(thread_id, "asst_other")
    assert len(assistant.active_runs(thread_id)) == 1

    reply = await executor.submit(thread_id, "next question", "asst_1")

    assert reply.text == "new reply"
    assert assistant.active_runs(thread_id) == []
    assert [request["assistant_id"] for request in assistant.run_requests] == ["asst_other", "asst_1"]


@pytest.mark.asyncio
async def test_drain_tolerates_failed_runs(assistant, executor, thread_id):
    assistant.queue(ScriptedRun(status=RunStatus.FAILED, last_error="boom"))
    await assistant.create_run(thread_id, "asst_other")

    drained = await executor.drain(thread_id)

    assert [run.status for run in drained] == [RunStatus.FAILED]


@pytest.mark.asyncio
async def test_drain_skips_terminal_runs(assistant, executor, thread_id):
    assistant.queue(ScriptedRun(text="done", polls=0))
    await executor.submit(thread_id, "hello", "asst_1")

    assert await executor.drain(thread_id) == []


@pytest.mark.asyncio
async def test_completed_run_without_reply_fails(assistant, executor, thread_id, monkeypatch):
    assistant.queue(ScriptedRun(text="ignored"))

    async def only_user_messages(thread, limit=20):
        return [m for m in reversed(assistant.threads[thread]) if m.role == "user"]

    monkeypatch.setattr(assistant, "list_messages", only_user_messages)

    with pytest.raises(RunFailedError, match="without an assistant message"):
        await executor.submit(thread_id, "hello", "asst_1")
