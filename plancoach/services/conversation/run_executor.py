"""Drives assistant runs to completion on a conversation thread."""

import asyncio
import time
from typing import Awaitable, Callable, List, Optional

from plancoach.core.exceptions import RunFailedError, RunTimeoutError
from plancoach.schemas.assistant import (
    AssistantMessage,
    AssistantReply,
    AssistantService,
    RunJob,
)
from plancoach.utils.logging import get_logger, truncate_for_log

LOGGER = get_logger(__name__)

EXAMPLE_TRIGGERS = ("example", "help", "not sure", "guidance")

EXAMPLES_INSTRUCTION = """Provide 2-3 specific, measurable examples in your response. Examples should:
1. Include concrete numbers and metrics
2. Be realistic and achievable
3. Cover different aspects or approaches
4. Be clearly formatted and numbered
5. After presenting the examples, ask:
   - "Would you like to use one of these examples as your {topic}?"
   - "Or would you prefer to modify your current one with some ideas from these examples?"
   - "Or would you like different examples?"

Keep focused on the {topic}, avoid implementation details."""


def needs_examples(message: str) -> bool:
    text = message.lower()
    return any(trigger in text for trigger in EXAMPLE_TRIGGERS)


def build_run_instructions(
    message: str,
    topic: str,
    base_instructions: Optional[str] = None,
) -> Optional[str]:
    """Per-run instructions for a user message.

    Messages asking for help or examples get the examples instruction with
    ``topic`` filled in; ``base_instructions`` (section prompt) come first.
    Returns None when there is nothing to add.
    """
    parts = []
    if base_instructions and base_instructions.strip():
        parts.append(base_instructions.strip())
    if needs_examples(message):
        parts.append(EXAMPLES_INSTRUCTION.format(topic=topic))
    return "\n\n".join(parts) if parts else None


class RunExecutor:
    """Submits messages to a thread and polls runs to a terminal state.

    Before every submission the thread is drained: runs left queued or in
    progress (e.g. by another process) are waited out so the upstream never
    sees two active runs on one thread. Polling is bounded by both an attempt
    count and a wall-clock ceiling.
    """

    def __init__(
        self,
        assistant: AssistantService,
        poll_interval: float = 1.0,
        max_poll_attempts: int = 120,
        max_poll_seconds: float = 180.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.assistant = assistant
        self.poll_interval = poll_interval
        self.max_poll_attempts = max(1, max_poll_attempts)
        self.max_poll_seconds = max_poll_seconds
        self._sleep = sleep
        self._clock = clock

    async def wait_for_run(self, thread_id: str, run_id: str) -> RunJob:
        """Poll a run until it is terminal.

        Returns:
            The run in its terminal state (successful or not)

        Raises:
            RunTimeoutError: If the run is still active after the polling bound
        """
        started = self._clock()
        attempts = 0
        while True:
            run = await self.assistant.get_run(thread_id, run_id)
            attempts += 1
            if run.status.is_terminal:
                LOGGER.debug(f"Run {run_id} finished with status {run.status.value} after {attempts} poll(s)")
                return run

            elapsed = self._clock() - started
            if attempts >= self.max_poll_attempts or elapsed >= self.max_poll_seconds:
                LOGGER.error(
                    f"Run {run_id} on thread {thread_id} still {run.status.value} "
                    f"after {attempts} poll(s) / {elapsed:.1f}s"
                )
                raise RunTimeoutError(
                    f"Assistant run {run_id} did not finish within {attempts} poll(s)",
                    run_id=run_id,
                    status=run.status.value,
                )
            await self._sleep(self.poll_interval)

    async def drain(self, thread_id: str) -> List[RunJob]:
        """Wait out every non-terminal run on a thread.

        Failed or cancelled runs found here are logged only; they belong to an
        earlier request.

        Returns:
            The drained runs in their terminal states
        """
        runs = await self.assistant.list_runs(thread_id)
        drained = []
        for run in runs:
            if run.status.is_terminal:
                continue
            LOGGER.info(f"Draining active run {run.id} ({run.status.value}) on thread {thread_id}")
            final = await self.wait_for_run(thread_id, run.id)
            if not final.status.is_successful:
                LOGGER.warning(
                    f"Drained run {final.id} ended as {final.status.value}",
                    extra={"thread_id": thread_id, "reason": final.failure_reason},
                )
            drained.append(final)
        return drained

    async def submit(
        self,
        thread_id: str,
        message: str,
        assistant_id: str,
        instructions: Optional[str] = None,
    ) -> AssistantReply:
        """Send a user message and return the assistant's reply.

        Args:
            thread_id: Conversation thread
            message: User message text
            assistant_id: Assistant that handles the run
            instructions: Extra instructions for this run only

        Raises:
            RunFailedError: If the run ends failed/cancelled/expired/incomplete
                or produces no assistant message
            RunTimeoutError: If the run does not finish in time
            UpstreamUnavailableError: If the Assistant Service keeps failing
        """
        await self.drain(thread_id)

        user_message = await self.assistant.append_message(thread_id, "user", message)
        run = await self.assistant.create_run(thread_id, assistant_id, instructions=instructions)
        LOGGER.info(
            f"Started run {run.id} on thread {thread_id}",
            extra={"assistant_id": assistant_id, "with_instructions": bool(instructions)},
        )

        if not run.status.is_terminal:
            run = await self.wait_for_run(thread_id, run.id)

        if not run.status.is_successful:
            LOGGER.error(
                f"Run {run.id} on thread {thread_id} ended as {run.status.value}: {run.failure_reason}"
            )
            raise RunFailedError(run.failure_reason, run_id=run.id, status=run.status.value)

        reply = await self.latest_assistant_message(thread_id)
        if reply is None:
            raise RunFailedError(
                "run completed without an assistant message",
                run_id=run.id,
                status=run.status.value,
            )

        LOGGER.debug(f"Assistant reply on thread {thread_id}: {truncate_for_log(reply.text, 200)}")
        return AssistantReply(
            thread_id=thread_id,
            run_id=run.id,
            user_message_id=user_message.id,
            message=reply,
        )

    async def latest_assistant_message(self, thread_id: str) -> Optional[AssistantMessage]:
        messages = await self.assistant.list_messages(thread_id, limit=10)
        for item in messages:
            if item.role == "assistant":
                return item
        return None
