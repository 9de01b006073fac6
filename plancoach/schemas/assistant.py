"""Assistant Service contract: thread, message and run shapes."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol


class RunStatus(str, Enum):
    """Upstream run states.

    queued -> in_progress -> {completed, failed, cancelled}; cancelling is a
    transient sub-state of in_progress. requires_action, expired and
    incomplete are reported by the upstream as well.
    """

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    CANCELLING = "cancelling"
    REQUIRES_ACTION = "requires_action"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    INCOMPLETE = "incomplete"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_successful(self) -> bool:
        return self is RunStatus.COMPLETED

    @classmethod
    def parse(cls, value: str) -> "RunStatus":
        try:
            return cls(value)
        except ValueError:
            # Unknown states are treated as still running; the poll bound ends them
            return cls.IN_PROGRESS


TERMINAL_STATUSES = frozenset({
    RunStatus.COMPLETED,
    RunStatus.FAILED,
    RunStatus.CANCELLED,
    RunStatus.EXPIRED,
    RunStatus.INCOMPLETE,
})


@dataclass
class RunJob:
    """One request/response cycle against a thread."""

    id: str
    thread_id: str
    status: RunStatus
    last_error: Optional[str] = None

    @property
    def failure_reason(self) -> str:
        return self.last_error or f"run ended with status '{self.status.value}'"


@dataclass
class AssistantMessage:
    id: str
    role: str
    text: str
    created_at: int = 0


@dataclass
class AssistantReply:
    """Outcome of one submitted message."""

    thread_id: str
    run_id: str
    user_message_id: str
    message: AssistantMessage

    @property
    def text(self) -> str:
        return self.message.text


class AssistantService(Protocol):
    """Stateful dialogue sessions with asynchronous runs."""

    async def create_thread(self) -> str: ...

    async def append_message(self, thread_id: str, role: str, text: str) -> AssistantMessage: ...

    async def create_run(
        self, thread_id: str, assistant_id: str, instructions: Optional[str] = None
    ) -> RunJob: ...

    async def get_run(self, thread_id: str, run_id: str) -> RunJob: ...

    async def list_runs(self, thread_id: str) -> List[RunJob]: ...

    async def list_messages(self, thread_id: str, limit: int = 20) -> List[AssistantMessage]:
        """Newest first."""
        ...

    async def delete_message(self, thread_id: str, message_id: str) -> None: ...
