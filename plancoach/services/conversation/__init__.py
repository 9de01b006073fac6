"""Assistant thread management and run execution."""

from plancoach.services.conversation.handle_locks import KeyedLocks
from plancoach.services.conversation.rate_limiter import RateLimiter
from plancoach.services.conversation.run_executor import RunExecutor, build_run_instructions
from plancoach.services.conversation.thread_registry import ThreadRegistry

__all__ = [
    "KeyedLocks",
    "RateLimiter",
    "RunExecutor",
    "ThreadRegistry",
    "build_run_instructions",
]
