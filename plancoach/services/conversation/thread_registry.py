"""Maps (business plan, section) pairs to assistant conversation threads."""

from typing import Any, Dict, Mapping, Optional
from uuid import UUID

from plancoach.core.exceptions import PersistenceError, StaleRevisionError
from plancoach.schemas.assistant import AssistantService
from plancoach.schemas.plans import PlanStore
from plancoach.services.conversation.handle_locks import KeyedLocks
from plancoach.utils.logging import get_logger

LOGGER = get_logger(__name__)

THREADS_KEY = "conversationThreads"


def get_thread_id(content: Optional[Mapping[str, Any]], section_key: str) -> Optional[str]:
    """Return the stored thread ID for a section, if any."""
    threads = (content or {}).get(THREADS_KEY)
    if not isinstance(threads, Mapping):
        return None
    thread_id = threads.get(section_key)
    return thread_id if isinstance(thread_id, str) and thread_id else None


def set_thread_id(content: Optional[Mapping[str, Any]], section_key: str, thread_id: str) -> Dict[str, Any]:
    """Return new content with the thread ID stored; other keys are left as they are."""
    updated = dict(content or {})
    threads = updated.get(THREADS_KEY)
    threads = dict(threads) if isinstance(threads, Mapping) else {}
    threads[section_key] = thread_id
    updated[THREADS_KEY] = threads
    return updated


class ThreadRegistry:
    """Lazily creates one assistant thread per section of a business plan.

    The thread ID is persisted before it is returned so a created thread is
    never lost to the plan. Creation for the same (plan, section) pair is
    serialised in-process; writes from other processes are detected through
    the plan revision.
    """

    def __init__(
        self,
        plan_store: PlanStore,
        assistant: AssistantService,
        locks: Optional[KeyedLocks] = None,
        max_write_attempts: int = 3,
    ):
        self.plan_store = plan_store
        self.assistant = assistant
        self.locks = locks if locks is not None else KeyedLocks()
        self.max_write_attempts = max(1, max_write_attempts)

    async def get_or_create_handle(self, document_id: UUID, section_key: str) -> str:
        """Return the section's thread ID, creating and storing one if needed.

        Args:
            document_id: Business plan ID
            section_key: Registered section key

        Returns:
            The conversation thread ID

        Raises:
            DocumentNotFoundError: If the plan does not exist (nothing is created upstream)
            UpstreamUnavailableError: If thread creation fails (nothing is persisted)
            PersistenceError: If the thread ID cannot be stored
        """
        document = await self.plan_store.get_document(document_id)
        thread_id = get_thread_id(document.content, section_key)
        if thread_id:
            return thread_id

        async with self.locks.hold(("thread", str(document_id), section_key)):
            # Another task may have created it while we waited
            document = await self.plan_store.get_document(document_id)
            thread_id = get_thread_id(document.content, section_key)
            if thread_id:
                return thread_id

            new_thread_id = await self.assistant.create_thread()

            for attempt in range(self.max_write_attempts):
                content = set_thread_id(document.content, section_key, new_thread_id)
                try:
                    await self.plan_store.update_document(document_id, content, document.revision)
                except StaleRevisionError:
                    document = await self.plan_store.get_document(document_id)
                    existing = get_thread_id(document.content, section_key)
                    if existing:
                        LOGGER.warning(
                            f"Section {section_key} of plan {document_id} got a thread from "
                            f"another writer; thread {new_thread_id} is orphaned",
                            extra={"kept_thread_id": existing},
                        )
                        return existing
                    LOGGER.info(
                        f"Plan {document_id} changed while storing thread, retrying "
                        f"(attempt {attempt + 1}/{self.max_write_attempts})"
                    )
                    continue

                LOGGER.info(
                    f"Stored thread {new_thread_id} for section {section_key} of plan {document_id}"
                )
                return new_thread_id

        raise PersistenceError(
            f"Could not store thread {new_thread_id} for section {section_key} "
            f"of plan {document_id} after {self.max_write_attempts} attempts"
        )
