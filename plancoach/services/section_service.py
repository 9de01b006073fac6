"""Section conversation pipeline.

One message to a business plan section goes through:
thread lookup -> per-thread lock -> drain + submit + poll -> payload
extraction -> merge into the plan -> render.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from plancoach.core.exceptions import APIClientError, RunError, ValidationError
from plancoach.schemas.assistant import AssistantService
from plancoach.schemas.plans import PlanStore
from plancoach.services.conversation.handle_locks import KeyedLocks
from plancoach.services.conversation.run_executor import RunExecutor, build_run_instructions
from plancoach.services.conversation.thread_registry import ThreadRegistry
from plancoach.services.document.merger import DocumentMerger, get_section_data
from plancoach.services.extraction.payload_extractor import ExtractionResult, extract_payload
from plancoach.services.extraction.response_cleaner import clean_response
from plancoach.services.sections.registry import (
    ExtractionMode,
    SectionDefinition,
    SectionRegistry,
)
from plancoach.utils.logging import get_logger

LOGGER = get_logger(__name__)

STRUCTURING_PROMPT = """Based on our conversation so far about the {title} section, extract the information
the user has provided and return it as a single ```json fenced block with this structure:
{schema}

Only include fields the user has actually discussed. Do not add new information, do not guess,
and do not jump to conclusions."""


@dataclass
class SectionView:
    section_key: str
    structured_data: Dict[str, Any] = field(default_factory=dict)
    rendered_text: str = ""


@dataclass
class SectionTurnResult:
    """Outcome of one message to a section."""

    section_key: str
    assistant_text: str
    structured_data: Dict[str, Any] = field(default_factory=dict)
    rendered_text: str = ""
    updated: bool = False
    thread_id: Optional[str] = None
    run_id: Optional[str] = None


class SectionDocumentService:
    """Reads and edits section data in a plan without talking to the assistant."""

    def __init__(self, plan_store: PlanStore, registry: SectionRegistry, max_merge_attempts: int = 3):
        self.plan_store = plan_store
        self.registry = registry
        self.merger = DocumentMerger(plan_store, max_attempts=max_merge_attempts)

    def list_sections(self) -> List[SectionDefinition]:
        return list(self.registry)

    async def get_section(self, document_id: UUID, section_key: str) -> SectionView:
        definition = self.registry.get(section_key)
        document = await self.plan_store.get_document(document_id)
        data = get_section_data(document.content, definition.path)
        return SectionView(
            section_key=section_key,
            structured_data=data,
            rendered_text=definition.render(data),
        )

    async def update_section(
        self, document_id: UUID, section_key: str, data: Mapping[str, Any]
    ) -> SectionView:
        """Merge caller-supplied fields into a section without a conversation turn."""
        definition = self.registry.get(section_key)
        payload = definition.normalize_payload(data)
        if not payload:
            raise ValidationError(
                f"No fields of section '{section_key}' in update; "
                f"expected any of: {', '.join(definition.fields)}"
            )

        structured = await self.merger.merge_and_persist(document_id, definition.path, payload)
        return SectionView(
            section_key=section_key,
            structured_data=structured,
            rendered_text=definition.render(structured),
        )


class SectionConversationService(SectionDocumentService):
    """Runs the conversation engine for every registered section."""

    def __init__(
        self,
        plan_store: PlanStore,
        assistant: AssistantService,
        registry: SectionRegistry,
        executor: RunExecutor,
        assistant_id: str,
        structuring_assistant_id: Optional[str] = None,
        handle_locks: Optional[KeyedLocks] = None,
        max_merge_attempts: int = 3,
    ):
        """Initialize the service.

        Args:
            plan_store: Business plan persistence
            assistant: Assistant Service client
            registry: Section definitions
            executor: Run executor bound to the same assistant client
            assistant_id: Default conversational assistant
            structuring_assistant_id: Assistant used for structuring turns
            handle_locks: Lock table shared across requests in this process
            max_merge_attempts: Attempts when the plan changes during a merge
        """
        super().__init__(plan_store, registry, max_merge_attempts=max_merge_attempts)
        self.assistant = assistant
        self.executor = executor
        self.assistant_id = assistant_id
        self.structuring_assistant_id = structuring_assistant_id or assistant_id
        self.handle_locks = handle_locks if handle_locks is not None else KeyedLocks()
        self.thread_registry = ThreadRegistry(plan_store, assistant, locks=self.handle_locks)

    async def send_message(self, document_id: UUID, section_key: str, message: str) -> SectionTurnResult:
        """Send a user message to a section's conversation and update the plan.

        Raises:
            ValidationError: If the message is empty
            SectionNotFoundError / DocumentNotFoundError: Unknown section or plan
            RunFailedError / RunTimeoutError: Conversational run did not complete
            UpstreamUnavailableError: Assistant Service unreachable
            PersistenceError: Plan could not be written
        """
        if not message or not message.strip():
            raise ValidationError("Message must not be empty")
        definition = self.registry.get(section_key)

        LOGGER.info(
            f"[SECTION-SVC] Message for section {section_key} of plan {document_id}",
            extra={"message_length": len(message)},
        )

        thread_id = await self.thread_registry.get_or_create_handle(document_id, section_key)

        async with self.handle_locks.hold(thread_id):
            document = await self.plan_store.get_document(document_id)
            current = get_section_data(document.content, definition.path)

            instructions = build_run_instructions(
                message,
                definition.topic,
                self._base_instructions(definition, current),
            )
            reply = await self.executor.submit(
                thread_id,
                message,
                definition.assistant_id or self.assistant_id,
                instructions=instructions,
            )

            if definition.extraction_mode is ExtractionMode.STRUCTURING_TURN:
                extraction = await self._run_structuring_turn(definition, thread_id)
            else:
                extraction = extract_payload(reply.text)

            payload = definition.normalize_payload(extraction.payload) if extraction.found else None
            if payload:
                structured = await self.merger.merge_and_persist(
                    document_id, definition.path, payload, document=document
                )
            else:
                LOGGER.info(
                    f"[SECTION-SVC] No update for section {section_key}",
                    extra={"reason": extraction.error or "empty payload"},
                )
                structured = current

        return SectionTurnResult(
            section_key=section_key,
            assistant_text=clean_response(reply.text),
            structured_data=structured,
            rendered_text=definition.render(structured),
            updated=bool(payload),
            thread_id=thread_id,
            run_id=reply.run_id,
        )

    def _base_instructions(self, definition: SectionDefinition, current: Mapping[str, Any]) -> str:
        parts = [definition.system_prompt]
        if definition.extraction_mode is ExtractionMode.INLINE:
            parts.append(f"JSON structure:\n```json\n{definition.schema_hint}\n```")
        if current:
            parts.append(
                f"Current {definition.title} data:\n{json.dumps(current, indent=2, default=str)}"
            )
        return "\n\n".join(parts)

    async def _run_structuring_turn(self, definition: SectionDefinition, thread_id: str) -> ExtractionResult:
        """Ask for the section as JSON on the same thread, then remove that exchange.

        A failed structuring run is reported as an extraction failure; the
        conversational reply has already been produced.
        """
        prompt = STRUCTURING_PROMPT.format(title=definition.title, schema=definition.schema_hint)
        try:
            reply = await self.executor.submit(thread_id, prompt, self.structuring_assistant_id)
        except RunError as e:
            LOGGER.warning(f"[SECTION-SVC] Structuring turn for {definition.key} failed: {e}")
            return ExtractionResult(error=str(e))

        extraction = extract_payload(reply.text)
        if not extraction.found:
            LOGGER.warning(
                f"[SECTION-SVC] Structuring turn for {definition.key} returned no payload; "
                f"leaving messages {reply.user_message_id}, {reply.message.id} on thread {thread_id}"
            )
            return extraction

        for message_id in (reply.user_message_id, reply.message.id):
            try:
                await self.assistant.delete_message(thread_id, message_id)
            except APIClientError as e:
                LOGGER.warning(
                    f"[SECTION-SVC] Could not delete structuring message {message_id}: {e}",
                    extra={"thread_id": thread_id},
                )
        return extraction
