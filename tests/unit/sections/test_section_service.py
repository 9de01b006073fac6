"""Tests for the section conversation pipeline."""

import asyncio
from uuid import uuid4

import pytest

from plancoach.core.exceptions import (
    DocumentNotFoundError,
    PersistenceError,
    RunFailedError,
    SectionNotFoundError,
    ValidationError,
)
from plancoach.schemas.assistant import RunStatus
from plancoach.services.conversation.handle_locks import KeyedLocks
from plancoach.services.conversation.run_executor import EXAMPLES_INSTRUCTION, RunExecutor
from plancoach.services.conversation.thread_registry import THREADS_KEY
from plancoach.services.document.merger import get_section_data, merge_section
from plancoach.services.section_service import SectionConversationService
from plancoach.services.sections.definitions import build_default_registry
from tests.fakes import ScriptedRun, yielding_sleep

VISION_REPLY = (
    "That's a focused vision!\n"
    "```json\n"
    '{"longTermVision": "Simplify bookkeeping for small retailers."}\n'
    "```\n"
    "What would you like to achieve in your first year?"
)

GOALS_REPLY = (
    "Great goals.\n"
    "```json\n"
    '{"yearOneGoals": ["Sign 50 paying stores", "Launch the mobile app"]}\n'
    "```"
)


class TestSendMessage:
    """Message flow for inline-extraction sections."""

    @pytest.mark.asyncio
    async def test_first_message_creates_thread_and_section(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(ScriptedRun(text=VISION_REPLY))

        result = await section_service.send_message(
            document_id,
            "visionAndGoals",
            "Our long-term vision is to simplify bookkeeping for small retailers.",
        )

        assert result.updated
        assert result.structured_data == {"longTermVision": "Simplify bookkeeping for small retailers."}
        assert "### Long-Term Vision\nSimplify bookkeeping for small retailers.\n" in result.rendered_text
        assert result.assistant_text == (
            "That's a focused vision!\n\nWhat would you like to achieve in your first year?"
        )
        content = plan_store.content(document_id)
        assert content["vision"] == result.structured_data
        assert content[THREADS_KEY] == {"visionAndGoals": result.thread_id}
        assert assistant.created_threads == [result.thread_id]

    @pytest.mark.asyncio
    async def test_second_message_keeps_earlier_fields(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(ScriptedRun(text=VISION_REPLY), ScriptedRun(text=GOALS_REPLY))

        first = await section_service.send_message(document_id, "visionAndGoals", "Our vision is ...")
        second = await section_service.send_message(document_id, "visionAndGoals", "Year one: 50 stores, app")

        assert second.thread_id == first.thread_id
        assert len(assistant.created_threads) == 1
        assert second.structured_data == {
            "longTermVision": "Simplify bookkeeping for small retailers.",
            "yearOneGoals": ["Sign 50 paying stores", "Launch the mobile app"],
        }
        assert "### First Year Goals\n- Sign 50 paying stores\n- Launch the mobile app\n" in second.rendered_text

    @pytest.mark.asyncio
    async def test_reply_without_payload_changes_nothing(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(ScriptedRun(text=VISION_REPLY), ScriptedRun(text="Could you tell me more?"))
        await section_service.send_message(document_id, "visionAndGoals", "Our vision is ...")
        before = plan_store.content(document_id)
        writes = plan_store.writes

        result = await section_service.send_message(document_id, "visionAndGoals", "Hmm")

        assert not result.updated
        assert result.assistant_text == "Could you tell me more?"
        assert result.structured_data == before["vision"]
        assert plan_store.content(document_id) == before
        assert plan_store.writes == writes

    @pytest.mark.asyncio
    async def test_truncated_payload_is_not_an_error(self, section_service, plan_store, assistant):
        document_id = plan_store.add({"vision": {"longTermVision": "Grow"}})
        assistant.queue(ScriptedRun(text='Noted! {"yearOneGoals": ["Open",'))

        result = await section_service.send_message(document_id, "visionAndGoals", "Goals: open")

        assert not result.updated
        assert result.structured_data == {"longTermVision": "Grow"}
        assert plan_store.content(document_id)["vision"] == {"longTermVision": "Grow"}

    @pytest.mark.asyncio
    async def test_sequential_calls_find_nothing_to_drain(
        self, section_service, plan_store, assistant, executor, monkeypatch
    ):
        document_id = plan_store.add()
        drained = []
        original_drain = executor.drain

        async def recording_drain(thread_id):
            runs = await original_drain(thread_id)
            drained.append(runs)
            return runs

        monkeypatch.setattr(executor, "drain", recording_drain)
        assistant.queue(ScriptedRun(text=VISION_REPLY), ScriptedRun(text=GOALS_REPLY))

        first = await section_service.send_message(document_id, "visionAndGoals", "Vision ...")
        await section_service.send_message(document_id, "visionAndGoals", "Goals ...")

        assert drained == [[], []]
        assert assistant.active_runs(first.thread_id) == []
        assert len(assistant.run_requests) == 2

    @pytest.mark.asyncio
    async def test_failed_run_leaves_document_unchanged(self, section_service, plan_store, assistant):
        thread_id = await assistant.create_thread()
        document_id = plan_store.add(
            {"vision": {"longTermVision": "Grow"}, THREADS_KEY: {"visionAndGoals": thread_id}}
        )
        before = plan_store.content(document_id)
        assistant.queue(ScriptedRun(status=RunStatus.FAILED, last_error="The server had an error"))

        with pytest.raises(RunFailedError) as exc_info:
            await section_service.send_message(document_id, "visionAndGoals", "Year one: 50 stores")

        assert exc_info.value.reason == "The server had an error"
        assert plan_store.content(document_id) == before
        assert plan_store.writes == 0

    @pytest.mark.asyncio
    async def test_instructions_carry_prompt_schema_and_current_data(self, section_service, plan_store, assistant):
        document_id = plan_store.add({"vision": {"longTermVision": "Grow"}})

        await section_service.send_message(document_id, "visionAndGoals", "Can you give me an example?")

        request = assistant.run_requests[-1]
        instructions = request["instructions"]
        assert request["assistant_id"] == "asst_conversation"
        assert "Vision & Goals section" in instructions
        assert "JSON structure:" in instructions
        assert '"longTermVision": "Grow"' in instructions
        assert EXAMPLES_INSTRUCTION.format(topic="vision or goals") in instructions

    @pytest.mark.asyncio
    async def test_undeclared_fields_are_not_stored(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(ScriptedRun(text='```json\n{"longTermVision": "Grow", "mood": "happy"}\n```'))

        result = await section_service.send_message(document_id, "visionAndGoals", "Grow")

        assert result.structured_data == {"longTermVision": "Grow"}
        assert "mood" not in plan_store.content(document_id)["vision"]

    @pytest.mark.asyncio
    async def test_list_payload_goes_to_list_field(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(ScriptedRun(text='```json\n["Honesty", "Craft"]\n```'))

        result = await section_service.send_message(document_id, "missionStatement", "Our values")

        assert result.structured_data == {"coreValues": ["Honesty", "Craft"]}

    @pytest.mark.asyncio
    async def test_nested_section_path(self, section_service, plan_store, assistant):
        document_id = plan_store.add({"financialPlan": {"revenueProjections": {"revenueStreams": []}}})
        assistant.queue(
            ScriptedRun(
                text='```json\n{"oneTimeCosts": [{"name": "Oven", "amount": 5000}], "totalStartupCost": 5000}\n```'
            )
        )

        result = await section_service.send_message(document_id, "startupCosts", "An oven for $5,000")

        content = plan_store.content(document_id)
        assert content["financialPlan"]["revenueProjections"] == {"revenueStreams": []}
        assert content["financialPlan"]["startupCosts"] == result.structured_data
        assert "| **Total** | **$5,000** |  |" in result.rendered_text

    @pytest.mark.asyncio
    async def test_rendering_survives_empty_merge(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(ScriptedRun(text=VISION_REPLY))
        result = await section_service.send_message(document_id, "visionAndGoals", "Vision ...")
        definition = section_service.registry.get("visionAndGoals")

        merged = merge_section(plan_store.content(document_id), definition.path, {})

        assert definition.render(get_section_data(merged, definition.path)) == result.rendered_text

    @pytest.mark.asyncio
    async def test_concurrent_messages_on_one_section(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(ScriptedRun(text=VISION_REPLY, polls=2), ScriptedRun(text=GOALS_REPLY, polls=2))

        results = await asyncio.gather(
            section_service.send_message(document_id, "visionAndGoals", "Vision ..."),
            section_service.send_message(document_id, "visionAndGoals", "Goals ..."),
        )

        assert len({result.thread_id for result in results}) == 1
        assert len(assistant.created_threads) == 1
        assert set(plan_store.content(document_id)["vision"]) == {"longTermVision", "yearOneGoals"}

    @pytest.mark.asyncio
    async def test_concurrent_messages_on_two_sections(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(
            ScriptedRun(text=VISION_REPLY),
            ScriptedRun(text='```json\n{"businessName": "Ledgerly"}\n```'),
        )

        await asyncio.gather(
            section_service.send_message(document_id, "visionAndGoals", "Vision ..."),
            section_service.send_message(document_id, "companyOverview", "We are Ledgerly"),
        )

        content = plan_store.content(document_id)
        assert content["vision"] == {"longTermVision": "Simplify bookkeeping for small retailers."}
        assert content["companyOverview"] == {"businessName": "Ledgerly"}
        assert set(content[THREADS_KEY]) == {"visionAndGoals", "companyOverview"}

    @pytest.mark.asyncio
    async def test_persistence_failure_is_surfaced(self, section_service, plan_store, assistant):
        thread_id = await assistant.create_thread()
        document_id = plan_store.add({THREADS_KEY: {"visionAndGoals": thread_id}})
        section_service.merger.max_attempts = 1
        plan_store.before_update = lambda doc_id: plan_store.external_write(doc_id, "other", 1)
        assistant.queue(ScriptedRun(text=VISION_REPLY))

        with pytest.raises(PersistenceError):
            await section_service.send_message(document_id, "visionAndGoals", "Vision ...")

    @pytest.mark.asyncio
    async def test_rejects_blank_message(self, section_service, plan_store):
        with pytest.raises(ValidationError):
            await section_service.send_message(plan_store.add(), "visionAndGoals", "   ")

    @pytest.mark.asyncio
    async def test_unknown_section(self, section_service, plan_store, assistant):
        with pytest.raises(SectionNotFoundError):
            await section_service.send_message(plan_store.add(), "unknownSection", "hi")

        assert assistant.created_threads == []

    @pytest.mark.asyncio
    async def test_unknown_document(self, section_service, assistant):
        with pytest.raises(DocumentNotFoundError):
            await section_service.send_message(uuid4(), "visionAndGoals", "hi")

        assert assistant.created_threads == []


class TestRequestScopedServices:
    """One service per request, as the API builds them, sharing the process lock table."""

    @staticmethod
    def _service(plan_store, assistant, locks):
        executor = RunExecutor(assistant, poll_interval=1.0, max_poll_attempts=10, sleep=yielding_sleep)
        return SectionConversationService(
            plan_store=plan_store,
            assistant=assistant,
            registry=build_default_registry(),
            executor=executor,
            assistant_id="asst_conversation",
            handle_locks=locks,
        )

    def test_empty_shared_table_is_used(self, plan_store, assistant):
        locks = KeyedLocks()

        service = self._service(plan_store, assistant, locks)

        assert service.handle_locks is locks
        assert service.thread_registry.locks is locks

    @pytest.mark.asyncio
    async def test_concurrent_requests_do_not_overlap_runs(self, plan_store, assistant):
        assistant.yielding = True
        locks = KeyedLocks()
        document_id = plan_store.add()
        assistant.queue(ScriptedRun(text=VISION_REPLY, polls=2), ScriptedRun(text=GOALS_REPLY, polls=2))

        results = await asyncio.gather(
            self._service(plan_store, assistant, locks).send_message(document_id, "visionAndGoals", "Vision ..."),
            self._service(plan_store, assistant, locks).send_message(document_id, "visionAndGoals", "Goals ..."),
        )

        assert assistant.overlapping_runs == []
        assert len(assistant.created_threads) == 1
        assert {result.thread_id for result in results} == set(assistant.created_threads)
        assert set(plan_store.content(document_id)["vision"]) == {"longTermVision", "yearOneGoals"}
        assert len(locks) == 0


class TestStructuringTurn:
    """Sections whose payload comes from a separate structuring turn."""

    @pytest.mark.asyncio
    async def test_payload_extracted_and_exchange_deleted(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(
            ScriptedRun(text="Sounds efficient. How many loaves a day can you bake?"),
            ScriptedRun(text='```json\n{"processOverview": "Bake every morning"}\n```'),
        )

        result = await section_service.send_message(document_id, "operationsProduction", "We bake every morning")

        assert result.updated
        assert result.structured_data == {"processOverview": "Bake every morning"}
        assert result.assistant_text == "Sounds efficient. How many loaves a day can you bake?"
        assert assistant.transcript(result.thread_id) == [
            "user: We bake every morning",
            "assistant: Sounds efficient. How many loaves a day can you bake?",
        ]
        assert len(assistant.deleted_messages) == 2
        conversation_run, structuring_run = assistant.run_requests
        assert conversation_run["assistant_id"] == "asst_conversation"
        assert "JSON structure:" not in conversation_run["instructions"]
        assert structuring_run["assistant_id"] == "asst_structuring"
        assert structuring_run["instructions"] is None

    @pytest.mark.asyncio
    async def test_no_payload_keeps_exchange(self, section_service, plan_store, assistant):
        document_id = plan_store.add()
        assistant.queue(ScriptedRun(text="Tell me more."), ScriptedRun(text="Nothing to extract yet."))

        result = await section_service.send_message(document_id, "operationsProduction", "Hello")

        assert not result.updated
        assert result.structured_data == {}
        assert len(assistant.transcript(result.thread_id)) == 4
        assert assistant.deleted_messages == []

    @pytest.mark.asyncio
    async def test_failed_structuring_run_is_no_update(self, section_service, plan_store, assistant):
        document_id = plan_store.add({"operations": {"production": {"processOverview": "Bake"}}})
        assistant.queue(
            ScriptedRun(text="Got it."),
            ScriptedRun(status=RunStatus.FAILED, last_error="quota"),
        )

        result = await section_service.send_message(document_id, "operationsProduction", "We also pack")

        assert not result.updated
        assert result.assistant_text == "Got it."
        assert result.structured_data == {"processOverview": "Bake"}


class TestDirectAccess:
    @pytest.mark.asyncio
    async def test_get_section(self, section_service, plan_store):
        document_id = plan_store.add({"vision": {"longTermVision": "Grow"}})

        view = await section_service.get_section(document_id, "visionAndGoals")

        assert view.structured_data == {"longTermVision": "Grow"}
        assert view.rendered_text == "## Vision & Goals\n\n### Long-Term Vision\nGrow\n"

    @pytest.mark.asyncio
    async def test_get_empty_section(self, section_service, plan_store):
        view = await section_service.get_section(plan_store.add(), "startupCosts")

        assert view.structured_data == {}
        assert view.rendered_text == ""

    @pytest.mark.asyncio
    async def test_update_section(self, section_service, plan_store, assistant):
        document_id = plan_store.add({"vision": {"longTermVision": "Grow"}})

        view = await section_service.update_section(
            document_id, "visionAndGoals", {"yearOneGoals": ["Open"], "ignored": True}
        )

        assert view.structured_data == {"longTermVision": "Grow", "yearOneGoals": ["Open"]}
        assert "### First Year Goals\n- Open\n" in view.rendered_text
        assert assistant.run_requests == []

    @pytest.mark.asyncio
    async def test_update_without_known_fields(self, section_service, plan_store):
        with pytest.raises(ValidationError):
            await section_service.update_section(plan_store.add(), "visionAndGoals", {"ignored": True})

    def test_list_sections(self, section_service):
        keys = [definition.key for definition in section_service.list_sections()]

        assert "visionAndGoals" in keys
        assert len(keys) == len(set(keys))
