"""Pytest configuration and shared fixtures."""

import os

os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("OPENAI_ASSISTANT_ID", "asst_conversation")
os.environ.setdefault("OPENAI_BUSINESS_PLAN_ASSISTANT_ID", "asst_structuring")

import pytest
from fastapi.testclient import TestClient

from plancoach.main import app
from plancoach.services.conversation.run_executor import RunExecutor
from plancoach.services.section_service import SectionConversationService
from plancoach.services.sections.definitions import build_default_registry
from tests.fakes import FakeAssistantService, InMemoryPlanStore, no_sleep


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def assistant() -> FakeAssistantService:
    return FakeAssistantService()


@pytest.fixture
def plan_store() -> InMemoryPlanStore:
    return InMemoryPlanStore()


@pytest.fixture
def executor(assistant: FakeAssistantService) -> RunExecutor:
    """Run executor that polls without sleeping."""
    return RunExecutor(assistant, poll_interval=1.0, max_poll_attempts=10, max_poll_seconds=60.0, sleep=no_sleep)


@pytest.fixture
def section_service(
    plan_store: InMemoryPlanStore,
    assistant: FakeAssistantService,
    executor: RunExecutor,
) -> SectionConversationService:
    return SectionConversationService(
        plan_store=plan_store,
        assistant=assistant,
        registry=build_default_registry(),
        executor=executor,
        assistant_id="asst_conversation",
        structuring_assistant_id="asst_structuring",
    )
