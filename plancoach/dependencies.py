"""Centralized dependency injection for the FastAPI application.

Process-wide objects (assistant client with its rate limiter, per-thread lock
table, section registry) are built once; repositories and services are built
per request around the request's database session.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from plancoach.core.assistant_client import AssistantClient
from plancoach.core.config import settings
from plancoach.core.database import get_async_session
from plancoach.core.exceptions import ConfigurationError
from plancoach.repositories.plan_repository import PlanRepository
from plancoach.services.conversation.handle_locks import KeyedLocks
from plancoach.services.conversation.rate_limiter import RateLimiter
from plancoach.services.conversation.run_executor import RunExecutor
from plancoach.services.section_service import SectionConversationService, SectionDocumentService
from plancoach.services.sections.definitions import build_default_registry
from plancoach.services.sections.registry import SectionRegistry


@lru_cache
def get_assistant_client() -> AssistantClient:
    """Shared Assistant Service client; its rate limiter spans every request."""
    config = settings.assistant
    return AssistantClient(
        api_key=config.api_key,
        base_url=config.base_url,
        rate_limiter=RateLimiter.from_milliseconds(config.min_request_interval_ms),
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        retry_delay=config.retry_delay,
    )


@lru_cache
def get_handle_locks() -> KeyedLocks:
    return KeyedLocks()


@lru_cache
def get_section_registry() -> SectionRegistry:
    return build_default_registry()


async def get_plan_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> PlanRepository:
    """Get plan repository instance.

    Args:
        db_session: Database session from dependency injection

    Returns:
        PlanRepository: Plan Store for the request
    """
    return PlanRepository(db_session)


async def get_section_service(
    plan_repository: Annotated[PlanRepository, Depends(get_plan_repository)],
    registry: Annotated[SectionRegistry, Depends(get_section_registry)],
) -> SectionConversationService:
    """Get section conversation service instance.

    Args:
        plan_repository: Plan Store for the request
        registry: Section definitions

    Returns:
        SectionConversationService: Pipeline bound to the shared assistant client

    Raises:
        ConfigurationError: If no conversational assistant is configured
    """
    config = settings.assistant
    if not config.assistant_id:
        raise ConfigurationError("OPENAI_ASSISTANT_ID is not configured")

    client = get_assistant_client()
    executor = RunExecutor(
        client,
        poll_interval=config.poll_interval_seconds,
        max_poll_attempts=config.max_poll_attempts,
        max_poll_seconds=config.max_poll_seconds,
    )
    return SectionConversationService(
        plan_store=plan_repository,
        assistant=client,
        registry=registry,
        executor=executor,
        assistant_id=config.assistant_id,
        structuring_assistant_id=config.structuring_assistant_id or None,
        handle_locks=get_handle_locks(),
        max_merge_attempts=settings.max_merge_attempts,
    )


async def get_section_document_service(
    plan_repository: Annotated[PlanRepository, Depends(get_plan_repository)],
    registry: Annotated[SectionRegistry, Depends(get_section_registry)],
) -> SectionDocumentService:
    """Section reads and direct edits; needs no assistant configuration."""
    return SectionDocumentService(
        plan_store=plan_repository,
        registry=registry,
        max_merge_attempts=settings.max_merge_attempts,
    )
