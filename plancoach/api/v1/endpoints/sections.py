"""Business plan section conversation endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from plancoach.dependencies import (
    get_section_document_service,
    get_section_registry,
    get_section_service,
)
from plancoach.schemas.responses import ApiResponse
from plancoach.schemas.sections import (
    SectionDataResponse,
    SectionMessageRequest,
    SectionMessageResponse,
    SectionSummary,
    SectionUpdateRequest,
)
from plancoach.services.section_service import SectionConversationService, SectionDocumentService
from plancoach.services.sections.registry import SectionRegistry
from plancoach.utils.logging import get_logger
from plancoach.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/",
    response_model=ApiResponse,
    summary="List sections",
    operation_id="list_sections",
)
async def list_sections(
    request: Request,
    registry: Annotated[SectionRegistry, Depends(get_section_registry)],
) -> ApiResponse:
    """List the sections that support guided conversations."""
    sections = [
        SectionSummary(
            key=definition.key,
            title=definition.title,
            path=list(definition.path),
            extraction_mode=definition.extraction_mode.value,
            fields=list(definition.fields),
        )
        for definition in registry
    ]
    return create_api_response(
        data={"total": len(sections), "items": [section.model_dump() for section in sections]},
        message="Sections retrieved successfully",
        request=request,
    )


@router.post(
    "/{section_key}/message",
    response_model=ApiResponse,
    summary="Send a message to a section conversation",
    operation_id="send_section_message",
)
async def send_section_message(
    request: Request,
    section_key: str,
    payload: SectionMessageRequest,
    section_service: Annotated[SectionConversationService, Depends(get_section_service)],
) -> ApiResponse:
    """Send a message to the section's assistant and merge any structured answer into the plan."""
    result = await section_service.send_message(payload.document_id, section_key, payload.message)

    data = SectionMessageResponse(
        section_key=result.section_key,
        assistant_text=result.assistant_text,
        structured_data=result.structured_data,
        rendered_text=result.rendered_text,
        updated=result.updated,
        thread_id=result.thread_id,
        run_id=result.run_id,
    )
    return create_api_response(
        data=data,
        message="Section updated" if result.updated else "Message processed",
        request=request,
    )


@router.get(
    "/{section_key}",
    response_model=ApiResponse,
    summary="Get section data",
    operation_id="get_section",
)
async def get_section(
    request: Request,
    section_key: str,
    section_service: Annotated[SectionDocumentService, Depends(get_section_document_service)],
    document_id: UUID = Query(..., description="Business plan ID"),
) -> ApiResponse:
    """Return the section's structured data and its rendered text."""
    view = await section_service.get_section(document_id, section_key)
    return create_api_response(
        data=SectionDataResponse(
            section_key=view.section_key,
            structured_data=view.structured_data,
            rendered_text=view.rendered_text,
        ),
        message="Section retrieved successfully",
        request=request,
    )


@router.put(
    "/{section_key}",
    response_model=ApiResponse,
    summary="Update section data",
    operation_id="update_section",
)
async def update_section(
    request: Request,
    section_key: str,
    payload: SectionUpdateRequest,
    section_service: Annotated[SectionDocumentService, Depends(get_section_document_service)],
) -> ApiResponse:
    """Merge edited fields into the section without a conversation turn."""
    view = await section_service.update_section(payload.document_id, section_key, payload.data)
    return create_api_response(
        data=SectionDataResponse(
            section_key=view.section_key,
            structured_data=view.structured_data,
            rendered_text=view.rendered_text,
        ),
        message="Section updated successfully",
        request=request,
    )
