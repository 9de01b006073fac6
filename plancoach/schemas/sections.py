"""Request/response models for the section endpoints."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator


class SectionMessageRequest(BaseModel):
    document_id: UUID = Field(
        ..., validation_alias=AliasChoices("document_id", "documentId"), description="Business plan ID"
    )
    message: str = Field(..., min_length=1, max_length=8000, description="User message")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class SectionUpdateRequest(BaseModel):
    document_id: UUID = Field(
        ..., validation_alias=AliasChoices("document_id", "documentId"), description="Business plan ID"
    )
    data: Dict[str, Any] = Field(..., description="Section fields to merge")


class SectionDataResponse(BaseModel):
    section_key: str = Field(..., description="Section key")
    structured_data: Dict[str, Any] = Field(default_factory=dict, description="Section data")
    rendered_text: str = Field("", description="Markdown rendering of the section")


class SectionMessageResponse(SectionDataResponse):
    assistant_text: str = Field(..., description="Assistant reply with structured data removed")
    updated: bool = Field(False, description="Whether the reply changed the section data")
    thread_id: Optional[str] = Field(None, description="Conversation thread")
    run_id: Optional[str] = Field(None, description="Assistant run that produced the reply")


class SectionSummary(BaseModel):
    key: str
    title: str
    path: List[str]
    extraction_mode: str
    fields: List[str]
