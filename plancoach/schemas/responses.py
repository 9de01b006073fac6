"""Common API envelope and error models."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ResponseMeta(BaseModel):
    timestamp: datetime = Field(..., description="Time the response was created (UTC)")
    request_id: str = Field(..., description="Correlation ID of the request")
    api_version: str = Field("v1", description="API version")


class ApiResponse(BaseModel):
    """Standard success envelope."""

    status: bool = Field(True, description="Whether the operation succeeded")
    message: str = Field(..., description="Human readable outcome")
    data: Dict[str, Any] = Field(default_factory=dict, description="Response payload")
    meta: ResponseMeta


class ErrorDetail(BaseModel):
    """Problem details (RFC 7807)."""

    type: str = Field("about:blank", description="Problem type URI")
    title: str = Field(..., description="Short summary of the problem")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Explanation of this occurrence")
    instance: Optional[str] = Field(None, description="Request path")
    request_id: Optional[str] = Field(None, description="Correlation ID of the request")
    timestamp: datetime = Field(..., description="Time the error was created (UTC)")
