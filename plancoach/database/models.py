"""SQLAlchemy models for the business plan store."""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Integer, String, TIMESTAMP, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from plancoach.core.database import Base


class BusinessPlan(Base):
    """Business plan document.

    ``content`` holds every section's structured data plus the
    ``conversationThreads`` map of section key to assistant thread id.
    ``revision`` is bumped on every write and checked by the next one.
    """

    __tablename__ = "business_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False, default="Untitled plan")
    status: Mapped[str] = mapped_column(
        String, nullable=False, default="draft"
    )  # draft | completed
    content: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=lambda: datetime.now(timezone.utc)
    )
