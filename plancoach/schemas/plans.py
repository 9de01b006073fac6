"""Plan Store contract shared by the repository and the engine services."""

from dataclasses import dataclass, field
from typing import Any, Dict, Protocol
from uuid import UUID


@dataclass
class PlanDocument:
    """Snapshot of a business plan's content at a given revision."""

    id: UUID
    revision: int
    content: Dict[str, Any] = field(default_factory=dict)


class PlanStore(Protocol):
    """Whole-document read-modify-write store for business plans."""

    async def get_document(self, document_id: UUID) -> PlanDocument:
        """Return the current content and revision, or raise DocumentNotFoundError."""
        ...

    async def update_document(
        self, document_id: UUID, content: Dict[str, Any], expected_revision: int
    ) -> int:
        """Replace the content if the revision still matches and return the new revision.

        Raises StaleRevisionError on mismatch and DocumentNotFoundError when missing.
        """
        ...
