"""Non-destructive section merges into a business plan document."""

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
from uuid import UUID

from plancoach.core.exceptions import PersistenceError, StaleRevisionError
from plancoach.schemas.plans import PlanDocument, PlanStore
from plancoach.utils.logging import get_logger

LOGGER = get_logger(__name__)

SectionPath = Tuple[str, ...]


def get_section_data(content: Optional[Mapping[str, Any]], path: Sequence[str]) -> Dict[str, Any]:
    """Return a shallow copy of the dict stored at ``path`` (``{}`` if absent)."""
    node: Any = content or {}
    for key in path:
        if not isinstance(node, Mapping):
            return {}
        node = node.get(key)
    return dict(node) if isinstance(node, Mapping) else {}


def merge_section(
    content: Optional[Mapping[str, Any]],
    path: Sequence[str],
    payload: Mapping[str, Any],
) -> Dict[str, Any]:
    """Merge ``payload`` into the section at ``path`` and return new content.

    Top-level keys outside the path keep their original objects. Dicts along
    the path are shallow-copied. At the section, payload keys are added or
    overwrite existing ones; keys absent from the payload are kept.

    Args:
        content: Current document content (not mutated)
        path: Section path, e.g. ("financialPlan", "startupCosts")
        payload: Extracted structured data

    Returns:
        The merged document content
    """
    if not path:
        raise ValueError("Section path must not be empty")
    if not isinstance(payload, Mapping):
        raise TypeError(f"Section payload must be a mapping, got {type(payload).__name__}")

    merged: Dict[str, Any] = dict(content or {})
    node = merged
    for depth, key in enumerate(path[:-1]):
        child = node.get(key)
        if child is None:
            child = {}
        elif not isinstance(child, Mapping):
            LOGGER.warning(
                f"Replacing non-object value at {'.'.join(path[:depth + 1])} while merging section"
            )
            child = {}
        else:
            child = dict(child)
        node[key] = child
        node = child

    leaf = path[-1]
    existing = node.get(leaf)
    if existing is not None and not isinstance(existing, Mapping):
        LOGGER.warning(f"Replacing non-object section value at {'.'.join(path)}")
        existing = None
    node[leaf] = {**(existing or {}), **payload}
    return merged


class DocumentMerger:
    """Persists section merges with the plan store's revision check.

    A stale revision means another request wrote the plan in between; the
    merge is recomputed from a fresh read so that write is not lost.
    """

    def __init__(self, plan_store: PlanStore, max_attempts: int = 3):
        self.plan_store = plan_store
        self.max_attempts = max(1, max_attempts)

    async def merge_and_persist(
        self,
        document_id: UUID,
        path: Sequence[str],
        payload: Mapping[str, Any],
        document: Optional[PlanDocument] = None,
    ) -> Dict[str, Any]:
        """Merge a payload into a section and write the document.

        Args:
            document_id: Business plan ID
            path: Section path
            payload: Keys to merge
            document: Snapshot already read by the caller, reused on the first attempt

        Returns:
            The section's structured data after the merge

        Raises:
            DocumentNotFoundError: If the plan does not exist
            PersistenceError: If the write fails or keeps conflicting
        """
        for attempt in range(self.max_attempts):
            if document is None:
                document = await self.plan_store.get_document(document_id)

            content = merge_section(document.content, path, payload)
            try:
                await self.plan_store.update_document(document_id, content, document.revision)
            except StaleRevisionError:
                LOGGER.warning(
                    f"Concurrent write on plan {document_id}, retrying merge "
                    f"(attempt {attempt + 1}/{self.max_attempts})",
                    extra={"section_path": ".".join(path)},
                )
                document = None
                continue

            LOGGER.info(
                f"Merged {len(payload)} field(s) into {'.'.join(path)} of plan {document_id}",
                extra={"fields": sorted(payload)},
            )
            return get_section_data(content, path)

        raise PersistenceError(
            f"Could not persist section {'.'.join(path)} of plan {document_id}: "
            f"document kept changing after {self.max_attempts} attempts"
        )
