"""Declarative per-section configuration for the conversation engine."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from plancoach.core.exceptions import SectionNotFoundError
from plancoach.services.document.renderer import SectionRenderer
from plancoach.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ExtractionMode(str, Enum):
    """Where a section's structured payload comes from."""

    # The conversational reply carries a JSON block
    INLINE = "inline"
    # A separate "summarise as JSON" turn is run and then deleted
    STRUCTURING_TURN = "structuring_turn"


@dataclass(frozen=True)
class SectionDefinition:
    """Static configuration for one business plan section.

    ``schema`` maps each field to a short description and is used both as the
    schema hint given to the assistant and as the set of accepted payload keys.
    """

    key: str
    title: str
    path: Tuple[str, ...]
    topic: str
    system_prompt: str
    schema: Mapping[str, str]
    renderer: SectionRenderer
    extraction_mode: ExtractionMode = ExtractionMode.INLINE
    list_field: Optional[str] = None
    allow_extra_fields: bool = False
    assistant_id: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.path:
            raise ValueError(f"Section {self.key} needs a non-empty path")
        if self.list_field and self.list_field not in self.schema:
            raise ValueError(f"Section {self.key} list_field {self.list_field} is not in its schema")

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(self.schema)

    @property
    def schema_hint(self) -> str:
        """JSON skeleton describing the expected payload."""
        return json.dumps(dict(self.schema), indent=2)

    def render(self, data: Optional[Mapping[str, Any]]) -> str:
        return self.renderer(data)

    def normalize_payload(self, payload: Any) -> Optional[Dict[str, Any]]:
        """Shape an extracted payload into mergeable section keys.

        Lists are wrapped under ``list_field`` when the section has one.
        Undeclared keys are dropped unless ``allow_extra_fields`` is set.

        Returns:
            The keys to merge, or None when the payload is unusable
        """
        if isinstance(payload, list):
            if not self.list_field:
                LOGGER.warning(f"Section {self.key} received a list payload and has no list field")
                return None
            payload = {self.list_field: payload}

        if not isinstance(payload, Mapping):
            return None

        if self.allow_extra_fields:
            return dict(payload)

        accepted = {name: value for name, value in payload.items() if name in self.schema}
        dropped = sorted(set(payload) - set(accepted))
        if dropped:
            LOGGER.info(f"Dropped undeclared fields from {self.key} payload", extra={"fields": dropped})
        return accepted


class SectionRegistry:
    """Lookup table of section definitions by key."""

    def __init__(self, definitions=()):
        self._definitions: Dict[str, SectionDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: SectionDefinition) -> None:
        if definition.key in self._definitions:
            raise ValueError(f"Section {definition.key} is already registered")
        self._definitions[definition.key] = definition

    def get(self, section_key: str) -> SectionDefinition:
        try:
            return self._definitions[section_key]
        except KeyError:
            raise SectionNotFoundError(section_key) from None

    def __contains__(self, section_key: str) -> bool:
        return section_key in self._definitions

    def __iter__(self) -> Iterator[SectionDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def keys(self) -> Tuple[str, ...]:
        return tuple(self._definitions)
