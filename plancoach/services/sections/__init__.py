"""Section registry: per-section prompts, schemas and renderers."""

from plancoach.services.sections.definitions import build_default_registry
from plancoach.services.sections.registry import (
    ExtractionMode,
    SectionDefinition,
    SectionRegistry,
)

__all__ = [
    "ExtractionMode",
    "SectionDefinition",
    "SectionRegistry",
    "build_default_registry",
]
