"""Section merging and rendering."""

from plancoach.services.document.merger import DocumentMerger, get_section_data, merge_section
from plancoach.services.document.renderer import SectionRenderer

__all__ = ["DocumentMerger", "SectionRenderer", "get_section_data", "merge_section"]
