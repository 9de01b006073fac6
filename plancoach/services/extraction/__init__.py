"""Structured payload extraction and reply cleaning."""

from plancoach.services.extraction.payload_extractor import ExtractionResult, extract_payload
from plancoach.services.extraction.response_cleaner import clean_response

__all__ = ["ExtractionResult", "extract_payload", "clean_response"]
