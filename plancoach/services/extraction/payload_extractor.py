"""Pull a structured JSON payload out of assistant free text."""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from plancoach.utils.logging import get_logger, truncate_for_log

LOGGER = get_logger(__name__)

TAGGED_FENCE = "tagged_fence"
FENCE = "fence"
BARE_SPAN = "bare_span"

# The tag is a bare word; anything else on the opening line belongs to the body
TAGGED_FENCE_PATTERN = re.compile(r"```[ \t]*json(?![\w+-])\s*(.*?)```", re.IGNORECASE | re.DOTALL)
FENCE_PATTERN = re.compile(r"```[\w+-]*\s*(.*?)```", re.DOTALL)
SPAN_START_PATTERN = re.compile(r"[\[{]")

_DECODER = json.JSONDecoder()

Payload = Union[Dict[str, Any], List[Any]]


@dataclass
class ExtractionResult:
    """Outcome of scanning one reply.

    ``payload`` is None when nothing usable was found; ``error`` then says why.
    """

    payload: Optional[Payload] = None
    source: Optional[str] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.payload is not None


def _find_fenced(text: str):
    """Return ``(source, body)`` of the highest-priority fenced block."""
    for source, pattern in ((TAGGED_FENCE, TAGGED_FENCE_PATTERN), (FENCE, FENCE_PATTERN)):
        match = pattern.search(text)
        if match:
            return source, match.group(1)
    return None, None


def _decode_first_span(text: str, starts: List[int]) -> Payload:
    """Decode the first object or array in free text.

    Brackets that do not open valid JSON, e.g. "[Your Company]", are skipped;
    the span ends wherever the JSON value starting at the bracket ends.

    Raises:
        ValueError: If nothing decodes (the first decode error)
    """
    first_error = None
    for start in starts:
        try:
            payload, _ = _DECODER.raw_decode(text, start)
        except (ValueError, RecursionError) as e:
            first_error = first_error or e
            continue
        return payload
    raise first_error


def extract_payload(text: Optional[str]) -> ExtractionResult:
    """Find and parse the structured payload in an assistant reply.

    Candidates, in priority order:
    - a fenced block tagged ``json``
    - any fenced block
    - the first ``{`` or ``[`` in the text that opens a JSON value

    Only the first candidate is considered. This never raises: a missing or
    unparseable candidate yields an empty result and a warning with the raw
    text.

    Args:
        text: Assistant reply

    Returns:
        ExtractionResult with the payload, or with ``error`` set
    """
    if not text or not text.strip():
        return ExtractionResult(error="empty reply")

    source, body = _find_fenced(text)
    starts = []
    if source is None:
        starts = [match.start() for match in SPAN_START_PATTERN.finditer(text)]
        if not starts:
            LOGGER.info(f"No structured payload in reply: {truncate_for_log(text, 200)}")
            return ExtractionResult(error="no structured span found")
        source = BARE_SPAN

    try:
        if source == BARE_SPAN:
            payload = _decode_first_span(text, starts)
        else:
            payload = json.loads(body.strip())
    except (ValueError, RecursionError) as e:
        LOGGER.warning(
            f"Failed to parse {source} payload: {e}",
            extra={"raw_text": truncate_for_log(text)},
        )
        return ExtractionResult(source=source, error=str(e))

    if not isinstance(payload, (dict, list)):
        LOGGER.warning(
            f"Ignoring {source} payload of type {type(payload).__name__}",
            extra={"raw_text": truncate_for_log(text)},
        )
        return ExtractionResult(source=source, error="payload is not an object or array")

    LOGGER.debug(f"Extracted {type(payload).__name__} payload from {source}")
    return ExtractionResult(payload=payload, source=source)
