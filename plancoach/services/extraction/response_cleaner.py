"""Remove structured-data residue from assistant text before it is shown."""

import json
import re
from typing import List, Optional, Tuple

FENCED_BLOCK = re.compile(r"```.*?(?:```|\Z)", re.DOTALL)

DIRECTIVE_MARKERS = (
    re.compile(r"\[system\].*?\[/system\]", re.IGNORECASE | re.DOTALL),
    re.compile(
        r"^[ \t]*Here(?:'s| is) (?:the |your )?(?:updated |structured )?JSON"
        r"(?: representation| data| object)?[^:\n]{0,60}:[ \t]*$",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        r"^[ \t]*I(?:'ve| have) updated the [^:\n]{0,60}(?:data|JSON)[^:\n]{0,20}:[ \t]*$",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(r"^[ \t]*Updated (?:content|JSON|data):[ \t]*$", re.IGNORECASE | re.MULTILINE),
)

BLANK_RUNS = re.compile(r"\n[ \t]*(?:\n[ \t]*){2,}")

_DECODER = json.JSONDecoder()


def _json_spans(text: str) -> List[Tuple[int, int]]:
    """Spans of bare JSON objects, or arrays of objects, that parse cleanly."""
    spans = []
    position = 0
    while True:
        starts = [index for index in (text.find("{", position), text.find("[", position)) if index != -1]
        if not starts:
            return spans
        start = min(starts)
        try:
            value, end = _DECODER.raw_decode(text, start)
        except (ValueError, RecursionError):
            position = start + 1
            continue
        if isinstance(value, dict) or (
            isinstance(value, list) and value and all(isinstance(item, dict) for item in value)
        ):
            spans.append((start, end))
            position = end
        else:
            position = start + 1


def strip_json_spans(text: str) -> str:
    spans = _json_spans(text)
    if not spans:
        return text
    pieces = []
    previous = 0
    for start, end in spans:
        pieces.append(text[previous:start])
        previous = end
    pieces.append(text[previous:])
    return "".join(pieces)


def clean_response(text: Optional[str]) -> str:
    """Return the conversational part of an assistant reply.

    Strips fenced blocks (including an unterminated trailing one), bare JSON
    objects, known "here is the JSON" style lead-ins and ``[system]`` notes,
    then collapses runs of blank lines.
    """
    if not text:
        return ""

    cleaned = FENCED_BLOCK.sub("", text)
    cleaned = strip_json_spans(cleaned)
    for marker in DIRECTIVE_MARKERS:
        cleaned = marker.sub("", cleaned)

    cleaned = BLANK_RUNS.sub("\n\n", cleaned)
    return cleaned.strip()
