"""Deterministic rendering of section data into markdown display text.

A section renderer is an ordered list of named blocks. Each block reads one
field of the section's structured data and is emitted only when that field
holds something. Rendering is a pure function of the data.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from plancoach.services.document.formatting import (
    coerce_number,
    format_currency,
    format_number,
    format_percent,
)

TEXT = "text"
CURRENCY = "currency"
PERCENT = "percent"
NUMBER = "number"


def is_blank(value: Any) -> bool:
    """True for None, whitespace-only strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def format_value(value: Any, kind: str = TEXT) -> str:
    """Format a scalar according to a column/field kind."""
    if is_blank(value):
        return ""
    if kind == CURRENCY:
        return format_currency(value)
    if kind == PERCENT:
        return format_percent(value)
    if kind == NUMBER:
        return format_number(value)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float, Decimal)):
        return format_number(value)
    if isinstance(value, Mapping):
        return describe_item(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(item) for item in value if not is_blank(item))
    return str(value).strip()


def describe_item(item: Any) -> str:
    """One-line description of a list entry.

    Dicts shaped like ``{"name", "value", "description"}`` render as
    ``name: value (description)``; other dicts join their non-empty values.
    """
    if not isinstance(item, Mapping):
        return format_value(item)

    name = item.get("name") or item.get("title") or item.get("item")
    if is_blank(name):
        return " - ".join(
            f"{key}: {format_value(val)}" for key, val in item.items() if not is_blank(val)
        )

    text = str(name).strip()
    value = item.get("value", item.get("amount", item.get("target")))
    if not is_blank(value):
        text += f": {format_value(value)}"
    description = item.get("description")
    if not is_blank(description):
        text += f" ({str(description).strip()})"
    return text


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return [item for item in value if not is_blank(item)]
    return [value]


@dataclass(frozen=True)
class Block(ABC):
    """A named part of a rendered section backed by one data field."""

    field: str
    heading: str

    def render(self, data: Mapping[str, Any]) -> Optional[str]:
        value = data.get(self.field)
        if is_blank(value):
            return None
        body = self.render_body(value)
        if not body:
            return None
        return f"### {self.heading}\n{body}\n"

    @abstractmethod
    def render_body(self, value: Any) -> str:
        """Render the non-empty field value."""


@dataclass(frozen=True)
class TextBlock(Block):
    def render_body(self, value: Any) -> str:
        if isinstance(value, (list, tuple)):
            return "\n".join(f"- {describe_item(item)}" for item in _as_list(value))
        return format_value(value)


@dataclass(frozen=True)
class BulletListBlock(Block):
    def render_body(self, value: Any) -> str:
        return "\n".join(f"- {describe_item(item)}" for item in _as_list(value))


@dataclass(frozen=True)
class NumberedListBlock(Block):
    def render_body(self, value: Any) -> str:
        return "\n".join(
            f"{index}. {describe_item(item)}"
            for index, item in enumerate(_as_list(value), start=1)
        )


@dataclass(frozen=True)
class NamedValueListBlock(Block):
    """``[{"name", "value"}]`` entries as bold-name bullets, with an optional summed total."""

    value_kind: str = TEXT
    summable: bool = False

    def render_body(self, value: Any) -> str:
        lines = []
        entries = _as_list(value)
        for entry in entries:
            if isinstance(entry, Mapping) and not is_blank(entry.get("name")):
                line = f"- **{str(entry['name']).strip()}**"
                if not is_blank(entry.get("value")):
                    line += f": {format_value(entry['value'], self.value_kind)}"
                if not is_blank(entry.get("description")):
                    line += f" ({str(entry['description']).strip()})"
                lines.append(line)
            else:
                lines.append(f"- {describe_item(entry)}")

        if self.summable:
            rows = [entry for entry in entries if isinstance(entry, Mapping)]
            if rows:
                total = sum_column(rows, "value")
                lines.append(f"- **Total**: {format_value(total, self.value_kind)}")
        return "\n".join(lines)


@dataclass(frozen=True)
class AmountBlock(Block):
    """A single currency figure; ``{"amount", "description"}`` dicts are accepted."""

    def render_body(self, value: Any) -> str:
        if isinstance(value, Mapping):
            text = format_currency(value.get("amount")) if not is_blank(value.get("amount")) else ""
            description = value.get("description")
            if not is_blank(description):
                text = f"{text} ({str(description).strip()})" if text else str(description).strip()
            return text
        return format_currency(value)


@dataclass(frozen=True)
class PercentBlock(Block):
    ratio: bool = False

    def render_body(self, value: Any) -> str:
        return format_percent(value, ratio=self.ratio)


@dataclass(frozen=True)
class Column:
    key: str
    label: str
    kind: str = TEXT
    summable: bool = False


@dataclass(frozen=True)
class FieldGroupBlock(Block):
    """A dict field rendered as labelled bullet lines, e.g. break-even units and revenue."""

    parts: Tuple[Column, ...] = ()

    def render_body(self, value: Any) -> str:
        if not isinstance(value, Mapping):
            return format_value(value)
        lines = [
            f"- {part.label}: {format_value(value.get(part.key), part.kind)}"
            for part in self.parts
            if not is_blank(value.get(part.key))
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class TableBlock(Block):
    """A list of row dicts rendered as a markdown table.

    When any column is summable a total row is appended with the sum of the
    numeric cells of those columns.
    """

    columns: Tuple[Column, ...] = ()
    total_label: str = "Total"

    def render_body(self, value: Any) -> str:
        rows = [row for row in _as_list(value) if isinstance(row, Mapping)]
        if not rows:
            # Free text or plain lists given where a table was expected
            return TextBlock(self.field, self.heading).render_body(value)

        header = "| " + " | ".join(column.label for column in self.columns) + " |"
        divider = "| " + " | ".join("-" * max(3, len(column.label)) for column in self.columns) + " |"
        lines = [header, divider]
        for row in rows:
            cells = [_cell(format_value(row.get(column.key), column.kind)) for column in self.columns]
            lines.append("| " + " | ".join(cells) + " |")

        if any(column.summable for column in self.columns):
            lines.append(self._total_row(rows))

        return "\n".join(lines)

    def _total_row(self, rows: Sequence[Mapping[str, Any]]) -> str:
        cells = []
        for index, column in enumerate(self.columns):
            if column.summable:
                total = sum_column(rows, column.key)
                cells.append(f"**{format_value(total, column.kind)}**")
            elif index == 0:
                cells.append(f"**{self.total_label}**")
            else:
                cells.append("")
        return "| " + " | ".join(cells) + " |"


def sum_column(rows: Sequence[Mapping[str, Any]], key: str) -> Decimal:
    """Sum the numeric values of ``key`` across rows, ignoring non-numeric cells."""
    total = Decimal(0)
    for row in rows:
        number = coerce_number(row.get(key))
        if number is not None:
            total += number
    return total


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


@dataclass(frozen=True)
class SectionRenderer:
    """Callable ``data -> display text`` built from an ordered block list."""

    blocks: Tuple[Block, ...]
    title: Optional[str] = None
    empty_text: str = ""

    def render(self, data: Optional[Mapping[str, Any]]) -> str:
        data = data or {}
        parts = [text for text in (block.render(data) for block in self.blocks) if text]
        if not parts:
            return self.empty_text
        body = "\n".join(parts)
        if self.title:
            return f"## {self.title}\n\n{body}"
        return body

    def __call__(self, data: Optional[Mapping[str, Any]]) -> str:
        return self.render(data)

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(block.field for block in self.blocks)
