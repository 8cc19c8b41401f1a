from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models.new_row import NewRowData
from .dates import normalize_date
from .schema import COLUMNS, WRITE_WIDTH, ColumnKind, render_template

"""Row encoder for append/update writes.

build_row_values() produces the full A:AB positional row: literal values from
NewRowData, fixed constants, and formula templates with the target row number
substituted. Formulas are re-emitted on every write, so a deleted formula is
restored by the next edit and cannot be overridden through this path.

Attachment columns are emitted as "" placeholders; preserve.splice_preserved()
fills them before an update is sent.
"""

__all__ = [
    "CellValue",
    "build_row_values",
    "next_row_index",
    "row_range",
    "column_range",
    "cell_range",
]

CellValue = str | int | float


def _literal(value: Any) -> CellValue:
    # 未入力は "" (0 を書くとシート側の数式を潰すため)
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, int):
        return value
    return str(value)


def build_row_values(row_number: int, data: NewRowData) -> list[CellValue]:
    """Build the 28-cell positional row addressed at row_number."""
    if row_number < 1:
        raise ValueError(f"row number must be >= 1: {row_number}")
    values: list[CellValue] = [""] * WRITE_WIDTH
    fields = data.as_dict()
    if fields.get("date"):
        fields["date"] = normalize_date(fields["date"])
    for spec in COLUMNS:
        if spec.kind is ColumnKind.LITERAL:
            values[spec.index] = _literal(fields.get(spec.write_field or ""))
        elif spec.kind in (ColumnKind.FORMULA, ColumnKind.CONSTANT):
            values[spec.index] = render_template(spec, row_number)
        # BLANK / ATTACHMENT stay ""
    return values


def next_row_index(column_values: Sequence[Sequence[Any]] | None) -> int:
    """First free row given the values of the reference column.

    Uses count + 1, so the reference column must be contiguous from row 1.
    Two appends racing between this scan and the write can pick the same row.
    """
    return len(column_values or []) + 1


def row_range(tab: str, row_number: int, first: str = "A", last: str = "AB") -> str:
    return f"{tab}!{first}{row_number}:{last}{row_number}"


def column_range(tab: str, letter: str) -> str:
    return f"{tab}!{letter}:{letter}"


def cell_range(tab: str, letter: str, row_number: int) -> str:
    return f"{tab}!{letter}{row_number}"
