from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import pandas as pd

from ..models.sheet_row import SheetRow, SheetSnapshot
from .schema import DATA_START_ROW, READ_LAYOUT

"""Row decoder for the published CSV export.

Grid layout (0-indexed):
- row 0: header/metadata row (exchange rate label + value, auxiliary total)
- rows 1-4: preamble, ignored
- row 5 onward: data rows, absolute sheet row = grid index + 1

Rows are returned newest first; this relies on the sheet being append-only
in chronological order.
"""

__all__ = [
    "DecodeError",
    "RATE_LABEL",
    "RATE_FALLBACK_INDEX",
    "AUX_VALUE_INDEX",
    "read_export_csv",
    "extract_header_values",
    "decode_grid",
]

logger = logging.getLogger(__name__)

RATE_LABEL = "cny today"
RATE_FALLBACK_INDEX = 10  # K1
AUX_VALUE_INDEX = 8  # I1
IDENTITY_FIELDS = ("supplier", "code", "description")

_LEADING_FLOAT_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class DecodeError(Exception):
    """Raised when the CSV export cannot be parsed into a grid."""


def read_export_csv(text: str) -> list[list[str]]:
    """Parse CSV export text into a grid of strings.

    Every cell is read as text (no NaN conversion), blank lines are kept so
    grid positions keep matching sheet rows. Rows narrower than the widest
    row are padded with "".
    """
    if not text.strip():
        return []
    try:
        width = max(len(r) for r in csv.reader(io.StringIO(text)))
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            names=range(width),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except (csv.Error, pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise DecodeError(f"malformed CSV export: {e}") from e
    return [["" if pd.isna(v) else str(v) for v in row] for row in df.values.tolist()]


def _parse_leading_number(text: str) -> Decimal:
    # "12,345 total" -> 12345 / 数値でなければ 0
    m = _LEADING_FLOAT_RE.match(text.replace(",", ""))
    if not m:
        return Decimal(0)
    try:
        return Decimal(m.group(0).strip())
    except InvalidOperation:
        return Decimal(0)


def _cell(row: Sequence[str], index: int) -> str:
    if index < len(row):
        value = row[index]
        return "" if value is None else str(value)
    return ""


def extract_header_values(header: Sequence[str]) -> tuple[str, str]:
    """Return (rate, aux_value) from the header row.

    The rate is the cell right after a label containing "cny today"
    (case-insensitive); when that label is absent or its neighbour is blank,
    the fixed fallback position is used. The auxiliary value is the fixed
    cell divided by 1000, rounded half away from zero and rendered with
    thousands grouping.
    """
    rate = ""
    label_index = next(
        (i for i, cell in enumerate(header) if RATE_LABEL in str(cell).lower()),
        -1,
    )
    if label_index != -1:
        rate = _cell(header, label_index + 1)
    if not rate:
        rate = _cell(header, RATE_FALLBACK_INDEX) or "0"

    aux_raw = _parse_leading_number(_cell(header, AUX_VALUE_INDEX) or "0")
    thousands = (aux_raw / 1000).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    aux_value = f"{thousands:,}"
    return rate, aux_value


def _decode_row(raw: Sequence[str], row_number: int) -> SheetRow:
    values: dict[str, str] = {}
    for name, (index, default) in READ_LAYOUT.items():
        values[name] = _cell(raw, index) or default
    return SheetRow(original_index=row_number, **values)


def decode_grid(grid: Sequence[Sequence[str]]) -> SheetSnapshot:
    """Decode a full export grid into a SheetSnapshot.

    Steps:
    1. Header values from grid[0] (defaults "0" when the grid is empty)
    2. Data rows from grid index DATA_START_ROW - 1 onward
    3. original_index = absolute sheet row, assigned before blank filtering
    4. Rows with blank supplier, code and description are dropped
    5. Result reversed (newest first)
    """
    if not grid:
        return SheetSnapshot(rows=[], rate="0", aux_value="0")
    rate, aux_value = extract_header_values(grid[0])

    offset = DATA_START_ROW - 1
    rows: list[SheetRow] = []
    for position, raw in enumerate(grid[offset:]):
        row = _decode_row(raw, position + DATA_START_ROW)
        if not any(getattr(row, f) for f in IDENTITY_FIELDS):
            continue
        rows.append(row)
    rows.reverse()
    logger.debug(f"decoded {len(rows)} rows from {len(grid)} grid lines")
    return SheetSnapshot(rows=rows, rate=rate, aux_value=aux_value)
