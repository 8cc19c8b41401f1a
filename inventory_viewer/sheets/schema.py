from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Column schema for the inventory sheet.

The CSV export (read side) addresses cells by 0-based array position, the
values API (write side) by column letter. Both are described by the single
COLUMNS table below; READ_LAYOUT and WRITE_LAYOUT are derived views.

Read side: row 1 is a header/metadata row, rows 2-5 are preamble, data
starts at row 6 (1-indexed). Write side: one row spans A:AB (28 cells).
"""

__all__ = [
    "ColumnKind",
    "ColumnSpec",
    "COLUMNS",
    "READ_LAYOUT",
    "WRITE_LAYOUT",
    "WRITE_WIDTH",
    "DATA_START_ROW",
    "ATTACHMENT_COLUMNS",
    "column_index",
    "column_letter",
    "write_column_for",
    "render_template",
]

DATA_START_ROW = 6  # 1-indexed absolute row of the first data row
WRITE_FIRST_COLUMN = "A"
WRITE_LAST_COLUMN = "AB"


class ColumnKind(Enum):
    """Role of a column when a full row is written."""
    BLANK = "blank"  # 書き込み時は常に空文字
    LITERAL = "literal"  # NewRowData のフィールド値
    FORMULA = "formula"  # "{row}" を行番号で置換する数式テンプレート
    CONSTANT = "constant"  # 固定値
    ATTACHMENT = "attachment"  # 画像リンク列 (更新時は既存値を保持)


@dataclass(frozen=True)
class ColumnSpec:
    letter: str
    kind: ColumnKind = ColumnKind.BLANK
    write_field: str | None = None  # LITERAL / ATTACHMENT の論理名
    template: str | None = None  # FORMULA / CONSTANT の値
    read_fields: tuple[str, ...] = ()  # CSV export 側でこの位置から読む論理名
    read_defaults: tuple[str, ...] = ()  # read_fields と同順の既定値

    @property
    def index(self) -> int:
        return column_index(self.letter)


def column_index(letter: str) -> int:
    """Convert a column letter (A, Z, AB, ...) to a 0-based index."""
    if not letter or not letter.isalpha():
        raise ValueError(f"invalid column letter: {letter!r}")
    idx = 0
    for ch in letter.upper():
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx - 1


def column_letter(index: int) -> str:
    """Inverse of column_index."""
    if index < 0:
        raise ValueError(f"invalid column index: {index}")
    letters = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def _literal(letter: str, field: str, read: tuple[str, ...] = (), defaults: tuple[str, ...] = ()) -> ColumnSpec:
    return ColumnSpec(letter, ColumnKind.LITERAL, write_field=field, read_fields=read, read_defaults=defaults)


def _formula(letter: str, template: str, read: tuple[str, ...] = (), defaults: tuple[str, ...] = ()) -> ColumnSpec:
    return ColumnSpec(letter, ColumnKind.FORMULA, template=template, read_fields=read, read_defaults=defaults)


def _constant(letter: str, value: str) -> ColumnSpec:
    return ColumnSpec(letter, ColumnKind.CONSTANT, template=value)


def _blank(letter: str, read: tuple[str, ...] = (), defaults: tuple[str, ...] = ()) -> ColumnSpec:
    return ColumnSpec(letter, ColumnKind.BLANK, read_fields=read, read_defaults=defaults)


# The export tab and the write tab share column letters but not meaning:
# e.g. B is "supplier" in the export and "date" when writing.
COLUMNS: tuple[ColumnSpec, ...] = (
    _blank("A"),
    _literal("B", "date", read=("supplier",), defaults=("",)),
    _literal("C", "supplier", read=("description",), defaults=("",)),
    ColumnSpec(
        "D", ColumnKind.ATTACHMENT, write_field="dr_link", read_fields=("dr_link",), read_defaults=("",)
    ),
    _literal("E", "amount_native", read=("price_native",), defaults=("0",)),
    _literal("F", "quantity"),
    _blank("G"),
    _formula("H", "=E{row}*P{row}"),
    _formula("I", "=H{row}*J{row}"),
    # J は export 側で code と cny_today の両方に使われる
    _literal("J", "cny_today", read=("code", "cny_today"), defaults=("", "0")),
    _blank("K"),
    _blank("L"),
    _formula("M", "=E{row}*O{row}"),
    _blank("N"),
    _literal("O", "cny_moving_avg"),
    _constant("P", "1.05"),
    _formula("Q", "=I{row}+U{row}", read=("price_primary",), defaults=("0",)),
    ColumnSpec(
        "R", ColumnKind.ATTACHMENT, write_field="cbm_link", read_fields=("cbm_link",), read_defaults=("",)
    ),
    _literal("S", "cbm_volume", read=("cbm_value",), defaults=("",)),
    _constant("T", "10500"),
    _formula("U", "=S{row}*T{row}", read=("cbm_secondary",), defaults=("",)),
    _formula("V", "=B{row}+5"),
    _constant("W", "30"),
    _formula("X", "=V{row}+W{row}", read=("color",), defaults=(" ",)),
    _literal("Y", "dr_number", read=("remarks",), defaults=("",)),
    _formula("Z", "=S{row}"),
    _constant("AA", "9500"),
    _formula("AB", "=Z{row}*AA{row}"),
)

WRITE_WIDTH = column_index(WRITE_LAST_COLUMN) - column_index(WRITE_FIRST_COLUMN) + 1


def _build_read_layout() -> dict[str, tuple[int, str]]:
    layout: dict[str, tuple[int, str]] = {}
    for spec in COLUMNS:
        for field, default in zip(spec.read_fields, spec.read_defaults, strict=True):
            if field in layout:
                raise ValueError(f"read field mapped twice: {field}")
            layout[field] = (spec.index, default)
    return layout


def _build_write_layout() -> dict[str, ColumnSpec]:
    layout: dict[str, ColumnSpec] = {}
    for spec in COLUMNS:
        if spec.write_field is not None:
            layout[spec.write_field] = spec
    return layout


# logical read field -> (0-based position in an export row, default for a missing cell)
READ_LAYOUT: dict[str, tuple[int, str]] = _build_read_layout()
# logical write field -> column spec
WRITE_LAYOUT: dict[str, ColumnSpec] = _build_write_layout()
ATTACHMENT_COLUMNS: tuple[ColumnSpec, ...] = tuple(c for c in COLUMNS if c.kind is ColumnKind.ATTACHMENT)


def write_column_for(field: str) -> str:
    """Column letter a write-side field lands in."""
    try:
        return WRITE_LAYOUT[field].letter
    except KeyError as e:
        raise KeyError(f"unknown write field: {field}") from e


def render_template(spec: ColumnSpec, row_number: int) -> str:
    """Render a FORMULA / CONSTANT cell for the given absolute row."""
    if spec.template is None:
        raise ValueError(f"column {spec.letter} has no template")
    return spec.template.replace("{row}", str(row_number))
