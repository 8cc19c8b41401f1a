from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

"""Write-side row models.

NewRowData is the input for append/update. Every field is optional; a write
is always a full overwrite of the literal columns, so an absent field ends up
as an empty cell (never 0, which would clobber sheet formulas).

EditableRow is the string-only prefill read back for the edit form.
"""

__all__ = [
    "NewRowData",
    "EditableRow",
]


@dataclass(frozen=True)
class NewRowData:
    date: str | None = None  # YYYY-MM-DD (B)
    supplier: str | None = None  # C
    amount_native: float | None = None  # CNY amount (E)
    quantity: float | None = None  # sacks (F)
    cny_today: float | None = None  # J
    cny_moving_avg: float | None = None  # O
    cbm_volume: float | None = None  # S
    dr_number: str | None = None  # Y

    def as_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def merged(self, **overrides: Any) -> NewRowData:
        """Copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


@dataclass(frozen=True)
class EditableRow:
    """Current literal values of a sheet row, as strings."""
    row_number: int
    date: str = ""
    supplier: str = ""
    amount_native: str = ""
    quantity: str = ""
    cny_today: str = ""
    cny_moving_avg: str = ""
    cbm_volume: str = ""
    dr_number: str = ""

    def to_new_row(self) -> NewRowData:
        """Parse back into a NewRowData; blank numeric cells stay None."""

        def num(text: str) -> float | None:
            text = text.strip().replace(",", "")
            if not text:
                return None
            try:
                return float(text)
            except ValueError:
                return None

        return NewRowData(
            date=self.date or None,
            supplier=self.supplier or None,
            amount_native=num(self.amount_native),
            quantity=num(self.quantity),
            cny_today=num(self.cny_today),
            cny_moving_avg=num(self.cny_moving_avg),
            cbm_volume=num(self.cbm_volume),
            dr_number=self.dr_number or None,
        )
