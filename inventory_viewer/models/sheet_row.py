from __future__ import annotations

from dataclasses import dataclass, field

"""Read-side row model for the inventory viewer.

A SheetRow is one line item decoded from the CSV export. Rows are rebuilt on
every reload; original_index (1-indexed absolute sheet row) is the only
identity and the join key for every write-back.
"""

__all__ = [
    "SheetRow",
    "SheetSnapshot",
]


@dataclass(frozen=True)
class SheetRow:
    """One inventory line item as shown in the list."""
    supplier: str
    code: str
    description: str
    color: str  # 表示上のアラート対象 (remarks が空なら警告表示)
    remarks: str
    dr_link: str  # 空 or "id=<fileId>" を含むURL
    price_native: str
    price_primary: str
    cny_today: str
    cbm_value: str
    cbm_secondary: str
    cbm_link: str
    original_index: int  # 1始まりのシート行番号

    @property
    def is_color_alert(self) -> bool:
        """Color is flagged when the paired remarks field is blank."""
        return not self.remarks or self.remarks.strip() == ""


@dataclass(frozen=True)
class SheetSnapshot:
    """Result of one full-table read: rows newest first plus header values."""
    rows: list[SheetRow] = field(default_factory=list)
    rate: str = "0"
    aux_value: str = "0"

    @property
    def alert_count(self) -> int:
        return sum(1 for r in self.rows if r.is_color_alert)
