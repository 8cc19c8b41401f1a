from __future__ import annotations

from ..models.new_row import EditableRow
from ..models.sheet_row import SheetRow, SheetSnapshot
from ..sheets.attachments import extract_file_id, has_attachment

"""Plain-text rendering of the inventory list (newest first)."""

ALERT_MARK = "!"
NO_VALUE = "-"


def _attachment_label(name: str, link: str) -> str:
    if not has_attachment(link):
        return f"{name}:{NO_VALUE}"
    file_id = extract_file_id(link)
    return f"{name}:{file_id}" if file_id else f"{name}:link"


def render_row(row: SheetRow) -> str:
    """One list line: identity, pricing, optional CBM values, attachments."""
    color = row.color.strip() or NO_VALUE
    if row.is_color_alert:
        color = f"{ALERT_MARK}{color}"
    parts = [
        f"#{row.original_index}",
        row.supplier or NO_VALUE,
        f"{row.code} x 1.05",
        row.description,
        color,
    ]
    if row.remarks:
        parts.append(f"[{row.remarks}]")
    pricing = f"¥{row.price_native} ₱{row.price_primary}"
    # CBM 値は存在する場合のみ表示
    if row.cbm_value:
        pricing += f" cbm ¥{row.cbm_value}"
    if row.cbm_secondary:
        pricing += f" cbm ₱{row.cbm_secondary}"
    parts.append(pricing)
    parts.append(_attachment_label("DR", row.dr_link))
    parts.append(_attachment_label("CBM", row.cbm_link))
    return " | ".join(parts)


def render_header(snapshot: SheetSnapshot) -> str:
    return f"CNY today: {snapshot.rate}    I1/1000: {snapshot.aux_value}"


def render_list(snapshot: SheetSnapshot, limit: int | None = None) -> list[str]:
    rows = snapshot.rows if limit is None else snapshot.rows[:limit]
    return [render_header(snapshot)] + [render_row(r) for r in rows]


def render_editable(row: EditableRow) -> list[str]:
    labels = (
        ("Date (B)", row.date),
        ("Supplier (C)", row.supplier),
        ("Amount CNY (E)", row.amount_native),
        ("Sacks (F)", row.quantity),
        ("CNY Today (J)", row.cny_today),
        ("CNY MA (O)", row.cny_moving_avg),
        ("CBM (S)", row.cbm_volume),
        ("DR Number (Y)", row.dr_number),
    )
    return [f"row {row.row_number}"] + [f"  {label}: {value}" for label, value in labels]
