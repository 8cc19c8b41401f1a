from __future__ import annotations

from collections.abc import Sequence

from .encoder import CellValue
from .schema import ATTACHMENT_COLUMNS, column_index

"""Preserve-on-update for the attachment columns.

An update rewrites the whole row, so the attachment links (uploaded out of
band) are read back first and spliced into the outgoing values. The read and
the write are two separate requests: an upload landing in between is lost.
"""

__all__ = [
    "attachment_span",
    "splice_preserved",
]


def attachment_span() -> tuple[str, str]:
    """Narrowest column range covering every attachment column."""
    ordered = sorted(ATTACHMENT_COLUMNS, key=lambda c: c.index)
    return ordered[0].letter, ordered[-1].letter


def splice_preserved(values: list[CellValue], preserved: Sequence[object] | None) -> list[CellValue]:
    """Copy attachment cells from a read of attachment_span() into values.

    preserved is the single row returned for that range; the API drops
    trailing empty cells, so short rows mean empty attachments.
    """
    first, _ = attachment_span()
    base = column_index(first)
    cells = list(preserved or [])
    out = list(values)
    for spec in ATTACHMENT_COLUMNS:
        offset = spec.index - base
        existing = cells[offset] if offset < len(cells) else ""
        out[spec.index] = "" if existing is None else str(existing)
    return out
