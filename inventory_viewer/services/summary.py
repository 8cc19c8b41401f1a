from __future__ import annotations

from ..models.sheet_row import SheetSnapshot

"""SUMMARY line rendering for a loaded snapshot."""


def _format_elapsed(elapsed_seconds: float) -> str:
    if elapsed_seconds == 0:
        return "0"
    if elapsed_seconds == int(elapsed_seconds):
        return str(int(elapsed_seconds))
    if elapsed_seconds < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{elapsed_seconds:.6f}".rstrip("0").rstrip(".")
    return f"{elapsed_seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(snapshot: SheetSnapshot, elapsed_seconds: float) -> str:
    """Render the SUMMARY line printed after a reload.

    Format:
    SUMMARY rows={n} alerts={n} rate={rate} aux={aux} elapsed_sec={elapsed}

    Examples:
        >>> from inventory_viewer.models.sheet_row import SheetSnapshot
        >>> render_summary_line(SheetSnapshot(rows=[], rate="7.05", aux_value="1,234"), 2.0)
        'SUMMARY rows=0 alerts=0 rate=7.05 aux=1,234 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={len(snapshot.rows)} "
        f"alerts={snapshot.alert_count} "
        f"rate={snapshot.rate.strip() or '0'} "
        f"aux={snapshot.aux_value} "
        f"elapsed_sec={_format_elapsed(elapsed_seconds)}"
    )
