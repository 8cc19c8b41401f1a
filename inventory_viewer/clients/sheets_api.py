from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx

from ..models.new_row import EditableRow, NewRowData
from ..models.sheet_row import SheetSnapshot
from ..sheets.attachments import AttachmentKind
from ..sheets.dates import normalize_date
from ..sheets.decoder import decode_grid, read_export_csv
from ..sheets.encoder import CellValue, build_row_values, cell_range, column_range, next_row_index, row_range
from ..sheets.preserve import attachment_span, splice_preserved
from ..sheets.schema import WRITE_LAYOUT, ColumnKind, column_index
from .errors import AuthError, SheetApiError, TransportError, is_auth_failure

"""Spreadsheet client: CSV export reads and range-addressed value writes.

Reads of the list go through the published CSV export (no token needed).
Writes and edit prefill go through the values API with a bearer token:
- full-row writes use valueInputOption=USER_ENTERED (formulas evaluated)
- single attachment cells use valueInputOption=RAW
- prefill reads use valueRenderOption=UNFORMATTED_VALUE (serials, raw numbers)

Known races (single user assumed, last writer wins):
- append_row scans the reference column then writes row count+1; two
  interleaved appends can target the same row.
- update_row reads the attachment cells then writes the row; an upload that
  lands in between is overwritten.
"""

__all__ = [
    "SHEETS_API_BASE",
    "EXPORT_URL_TEMPLATE",
    "SheetsClient",
    "raise_for_api_error",
]

logger = logging.getLogger(__name__)

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
EXPORT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/export"
REFERENCE_COLUMN = WRITE_LAYOUT["date"].letter
PREFILL_FIRST = "B"
PREFILL_LAST = "Y"


def raise_for_api_error(response: httpx.Response, fallback: str) -> None:
    """Raise AuthError / SheetApiError for a non-2xx response."""
    if response.is_success:
        return
    message = fallback
    try:
        body = response.json()
        message = body.get("error", {}).get("message") or fallback
    except (ValueError, AttributeError):
        pass
    status = response.status_code
    if is_auth_failure(status, message):
        raise AuthError(message, status=status)
    raise SheetApiError(message, status=status)


def _json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as e:
        raise TransportError(f"malformed response: {e}", status=response.status_code) from e
    if not isinstance(data, dict):
        raise TransportError("malformed response: expected an object", status=response.status_code)
    return data


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class SheetsClient:
    """Client for one spreadsheet tab.

    Args:
        sheet_id: Spreadsheet document id
        tab: Sheet tab name used in A1 ranges (e.g. "2026")
        token: OAuth bearer token; required for everything but load_snapshot
        export_gid: gid of the tab published as CSV
        http: httpx.Client to use (tests inject one with a MockTransport)
    """

    def __init__(
        self,
        sheet_id: str,
        tab: str,
        token: str | None = None,
        *,
        export_gid: str | None = None,
        http: httpx.Client | None = None,
    ) -> None:
        self.sheet_id = sheet_id
        self.tab = tab
        self.token = token
        self.export_gid = export_gid
        self._owns_http = http is None
        self._http = http or httpx.Client(follow_redirects=True)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> SheetsClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------
    def _auth_headers(self) -> dict[str, str]:
        if not self.token:
            raise AuthError("authentication required: no access token", status=401)
        return {"Authorization": f"Bearer {self.token}"}

    def _values_url(self, a1_range: str) -> str:
        return f"{SHEETS_API_BASE}/{self.sheet_id}/values/{quote(a1_range, safe='')}"

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(str(e) or e.__class__.__name__) from e

    def get_values(self, a1_range: str, render_option: str | None = None) -> list[list[Any]]:
        params = {"valueRenderOption": render_option} if render_option else None
        resp = self._send("GET", self._values_url(a1_range), headers=self._auth_headers(), params=params)
        raise_for_api_error(resp, "Failed to read Google Sheet")
        # 空範囲の場合 "values" キー自体が返らない
        return _json(resp).get("values", [])

    def update_values(self, a1_range: str, values: list[list[CellValue]], input_option: str) -> dict[str, Any]:
        resp = self._send(
            "PUT",
            self._values_url(a1_range),
            headers=self._auth_headers(),
            params={"valueInputOption": input_option},
            json={"range": a1_range, "majorDimension": "ROWS", "values": values},
        )
        raise_for_api_error(resp, "Failed to update Google Sheet")
        return _json(resp)

    # ------------------------------------------------------------------
    # read side
    # ------------------------------------------------------------------
    def export_url(self) -> str:
        return EXPORT_URL_TEMPLATE.format(sheet_id=self.sheet_id)

    def fetch_export_csv(self) -> str:
        """Fetch the CSV export, cache-busted with a millisecond timestamp."""
        params: dict[str, str] = {"format": "csv", "t": str(int(time.time() * 1000))}
        if self.export_gid:
            params["gid"] = self.export_gid
        resp = self._send("GET", self.export_url(), params=params)
        raise_for_api_error(resp, "Failed to fetch sheet export")
        return resp.text

    def fetch_grid(self) -> list[list[str]]:
        return read_export_csv(self.fetch_export_csv())

    def load_snapshot(self) -> SheetSnapshot:
        snapshot = decode_grid(self.fetch_grid())
        logger.debug(f"snapshot rows={len(snapshot.rows)} rate={snapshot.rate}")
        return snapshot

    def fetch_row_for_edit(self, row_number: int) -> EditableRow:
        """Read B:Y of one row unformatted and map it to an EditableRow."""
        a1 = row_range(self.tab, row_number, PREFILL_FIRST, PREFILL_LAST)
        rows = self.get_values(a1, render_option="UNFORMATTED_VALUE")
        cells = rows[0] if rows else []
        base = column_index(PREFILL_FIRST)
        values: dict[str, str] = {}
        for field, spec in WRITE_LAYOUT.items():
            if spec.kind is not ColumnKind.LITERAL:
                continue
            offset = spec.index - base
            raw = cells[offset] if 0 <= offset < len(cells) else None
            if field == "date":
                values[field] = normalize_date(raw) if raw not in (None, "") else ""
            else:
                values[field] = _cell_text(raw)
        return EditableRow(row_number=row_number, **values)

    # ------------------------------------------------------------------
    # write side
    # ------------------------------------------------------------------
    def next_free_row(self) -> int:
        column = self.get_values(column_range(self.tab, REFERENCE_COLUMN))
        return next_row_index(column)

    def append_row(self, data: NewRowData) -> int:
        """Write data to the first free row; returns the row number written."""
        row_number = self.next_free_row()
        values = build_row_values(row_number, data)
        self.update_values(row_range(self.tab, row_number), [values], "USER_ENTERED")
        logger.debug(f"appended row {row_number}")
        return row_number

    def update_row(self, row_number: int, data: NewRowData) -> list[CellValue]:
        """Overwrite a full row, keeping the current attachment links.

        Returns the values written.
        """
        values = build_row_values(row_number, data)
        first, last = attachment_span()
        existing = self.get_values(row_range(self.tab, row_number, first, last))
        values = splice_preserved(values, existing[0] if existing else None)
        self.update_values(row_range(self.tab, row_number), [values], "USER_ENTERED")
        logger.debug(f"updated row {row_number}")
        return values

    def update_attachment_cell(self, row_number: int, kind: AttachmentKind, link: str) -> str:
        """Write one attachment link as a raw string; returns the updated range."""
        a1 = cell_range(self.tab, kind.column, row_number)
        result = self.update_values(a1, [[link]], "RAW")
        return result.get("updatedRange", a1)
