from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import httpx

from ..auth.token_store import TokenStore
from ..clients.drive_api import DriveClient
from ..clients.errors import FailureKind, describe_failure
from ..clients.sheets_api import SheetsClient
from ..config.loader import ViewerConfig
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import NO_ROW, ErrorRecord
from ..models.new_row import EditableRow, NewRowData
from ..models.sheet_row import SheetSnapshot
from ..models.upload import UploadResult
from ..sheets.attachments import AttachmentKind

"""Operation boundary for the inventory viewer.

Each public method is one user action (reload, add, prefill, edit, attach).
Failures are caught here, turned into a short message via describe_failure(),
logged, recorded in the failure log, and returned as an OperationResult.
Nothing raised below this layer escapes to the caller.
"""

__all__ = [
    "OperationResult",
    "InventoryService",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult:
    ok: bool
    message: str
    kind: FailureKind | None = None
    value: Any = None

    @property
    def needs_login(self) -> bool:
        return self.kind is FailureKind.AUTH


class InventoryService:
    """User-facing operations over the configured sheet and drive folder.

    Args:
        config: Viewer configuration
        tokens: Token store holding the bearer token (may be empty)
        error_log: Failure log buffer; records are appended on every failure
        http: Shared httpx.Client (tests inject a MockTransport-backed one)
    """

    def __init__(
        self,
        config: ViewerConfig,
        tokens: TokenStore,
        error_log: ErrorLogBuffer | None = None,
        http: httpx.Client | None = None,
    ) -> None:
        self.config = config
        self.tokens = tokens
        self.error_log = error_log
        self._http = http

    # ------------------------------------------------------------------
    def _sheets(self) -> SheetsClient:
        return SheetsClient(
            self.config.require_sheet_id(),
            self.config.sheet_tab,
            self.tokens.load(),
            export_gid=self.config.export_gid,
            http=self._http,
        )

    def _drive(self) -> DriveClient:
        return DriveClient(self.tokens.load(), self.config.require_folder_id(), http=self._http)

    def _run(self, operation: str, row: int, action: Callable[[], T], success: Callable[[T], str]) -> OperationResult:
        try:
            value = action()
        except Exception as e:  # 操作境界: すべて短いメッセージへ変換
            kind, message = describe_failure(e)
            logger.error(f"{operation}: {message}")
            logger.debug(f"{operation} failed row={row}", exc_info=True)
            if self.error_log is not None:
                self.error_log.append(ErrorRecord.create(operation, row, kind.value, message))
            return OperationResult(ok=False, message=message, kind=kind)
        return OperationResult(ok=True, message=success(value), value=value)

    # ------------------------------------------------------------------
    def load(self) -> OperationResult:
        """Full-table reload. value: SheetSnapshot."""

        def action() -> SheetSnapshot:
            with self._sheets() as sheets:
                return sheets.load_snapshot()

        return self._run("load", NO_ROW, action, lambda s: f"loaded {len(s.rows)} rows")

    def prefill(self, row_number: int) -> OperationResult:
        """Current literal values of a row for editing. value: EditableRow."""

        def action() -> EditableRow:
            self.config.require_writable()
            with self._sheets() as sheets:
                return sheets.fetch_row_for_edit(row_number)

        return self._run("prefill", row_number, action, lambda _: f"row {row_number} loaded")

    def add(self, data: NewRowData) -> OperationResult:
        """Append a new row. value: row number written."""

        def action() -> int:
            self.config.require_writable()
            with self._sheets() as sheets:
                return sheets.append_row(data)

        return self._run("add", NO_ROW, action, lambda r: f"Row {r} added")

    def edit(self, row_number: int, data: NewRowData) -> OperationResult:
        """Overwrite a row (literal columns replaced, attachments kept)."""

        def action() -> list[Any]:
            self.config.require_writable()
            with self._sheets() as sheets:
                return sheets.update_row(row_number, data)

        return self._run("edit", row_number, action, lambda _: f"Row {row_number} updated")

    def attach(self, row_number: int, kind: AttachmentKind, path: Path) -> OperationResult:
        """Upload an image and link it in the row's attachment column. value: UploadResult."""

        def action() -> UploadResult:
            self.config.require_writable()
            self.config.require_sheet_id()
            with self._drive() as drive:
                uploaded = drive.upload_file(path)
            with self._sheets() as sheets:
                sheets.update_attachment_cell(row_number, kind, uploaded.drive_link)
            return uploaded

        return self._run(
            "attach", row_number, action, lambda u: f"{kind.name} image linked to row {row_number} ({u.drive_link})"
        )
