"""Domain models for the spreadsheet-backed inventory viewer."""

from .error_record import ErrorRecord
from .new_row import EditableRow, NewRowData
from .sheet_row import SheetRow, SheetSnapshot
from .upload import UploadResult

__all__ = [
    # Read side
    "SheetRow",
    "SheetSnapshot",
    # Write side
    "NewRowData",
    "EditableRow",
    "UploadResult",
    # Logging
    "ErrorRecord",
]
