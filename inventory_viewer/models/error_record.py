from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""One failed user operation, as written to the failure log."""

__all__ = [
    "NO_ROW",
    "OPERATIONS",
    "ErrorRecord",
]

NO_ROW = -1  # 行に紐付かない失敗 (reload, 行番号確定前の append)
OPERATIONS = ("load", "prefill", "add", "edit", "attach")


@dataclass(frozen=True)
class ErrorRecord:
    """Failure log entry.

    Attributes:
        timestamp: UTC time of the failure, ISO8601 with 'Z'
        operation: one of OPERATIONS
        row: 1-based sheet row the operation targeted, NO_ROW otherwise
        error_type: FailureKind value (AUTH, TRANSPORT, CONFIG, VALIDATION, UNKNOWN)
        message: the short message shown to the user
    """
    timestamp: str
    operation: str
    row: int
    error_type: str
    message: str

    @classmethod
    def create(
        cls, operation: str, row: int, error_type: str, message: str, *, now: datetime | None = None
    ) -> ErrorRecord:
        when = (now or datetime.now(UTC)).astimezone(UTC)
        return cls(
            timestamp=when.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            operation=operation,
            row=row if row >= 1 else NO_ROW,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
