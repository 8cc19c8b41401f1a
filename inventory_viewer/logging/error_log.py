from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Failure log: JSON Lines under logs/, one file per CLI run.

The file is named errors-YYYYMMDD-HHMMSS.log (UTC) and only created when
something actually failed. Each line is an ErrorRecord and is validated in
the contract tests against error_log_schema.json.
"""

__all__ = [
    "LOGS_DIR",
    "SCHEMA_PATH",
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("logs")
SCHEMA_PATH = Path(__file__).with_name("error_log_schema.json")


class ErrorLogBuffer:
    """Collects failures during a run and appends them to the log on flush()."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = logs_dir or LOGS_DIR
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    @property
    def file_path(self) -> Path:
        # 最初の flush で確定、以降は同じファイルに追記
        if self._path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            name = f"errors-{datetime.now(UTC):%Y%m%d-%H%M%S}.log"
            self._path = self.logs_dir / name
        return self._path

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Write pending records; None when there was nothing to write."""
        if not self._pending:
            return None
        path = self.file_path
        lines = "".join(f"{r.to_json_line()}\n" for r in self._pending)
        with path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._pending.clear()
        return path
