# Shared pytest fixtures
from __future__ import annotations

import csv
import io
import json
import re
import tempfile
from pathlib import Path
from urllib.parse import unquote

import httpx
import pytest

from inventory_viewer.logging.init import reset_logging
from inventory_viewer.sheets.schema import column_index

GOOD_TOKEN = "good-token"
SHEET_ID = "sheet-abc"
FOLDER_ID = "folder-xyz"

_A1_RE = re.compile(r"^(?P<tab>[^!]+)!(?P<c1>[A-Z]+)(?P<r1>\d*)(?::(?P<c2>[A-Z]+)(?P<r2>\d*))?$")


def make_grid(header: list[str] | None = None, data_rows: list[dict[int, str]] | None = None, width: int = 25) -> list[list[str]]:
    """Build an export grid: header row, 4 preamble rows, then data rows.

    data_rows entries map 0-based column position -> cell text.
    """
    head = list(header or [])
    head += [""] * (width - len(head))
    grid = [head] + [[""] * width for _ in range(4)]
    for cells in data_rows or []:
        row = [""] * width
        for idx, value in cells.items():
            row[idx] = value
        grid.append(row)
    return grid


def grid_to_csv(grid: list[list[str]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(grid)
    return buf.getvalue()


class FakeSheetsBackend:
    """In-memory stand-in for the export, values and drive endpoints."""

    def __init__(self, tab: str = "2026") -> None:
        self.tab = tab
        self.cells: dict[tuple[int, int], object] = {}  # (row, col_index) -> value
        self.export_csv = ""
        self.requests: list[httpx.Request] = []
        self.writes: list[dict] = []  # {"range", "option", "values"}
        self.uploads: list[bytes] = []
        self.permission_status = 200
        self.fail_status: int | None = None
        self.next_file_id = "file123"

    # --- helpers -----------------------------------------------------
    def set_row(self, row: int, values: dict[str, object]) -> None:
        for letter, value in values.items():
            self.cells[(row, column_index(letter))] = value

    def cell(self, letter: str, row: int) -> object:
        return self.cells.get((row, column_index(letter)), "")

    def _parse_range(self, a1: str) -> tuple[int | None, int, int | None, int]:
        m = _A1_RE.match(a1)
        assert m, f"bad range {a1}"
        assert m.group("tab") == self.tab
        c1 = column_index(m.group("c1"))
        c2 = column_index(m.group("c2") or m.group("c1"))
        r1 = int(m.group("r1")) if m.group("r1") else None
        r2 = int(m.group("r2")) if m.group("r2") else r1
        return r1, c1, r2, c2

    def _read(self, a1: str) -> list[list[object]]:
        r1, c1, r2, c2 = self._parse_range(a1)
        rows_present = [r for (r, c) in self.cells if c1 <= c <= c2 and self.cells[(r, c)] != ""]
        if not rows_present:
            return []
        start = r1 or 1
        end = r2 or max(rows_present)
        out: list[list[object]] = []
        for r in range(start, end + 1):
            row = [self.cells.get((r, c), "") for c in range(c1, c2 + 1)]
            while row and row[-1] == "":
                row.pop()  # API drops trailing empty cells
            out.append(row)
        while out and not out[-1]:
            out.pop()
        return out

    def _write(self, a1: str, values: list[list[object]]) -> None:
        r1, c1, _, _ = self._parse_range(a1)
        for dr, row in enumerate(values):
            for dc, value in enumerate(row):
                self.cells[((r1 or 1) + dr, c1 + dc)] = value

    # --- transport ---------------------------------------------------
    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = unquote(request.url.path)
        if host == "docs.google.com":
            return httpx.Response(200, text=self.export_csv)
        if request.headers.get("Authorization") != f"Bearer {GOOD_TOKEN}":
            return httpx.Response(401, json={"error": {"code": 401, "message": "Request had invalid authentication credentials."}})
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"error": {"message": "Backend unavailable"}})
        if host == "sheets.googleapis.com":
            a1 = path.split("/values/", 1)[1]
            if request.method == "GET":
                return httpx.Response(200, json={"range": a1, "majorDimension": "ROWS", "values": self._read(a1)})
            body = json.loads(request.content)
            self._write(a1, body["values"])
            self.writes.append({"range": a1, "option": request.url.params.get("valueInputOption"), "values": body["values"]})
            return httpx.Response(200, json={"updatedRange": a1})
        if host == "www.googleapis.com" and path.startswith("/upload/drive/v3/files"):
            self.uploads.append(request.content)
            return httpx.Response(200, json={"id": self.next_file_id})
        if host == "www.googleapis.com" and path.endswith("/permissions"):
            return httpx.Response(self.permission_status, json={})
        return httpx.Response(404, json={"error": {"message": f"unexpected {request.method} {request.url}"}})


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        for var in ("GOOGLE_CLIENT_ID", "GOOGLE_SHEET_ID", "GOOGLE_DRIVE_FOLDER_ID", "SHEET_TAB", "SHEET_EXPORT_GID", "TOKEN_PATH"):
            monkeypatch.delenv(var, raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return f"""sheet_id: {SHEET_ID}
drive_folder_id: {FOLDER_ID}
client_id: client-1.apps.googleusercontent.com
sheet_tab: "2026"
export_gid: "311571294"
token_path: .inventory_viewer/token.json
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "viewer.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def fake_backend() -> FakeSheetsBackend:
    return FakeSheetsBackend()


@pytest.fixture()
def http_client(fake_backend: FakeSheetsBackend):
    client = httpx.Client(transport=httpx.MockTransport(fake_backend.handler))
    yield client
    client.close()


@pytest.fixture()
def patch_httpx(monkeypatch, fake_backend: FakeSheetsBackend):
    """Route every httpx.Client created by the package to the fake backend."""
    real_client = httpx.Client

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(fake_backend.handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "Client", factory)
    return fake_backend

