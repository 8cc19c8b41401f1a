from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import FOLDER_ID, GOOD_TOKEN, SHEET_ID, grid_to_csv, make_grid
from inventory_viewer.auth.token_store import TokenStore
from inventory_viewer.clients.errors import AUTH_MESSAGE, FailureKind
from inventory_viewer.config.loader import ViewerConfig
from inventory_viewer.logging.error_log import ErrorLogBuffer
from inventory_viewer.models.new_row import NewRowData
from inventory_viewer.services.inventory import InventoryService
from inventory_viewer.sheets.attachments import AttachmentKind


def _config(**overrides) -> ViewerConfig:
    base = dict(
        client_id="client-1",
        sheet_id=SHEET_ID,
        drive_folder_id=FOLDER_ID,
        sheet_tab="2026",
        export_gid="311571294",
    )
    base.update(overrides)
    return ViewerConfig(**base)


@pytest.fixture()
def tokens(tmp_path: Path) -> TokenStore:
    store = TokenStore(tmp_path / "token.json")
    store.save(GOOD_TOKEN)
    return store


@pytest.fixture()
def error_log(tmp_path: Path) -> ErrorLogBuffer:
    return ErrorLogBuffer(logs_dir=tmp_path / "logs")


@pytest.fixture()
def service(tokens, error_log, http_client) -> InventoryService:
    return InventoryService(_config(), tokens, error_log=error_log, http=http_client)


def _records(buf: ErrorLogBuffer) -> list[dict]:
    path = buf.flush()
    if path is None:
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_load_success(service, fake_backend):
    fake_backend.export_csv = grid_to_csv(make_grid(["", "", "", "", "", "", "", "", "12000"], [{1: "Acme"}]))
    result = service.load()
    assert result.ok
    assert result.value.rows[0].supplier == "Acme"
    assert result.value.aux_value == "12"
    assert result.message == "loaded 1 rows"


def test_load_works_without_token(tmp_path, error_log, http_client, fake_backend):
    fake_backend.export_csv = grid_to_csv(make_grid(data_rows=[{1: "Acme"}]))
    svc = InventoryService(_config(client_id=None), TokenStore(tmp_path / "none.json"), error_log, http_client)
    assert svc.load().ok


def test_load_without_sheet_id_is_config_failure(tokens, error_log, http_client):
    svc = InventoryService(_config(sheet_id=None), tokens, error_log, http_client)
    result = svc.load()
    assert not result.ok
    assert result.kind is FailureKind.CONFIG
    assert _records(error_log)[0]["error_type"] == "CONFIG"


def test_add_reports_row(service, fake_backend):
    for r in range(1, 10):
        fake_backend.set_row(r, {"B": r})
    result = service.add(NewRowData(date="2026-03-01", supplier="Acme"))
    assert result.ok
    assert result.value == 10
    assert result.message == "Row 10 added"


def test_writes_blocked_in_read_only_mode(tokens, error_log, http_client, fake_backend):
    svc = InventoryService(_config(client_id=None), tokens, error_log, http_client)
    result = svc.add(NewRowData(supplier="Acme"))
    assert not result.ok
    assert result.kind is FailureKind.CONFIG
    assert "GOOGLE_CLIENT_ID" in result.message
    assert fake_backend.requests == []


def test_expired_token_asks_for_login(tmp_path, error_log, http_client):
    store = TokenStore(tmp_path / "t.json")
    store.save("expired")
    svc = InventoryService(_config(), store, error_log, http_client)
    result = svc.edit(42, NewRowData(supplier="Acme"))
    assert not result.ok
    assert result.needs_login
    assert result.message == AUTH_MESSAGE
    rec = _records(error_log)[0]
    assert rec["operation"] == "edit"
    assert rec["row"] == 42
    assert rec["error_type"] == "AUTH"


def test_missing_token_asks_for_login(tmp_path, error_log, http_client):
    svc = InventoryService(_config(), TokenStore(tmp_path / "none.json"), error_log, http_client)
    assert svc.prefill(6).needs_login


def test_edit_preserves_attachments(service, fake_backend):
    fake_backend.set_row(42, {"B": 46037, "C": "Old", "D": "https://drive.google.com/open?id=abc123", "R": "https://x/?id=zzz"})
    result = service.edit(42, NewRowData(supplier="Acme"))
    assert result.ok
    assert result.message == "Row 42 updated"
    assert fake_backend.cell("C", 42) == "Acme"
    assert fake_backend.cell("D", 42) == "https://drive.google.com/open?id=abc123"
    assert fake_backend.cell("R", 42) == "https://x/?id=zzz"


def test_prefill(service, fake_backend):
    fake_backend.set_row(7, {"B": 46037, "C": "Acme", "E": 250.0, "Y": "DR-1"})
    result = service.prefill(7)
    assert result.ok
    row = result.value
    assert row.date == "2026-01-15"
    assert row.supplier == "Acme"
    assert row.amount_native == "250"
    assert row.dr_number == "DR-1"


def test_attach_uploads_then_links(service, fake_backend, tmp_path):
    image = tmp_path / "receipt.png"
    image.write_bytes(b"\x89PNG\r\n")
    fake_backend.next_file_id = "img42"
    result = service.attach(9, AttachmentKind.CBM, image)
    assert result.ok
    assert result.value.file_id == "img42"
    assert fake_backend.cell("R", 9) == result.value.drive_link
    assert fake_backend.writes[-1]["option"] == "RAW"


def test_attach_rejects_non_image(service, fake_backend, tmp_path, error_log):
    doc = tmp_path / "notes.txt"
    doc.write_text("hello", encoding="utf-8")
    result = service.attach(9, AttachmentKind.DR, doc)
    assert not result.ok
    assert result.kind is FailureKind.VALIDATION
    assert result.message == "Please select an image file"
    assert fake_backend.uploads == []
    assert _records(error_log)[0]["operation"] == "attach"


def test_attach_requires_folder(tokens, error_log, http_client, tmp_path):
    image = tmp_path / "a.png"
    image.write_bytes(b"x")
    svc = InventoryService(_config(drive_folder_id=None), tokens, error_log, http_client)
    result = svc.attach(9, AttachmentKind.DR, image)
    assert result.kind is FailureKind.CONFIG
    assert "Upload configuration missing" in result.message


def test_backend_failure_is_transport(service, fake_backend):
    fake_backend.fail_status = 503
    result = service.add(NewRowData(supplier="Acme"))
    assert result.kind is FailureKind.TRANSPORT
    assert result.message == "Backend unavailable"
