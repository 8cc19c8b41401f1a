from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from inventory_viewer.cli import main as cli_main
from inventory_viewer.clients.errors import SheetApiError, TransportError
from inventory_viewer.logging.init import reset_logging

"""Exit code contract tests: 0 success / 1 fatal / 2 operation failed / 3 auth."""


def test_exit_code_fatal_config(temp_workdir: Path, capsys):
    reset_logging()
    code = cli_main(["--config", "missing.yml", "view"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_without_sheet_id(temp_workdir: Path, capsys):
    # 設定ファイル無し + 環境変数無し → Sheet ID 未設定
    reset_logging()
    assert cli_main(["view"]) == 1
    assert "Sheet ID not configured" in capsys.readouterr().out


def test_exit_code_success(write_config: Path, patch_httpx, capsys):
    reset_logging()
    assert cli_main(["view"]) == 0
    assert "SUMMARY rows=0 alerts=0" in capsys.readouterr().out


def test_exit_code_operation_failed(write_config: Path, capsys):
    reset_logging()
    with patch(
        "inventory_viewer.clients.sheets_api.SheetsClient.load_snapshot",
        side_effect=TransportError("connection reset"),
    ):
        code = cli_main(["view"])
    assert code == 2
    out = capsys.readouterr().out
    assert "ERROR load: Network error: connection reset. Please retry." in out


def test_exit_code_auth_required(write_config: Path, capsys):
    reset_logging()
    cli_main(["login", "--token", "stale"])
    with patch(
        "inventory_viewer.clients.sheets_api.SheetsClient.append_row",
        side_effect=SheetApiError("Request had invalid authentication credentials.", status=401),
    ):
        code = cli_main(["add", "--supplier", "Acme"])
    assert code == 3
    assert "Session expired. Please log in again." in capsys.readouterr().out
