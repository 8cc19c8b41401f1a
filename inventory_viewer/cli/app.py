from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from ..auth.token_store import TokenStore
from ..clients.errors import FailureKind, describe_failure
from ..clients.sheets_api import SheetsClient
from ..config.loader import ConfigError, ViewerConfig, load_config
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.new_row import NewRowData
from ..services.inventory import InventoryService, OperationResult
from ..services.listing import render_editable, render_list
from ..services.summary import render_summary_line
from ..sheets.attachments import AttachmentKind

"""CLI entrypoint for the inventory viewer.

Flow:
- Load .env (python-dotenv), then config (YAML + environment)
- Dispatch one subcommand; each maps to one service operation
- Print results, flush the failure log, return an exit code
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1  # config errors / read-only mode
EXIT_OPERATION_FAILED = 2
EXIT_AUTH_REQUIRED = 3

INSPECT_ROWS = 8


def _load_env_file(path: Path) -> None:
    """Load .env without overriding variables already set in the process."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _add_row_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--date", help="Date (B), YYYY-MM-DD or M/D/YYYY")
    p.add_argument("--supplier", help="Supplier (C)")
    p.add_argument("--amount", type=float, dest="amount_native", help="Amount CNY (E)")
    p.add_argument("--quantity", type=float, help="Sacks (F)")
    p.add_argument("--cny-today", type=float, dest="cny_today", help="CNY today (J)")
    p.add_argument("--cny-ma", type=float, dest="cny_moving_avg", help="CNY moving average (O)")
    p.add_argument("--cbm", type=float, dest="cbm_volume", help="CBM volume (S)")
    p.add_argument("--dr-number", dest="dr_number", help="DR number (Y)")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Spreadsheet-backed inventory viewer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help="Path to YAML config (default config/viewer.yml)")
    sub = p.add_subparsers(dest="command", required=True)

    view = sub.add_parser("view", help="Show the inventory list, newest first")
    view.add_argument("--limit", type=int, default=None, help="Show at most N rows")

    sub.add_parser("inspect", help="Print the first rows of the raw CSV export then exit")

    show = sub.add_parser("show", help="Print the editable values of one row")
    show.add_argument("row", type=int)

    add = sub.add_parser("add", help="Append a new row")
    _add_row_options(add)

    edit = sub.add_parser("edit", help="Edit an existing row (attachments are kept)")
    edit.add_argument("row", type=int)
    _add_row_options(edit)

    attach = sub.add_parser("attach", help="Upload an image and link it to a row")
    attach.add_argument("row", type=int)
    attach.add_argument("kind", choices=[k.name for k in AttachmentKind])
    attach.add_argument("file", type=Path)

    login = sub.add_parser("login", help="Store an access token obtained from the OAuth flow")
    login.add_argument("--token", required=True)

    sub.add_parser("logout", help="Forget the stored access token")
    return p.parse_args(argv)


def _row_data(args: argparse.Namespace) -> NewRowData:
    return NewRowData(
        date=args.date,
        supplier=args.supplier,
        amount_native=args.amount_native,
        quantity=args.quantity,
        cny_today=args.cny_today,
        cny_moving_avg=args.cny_moving_avg,
        cbm_volume=args.cbm_volume,
        dr_number=args.dr_number,
    )


def _exit_code(result: OperationResult) -> int:
    if result.ok:
        return EXIT_SUCCESS
    if result.kind is FailureKind.CONFIG:
        return EXIT_FATAL
    if result.needs_login:
        return EXIT_AUTH_REQUIRED
    return EXIT_OPERATION_FAILED


def _report(logger, result: OperationResult) -> int:
    if result.ok:
        logger.info(result.message)
    elif result.needs_login:
        logger.info("run 'login --token <token>' to re-authenticate")
    return _exit_code(result)


def _inspect_data(cfg: ViewerConfig) -> int:
    try:
        with SheetsClient(cfg.require_sheet_id(), cfg.sheet_tab, export_gid=cfg.export_gid) as sheets:
            grid = sheets.fetch_grid()
    except Exception as e:
        kind, message = describe_failure(e)
        print(f"inspect: {message}")
        return EXIT_FATAL if kind is FailureKind.CONFIG else EXIT_OPERATION_FAILED
    print(f"GRID: rows={len(grid)} cols={max((len(r) for r in grid), default=0)}")
    for i, row in enumerate(grid[:INSPECT_ROWS]):
        print(f"  [{i}] {row}")
    return EXIT_SUCCESS


def _view(logger, service: InventoryService, limit: int | None) -> int:
    start = time.perf_counter()
    result = service.load()
    if not result.ok:
        logger.info("reload with 'view' to retry")
        return _exit_code(result)
    snapshot = result.value
    for line in render_list(snapshot, limit):
        print(line)
    summary_line = render_summary_line(snapshot, time.perf_counter() - start)
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS


def _edit(logger, service: InventoryService, args: argparse.Namespace) -> int:
    current = service.prefill(args.row)
    if not current.ok:
        return _report(logger, current)
    # フォーム同様: 既存値をベースに指定項目のみ上書き (行全体を書き直す)
    data = current.value.to_new_row().merged(**_row_data(args).as_dict())
    return _report(logger, service.edit(args.row, data))


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(logger)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if cfg.read_only:
        logger.debug("GOOGLE_CLIENT_ID not configured - editing and uploads disabled")

    tokens = TokenStore(cfg.token_path)
    if args.command == "login":
        tokens.save(args.token)
        logger.info(f"token stored: {tokens.path}")
        return EXIT_SUCCESS
    if args.command == "logout":
        logger.info("logged out" if tokens.clear() else "no stored token")
        return EXIT_SUCCESS
    if args.command == "inspect":
        return _inspect_data(cfg)

    error_log = ErrorLogBuffer()
    service = InventoryService(cfg, tokens, error_log=error_log)
    try:
        if args.command == "view":
            return _view(logger, service, args.limit)
        if args.command == "show":
            result = service.prefill(args.row)
            if result.ok:
                for line in render_editable(result.value):
                    print(line)
            return _report(logger, result)
        if args.command == "add":
            return _report(logger, service.add(_row_data(args)))
        if args.command == "edit":
            return _edit(logger, service, args)
        if args.command == "attach":
            return _report(logger, service.attach(args.row, AttachmentKind.parse(args.kind), args.file))
        logger.error(f"unknown command: {args.command}")  # pragma: no cover
        return EXIT_FATAL  # pragma: no cover
    finally:
        path = error_log.flush()
        if path is not None:
            logger.debug(f"failures recorded in {path}")
