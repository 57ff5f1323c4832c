from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, resolve_config
from ..excel.reader import read_sheet_file
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.config_models import AppConfig
from ..services.batch import ProcessingError, collect_files, validate_files
from ..services.summary import render_summary_line
from ..validation.columns import resolve_columns
from ..validation.errors import SheetError
from ..validation.headers import normalize_headers

"""CLI entrypoint.

Commands:
- validate PATH...  validate local spreadsheets offline and print a SUMMARY line
- serve             run the HTTP API with uvicorn

Exit codes (validate): 0 every file approved, 2 some file rejected or
failed, 1 fatal (bad config, missing path).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True lets .env win over variables already in the environment,
    so a project-local database setting is always the one used.
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="order-intake", description="Spreadsheet purchase order validation")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help="Config file (default: config/order_intake.yml if present)")
    sub = p.add_subparsers(dest="command", required=True)

    v = sub.add_parser("validate", help="Validate local spreadsheet files")
    v.add_argument("paths", nargs="+", type=Path, help="Files or directories to validate")
    v.add_argument("--inspect-data", action="store_true", help="Print headers, resolved columns & first rows then exit")

    s = sub.add_parser("serve", help="Run the HTTP API")
    s.add_argument("--host", default="127.0.0.1")
    s.add_argument("--port", type=int, default=8000)
    s.add_argument("--memory", action="store_true", help="Use the in-memory order store instead of PostgreSQL")
    return p.parse_args(argv)


def _inspect_data(paths: list[Path], cfg: AppConfig) -> int:
    try:
        files = collect_files(paths)
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not files:
        print("inspect: no spreadsheet files")
        return EXIT_SUCCESS_ALL
    for f in files:
        print(f"FILE: {f.name}")
        try:
            sheet = read_sheet_file(f)
        except (SheetError, OSError) as e:
            print(f"  read_error: {e}")
            continue
        if not sheet:
            print("  (empty)")
            continue
        headers = normalize_headers(sheet[0])
        print(f"  headers={headers}")
        try:
            columns = resolve_columns(headers, cfg.columns)
            print(
                f"  columns: product_code={list(columns.product_code)} "
                f"quantity={list(columns.quantity)} price={list(columns.price)}"
            )
        except SheetError as e:
            print(f"  columns: {e}")
        # Timestamp 等は repr で表示
        print("  sample_rows=", [[v if v is None or isinstance(v, (str, int, float)) else repr(v) for v in r] for r in sheet[1:4]])
    return EXIT_SUCCESS_ALL


def _run_validate(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = setup_logging()
    if args.inspect_data:
        return _inspect_data(args.paths, cfg)

    error_log = ErrorLogBuffer()
    try:
        result = validate_files(args.paths, cfg, error_log)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log written: {log_path}")

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.rejected_files or result.failed_files:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _run_serve(args: argparse.Namespace, cfg: AppConfig) -> int:  # pragma: no cover (starts a server)
    import uvicorn

    from ..api.app import create_app
    from ..db.order_store import InMemoryOrderStore, OrderStoreError, PostgresOrderStore, build_dsn

    logger = setup_logging()
    if args.memory:
        store = InMemoryOrderStore()
    else:
        store = PostgresOrderStore(dsn=build_dsn(cfg.database))
        try:
            store.ensure_schema()
        except OrderStoreError as e:
            logger.error(f"database: {e}")
            return EXIT_FATAL
    if not cfg.api.tokens and not cfg.api.jwt_secret:
        logger.warning("no API tokens or JWT secret configured; every authenticated request will be rejected")
    logger.info(f"serving on http://{args.host}:{args.port} store={store.kind}")
    uvicorn.run(create_app(cfg, store=store), host=args.host, port=args.port, log_level="info")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む ([] はテストからの明示的な空引数)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "serve":
        return _run_serve(args, cfg)
    return _run_validate(args, cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
