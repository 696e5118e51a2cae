from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from src.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config
from src.db.connection import db_connection
from src.db.repository import (
    CandidateRepository,
    InMemoryCandidateRepository,
    PostgresCandidateRepository,
    RepositoryError,
)
from src.excel.errors import NotFoundError, ValidationError
from src.excel.reader import WorkbookDecodeError, inspect_workbook
from src.excel.validator import validate
from src.logging.error_log import ErrorLogBuffer
from src.logging.init import log_summary, set_debug, setup_logging
from src.services.candidates import CandidatesService, UploadedFile

"""CLI entrypoint: ``python -m src.cli <command>``.

Commands:
- validate FILE             workbook validation only (no config / DB)
- inspect FILE              sheet headers + sample rows
- upload FILE --name --surname
- create --name --surname --seniority --years --availability
- list / show ID / update ID [...] / delete ID

Exit codes: 0 success, 1 fatal (config / DB), 2 client error (validation / not found).
DB 接続を無効化したい場合 (テスト等) は DISABLE_DB_CONNECT=1 -> in-memory repository.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_CLIENT_ERROR = 2

SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env (override=True: .env の値が既存環境変数より優先)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="candidate-intake", description="Candidate intake from Excel uploads")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to YAML config")
    sub = p.add_subparsers(dest="command", required=True)

    v = sub.add_parser("validate", help="Validate a candidate workbook and print the payload")
    v.add_argument("file", type=Path)

    i = sub.add_parser("inspect", help="Print sheet headers and first rows")
    i.add_argument("file", type=Path)

    u = sub.add_parser("upload", help="Create a candidate from name/surname and a workbook")
    u.add_argument("file", type=Path)
    u.add_argument("--name", required=True)
    u.add_argument("--surname", required=True)

    c = sub.add_parser("create", help="Create a candidate from explicit values")
    c.add_argument("--name", required=True)
    c.add_argument("--surname", required=True)
    c.add_argument("--seniority", required=True)
    c.add_argument("--years", required=True, type=int)
    c.add_argument("--availability", required=True)

    sub.add_parser("list", help="List candidates (newest first)")

    s = sub.add_parser("show", help="Show one candidate")
    s.add_argument("id")

    up = sub.add_parser("update", help="Update fields of a candidate")
    up.add_argument("id")
    up.add_argument("--name")
    up.add_argument("--surname")
    up.add_argument("--seniority")
    up.add_argument("--years", type=int)
    up.add_argument("--availability")

    d = sub.add_parser("delete", help="Delete a candidate")
    d.add_argument("id")
    return p.parse_args(argv)


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _read_file(path: Path) -> bytes:
    if not path.is_file():
        raise FileNotFoundError(f"file not found: {path}")
    return path.read_bytes()


def _cmd_validate(args: argparse.Namespace) -> int:
    payload = validate(_read_file(args.file))
    _print_json(payload.to_dict())
    log_summary(f"command=validate status=ok file={args.file.name}")
    return EXIT_SUCCESS


def _cmd_inspect(args: argparse.Namespace) -> int:
    try:
        sheets = inspect_workbook(_read_file(args.file))
    except WorkbookDecodeError as e:
        print(f"inspect: read_error: {e}")
        return EXIT_CLIENT_ERROR
    print(f"FILE: {args.file.name}")
    for sheet in sheets:
        print(f"  SHEET: {sheet.sheet_name} cols={sheet.columns} rows={len(sheet.rows)}")
        sample = [{k: repr(v) for k, v in row.items()} for row in sheet.rows[:SAMPLE_ROWS]]
        print("    sample_rows=", sample)
    log_summary(f"command=inspect status=ok sheets={len(sheets)}")
    return EXIT_SUCCESS


def _service_commands() -> dict[str, Callable[[CandidatesService, argparse.Namespace], Any]]:
    def upload(svc: CandidatesService, a: argparse.Namespace) -> Any:
        file = UploadedFile.from_path(a.file) if a.file.is_file() else None
        return svc.upload_candidate({"name": a.name, "surname": a.surname}, file).to_dict()

    def create(svc: CandidatesService, a: argparse.Namespace) -> Any:
        return svc.create(
            {
                "name": a.name,
                "surname": a.surname,
                "seniority": a.seniority,
                "years": a.years,
                "availability": a.availability,
            }
        ).to_dict()

    def update(svc: CandidatesService, a: argparse.Namespace) -> Any:
        fields = ("name", "surname", "seniority", "years", "availability")
        return svc.update(a.id, {f: getattr(a, f) for f in fields}).to_dict()

    def remove(svc: CandidatesService, a: argparse.Namespace) -> Any:
        svc.remove(a.id)
        return {"deleted": a.id}

    return {
        "upload": upload,
        "create": create,
        "list": lambda svc, a: [c.to_dict() for c in svc.find_all()],
        "show": lambda svc, a: svc.find_one(a.id).to_dict(),
        "update": update,
        "delete": remove,
    }


def _run_service_command(args: argparse.Namespace, cfg: AppConfig) -> int:
    handler = _service_commands()[args.command]
    error_log = ErrorLogBuffer(cfg.error_log_dir)

    def run(repo: CandidateRepository) -> int:
        svc = CandidatesService(repo, upload_config=cfg.upload, error_log=error_log)
        _print_json(handler(svc, args))
        log_summary(f"command={args.command} status=ok")
        return EXIT_SUCCESS

    try:
        if os.getenv("DISABLE_DB_CONNECT") == "1":
            return run(InMemoryCandidateRepository())
        with db_connection(cfg.database) as cur:
            repo = PostgresCandidateRepository(cur)
            repo.ensure_schema()
            return run(repo)
    finally:
        path = error_log.flush()
        if path is not None:
            print(f"error log: {path}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) 呼び出しを許容)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        if args.command == "validate":
            return _cmd_validate(args)
        if args.command == "inspect":
            return _cmd_inspect(args)
        cfg = load_config(args.config)
        return _run_service_command(args, cfg)
    except (ValidationError, NotFoundError) as e:
        logger.error(e.message)
        log_summary(f"command={args.command} status=rejected")
        return EXIT_CLIENT_ERROR
    except FileNotFoundError as e:
        logger.error(str(e))
        return EXIT_CLIENT_ERROR
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except (RepositoryError, psycopg2.Error) as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
