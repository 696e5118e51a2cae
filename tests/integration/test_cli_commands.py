from __future__ import annotations
import json
from pathlib import Path

import psycopg2

import src.cli.__main__ as cli_module
from src.cli.__main__ import main as cli_main

HEADER = ["seniority", "years", "availability"]


def _write(temp_workdir: Path, name: str, data: bytes) -> Path:
    p = temp_workdir / "data" / name
    p.write_bytes(data)
    return p


def _json_block(out: str):
    """The command's JSON output (log lines before/after are skipped)."""
    lines = out.splitlines()
    start = next(i for i, line in enumerate(lines) if line.startswith(("{", "[")))
    end = next(i for i in range(len(lines) - 1, -1, -1) if lines[i].startswith(("}", "]")))
    return json.loads("\n".join(lines[start:end + 1]))


def test_cli_validate_success(temp_workdir: Path, make_workbook, capsys):
    f = _write(temp_workdir, "cand.xlsx", make_workbook(HEADER, ["junior", 5, True]))
    code = cli_main(["validate", str(f)])
    out = capsys.readouterr().out
    assert code == 0
    assert _json_block(out) == {"seniority": "junior", "years": 5, "availability": True}
    assert "SUMMARY command=validate status=ok file=cand.xlsx" in out


def test_cli_validate_rejected(temp_workdir: Path, make_workbook, capsys):
    f = _write(temp_workdir, "bad.xlsx", make_workbook(HEADER, ["invalid", 5, True]))
    code = cli_main(["validate", str(f)])
    out = capsys.readouterr().out
    assert code == 2
    assert 'ERROR Seniority must be either "junior" or "senior"' in out
    assert "SUMMARY command=validate status=rejected" in out


def test_cli_validate_missing_file(temp_workdir: Path, capsys):
    code = cli_main(["validate", "nope.xlsx"])
    assert code == 2
    assert "ERROR file not found: nope.xlsx" in capsys.readouterr().out


def test_cli_inspect(temp_workdir: Path, make_workbook, capsys):
    f = _write(temp_workdir, "cand.xlsx", make_workbook(["Seniority", "Years"], ["junior", 5]))
    code = cli_main(["inspect", str(f)])
    out = capsys.readouterr().out
    assert code == 0
    assert "SHEET: Sheet1 cols=['Seniority', 'Years'] rows=1" in out


def test_cli_inspect_garbage(temp_workdir: Path, capsys):
    f = _write(temp_workdir, "junk.xlsx", b"junk")
    assert cli_main(["inspect", str(f)]) == 2
    assert "inspect: read_error" in capsys.readouterr().out


def test_cli_upload_mock_mode(temp_workdir: Path, write_config, mock_db, make_workbook, capsys):
    f = _write(temp_workdir, "cand.xlsx", make_workbook(["SENIORITY", "YEARS", "AVAILABILITY"], ["Senior", 10, "yes"]))
    code = cli_main(["upload", str(f), "--name", "John", "--surname", "Doe"])
    out = capsys.readouterr().out
    assert code == 0
    data = _json_block(out)
    assert data["name"] == "John"
    assert (data["seniority"], data["years"], data["availability"]) == ("senior", 10, True)
    assert data["created_at"].endswith("Z")
    assert "SUMMARY command=upload status=ok" in out


def test_cli_upload_rejected_writes_error_log(temp_workdir: Path, write_config, mock_db, make_workbook, capsys):
    f = _write(temp_workdir, "two.xlsx", make_workbook(HEADER, ["junior", 1, True], ["senior", 2, False]))
    code = cli_main(["upload", str(f), "--name", "John", "--surname", "Doe"])
    captured = capsys.readouterr()
    assert code == 2
    assert "ERROR Excel file must contain exactly one data row" in captured.out
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    record = json.loads(logs[0].read_text(encoding="utf-8").strip())
    assert record["file"] == "two.xlsx"
    assert record["error_type"] == "STRUCTURAL"
    assert "error log:" in captured.err


def test_cli_upload_missing_file_is_required_error(temp_workdir: Path, write_config, mock_db, capsys):
    code = cli_main(["upload", "missing.xlsx", "--name", "John", "--surname", "Doe"])
    assert code == 2
    assert "ERROR Excel file is required" in capsys.readouterr().out


def test_cli_create_mock_mode(temp_workdir: Path, write_config, mock_db, capsys):
    code = cli_main([
        "create", "--name", "Ann", "--surname", "Lee", "--seniority", "junior",
        "--years", "3", "--availability", "true",
    ])
    out = capsys.readouterr().out
    assert code == 0
    assert _json_block(out)["availability"] is True


def test_cli_list_empty_in_mock_mode(temp_workdir: Path, write_config, mock_db, capsys):
    assert cli_main(["list"]) == 0
    assert _json_block(capsys.readouterr().out) == []


def test_cli_show_not_found(temp_workdir: Path, write_config, mock_db, capsys):
    cid = "123e4567-e89b-12d3-a456-426614174000"
    code = cli_main(["show", cid])
    assert code == 2
    assert f"ERROR Candidate with ID {cid} not found" in capsys.readouterr().out


def test_cli_db_connection_failure_is_fatal(temp_workdir: Path, write_config, monkeypatch, capsys):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)

    def broken(cfg):
        raise psycopg2.OperationalError("could not connect to server")
    monkeypatch.setattr(cli_module, "db_connection", broken)
    code = cli_main(["list"])
    assert code == 1
    assert "ERROR database: could not connect to server" in capsys.readouterr().out


def test_cli_debug_flag(temp_workdir: Path, make_workbook, capsys):
    f = _write(temp_workdir, "cand.xlsx", make_workbook(HEADER, ["junior", 5, True]))
    assert cli_main(["--debug", "validate", str(f)]) == 0
    out = capsys.readouterr().out
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG sheet 'Sheet1'" in out
