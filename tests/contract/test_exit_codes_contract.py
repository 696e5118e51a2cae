from __future__ import annotations
from pathlib import Path

from src.cli.__main__ import EXIT_CLIENT_ERROR, EXIT_FATAL, EXIT_SUCCESS
from src.cli.__main__ import main as cli_main

"""Exit code contract: 0 success / 1 fatal (config, DB) / 2 client error."""


def test_exit_code_values():
    assert (EXIT_SUCCESS, EXIT_FATAL, EXIT_CLIENT_ERROR) == (0, 1, 2)


def test_exit_code_fatal_without_config(temp_workdir: Path, capsys):
    # config/candidates.yml 無し → exit 1
    code = cli_main(["list"])
    captured = capsys.readouterr()
    assert code == 1
    assert "ERROR config:" in captured.out


def test_exit_code_explicit_config_path(temp_workdir: Path, write_config, mock_db, capsys):
    moved = temp_workdir / "other.yml"
    write_config.rename(moved)
    assert cli_main(["--config", str(moved), "list"]) == 0


def test_exit_code_validate_needs_no_config(temp_workdir: Path, make_workbook, capsys):
    f = temp_workdir / "c.xlsx"
    f.write_bytes(make_workbook(["seniority", "years", "availability"], ["senior", 50, 0]))
    assert cli_main(["validate", str(f)]) == 0
