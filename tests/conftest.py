# Shared pytest fixtures
from __future__ import annotations
import io
import tempfile
from pathlib import Path
from typing import Any, Callable

import pandas as pd
import pytest
from openpyxl import Workbook

from src.logging.init import reset_logging

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def build_workbook(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Write raw rows (header included) to an in-memory .xlsx workbook."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return buf.getvalue()


@pytest.fixture()
def make_workbook() -> Callable[..., bytes]:
    """Single-sheet workbook builder: make_workbook(header, *rows)."""
    def _make(header: list[Any], *rows: list[Any], sheet: str = "Sheet1") -> bytes:
        return build_workbook({sheet: [header, *rows]})
    return _make


@pytest.fixture()
def make_offset_workbook() -> Callable[..., bytes]:
    """Workbook whose table starts at (first_row, first_col), 1-based."""
    def _make(first_row: int, first_col: int, *rows: list[Any]) -> bytes:
        wb = Workbook()
        ws = wb.active
        for r, values in enumerate(rows):
            for c, value in enumerate(values):
                ws.cell(row=first_row + r, column=first_col + c, value=value)
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()
    return _make


@pytest.fixture()
def xls_fixture_bytes() -> bytes:
    """Legacy .xls (BIFF8) workbook: one header row and one data row."""
    return (FIXTURES_DIR / "candidate.xls").read_bytes()


@pytest.fixture()
def make_multi_sheet_workbook() -> Callable[[dict[str, list[list[Any]]]], bytes]:
    return build_workbook


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
upload:
  max_file_size_bytes: 5242880
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "candidates.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def mock_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()
