from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from src.models.cell import Absent, RawCell, Unsupported, is_stringifiable, stringify, to_cell

"""Workbook reader.

- 使用範囲 (先頭の空行・空列を除いた範囲) の1行目をヘッダ行、以降をデータ行 (1行 = 1 RawRow)。
- 空セルは行 dict に含めない (列欠落として扱われる)。
- 全セル空の行はスキップ。

Decoding goes through pandas (openpyxl for .xlsx, xlrd for legacy .xls). Sheets
are parsed without header inference and with ``dtype=object`` so cell values
reach the validator exactly as stored in the workbook; only truly empty cells
are turned into NaN.

Empty-string cells (e.g. a formula returning "") are read as NaN too, so they
are dropped like blank cells and a required column holding one is reported as
missing rather than as an empty value.
"""

__all__ = [
    "WorkbookDecodeError",
    "SheetData",
    "read_workbook",
    "first_sheet",
    "sheet_to_rows",
    "inspect_workbook",
]

EMPTY_HEADER = "__EMPTY"


class WorkbookDecodeError(Exception):
    """Raised when the byte buffer is not a workbook pandas can open."""


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, RawCell]] = field(default_factory=list)


def read_workbook(data: bytes) -> dict[str, pd.DataFrame]:
    """Decode workbook bytes into raw DataFrames keyed by sheet name.

    Sheet order follows the workbook's declaration order.
    """
    dfs: dict[str, pd.DataFrame] = {}
    try:
        with pd.ExcelFile(io.BytesIO(data)) as xls:
            for name in xls.sheet_names:
                # ヘッダなしで生読み。空文字列のみ NaN 扱い ("NA" 等の既定 NA 文字列は保持)
                dfs[str(name)] = xls.parse(
                    name, header=None, dtype=object, keep_default_na=False, na_values=[""]
                )
    except Exception as e:  # 破損/非 Excel バイト列、壊れたシート (ValueError, BadZipFile, XLRDError ...)
        raise WorkbookDecodeError(str(e)) from e
    return dfs


def first_sheet(frames: dict[str, pd.DataFrame]) -> tuple[str, pd.DataFrame] | None:
    for name, df in frames.items():
        return name, df
    return None


def _header_name(value: Any) -> str | None:
    cell = to_cell(value)
    if is_stringifiable(cell):
        return stringify(cell)  # type: ignore[arg-type]
    if isinstance(cell, Unsupported):
        return str(cell.value)
    return None


def _build_columns(header: list[Any]) -> list[str]:
    """Header names with blanks and duplicates disambiguated.

    Blank header cells become ``__EMPTY``, ``__EMPTY_1``...; repeated names get
    ``_1``, ``_2`` suffixes. Names differing only in case are NOT duplicates here.
    """
    seen: dict[str, int] = {}
    columns: list[str] = []
    for raw in header:
        base = _header_name(raw)
        if base is None:
            base = EMPTY_HEADER
        name = base
        if name in seen:
            seen[base] += 1
            name = f"{base}_{seen[base]}"
            while name in seen:
                seen[base] += 1
                name = f"{base}_{seen[base]}"
        seen.setdefault(name, 0)
        columns.append(name)
    return columns


def _used_range(df: pd.DataFrame) -> pd.DataFrame:
    filled = df.notna()
    rows = filled.any(axis=1).to_numpy()
    if not rows.any():
        return df.iloc[0:0, 0:0]
    cols = filled.any(axis=0).to_numpy()
    return df.iloc[int(rows.argmax()):, int(cols.argmax()):]


def sheet_to_rows(df: pd.DataFrame, sheet_name: str = "") -> SheetData:
    """Convert a raw sheet frame into header names and RawRows.

    Steps:
    1. Leading blank rows and columns are cut off (the sheet's used range)
    2. Nothing left -> no columns, no rows
    3. First remaining row is the header
    4. Following rows become data rows; all-blank rows are skipped
    5. Blank cells are omitted from each row mapping
    """
    df = _used_range(df)
    if df.shape[0] == 0:
        return SheetData(sheet_name=sheet_name, columns=[], rows=[])
    columns = _build_columns(df.iloc[0].tolist())
    rows: list[dict[str, RawCell]] = []
    for _, raw in df.iloc[1:].iterrows():
        if raw.isna().all():
            continue
        row: dict[str, RawCell] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            cell = to_cell(val)
            if isinstance(cell, Absent):
                continue
            row[col] = cell
        rows.append(row)
    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows)


def inspect_workbook(data: bytes) -> list[SheetData]:
    """Decode every sheet (used by the CLI ``inspect`` command)."""
    return [sheet_to_rows(df, name) for name, df in read_workbook(data).items()]
