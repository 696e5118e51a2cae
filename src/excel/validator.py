from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

from src.excel.errors import (
    FieldValidationError,
    StructuralError,
    ValidationError,
    WrappedError,
)
from src.excel.reader import WorkbookDecodeError, first_sheet, read_workbook, sheet_to_rows
from src.models.candidate import CandidateExcelData, Seniority
from src.models.cell import (
    Absent,
    Boolean,
    Number,
    RawCell,
    Text,
    is_stringifiable,
    stringify,
    to_cell,
)

"""Ingestion validator for single-row candidate workbooks.

validate(bytes) -> CandidateExcelData. All-or-nothing: either every check passes
and a payload is returned, or a ValidationError subclass is raised.

Order of checks (each short-circuits):
1. decode (decode failure == empty workbook == "no data rows")
2. first sheet
3. exactly one data row
4. row shape
5. case-insensitive column normalization (last duplicate wins)
6. required column presence
7. seniority -> years -> availability (first failing field wins)

Known ValidationErrors propagate unchanged; anything else is wrapped with the
"Failed to process Excel file: " prefix.
"""

__all__ = [
    "REQUIRED_COLUMNS",
    "NO_DATA_ROWS",
    "TOO_MANY_ROWS",
    "INVALID_ROW_FORMAT",
    "IngestionValidator",
    "validate",
    "normalize_keys",
    "validate_seniority",
    "validate_years",
    "validate_availability",
]

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("seniority", "years", "availability")

NO_DATA_ROWS = "Excel file must contain data rows"
TOO_MANY_ROWS = "Excel file must contain exactly one data row"
INVALID_ROW_FORMAT = "Invalid Excel row format"
MISSING_COLUMNS_PREFIX = "Missing required columns: "

YEARS_MIN = 0
YEARS_MAX = 50

TRUE_TOKENS = frozenset({"true", "1", "yes"})
FALSE_TOKENS = frozenset({"false", "0", "no"})

# Numeric text accepted for years: ASCII decimal / exponent notation, Infinity,
# and 0x / 0o / 0b integer literals. Anything else (underscores, non-ASCII
# digits, "inf", "nan") is not a number.
DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity", re.ASCII)
RADIX_RE = re.compile(r"0([xXoObB])([0-9a-fA-F]+)")
RADIX_BASES = {"x": 16, "o": 8, "b": 2}


def _load_rows(workbook_bytes: bytes) -> list[Any]:
    try:
        frames = read_workbook(workbook_bytes)
    except WorkbookDecodeError as e:
        # 壊れた入力は「空シート」と同じ扱い (区別したエラーは出さない)
        logger.debug(f"workbook decode failed, treated as empty: {e}")
        return []
    selected = first_sheet(frames)
    if selected is None:
        return []
    name, df = selected
    sheet = sheet_to_rows(df, name)
    logger.debug(f"sheet '{name}' columns={sheet.columns} rows={len(sheet.rows)}")
    return list(sheet.rows)


def normalize_keys(row: Mapping[str, Any]) -> dict[str, RawCell]:
    """Lower-case column names, keeping only the recognized ones.

    Columns are visited in order, so when two names differ only in case the
    later one overwrites the earlier.
    """
    normalized: dict[str, RawCell] = {}
    for key, value in row.items():
        lowered = str(key).lower()
        if lowered in REQUIRED_COLUMNS:
            normalized[lowered] = to_cell(value)
    return normalized


def _is_blank(cell: RawCell) -> bool:
    return isinstance(cell, Absent) or (isinstance(cell, Text) and cell.value == "")


def _is_falsy(cell: RawCell) -> bool:
    if _is_blank(cell):
        return True
    if isinstance(cell, Boolean):
        return not cell.value
    if isinstance(cell, Number):
        return cell.value == 0 or math.isnan(cell.value)
    return False


def validate_seniority(cell: RawCell) -> str:
    if _is_falsy(cell):
        raise FieldValidationError("seniority", "Seniority is required")
    if not is_stringifiable(cell):
        raise FieldValidationError("seniority", "Seniority must be a valid text value")
    seniority = stringify(cell).lower().strip()  # type: ignore[arg-type]
    if seniority not in (Seniority.JUNIOR.value, Seniority.SENIOR.value):
        raise FieldValidationError(
            "seniority", 'Seniority must be either "junior" or "senior"'
        )
    return seniority


def _to_number(cell: Text | Number | Boolean) -> float:
    if isinstance(cell, Boolean):
        return 1.0 if cell.value else 0.0
    if isinstance(cell, Number):
        return float(cell.value)
    text = cell.value.strip()
    if text == "":
        # 空白のみの文字列は 0 として扱う
        return 0.0
    if DECIMAL_RE.fullmatch(text):
        return float(text)
    radix = RADIX_RE.fullmatch(text)
    if radix:
        try:
            return float(int(radix.group(2), RADIX_BASES[radix.group(1).lower()]))
        except ValueError:
            # 基数に合わない桁 (例: 0b12)
            return math.nan
    return math.nan


def validate_years(cell: RawCell) -> int:
    if _is_blank(cell):
        raise FieldValidationError("years", "Years is required")
    if not is_stringifiable(cell):
        raise FieldValidationError("years", "Years must be a valid number")
    years = _to_number(cell)  # type: ignore[arg-type]
    if math.isnan(years) or years < YEARS_MIN or years > YEARS_MAX:
        raise FieldValidationError(
            "years", f"Years must be a number between {YEARS_MIN} and {YEARS_MAX}"
        )
    return math.floor(years)


def validate_availability(cell: RawCell) -> bool:
    if _is_blank(cell):
        raise FieldValidationError("availability", "Availability is required")
    if isinstance(cell, Boolean):
        return cell.value
    if not is_stringifiable(cell):
        raise FieldValidationError(
            "availability", "Availability must be a valid boolean value"
        )
    token = stringify(cell).lower().strip()  # type: ignore[arg-type]
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise FieldValidationError(
        "availability", "Availability must be a boolean value (true/false, 1/0, yes/no)"
    )


def _validate(workbook_bytes: bytes) -> CandidateExcelData:
    rows = _load_rows(workbook_bytes)
    if len(rows) == 0:
        raise StructuralError(NO_DATA_ROWS)
    if len(rows) > 1:
        raise StructuralError(TOO_MANY_ROWS)

    row = rows[0]
    if not isinstance(row, Mapping):
        raise StructuralError(INVALID_ROW_FORMAT)

    normalized = normalize_keys(row)
    missing = [col for col in REQUIRED_COLUMNS if col not in normalized]
    if missing:
        raise StructuralError(MISSING_COLUMNS_PREFIX + ", ".join(missing))

    return CandidateExcelData(
        seniority=validate_seniority(normalized["seniority"]),
        years=validate_years(normalized["years"]),
        availability=validate_availability(normalized["availability"]),
    )


def validate(workbook_bytes: bytes) -> CandidateExcelData:
    """Validate workbook bytes and return the typed payload.

    Raises:
        StructuralError: row-count / shape / missing-column problems
        FieldValidationError: first field failing coercion
        WrappedError: any other failure, message prefixed with
            "Failed to process Excel file: "
    """
    try:
        return _validate(workbook_bytes)
    except ValidationError:
        raise
    except Exception as e:
        logger.debug(f"unexpected error while validating workbook: {e!r}")
        raise WrappedError.from_exception(e) from e


class IngestionValidator:
    """Stateless holder so services can receive the validator by injection."""

    def validate(self, workbook_bytes: bytes) -> CandidateExcelData:
        return validate(workbook_bytes)

    __call__ = validate
