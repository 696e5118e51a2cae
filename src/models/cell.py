from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Any, Union

import numpy as np
import pandas as pd
from openpyxl.utils.datetime import to_excel

"""RawCell model: decoded spreadsheet cell values.

pandas hands back loosely typed cell contents (str, int, float, bool, numpy
scalars, Timestamp, NaN). The validator never inspects those directly; every
value is first classified into one of the variants below and the per-field
validators dispatch on the variant.

Date and time cells become their spreadsheet serial number (the value the cell
stores underneath its date format), so they validate as plain numbers.
"""

__all__ = [
    "Absent",
    "Text",
    "Number",
    "Boolean",
    "Unsupported",
    "RawCell",
    "ABSENT",
    "to_cell",
    "is_stringifiable",
    "stringify",
]


@dataclass(frozen=True)
class Absent:
    """No value at all (empty cell, None, NaN)."""


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Number:
    value: float | int


@dataclass(frozen=True)
class Boolean:
    value: bool


@dataclass(frozen=True)
class Unsupported:
    """Anything outside text/number/boolean (arrays, mappings, objects)."""
    value: Any


RawCell = Union[Absent, Text, Number, Boolean, Unsupported]

ABSENT = Absent()


def to_cell(value: Any) -> RawCell:
    """Classify a decoded value into a RawCell variant."""
    if isinstance(value, (Absent, Text, Number, Boolean, Unsupported)):
        return value
    if value is None:
        return ABSENT
    if isinstance(value, (np.datetime64, np.timedelta64)):
        if pd.isna(value):
            return ABSENT
        value = pd.Timestamp(value) if isinstance(value, np.datetime64) else pd.Timedelta(value)
    # NaT は datetime のサブクラスなので日付判定より先
    if value is pd.NaT:
        return ABSENT
    if isinstance(value, (date, time, timedelta)):
        return Number(to_excel(value))
    if isinstance(value, np.generic):
        # numpy.bool_ / int64 / float64 -> python builtins
        value = value.item()
    # bool は int のサブクラスなので数値判定より先
    if isinstance(value, bool):
        return Boolean(value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return ABSENT
        return Number(value)
    if isinstance(value, str):
        return Text(value)
    return Unsupported(value)


def is_stringifiable(cell: RawCell) -> bool:
    return isinstance(cell, (Text, Number, Boolean))


def _format_number(value: float | int) -> str:
    # Spreadsheet display rules: 1.0 -> "1", 2.5 -> "2.5"
    if isinstance(value, float):
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def stringify(cell: Text | Number | Boolean) -> str:
    if isinstance(cell, Text):
        return cell.value
    if isinstance(cell, Boolean):
        return "true" if cell.value else "false"
    return _format_number(cell.value)
