from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

"""Candidate domain models.

A candidate combines two plain-text fields supplied by the caller (name,
surname) with three technical attributes read from an uploaded workbook
(seniority, years, availability).

Lifecycle of the workbook part: CandidateExcelData is produced by a single
validation pass and merged immediately into CandidateCreate; it is never stored
on its own.
"""

__all__ = [
    "Seniority",
    "CandidateExcelData",
    "ExcelUpload",
    "CandidateCreate",
    "CandidateUpdate",
    "Candidate",
    "UPDATABLE_FIELDS",
]

UPDATABLE_FIELDS = ("name", "surname", "seniority", "years", "availability")


class Seniority(str, Enum):
    JUNIOR = "junior"
    SENIOR = "senior"


@dataclass(frozen=True)
class CandidateExcelData:
    """Validated workbook payload (the only success result of validation)."""
    seniority: str  # "junior" | "senior"
    years: int  # 0..50
    availability: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ExcelUpload:
    """Text fields sent together with an uploaded workbook."""
    name: str
    surname: str


@dataclass(frozen=True)
class CandidateCreate:
    name: str
    surname: str
    seniority: str
    years: int
    availability: bool

    @classmethod
    def from_upload(cls, upload: ExcelUpload, excel: CandidateExcelData) -> CandidateCreate:
        return cls(
            name=upload.name,
            surname=upload.surname,
            seniority=excel.seniority,
            years=excel.years,
            availability=excel.availability,
        )


@dataclass(frozen=True)
class CandidateUpdate:
    """Partial update. Only keys present in ``values`` are applied."""
    values: dict[str, Any] = field(default_factory=dict)


def _iso(ts: datetime) -> str:
    return ts.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Candidate:
    """Stored candidate record (id and timestamps are server generated)."""
    id: str
    name: str
    surname: str
    seniority: str
    years: int
    availability: bool
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = _iso(self.created_at)
        data["updated_at"] = _iso(self.updated_at)
        return data
