"""Domain models for the candidate intake tool.

Workbook cells (RawCell variants), the validated workbook payload and the
stored candidate record.
"""

from .candidate import (
    Candidate,
    CandidateCreate,
    CandidateExcelData,
    CandidateUpdate,
    ExcelUpload,
    Seniority,
)
from .cell import Absent, Boolean, Number, RawCell, Text, Unsupported
from .error_record import ErrorRecord

__all__ = [
    # Workbook cells
    "Absent",
    "Boolean",
    "Number",
    "RawCell",
    "Text",
    "Unsupported",
    # Candidate models
    "Candidate",
    "CandidateCreate",
    "CandidateExcelData",
    "CandidateUpdate",
    "ExcelUpload",
    "Seniority",
    # Error log
    "ErrorRecord",
]
