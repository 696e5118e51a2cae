from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the rejected-upload log.

One JSON Lines record per rejected upload. ``field`` is only set for field
validation failures (seniority / years / availability); file-level problems
leave it null.
"""

__all__ = [
    "ErrorRecord",
    "ERROR_TYPES",
]

ERROR_TYPES = {
    "structural": "STRUCTURAL",
    "field": "FIELD_VALIDATION",
    "wrapped": "WRAPPED",
    "input": "INPUT_VALIDATION",
}


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: uploaded file name (or "-" when no file was attached)
        error_type: UPPER_SNAKE classification (see ERROR_TYPES)
        field: failing field name, None for file-level errors
        message: user-facing rejection message
    """
    timestamp: str  # ISO8601 UTC
    file: str
    error_type: str  # UPPER_SNAKE
    field: str | None
    message: str

    @staticmethod
    def create(file: str, error_type: str, message: str, field: str | None = None) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            error_type=error_type,
            field=field,
            message=message,
        )

    @staticmethod
    def from_error(file: str, error: Exception) -> ErrorRecord:
        """Build a record from a ValidationError (``kind`` selects error_type)."""
        kind = getattr(error, "kind", "wrapped")
        return ErrorRecord.create(
            file=file,
            error_type=ERROR_TYPES.get(kind, "WRAPPED"),
            message=getattr(error, "message", str(error)),
            field=getattr(error, "field", None),
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
