from __future__ import annotations
import json

import jsonschema
import pytest

from src.excel.errors import FieldValidationError
from src.models.error_record import ErrorRecord

"""Rejected-upload log record schema (no extra keys)."""

SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["timestamp", "file", "error_type", "field", "message"],
    "properties": {
        "timestamp": {"type": "string", "pattern": "Z$"},
        "file": {"type": "string"},
        "error_type": {"enum": ["STRUCTURAL", "FIELD_VALIDATION", "WRAPPED", "INPUT_VALIDATION"]},
        "field": {"type": ["string", "null"]},
        "message": {"type": "string"},
    },
}


def test_error_log_record_matches_schema():
    rec = ErrorRecord.from_error("c.xlsx", FieldValidationError("years", "Years is required"))
    jsonschema.validate(json.loads(rec.to_json_line()), SCHEMA)


def test_error_log_schema_rejects_extra_key():
    rec = json.loads(ErrorRecord.create("c.xlsx", "WRAPPED", "x").to_json_line())
    rec["extra"] = "not allowed"
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(rec, SCHEMA)
