from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema.exceptions import ValidationError as SchemaValidationError
from jsonschema.exceptions import best_match

from src.excel.errors import InputValidationError
from src.models.candidate import CandidateCreate, CandidateUpdate, ExcelUpload

"""Request-level input validation (name/surname, create and update payloads).

Schemas live in ``schemas/*.json`` next to this module and are checked with
jsonschema, the same way the config file is.
"""

__all__ = [
    "parse_upload",
    "parse_create",
    "parse_update",
    "coerce_availability",
]

SCHEMA_DIR = Path(__file__).parent / "schemas"


@lru_cache(maxsize=None)
def _schema(name: str) -> dict[str, Any]:
    return json.loads((SCHEMA_DIR / f"{name}.json").read_text(encoding="utf-8"))


def _describe(error: SchemaValidationError) -> str:
    if error.path:
        field = ".".join(str(p) for p in error.path)
        if error.validator == "pattern":
            return f"{field}: must not be blank"
        return f"{field}: {error.message}"
    return error.message


def _check(name: str, data: dict[str, Any]) -> None:
    validator = jsonschema.Draft7Validator(_schema(name))
    error = best_match(validator.iter_errors(data))
    if error is not None:
        raise InputValidationError(_describe(error))


def coerce_availability(value: Any) -> bool:
    """Strings count as True only when they read "true" (any case)."""
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def parse_upload(data: dict[str, Any]) -> ExcelUpload:
    _check("excel_upload", data)
    return ExcelUpload(name=data["name"], surname=data["surname"])


def parse_create(data: dict[str, Any]) -> CandidateCreate:
    payload = dict(data)
    if "availability" in payload:
        payload["availability"] = coerce_availability(payload["availability"])
    _check("candidate_create", payload)
    return CandidateCreate(
        name=payload["name"],
        surname=payload["surname"],
        seniority=payload["seniority"],
        years=int(payload["years"]),
        availability=payload["availability"],
    )


def parse_update(data: dict[str, Any]) -> CandidateUpdate:
    payload = {k: v for k, v in data.items() if v is not None}
    if "availability" in payload:
        payload["availability"] = coerce_availability(payload["availability"])
    _check("candidate_update", payload)
    if "years" in payload:
        payload["years"] = int(payload["years"])
    return CandidateUpdate(values=payload)
