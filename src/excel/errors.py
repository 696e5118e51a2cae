from __future__ import annotations

"""Error families raised while ingesting candidate workbooks.

Every failure here traces back to the uploaded content, so all of them belong to
the ``client_error`` category. Callers that need to tell the families apart look
at ``kind``:

- ``structural``: workbook-level, row-count or column-presence problems
- ``field``: one of the three fields failed type/range/enum coercion
- ``wrapped``: anything unanticipated, re-raised with a fixed prefix
- ``input``: request-level checks outside the workbook (name/surname, file)
"""

__all__ = [
    "ValidationError",
    "StructuralError",
    "FieldValidationError",
    "WrappedError",
    "InputValidationError",
    "NotFoundError",
    "WRAPPED_PREFIX",
]

WRAPPED_PREFIX = "Failed to process Excel file: "


class ValidationError(Exception):
    """Base class for rejected input. ``message`` is user facing and fixed."""

    kind = "validation"
    category = "client_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StructuralError(ValidationError):
    kind = "structural"


class FieldValidationError(ValidationError):
    kind = "field"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class WrappedError(ValidationError):
    kind = "wrapped"

    @classmethod
    def from_exception(cls, exc: BaseException) -> WrappedError:
        detail = str(exc) or "Unknown error"
        return cls(f"{WRAPPED_PREFIX}{detail}")


class InputValidationError(ValidationError):
    kind = "input"


class NotFoundError(Exception):
    category = "not_found"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
