from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.config.loader import UploadConfig
from src.db.repository import CandidateRepository
from src.excel.errors import InputValidationError, NotFoundError, ValidationError
from src.excel.validator import IngestionValidator
from src.logging.error_log import ErrorLogBuffer
from src.models.candidate import Candidate, CandidateCreate
from src.models.error_record import ErrorRecord
from src.models.validation import parse_create, parse_update, parse_upload

"""Candidate service: CRUD plus workbook upload.

upload_candidate() の流れ:
1. ファイル種別 / サイズ検査 (添付がある場合)
2. name / surname 検査
3. 添付必須検査
4. IngestionValidator でワークブック検証
5. name / surname とマージして create()

拒否されたアップロードは ErrorLogBuffer に記録してから例外を再送出する。
"""

__all__ = [
    "UploadedFile",
    "CandidatesService",
    "FILE_REQUIRED",
    "FILE_TYPE_NOT_ALLOWED",
]

logger = logging.getLogger(__name__)

FILE_REQUIRED = "Excel file is required"
FILE_TYPE_NOT_ALLOWED = "Only Excel files (.xlsx, .xls) are allowed"


@dataclass(frozen=True)
class UploadedFile:
    """An attached workbook. ``mimetype`` may be unknown (local files)."""
    filename: str
    content: bytes
    mimetype: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path) -> UploadedFile:
        return cls(filename=path.name, content=path.read_bytes())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CandidatesService:
    def __init__(
        self,
        repository: CandidateRepository,
        validator: IngestionValidator | None = None,
        upload_config: UploadConfig | None = None,
        error_log: ErrorLogBuffer | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repository
        self._validator = validator or IngestionValidator()
        self._upload = upload_config or UploadConfig()
        self._error_log = error_log
        self._clock = clock

    # --- create / upload -------------------------------------------------

    def create(self, data: CandidateCreate | dict[str, Any]) -> Candidate:
        dto = data if isinstance(data, CandidateCreate) else parse_create(data)
        now = self._clock()
        candidate = Candidate(
            id=str(uuid.uuid4()),
            name=dto.name,
            surname=dto.surname,
            seniority=dto.seniority,
            years=dto.years,
            availability=dto.availability,
            created_at=now,
            updated_at=now,
        )
        stored = self._repo.insert(candidate)
        logger.info(f"candidate created id={stored.id}")
        return stored

    def _check_file(self, file: UploadedFile) -> None:
        if file.mimetype is not None:
            allowed = file.mimetype in self._upload.allowed_mime_types
        else:
            allowed = Path(file.filename).suffix.lower() in self._upload.allowed_extensions
        if not allowed:
            raise InputValidationError(FILE_TYPE_NOT_ALLOWED)
        limit = self._upload.max_file_size_bytes
        if file.size > limit:
            raise InputValidationError(f"File too large: {file.size} bytes (limit {limit} bytes)")

    def upload_candidate(self, form: dict[str, Any], file: UploadedFile | None) -> Candidate:
        try:
            if file is not None:
                self._check_file(file)
            upload = parse_upload(form)
            if file is None:
                raise InputValidationError(FILE_REQUIRED)
            excel_data = self._validator.validate(file.content)
        except ValidationError as e:
            name = file.filename if file is not None else "-"
            logger.warning(f"upload rejected file={name}: {e.message}")
            if self._error_log is not None:
                self._error_log.append(ErrorRecord.from_error(name, e))
            raise
        logger.debug(f"workbook accepted file={file.filename} data={excel_data.to_dict()}")
        return self.create(CandidateCreate.from_upload(upload, excel_data))

    # --- read / update / delete ------------------------------------------

    def find_all(self) -> list[Candidate]:
        return self._repo.find_all()

    def find_one(self, candidate_id: str) -> Candidate:
        try:
            uuid.UUID(candidate_id)
        except ValueError:
            # uuid 列に不正値を渡すと DB エラーになるため事前に NotFound 扱い
            raise NotFoundError(f"Candidate with ID {candidate_id} not found") from None
        candidate = self._repo.find_one(candidate_id)
        if candidate is None:
            raise NotFoundError(f"Candidate with ID {candidate_id} not found")
        return candidate

    def update(self, candidate_id: str, data: dict[str, Any]) -> Candidate:
        changes = parse_update(data)
        candidate = self.find_one(candidate_id)
        updated = replace(candidate, **changes.values, updated_at=self._clock())
        stored = self._repo.save(updated)
        logger.info(f"candidate updated id={candidate_id} fields={sorted(changes.values)}")
        return stored

    def remove(self, candidate_id: str) -> None:
        candidate = self.find_one(candidate_id)
        self._repo.delete(candidate.id)
        logger.info(f"candidate removed id={candidate_id}")
