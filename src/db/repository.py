from __future__ import annotations

import logging
from typing import Any, Protocol

import psycopg2

from src.models.candidate import UPDATABLE_FIELDS, Candidate

"""Candidate persistence.

PostgresCandidateRepository works on a psycopg2 cursor supplied by the caller
(transaction boundaries belong to db.connection). InMemoryCandidateRepository
implements the same protocol for mock mode (DISABLE_DB_CONNECT=1) and tests.

id / created_at / updated_at are generated by the service layer, so both
repositories store records as given.
"""

__all__ = [
    "RepositoryError",
    "CandidateRepository",
    "PostgresCandidateRepository",
    "InMemoryCandidateRepository",
    "TABLE_NAME",
    "CREATE_TABLE_SQL",
]

logger = logging.getLogger(__name__)

TABLE_NAME = "candidates"

COLUMNS = ("id", "name", "surname", "seniority", "years", "availability", "created_at", "updated_at")

CREATE_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id uuid PRIMARY KEY,
    name varchar(100) NOT NULL,
    surname varchar(100) NOT NULL,
    seniority varchar(10) NOT NULL,
    years integer NOT NULL,
    availability boolean NOT NULL,
    created_at timestamptz NOT NULL,
    updated_at timestamptz NOT NULL
)
"""


class RepositoryError(Exception):
    pass


class CandidateRepository(Protocol):
    def insert(self, candidate: Candidate) -> Candidate: ...
    def find_all(self) -> list[Candidate]: ...
    def find_one(self, candidate_id: str) -> Candidate | None: ...
    def save(self, candidate: Candidate) -> Candidate: ...
    def delete(self, candidate_id: str) -> None: ...


def _row_to_candidate(row: dict[str, Any]) -> Candidate:
    return Candidate(
        id=str(row["id"]),
        name=row["name"],
        surname=row["surname"],
        seniority=row["seniority"],
        years=int(row["years"]),
        availability=bool(row["availability"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresCandidateRepository:
    def __init__(self, cursor: Any) -> None:
        self._cur = cursor

    def _execute(self, sql: str, params: tuple[Any, ...] | None = None) -> None:
        try:
            self._cur.execute(sql, params)
        except psycopg2.Error as e:
            raise RepositoryError(str(e).strip()) from e

    def _fetch(self, many: bool) -> list[dict[str, Any]]:
        names = [d[0] for d in self._cur.description]
        raw = self._cur.fetchall() if many else [self._cur.fetchone()]
        return [dict(zip(names, r, strict=False)) for r in raw if r is not None]

    def ensure_schema(self) -> None:
        logger.debug(f"ensuring table {TABLE_NAME}")
        self._execute(CREATE_TABLE_SQL)

    def insert(self, candidate: Candidate) -> Candidate:
        cols_sql = ",".join(COLUMNS)
        placeholders = ",".join(["%s"] * len(COLUMNS))
        self._execute(
            f"INSERT INTO {TABLE_NAME} ({cols_sql}) VALUES ({placeholders}) RETURNING {cols_sql}",
            tuple(getattr(candidate, c) for c in COLUMNS),
        )
        return _row_to_candidate(self._fetch(many=False)[0])

    def find_all(self) -> list[Candidate]:
        self._execute(
            f"SELECT {','.join(COLUMNS)} FROM {TABLE_NAME} ORDER BY created_at DESC"
        )
        return [_row_to_candidate(r) for r in self._fetch(many=True)]

    def find_one(self, candidate_id: str) -> Candidate | None:
        self._execute(
            f"SELECT {','.join(COLUMNS)} FROM {TABLE_NAME} WHERE id = %s",
            (candidate_id,),
        )
        rows = self._fetch(many=False)
        return _row_to_candidate(rows[0]) if rows else None

    def save(self, candidate: Candidate) -> Candidate:
        assignments = ",".join(f"{c} = %s" for c in (*UPDATABLE_FIELDS, "updated_at"))
        params = tuple(getattr(candidate, c) for c in (*UPDATABLE_FIELDS, "updated_at"))
        self._execute(
            f"UPDATE {TABLE_NAME} SET {assignments} WHERE id = %s RETURNING {','.join(COLUMNS)}",
            (*params, candidate.id),
        )
        rows = self._fetch(many=False)
        if not rows:
            raise RepositoryError(f"candidate {candidate.id} vanished during update")
        return _row_to_candidate(rows[0])

    def delete(self, candidate_id: str) -> None:
        self._execute(f"DELETE FROM {TABLE_NAME} WHERE id = %s", (candidate_id,))


class InMemoryCandidateRepository:
    """Dict-backed repository (mock mode). Insertion order is kept."""

    def __init__(self) -> None:
        self._items: dict[str, Candidate] = {}

    def insert(self, candidate: Candidate) -> Candidate:
        if candidate.id in self._items:
            raise RepositoryError(f"duplicate key value: id={candidate.id}")
        self._items[candidate.id] = candidate
        return candidate

    def find_all(self) -> list[Candidate]:
        # created_at DESC (同時刻は後から登録した方を先に)
        indexed = list(enumerate(self._items.values()))
        indexed.sort(key=lambda p: (p[1].created_at, p[0]), reverse=True)
        return [c for _, c in indexed]

    def find_one(self, candidate_id: str) -> Candidate | None:
        return self._items.get(candidate_id)

    def save(self, candidate: Candidate) -> Candidate:
        if candidate.id not in self._items:
            raise RepositoryError(f"candidate {candidate.id} vanished during update")
        self._items[candidate.id] = candidate
        return candidate

    def delete(self, candidate_id: str) -> None:
        self._items.pop(candidate_id, None)

    def __len__(self) -> int:
        return len(self._items)

