from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager

import psycopg2

from src.config.loader import DatabaseConfig

"""PostgreSQL connection handling.

接続情報の解決優先順位:
    1. DATABASE_URL / PGDSN (DSN 全体)
    2. 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. config ファイルの database セクション (不足分のフォールバック)

.env は CLI 起動時に override=True で読み込まれるため 1/2 と同列に扱われる。
"""

__all__ = [
    "resolve_dsn",
    "db_connection",
]

logger = logging.getLogger(__name__)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_connection(db_cfg: DatabaseConfig) -> Iterator[object]:  # pragma: no cover (thin wrapper)
    """Yield a psycopg2 cursor inside one transaction.

    COMMIT on normal exit, ROLLBACK when the block raises.
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = False
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        logger.debug("rolling back transaction")
        conn.rollback()
        raise
    finally:
        conn.close()
