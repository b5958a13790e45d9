"""
Database connection and the query execution gateway.

Every database read and write in the API goes through execute_query(),
which returns a QueryResult instead of raising. Connections are bounded
by DB_POOL_SIZE; callers block until a slot frees.
"""
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generator, Sequence

import structlog

from .config import settings

logger = structlog.get_logger("covid.db")

DB_PATH = settings.DATABASE_PATH
DB_QUERY_TIMEOUT = settings.DB_QUERY_TIMEOUT

_pool = threading.BoundedSemaphore(settings.DB_POOL_SIZE)


@dataclass
class QueryResult:
    """Uniform result of a gateway call."""
    success: bool
    data: list[dict] = field(default_factory=list)
    error: str | None = None
    rowcount: int = 0
    lastrowid: int | None = None

    def first(self) -> dict | None:
        return self.data[0] if self.data else None


def get_db_connection() -> sqlite3.Connection:
    """Create a database connection with row factory and timeout."""
    conn = sqlite3.connect(str(DB_PATH), timeout=DB_QUERY_TIMEOUT, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA busy_timeout = {DB_QUERY_TIMEOUT * 1000}")
    # WAL mode allows concurrent readers while one writer is active
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Context manager for pooled database connections."""
    with _pool:
        conn = get_db_connection()
        try:
            yield conn
        finally:
            conn.close()


# Binding an out-of-range int raises OverflowError; embedded NULs raise ValueError
GATEWAY_ERRORS = (sqlite3.Error, OverflowError, ValueError)


def _statement_name(sql: str) -> str:
    return " ".join(sql.split())[:80]


def execute_query(sql: str, params: Sequence[Any] = ()) -> QueryResult:
    """Run one parameterized statement and commit.

    Never raises: connection failures, constraint violations, syntax
    errors and unbindable parameters come back as
    QueryResult(success=False, error=...).
    """
    try:
        with get_db() as conn:
            cursor = conn.execute(sql, tuple(params))
            rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
            conn.commit()
            return QueryResult(
                success=True,
                data=rows,
                rowcount=cursor.rowcount,
                lastrowid=cursor.lastrowid,
            )
    except GATEWAY_ERRORS as exc:
        logger.error("database_query_failed", error=str(exc), statement=_statement_name(sql))
        return QueryResult(success=False, error=str(exc))


def execute_script(script: str) -> QueryResult:
    """Run a multi-statement script (DDL) with the same result contract."""
    try:
        with get_db() as conn:
            conn.executescript(script)
            conn.commit()
            return QueryResult(success=True)
    except GATEWAY_ERRORS as exc:
        logger.error("database_script_failed", error=str(exc))
        return QueryResult(success=False, error=str(exc))


def check_connection() -> bool:
    """Return True when the database answers a trivial query."""
    result = execute_query("SELECT 1 AS ok")
    return result.success


def verify_database_exists() -> bool:
    """Check if the database file exists."""
    return Path(DB_PATH).exists()
