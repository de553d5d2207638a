from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Sequence
from urllib.parse import urlparse

from fairshare_gateway.errors import StoreError, StoreTimeout
from fairshare_gateway.schema import get_schema_sql


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


def _detect_dialect(dsn: str) -> str:
    """Return 'postgres' or 'sqlite'."""
    s = (dsn or "").strip()
    if not s:
        return "sqlite"
    try:
        scheme = urlparse(s).scheme.lower()
    except Exception:
        scheme = ""
    if scheme in ("postgres", "postgresql"):
        return "postgres"
    return "sqlite"


def _qmark_to_pct(sql: str) -> str:
    """Convert SQLite qmark placeholders (?) to psycopg2 placeholders (%s).

    Skips '?' inside single-quoted literals; the queries in this package never
    use double-quoted identifiers.
    """
    out: List[str] = []
    in_single = False
    for ch in sql:
        if ch == "'":
            in_single = not in_single
        if ch == "?" and not in_single:
            out.append("%s")
        else:
            out.append(ch)
    return "".join(out)


class PGConnection:
    """Makes a psycopg2 connection answer execute() like sqlite3 does."""

    dialect = "postgres"

    def __init__(self, conn: Any):
        self._conn = conn

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        cur = self._conn.cursor()
        cur.execute(_qmark_to_pct(sql), tuple(params or ()))
        return cur

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()


def is_unique_violation(exc: BaseException) -> bool:
    """True when exc is an insert conflict on a UNIQUE column."""
    if isinstance(exc, sqlite3.IntegrityError):
        return "UNIQUE" in str(exc).upper()
    # psycopg2.errors.UniqueViolation carries SQLSTATE 23505.
    return getattr(exc, "pgcode", None) == "23505"


def translate_store_error(exc: BaseException) -> StoreError:
    """Map a driver exception onto StoreTimeout/StoreError."""
    text = str(exc)
    if isinstance(exc, sqlite3.OperationalError) and "locked" in text.lower():
        return StoreTimeout(f"Credential store timed out: {text}")
    # 57014 query_canceled (statement_timeout); 08xxx connection failures.
    pgcode = getattr(exc, "pgcode", None) or ""
    if pgcode == "57014" or "timeout" in text.lower():
        return StoreTimeout(f"Credential store timed out: {text}")
    return StoreError(f"Credential store error: {text}")


@contextmanager
def connect(db_dsn: str, *, timeout_seconds: float = 5.0) -> Iterator[Any]:
    """Connect to SQLite or Postgres with bounded waits.

    - SQLite: `timeout` bounds lock waits; busy_timeout mirrors it.
    - Postgres: connect_timeout + statement_timeout; RealDictCursor rows.
    """
    dsn = (db_dsn or "").strip()
    dialect = _detect_dialect(dsn)

    if dialect == "postgres":
        try:
            import psycopg2
            import psycopg2.extras
        except Exception as e:
            raise RuntimeError(
                "Postgres selected but psycopg2 is not installed. "
                "Install the 'postgres' extra (psycopg2-binary) and try again."
            ) from e

        raw = psycopg2.connect(
            dsn,
            cursor_factory=psycopg2.extras.RealDictCursor,
            connect_timeout=max(1, int(timeout_seconds)),
            options=f"-c statement_timeout={int(timeout_seconds * 1000)}",
        )
        conn = PGConnection(raw)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return

    if dsn.lower().startswith("sqlite:///"):
        dsn = dsn[len("sqlite:///") :]

    Path(dsn).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(dsn, timeout=timeout_seconds, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute(f"PRAGMA busy_timeout={int(timeout_seconds * 1000)};")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_dsn: str, *, timeout_seconds: float = 5.0) -> None:
    """Create the users table if it does not exist."""
    dialect = _detect_dialect(db_dsn)
    _debug(f"Initializing credential store ({dialect})")
    with connect(db_dsn, timeout_seconds=timeout_seconds) as conn:
        for stmt in [s.strip() for s in get_schema_sql(dialect).split(";") if s.strip()]:
            conn.execute(stmt)
