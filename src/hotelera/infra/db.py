"""PostgreSQL access through psycopg2.

Repositories receive a cursor from ``txn()`` and run raw SQL on it; nothing
here knows about reservations or customers.

Provides:
- get_conn(): connection from DATABASE_URL (DB_PASSWORD as fallback secret)
- txn(): one short transaction, committed on success, rolled back on error
- fetchone/fetchall: execute-and-fetch shorthands
- for_update(): row lock helper for the booking critical section
"""

import os
import re
from contextlib import contextmanager
from typing import Any, Iterator, Sequence
from urllib.parse import urlparse

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor

Params = Sequence[Any] | dict[str, Any] | None

_DSN_PASSWORD = re.compile(r"(^|\s)password=")

# Row-lock wait policies accepted by for_update().
_LOCK_SUFFIXES = {
    (False, False): " FOR UPDATE",
    (True, False): " FOR UPDATE NOWAIT",
    (False, True): " FOR UPDATE SKIP LOCKED",
}


def _dsn_has_password(dsn: str) -> bool:
    if "://" in dsn:
        return bool(urlparse(dsn).password)
    return bool(_DSN_PASSWORD.search(dsn))


def _connect_kwargs(dsn: str) -> dict[str, str]:
    db_password = os.environ.get("DB_PASSWORD")
    if db_password and not _dsn_has_password(dsn):
        return {"password": db_password}
    return {}


def get_conn() -> PgConnection:
    """Open a new connection to the reservations database.

    DATABASE_URL may be a URL or a libpq ``key=value`` DSN. When it carries
    no password, DB_PASSWORD is passed on its own so the secret can be
    mounted apart from the URL.

    Raises:
        RuntimeError: DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")
    return psycopg2.connect(dsn, **_connect_kwargs(dsn))


@contextmanager
def txn(conn: PgConnection | None = None) -> Iterator[PgCursor]:
    """Run a block inside one transaction and yield its cursor.

    A connection opened here is closed on exit; one passed in is left open
    for the caller.

    Example:
        with txn() as cur:
            rooms_repository.set_room_status(cur, 101, RoomStatus.AVAILABLE)
    """
    owned = conn is None
    conn = conn if conn is not None else get_conn()
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if owned:
            conn.close()


def fetchone(cur: PgCursor, query: str, params: Params = None) -> tuple[Any, ...] | None:
    cur.execute(query, params)
    return cur.fetchone()


def fetchall(cur: PgCursor, query: str, params: Params = None) -> list[tuple[Any, ...]]:
    cur.execute(query, params)
    return cur.fetchall()


def for_update(
    cur: PgCursor,
    query: str,
    params: Params = None,
    *,
    nowait: bool = False,
    skip_locked: bool = False,
) -> tuple[Any, ...] | None:
    """Fetch one row and hold its lock until the transaction ends.

    Locking the room row before the overlap check is what makes two
    concurrent bookings of the same room run one after the other.

    Raises:
        ValueError: Both ``nowait`` and ``skip_locked`` were requested.
    """
    suffix = _LOCK_SUFFIXES.get((nowait, skip_locked))
    if suffix is None:
        raise ValueError("Cannot use both nowait and skip_locked")
    return fetchone(cur, query.rstrip().rstrip(";") + suffix, params)
