"""DATABASE_URL normalization for Alembic.

Kept apart from env.py so it can be imported (and tested) without an active
alembic context. The application connects with psycopg2 and accepts either a
URL or a libpq ``key=value`` DSN; SQLAlchemy needs a URL, so DSNs are
converted here.
"""

from __future__ import annotations

import os
import re
from urllib.parse import quote_plus, urlparse, urlunparse

_DSN_TOKEN = re.compile(r"(\w+)=('(?:\\.|[^'\\])*'|\S*)")
_ESCAPE = re.compile(r"\\(.)")

_SCHEME = "postgresql+psycopg2://"


def parse_libpq_dsn(dsn: str) -> dict[str, str]:
    """Split ``key=value`` pairs; single-quoted values may hold spaces and ``\\'``."""
    tokens: dict[str, str] = {}
    for key, raw in _DSN_TOKEN.findall(dsn):
        if raw.startswith("'") and raw.endswith("'") and len(raw) >= 2:
            raw = _ESCAPE.sub(r"\1", raw[1:-1])
        tokens[key] = raw
    return tokens


def libpq_dsn_to_url(dsn: str) -> str:
    """Convert a libpq DSN to a SQLAlchemy URL.

    A ``host`` starting with ``/`` is a Unix socket directory and goes into
    the query string; anything else becomes ``host:port``.
    """
    tokens = parse_libpq_dsn(dsn)
    password = tokens.get("password") or os.environ.get("DB_PASSWORD", "")

    credentials = f"{quote_plus(tokens.get('user', ''))}:{quote_plus(password)}"
    dbname = quote_plus(tokens.get("dbname", ""))
    host = tokens.get("host", "localhost")

    if host.startswith("/"):
        return f"{_SCHEME}{credentials}@/{dbname}?host={quote_plus(host)}"
    return f"{_SCHEME}{credentials}@{host}:{tokens.get('port', '5432')}/{dbname}"


def _with_driver(url: str) -> str:
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return _SCHEME + url[len(prefix):]
    return url


def _inject_password(url: str, password: str) -> str:
    parsed = urlparse(url)
    if parsed.password or not password:
        return url
    netloc = f"{quote_plus(parsed.username or '')}:{quote_plus(password)}@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse(parsed._replace(netloc=netloc))


def get_database_url() -> str:
    """SQLAlchemy URL built from DATABASE_URL (and DB_PASSWORD when the URL lacks one).

    Raises:
        RuntimeError: DATABASE_URL is not set.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" not in url:
        return libpq_dsn_to_url(url)
    return _inject_password(_with_driver(url), os.environ.get("DB_PASSWORD", ""))
