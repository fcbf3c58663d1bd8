"""Tests for migrations/env_helpers.py DSN-to-URL conversion."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from migrations.env_helpers import get_database_url, libpq_dsn_to_url, parse_libpq_dsn


class TestParseLibpqDsn:
    def test_plain_pairs(self):
        assert parse_libpq_dsn("dbname=db user=u host=h") == {"dbname": "db", "user": "u", "host": "h"}

    def test_quoted_value_keeps_spaces(self):
        assert parse_libpq_dsn("password='a b' user=u")["password"] == "a b"


class TestLibpqDsnToUrl:
    def test_cloudsql_socket(self):
        dsn = "dbname=hotelera user=hotelera-sa password=s3cret host=/cloudsql/proj:us-central1:inst"
        result = libpq_dsn_to_url(dsn)
        assert result == (
            "postgresql+psycopg2://hotelera-sa:s3cret@/hotelera"
            "?host=%2Fcloudsql%2Fproj%3Aus-central1%3Ainst"
        )

    def test_tcp_host(self):
        dsn = "dbname=hotelera user=admin password=pw host=localhost port=5432"
        assert libpq_dsn_to_url(dsn) == "postgresql+psycopg2://admin:pw@localhost:5432/hotelera"

    def test_default_port(self):
        dsn = "dbname=db user=u password=p host=myhost"
        assert libpq_dsn_to_url(dsn) == "postgresql+psycopg2://u:p@myhost:5432/db"

    def test_special_chars_encoded(self):
        dsn = "dbname=db user=u@domain password=p@ss=word host=h port=5432"
        result = libpq_dsn_to_url(dsn)
        assert "u%40domain" in result
        assert "p%40ss%3Dword" in result

    def test_quoted_password_with_escaped_quote(self):
        dsn = r"dbname=db user=u password='it\'s' host=h port=5432"
        assert "it%27s" in libpq_dsn_to_url(dsn)

    def test_db_password_env_fallback(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "from-env")
        assert "from-env" in libpq_dsn_to_url("dbname=db user=u host=h port=5432")

    def test_dsn_password_wins(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "from-env")
        result = libpq_dsn_to_url("dbname=db user=u password=from-dsn host=h port=5432")
        assert "from-dsn" in result
        assert "from-env" not in result


class TestGetDatabaseUrl:
    def test_url_passthrough(self):
        with patch.dict(os.environ, {"DATABASE_URL": "postgresql+psycopg2://u:p@h/db"}, clear=True):
            assert get_database_url() == "postgresql+psycopg2://u:p@h/db"

    def test_postgres_scheme_gets_driver(self):
        with patch.dict(os.environ, {"DATABASE_URL": "postgres://u:p@h:5433/db"}, clear=True):
            assert get_database_url() == "postgresql+psycopg2://u:p@h:5433/db"

    def test_password_injected_into_url(self):
        env = {"DATABASE_URL": "postgresql://u@h:5432/db", "DB_PASSWORD": "s3cret"}
        with patch.dict(os.environ, env, clear=True):
            assert get_database_url() == "postgresql+psycopg2://u:s3cret@h:5432/db"

    def test_dsn_converted(self):
        dsn = "dbname=hotelera user=sa password=pw host=/cloudsql/p:r:i"
        with patch.dict(os.environ, {"DATABASE_URL": dsn}, clear=True):
            assert get_database_url().startswith("postgresql+psycopg2://sa:pw@/hotelera?host=")

    def test_missing_url(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(RuntimeError, match="DATABASE_URL"):
                get_database_url()
