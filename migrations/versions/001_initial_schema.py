"""Initial schema: customers, accounts, rooms, services, payments,
reservations, notifications and audit log.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "001_initial_schema.sql"


def upgrade() -> None:
    op.execute(_SQL_FILE.read_text())


def downgrade() -> None:
    op.execute(
        """
        DROP TABLE IF EXISTS audit_log;
        DROP TABLE IF EXISTS notifications;
        DROP TABLE IF EXISTS reservation_services;
        DROP TABLE IF EXISTS reservations;
        DROP TABLE IF EXISTS payments;
        DROP TABLE IF EXISTS services;
        DROP TABLE IF EXISTS rooms;
        DROP TABLE IF EXISTS customers;
        DROP TABLE IF EXISTS accounts;
        """
    )
