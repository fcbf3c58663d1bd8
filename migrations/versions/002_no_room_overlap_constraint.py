"""Exclusion constraint against double booking a room.

Two non-cancelled reservations on the same room may not overlap. Ranges are
half-open ('[)'), so a departure day equal to the next arrival day is not a
collision. A finalized stay only blocks up to its actual check-out date,
never past its booked end date, matching the application-level
availability check.

Revision ID: 002_no_room_overlap_constraint
Revises: 001_initial_schema
Create Date: 2026-10-18
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "002_no_room_overlap_constraint"
down_revision = "001_initial_schema"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "002_no_room_overlap_constraint.sql"


def upgrade() -> None:
    op.execute(_SQL_FILE.read_text())


def downgrade() -> None:
    op.execute("ALTER TABLE reservations DROP CONSTRAINT IF EXISTS no_room_overlap")
    # btree_gist stays installed; other indexes may rely on it.
