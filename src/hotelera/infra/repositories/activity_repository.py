"""Front desk notifications and audit trail persistence.

Uses raw SQL with psycopg2 (no ORM). Rows are append-only.
"""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor


def insert_notification(
    cur: PgCursor,
    *,
    title: str,
    message: str,
    severity: str,
) -> int:
    cur.execute(
        """
        INSERT INTO notifications (title, message, severity)
        VALUES (%s, %s, %s)
        RETURNING id
        """,
        (title, message, severity),
    )
    return cur.fetchone()[0]


def list_unread_notifications(cur: PgCursor, *, limit: int = 50) -> list[dict]:
    cur.execute(
        """
        SELECT id, title, message, severity, created_at
        FROM notifications
        WHERE read_at IS NULL
        ORDER BY created_at DESC, id DESC
        LIMIT %s
        """,
        (limit,),
    )
    return [
        {
            "id": row[0],
            "title": row[1],
            "message": row[2],
            "severity": row[3],
            "created_at": row[4].isoformat(),
        }
        for row in cur.fetchall()
    ]


def mark_notification_read(cur: PgCursor, notification_id: int) -> bool:
    """Mark a notification read. Returns False if it does not exist."""
    cur.execute(
        "UPDATE notifications SET read_at = COALESCE(read_at, now()) WHERE id = %s RETURNING id",
        (notification_id,),
    )
    return cur.fetchone() is not None


def insert_audit_record(
    cur: PgCursor,
    *,
    action: str,
    description: str,
    subject_type: str,
    subject_id: int | None,
    correlation_id: str | None,
) -> int:
    """Append one audit entry.

    Args:
        cur: Database cursor (within transaction).
        action: Machine-readable action code, e.g. RESERVATION_CANCELLED.
        description: Human-readable summary. Must not carry PII beyond ids.
        subject_type: Entity kind the action applied to.
        subject_id: Entity id, if any.
        correlation_id: Request correlation id, for tracing back to logs.

    Returns:
        Id of the new audit row.
    """
    cur.execute(
        """
        INSERT INTO audit_log (action, description, subject_type, subject_id, correlation_id)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING id
        """,
        (action, description, subject_type, subject_id, correlation_id),
    )
    return cur.fetchone()[0]
