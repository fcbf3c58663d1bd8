"""Rooms and services repository.

Uses raw SQL with psycopg2 (no ORM).
"""

from __future__ import annotations

from typing import Sequence

from psycopg2.extensions import cursor as PgCursor

from hotelera.domain.models import Room, RoomStatus, Service
from hotelera.infra.db import fetchall, fetchone, for_update

_ROOM_BY_ID = "SELECT id, number, status FROM rooms WHERE id = %s"


def get_room(cur: PgCursor, room_id: int, *, lock: bool = False) -> Room | None:
    """Fetch a room; ``lock=True`` holds the row FOR UPDATE until commit.

    Locking the room row is what serializes two concurrent bookings of the
    same room: the second waits here until the first commits.
    """
    if lock:
        row = for_update(cur, _ROOM_BY_ID, (room_id,))
    else:
        row = fetchone(cur, _ROOM_BY_ID, (room_id,))
    if row is None:
        return None
    return Room(id=row[0], number=row[1], status=RoomStatus(row[2]))


def list_rooms(cur: PgCursor) -> list[Room]:
    rows = fetchall(cur, "SELECT id, number, status FROM rooms ORDER BY number")
    return [Room(id=row[0], number=row[1], status=RoomStatus(row[2])) for row in rows]


def set_room_status(cur: PgCursor, room_id: int, status: RoomStatus) -> None:
    cur.execute(
        "UPDATE rooms SET status = %s, updated_at = now() WHERE id = %s",
        (status.value, room_id),
    )


def get_services(cur: PgCursor, service_ids: Sequence[int]) -> list[Service]:
    """Fetch the services whose ids are in ``service_ids``; unknown ids are skipped."""
    if not service_ids:
        return []
    rows = fetchall(
        cur,
        "SELECT id, name, price_cents FROM services WHERE id = ANY(%s) ORDER BY id",
        (list(service_ids),),
    )
    return [Service(id=row[0], name=row[1], price_cents=row[2]) for row in rows]


def list_services(cur: PgCursor) -> list[Service]:
    rows = fetchall(cur, "SELECT id, name, price_cents FROM services ORDER BY name")
    return [Service(id=row[0], name=row[1], price_cents=row[2]) for row in rows]
