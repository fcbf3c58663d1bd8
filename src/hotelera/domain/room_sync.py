"""Keeps a room's physical status in line with reservation events.

Release is unconditional: the room goes back to AVAILABLE without looking at
other reservations on it, so the last writer wins.
"""

from __future__ import annotations

import logging
from datetime import date

from .models import Reservation, ReservationStatus, RoomStatus
from .store import Store

logger = logging.getLogger(__name__)

OCCUPYING_STATUSES = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.ACTIVE, ReservationStatus.PROCESSING}
)


def status_after_save(reservation: Reservation, today: date) -> RoomStatus | None:
    """Room status implied by a created or edited reservation.

    The room only becomes OCCUPIED when the stay covers today
    (start <= today <= end) and the reservation is still open.
    Otherwise the room is left untouched (None).
    """
    covers_today = reservation.start_date <= today <= reservation.end_date
    if covers_today and reservation.status in OCCUPYING_STATUSES:
        return RoomStatus.OCCUPIED
    return None


def sync_after_save(store: Store, reservation: Reservation, today: date) -> RoomStatus | None:
    status = status_after_save(reservation, today)
    if status is not None:
        store.set_room_status(reservation.room_id, status)
        logger.info(
            "room status synchronized",
            extra={"extra_fields": {"room_id": reservation.room_id, "status": status.value}},
        )
    return status


def occupy_room(store: Store, room_id: int) -> None:
    store.set_room_status(room_id, RoomStatus.OCCUPIED)


def release_room(store: Store, room_id: int | None) -> None:
    if room_id is None:
        return
    store.set_room_status(room_id, RoomStatus.AVAILABLE)
