"""Room availability: date-range conflict detection.

Overlap formula:  (new_start < existing_effective_end) AND (new_end > existing_start)
Strict inequality lets a departure day equal the next arrival day.

Every non-cancelled reservation on the room takes part. A finalized stay that
checked out early only blocks up to its actual check-out date.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from .errors import RoomConflictError, ValidationError
from .models import Reservation, ReservationStatus
from .store import Store

logger = logging.getLogger(__name__)

NON_BLOCKING_STATUSES = (ReservationStatus.CANCELLED,)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Half-open interval test: touching endpoints do not overlap."""
    return start_a < end_b and end_a > start_b


def find_conflict(
    start: date,
    end: date,
    existing: Iterable[Reservation],
    *,
    exclude_reservation_id: int | None = None,
) -> Reservation | None:
    """Return the first reservation in ``existing`` that blocks ``[start, end)``.

    Args:
        start: Candidate arrival date.
        end: Candidate departure date.
        existing: Reservations on the same room.
        exclude_reservation_id: Reservation being edited, ignored in the comparison.

    Returns:
        The earliest-starting conflicting reservation, or None.
    """
    candidates = sorted(existing, key=lambda r: (r.start_date, r.id or 0))
    for reservation in candidates:
        if reservation.status in NON_BLOCKING_STATUSES:
            continue
        if exclude_reservation_id is not None and reservation.id == exclude_reservation_id:
            continue
        if ranges_overlap(start, end, reservation.start_date, reservation.effective_end):
            return reservation
    return None


def check_room_availability(
    store: Store,
    *,
    room_id: int,
    start: date,
    end: date,
    exclude_reservation_id: int | None = None,
) -> Reservation | None:
    """Look up the room's reservations and return the first conflict, if any."""
    existing = store.list_room_reservations(
        room_id,
        exclude_reservation_id=exclude_reservation_id,
        exclude_statuses=NON_BLOCKING_STATUSES,
    )
    conflict = find_conflict(start, end, existing, exclude_reservation_id=exclude_reservation_id)
    if conflict is not None:
        logger.warning(
            "room conflict detected",
            extra={
                "extra_fields": {
                    "room_id": room_id,
                    "requested_start": start.isoformat(),
                    "requested_end": end.isoformat(),
                    "conflicting_reservation_id": conflict.id,
                    "existing_start": conflict.start_date.isoformat(),
                    "existing_end": conflict.effective_end.isoformat(),
                }
            },
        )
    return conflict


def assert_room_available(
    store: Store,
    *,
    room_id: int,
    start: date,
    end: date,
    exclude_reservation_id: int | None = None,
) -> None:
    """Raise RoomConflictError if the room is booked for any day of ``[start, end)``.

    Raises:
        ValidationError: If the range is empty or inverted.
        RoomConflictError: If an existing reservation overlaps.
    """
    if start >= end:
        raise ValidationError("Start date must be before end date")

    conflict = check_room_availability(
        store,
        room_id=room_id,
        start=start,
        end=end,
        exclude_reservation_id=exclude_reservation_id,
    )
    if conflict is not None:
        raise RoomConflictError(
            room_id=room_id,
            conflicting_reservation_id=conflict.id,
            existing_start=conflict.start_date,
            existing_end=conflict.effective_end,
        )
