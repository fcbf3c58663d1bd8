"""Reservations repository - persistence for reservation records.

Uses raw SQL with psycopg2 (no ORM). Payments are owned by the payment flow;
this module only reads them through ``payment_id`` and writes the link.
"""

from __future__ import annotations

from typing import Any, Sequence

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from hotelera.domain.errors import RoomConflictError
from hotelera.domain.models import (
    Payment,
    PaymentStatus,
    Reservation,
    ReservationStatus,
    Service,
)

_SELECT = """
    SELECT r.id, r.customer_id, r.room_id, r.start_date, r.end_date, r.status,
           r.amount_cents, r.discount_cents, r.actual_check_in, r.actual_check_out,
           p.id, p.status, p.amount_cents
    FROM reservations r
    LEFT JOIN payments p ON p.id = r.payment_id
"""


def _row_to_reservation(row: tuple[Any, ...], services: list[Service]) -> Reservation:
    payment = None
    if row[10] is not None:
        payment = Payment(id=row[10], status=PaymentStatus(row[11]), amount_cents=row[12] or 0)
    return Reservation(
        id=row[0],
        customer_id=row[1],
        room_id=row[2],
        start_date=row[3],
        end_date=row[4],
        status=ReservationStatus(row[5]),
        amount_cents=row[6],
        discount_cents=row[7],
        actual_check_in=row[8],
        actual_check_out=row[9],
        services=services,
        payment=payment,
    )


def _services_by_reservation(
    cur: PgCursor, reservation_ids: Sequence[int]
) -> dict[int, list[Service]]:
    if not reservation_ids:
        return {}
    cur.execute(
        """
        SELECT rs.reservation_id, s.id, s.name, s.price_cents
        FROM reservation_services rs
        JOIN services s ON s.id = rs.service_id
        WHERE rs.reservation_id = ANY(%s)
        ORDER BY rs.reservation_id, s.id
        """,
        (list(reservation_ids),),
    )
    grouped: dict[int, list[Service]] = {}
    for row in cur.fetchall():
        grouped.setdefault(row[0], []).append(Service(id=row[1], name=row[2], price_cents=row[3]))
    return grouped


def _hydrate(cur: PgCursor, rows: list[tuple[Any, ...]]) -> list[Reservation]:
    services = _services_by_reservation(cur, [row[0] for row in rows])
    return [_row_to_reservation(row, services.get(row[0], [])) for row in rows]


def get_reservation(
    cur: PgCursor, reservation_id: int, *, lock: bool = False
) -> Reservation | None:
    """Fetch one reservation with its services and payment.

    With ``lock=True`` the reservation row is held FOR UPDATE until commit.
    """
    query = _SELECT + " WHERE r.id = %s"
    if lock:
        # Lock only the reservation row; the payment side of the join is nullable.
        query += " FOR UPDATE OF r"
    cur.execute(query, (reservation_id,))
    row = cur.fetchone()
    if row is None:
        return None
    return _hydrate(cur, [row])[0]


def list_reservations(cur: PgCursor) -> list[Reservation]:
    cur.execute(_SELECT + " ORDER BY r.start_date, r.id")
    return _hydrate(cur, cur.fetchall())


def list_room_reservations(
    cur: PgCursor,
    room_id: int,
    *,
    exclude_reservation_id: int | None = None,
    exclude_statuses: Sequence[ReservationStatus] = (),
) -> list[Reservation]:
    """Reservations on a room ordered by start date, optionally filtered."""
    conditions = ["r.room_id = %s"]
    params: list = [room_id]

    if exclude_reservation_id is not None:
        conditions.append("r.id <> %s")
        params.append(exclude_reservation_id)

    if exclude_statuses:
        conditions.append("r.status <> ALL(%s)")
        params.append([s.value for s in exclude_statuses])

    where_clause = " AND ".join(conditions)
    cur.execute(
        _SELECT + f" WHERE {where_clause} ORDER BY r.start_date, r.id",  # noqa: S608
        params,
    )
    return _hydrate(cur, cur.fetchall())


def list_customer_reservations(cur: PgCursor, customer_id: int) -> list[Reservation]:
    cur.execute(_SELECT + " WHERE r.customer_id = %s ORDER BY r.start_date DESC, r.id", (customer_id,))
    return _hydrate(cur, cur.fetchall())


def _raise_room_conflict(reservation: Reservation) -> None:
    raise RoomConflictError(
        room_id=reservation.room_id,
        conflicting_reservation_id=None,
        existing_start=reservation.start_date,
        existing_end=reservation.end_date,
    )


def insert_reservation(cur: PgCursor, reservation: Reservation) -> int:
    """Insert a reservation and return its new id.

    Raises:
        RoomConflictError: The no-overlap exclusion constraint rejected the row
            (a concurrent booking committed first).
    """
    try:
        cur.execute(
            """
            INSERT INTO reservations (
                customer_id, room_id, start_date, end_date, status,
                amount_cents, discount_cents, actual_check_in, actual_check_out,
                payment_id
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id
            """,
            (
                reservation.customer_id,
                reservation.room_id,
                reservation.start_date,
                reservation.end_date,
                reservation.status.value,
                reservation.amount_cents,
                reservation.discount_cents,
                reservation.actual_check_in,
                reservation.actual_check_out,
                reservation.payment.id if reservation.payment else None,
            ),
        )
    except pg_errors.ExclusionViolation:
        _raise_room_conflict(reservation)
    return cur.fetchone()[0]


def update_reservation(cur: PgCursor, reservation: Reservation) -> None:
    """Write every mutable column of an existing reservation.

    Raises:
        RoomConflictError: The no-overlap exclusion constraint rejected the row.
    """
    try:
        cur.execute(
            """
            UPDATE reservations
            SET customer_id      = %s,
                room_id          = %s,
                start_date       = %s,
                end_date         = %s,
                status           = %s,
                amount_cents     = %s,
                discount_cents   = %s,
                actual_check_in  = %s,
                actual_check_out = %s,
                payment_id       = %s,
                updated_at       = now()
            WHERE id = %s
            """,
            (
                reservation.customer_id,
                reservation.room_id,
                reservation.start_date,
                reservation.end_date,
                reservation.status.value,
                reservation.amount_cents,
                reservation.discount_cents,
                reservation.actual_check_in,
                reservation.actual_check_out,
                reservation.payment.id if reservation.payment else None,
                reservation.id,
            ),
        )
    except pg_errors.ExclusionViolation:
        _raise_room_conflict(reservation)


def delete_reservation(cur: PgCursor, reservation_id: int) -> None:
    # reservation_services rows go with ON DELETE CASCADE.
    cur.execute("DELETE FROM reservations WHERE id = %s", (reservation_id,))


def set_reservation_services(
    cur: PgCursor, reservation_id: int, service_ids: Sequence[int]
) -> None:
    """Replace the reservation's service set with ``service_ids``."""
    cur.execute("DELETE FROM reservation_services WHERE reservation_id = %s", (reservation_id,))
    for service_id in service_ids:
        cur.execute(
            """
            INSERT INTO reservation_services (reservation_id, service_id)
            VALUES (%s, %s)
            ON CONFLICT DO NOTHING
            """,
            (reservation_id, service_id),
        )
