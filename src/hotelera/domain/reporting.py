"""Read-side aggregations over the reservation set.

Pure functions: the caller loads the reservations (no transactional
consistency with concurrent writes is needed) and passes them in.

Every series is dense: one point per calendar day of the inclusive window
``[start, end]``, zero-valued days included.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator

from .errors import ValidationError
from .models import STAYED_STATUSES, Reservation, ReservationStatus


@dataclass(frozen=True)
class RevenuePoint:
    day: date
    revenue_cents: int


@dataclass(frozen=True)
class OccupancyPoint:
    day: date
    occupied: int


@dataclass(frozen=True)
class MovementPoint:
    day: date
    check_ins: int
    check_outs: int


@dataclass(frozen=True)
class FrontDeskSummary:
    """Today's counters for the front desk dashboard."""

    open_reservations: int
    check_outs_today: int
    rooms_reserved: int
    arrivals_today: int
    departures_today: int


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, both inclusive."""
    if start > end:
        raise ValidationError("Report window start must not be after its end")
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def _in_window(day: date | None, start: date, end: date) -> bool:
    return day is not None and start <= day <= end


def revenue_by_day(
    reservations: Iterable[Reservation], start: date, end: date
) -> list[RevenuePoint]:
    """Revenue per day, attributed to the actual (or booked) departure day.

    Only active and finalized reservations earn revenue.
    """
    totals = {day: 0 for day in iter_days(start, end)}
    for reservation in reservations:
        if reservation.status not in STAYED_STATUSES:
            continue
        day = reservation.revenue_date
        if _in_window(day, start, end):
            totals[day] += reservation.total_cents
    return [RevenuePoint(day=d, revenue_cents=v) for d, v in totals.items()]


def occupancy_by_day(
    reservations: Iterable[Reservation], start: date, end: date
) -> list[OccupancyPoint]:
    """Number of active/finalized reservations whose booked nights cover each day."""
    stayed = [r for r in reservations if r.status in STAYED_STATUSES]
    return [
        OccupancyPoint(day=day, occupied=sum(1 for r in stayed if r.covers(day)))
        for day in iter_days(start, end)
    ]


def movement_by_day(
    reservations: Iterable[Reservation], start: date, end: date
) -> list[MovementPoint]:
    """Booked arrivals and departures per day, whatever the reservation status."""
    days = list(iter_days(start, end))
    arrivals: Counter[date] = Counter()
    departures: Counter[date] = Counter()
    for reservation in reservations:
        if _in_window(reservation.start_date, start, end):
            arrivals[reservation.start_date] += 1
        if _in_window(reservation.end_date, start, end):
            departures[reservation.end_date] += 1
    return [
        MovementPoint(day=day, check_ins=arrivals[day], check_outs=departures[day])
        for day in days
    ]


def is_revenue_eligible(reservation: Reservation) -> bool:
    if reservation.status in STAYED_STATUSES:
        return True
    return reservation.status == ReservationStatus.PENDING and reservation.has_completed_payment


def total_revenue_cents(reservations: Iterable[Reservation]) -> int:
    """All-time revenue: active and finalized stays plus pending ones already paid."""
    return sum(r.total_cents for r in reservations if is_revenue_eligible(r))


def revenue_last_days(
    reservations: Iterable[Reservation], *, days: int, today: date
) -> int:
    """Revenue of stays that checked out within the last ``days`` days (today included)."""
    if days < 1:
        raise ValidationError("days must be >= 1")
    since = today - timedelta(days=days - 1)
    return sum(
        r.total_cents
        for r in reservations
        if r.actual_check_out is not None and r.actual_check_out >= since
    )


def front_desk_summary(reservations: Iterable[Reservation], *, today: date) -> FrontDeskSummary:
    reservations = list(reservations)
    held = [
        r for r in reservations
        if r.status in (ReservationStatus.PENDING, ReservationStatus.ACTIVE)
    ]
    return FrontDeskSummary(
        open_reservations=len(held),
        check_outs_today=sum(
            1
            for r in reservations
            if r.status == ReservationStatus.FINALIZED and r.actual_check_out == today
        ),
        rooms_reserved=len({r.room_id for r in held}),
        arrivals_today=sum(1 for r in reservations if r.start_date == today),
        departures_today=sum(1 for r in reservations if r.end_date == today),
    )


def reservations_in_period(
    reservations: Iterable[Reservation], start: date, end: date
) -> list[Reservation]:
    """Reservations whose booked range touches ``[start, end]`` (both inclusive)."""
    if start > end:
        raise ValidationError("Period start must not be after its end")
    return [r for r in reservations if r.start_date <= end and r.end_date >= start]


def count_by_status(reservations: Iterable[Reservation]) -> dict[str, int]:
    counts = {status.value: 0 for status in ReservationStatus}
    for reservation in reservations:
        counts[reservation.status.value] += 1
    return counts
