"""Reports endpoints for the dashboard.

READ-only. Series are dense: one entry per day of the inclusive window.
"""

from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query

from hotelera.api.deps import get_app_settings, get_clock
from hotelera.api.rbac import CallerContext, require_role
from hotelera.domain import reporting
from hotelera.domain.errors import ValidationError
from hotelera.domain.models import Reservation
from hotelera.domain.store import Clock
from hotelera.infra.settings import Settings

router = APIRouter(prefix="/reports", tags=["reports"])

DEFAULT_WINDOW_DAYS = 30


def _resolve_window(
    from_date: date | None,
    to_date: date | None,
    *,
    today: date,
    max_days: int,
) -> tuple[date, date]:
    """Fill in the default window (the last 30 days, today included) and enforce the size cap."""
    to_date = to_date or today
    from_date = from_date or to_date - timedelta(days=DEFAULT_WINDOW_DAYS - 1)
    if from_date > to_date:
        raise ValidationError("'from' must not be after 'to'")
    if (to_date - from_date).days + 1 > max_days:
        raise ValidationError(f"Report window cannot exceed {max_days} days")
    return from_date, to_date


def _load_reservations() -> list[Reservation]:
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        return store.list_reservations()


@router.get("/revenue")
def get_revenue_report(
    ctx: CallerContext = Depends(require_role("receptionist")),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
    from_date: date | None = Query(None, alias="from", description="Start date (default: 29 days before the end date)"),
    to_date: date | None = Query(None, alias="to", description="End date (default: today)"),
) -> dict:
    """Revenue per day, attributed to the departure day."""
    from_date, to_date = _resolve_window(
        from_date, to_date, today=clock.today(), max_days=settings.report_max_range_days
    )
    series = reporting.revenue_by_day(_load_reservations(), from_date, to_date)
    return {
        "from": from_date.isoformat(),
        "to": to_date.isoformat(),
        "total_cents": sum(p.revenue_cents for p in series),
        "series": [{"date": p.day.isoformat(), "revenue_cents": p.revenue_cents} for p in series],
    }


@router.get("/occupancy")
def get_occupancy_report(
    ctx: CallerContext = Depends(require_role("receptionist")),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
    from_date: date | None = Query(None, alias="from", description="Start date (default: 29 days before the end date)"),
    to_date: date | None = Query(None, alias="to", description="End date (default: today)"),
) -> dict:
    """Occupied rooms per night."""
    from_date, to_date = _resolve_window(
        from_date, to_date, today=clock.today(), max_days=settings.report_max_range_days
    )
    series = reporting.occupancy_by_day(_load_reservations(), from_date, to_date)
    return {
        "from": from_date.isoformat(),
        "to": to_date.isoformat(),
        "series": [{"date": p.day.isoformat(), "occupied": p.occupied} for p in series],
    }


@router.get("/movements")
def get_movements_report(
    ctx: CallerContext = Depends(require_role("receptionist")),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
    from_date: date | None = Query(None, alias="from", description="Start date (default: 29 days before the end date)"),
    to_date: date | None = Query(None, alias="to", description="End date (default: today)"),
) -> dict:
    """Booked arrivals and departures per day."""
    from_date, to_date = _resolve_window(
        from_date, to_date, today=clock.today(), max_days=settings.report_max_range_days
    )
    series = reporting.movement_by_day(_load_reservations(), from_date, to_date)
    return {
        "from": from_date.isoformat(),
        "to": to_date.isoformat(),
        "series": [
            {"date": p.day.isoformat(), "check_ins": p.check_ins, "check_outs": p.check_outs}
            for p in series
        ],
    }


@router.get("/summary")
def get_summary_report(
    ctx: CallerContext = Depends(require_role("receptionist")),
    clock: Clock = Depends(get_clock),
    days: int = Query(DEFAULT_WINDOW_DAYS, ge=1, le=366, description="Window for recent revenue"),
) -> dict:
    """Front desk counters, all-time revenue and counts per status."""
    today = clock.today()
    reservations = _load_reservations()
    desk = reporting.front_desk_summary(reservations, today=today)
    return {
        "date": today.isoformat(),
        "total_revenue_cents": reporting.total_revenue_cents(reservations),
        "recent_revenue_cents": reporting.revenue_last_days(reservations, days=days, today=today),
        "recent_revenue_days": days,
        "open_reservations": desk.open_reservations,
        "check_outs_today": desk.check_outs_today,
        "rooms_reserved": desk.rooms_reserved,
        "arrivals_today": desk.arrivals_today,
        "departures_today": desk.departures_today,
        "by_status": reporting.count_by_status(reservations),
    }
