"""Reservation endpoints: booking, edits and front desk transitions.

Each handler runs the lifecycle operation inside one unit of work and
dispatches the returned effects only after the commit.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from hotelera.api.deps import get_app_settings, get_clock
from hotelera.api.rbac import CallerContext, require_role
from hotelera.domain import lifecycle
from hotelera.domain.errors import ReservationNotFoundError
from hotelera.domain.models import Reservation, ReservationDraft, ReservationStatus
from hotelera.domain.reporting import reservations_in_period
from hotelera.domain.store import Clock
from hotelera.infra.settings import Settings


class ReservationRequest(BaseModel):
    """Request body for create and update."""

    customer_id: int
    room_id: int
    start_date: date
    end_date: date
    amount_cents: int = Field(0, ge=0)
    discount_cents: int | None = Field(0, ge=0)
    status: ReservationStatus = ReservationStatus.PENDING
    service_ids: list[int] = Field(default_factory=list)


class ActualDateRequest(BaseModel):
    """Optional body for check-in/check-out; defaults to today."""

    on: date | None = None


class AssignServicesRequest(BaseModel):
    service_ids: list[int]


router = APIRouter(prefix="/reservations", tags=["reservations"])


def reservation_to_dict(reservation: Reservation) -> dict:
    return {
        "id": reservation.id,
        "customer_id": reservation.customer_id,
        "room_id": reservation.room_id,
        "start_date": reservation.start_date.isoformat(),
        "end_date": reservation.end_date.isoformat(),
        "status": reservation.status.value,
        "amount_cents": reservation.amount_cents,
        "discount_cents": reservation.discount_cents,
        "services": [
            {"id": s.id, "name": s.name, "price_cents": s.price_cents}
            for s in reservation.services
        ],
        "total_cents": reservation.total_cents,
        "actual_check_in": reservation.actual_check_in.isoformat() if reservation.actual_check_in else None,
        "actual_check_out": reservation.actual_check_out.isoformat() if reservation.actual_check_out else None,
        "payment_status": reservation.payment.status.value if reservation.payment else None,
    }


def _draft(body: ReservationRequest) -> ReservationDraft:
    return ReservationDraft(
        customer_id=body.customer_id,
        room_id=body.room_id,
        start_date=body.start_date,
        end_date=body.end_date,
        amount_cents=body.amount_cents,
        discount_cents=body.discount_cents,
        status=body.status,
        service_ids=tuple(body.service_ids),
    )


def _noop(reservation_id: int) -> dict:
    return {"id": reservation_id, "changed": False, "reservation": None}


# ── Reads ─────────────────────────────────────────────────


@router.get("")
def list_reservations(
    ctx: CallerContext = Depends(require_role("receptionist")),
    status: ReservationStatus | None = Query(None, description="Filter by status"),
    from_date: date | None = Query(None, alias="from", description="Booked range touches [from, to]"),
    to_date: date | None = Query(None, alias="to"),
) -> dict:
    """List reservations, optionally by status and by booked period.

    Requires receptionist role or higher.
    """
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        reservations = store.list_reservations()

    if from_date or to_date:
        reservations = reservations_in_period(
            reservations,
            from_date or date.min,
            to_date or date.max,
        )
    if status is not None:
        reservations = [r for r in reservations if r.status == status]

    return {"items": [reservation_to_dict(r) for r in reservations]}


@router.get("/{reservation_id}")
def get_reservation(
    reservation_id: int = Path(..., description="Reservation ID"),
    ctx: CallerContext = Depends(require_role("customer")),
) -> dict:
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        reservation = store.get_reservation(reservation_id)
    if reservation is None:
        raise ReservationNotFoundError(f"Reservation {reservation_id} not found")
    return reservation_to_dict(reservation)


# ── Create / update ───────────────────────────────────────


@router.post("", status_code=201)
def create_reservation(
    body: ReservationRequest,
    ctx: CallerContext = Depends(require_role("customer")),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Book a room.

    Raises 400 on validation failures, 409 when the room is already booked
    for an overlapping range.
    """
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = lifecycle.create_reservation(
            store,
            _draft(body),
            clock=clock,
            loyalty_points=settings.loyalty_points_per_booking,
        )
    dispatch(result.effects)
    return reservation_to_dict(result.reservation)


@router.put("/{reservation_id}")
def update_reservation(
    body: ReservationRequest,
    reservation_id: int = Path(..., description="Reservation ID"),
    ctx: CallerContext = Depends(require_role("receptionist")),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Edit an open reservation. The status field of the body is ignored."""
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = lifecycle.update_reservation(store, reservation_id, _draft(body), clock=clock)
    dispatch(result.effects)
    return reservation_to_dict(result.reservation)


@router.put("/{reservation_id}/services")
def assign_services(
    body: AssignServicesRequest,
    reservation_id: int = Path(..., description="Reservation ID"),
    ctx: CallerContext = Depends(require_role("receptionist")),
) -> dict:
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = lifecycle.assign_services(store, reservation_id, body.service_ids)
    dispatch(result.effects)
    return reservation_to_dict(result.reservation)


# ── Transitions ───────────────────────────────────────────


@router.post("/{reservation_id}/cancel")
def cancel_reservation(
    reservation_id: int = Path(..., description="Reservation ID"),
    ctx: CallerContext = Depends(require_role("customer")),
) -> dict:
    """Cancel a pending or active reservation.

    Customers cannot cancel a reservation whose payment has completed;
    staff can.
    """
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = lifecycle.cancel_reservation(
            store, reservation_id, is_staff=ctx.is_staff, actor_role=ctx.role
        )
    dispatch(result.effects)
    return reservation_to_dict(result.reservation)


@router.post("/{reservation_id}/check-in")
def check_in(
    body: ActualDateRequest | None = None,
    reservation_id: int = Path(..., description="Reservation ID"),
    ctx: CallerContext = Depends(require_role("receptionist")),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Register the guest's arrival. An unknown id is a no-op (changed=false)."""
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = lifecycle.check_in(store, reservation_id, clock=clock, on=body.on if body else None)
    if result is None:
        return _noop(reservation_id)
    dispatch(result.effects)
    return {"id": reservation_id, "changed": True, "reservation": reservation_to_dict(result.reservation)}


@router.post("/{reservation_id}/check-out")
def check_out(
    body: ActualDateRequest | None = None,
    reservation_id: int = Path(..., description="Reservation ID"),
    ctx: CallerContext = Depends(require_role("receptionist")),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Register the guest's departure. An unknown id is a no-op (changed=false)."""
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = lifecycle.check_out(store, reservation_id, clock=clock, on=body.on if body else None)
    if result is None:
        return _noop(reservation_id)
    dispatch(result.effects)
    return {"id": reservation_id, "changed": True, "reservation": reservation_to_dict(result.reservation)}


@router.post("/{reservation_id}/finalize")
def finalize_reservation(
    reservation_id: int = Path(..., description="Reservation ID"),
    ctx: CallerContext = Depends(require_role("receptionist")),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Close a reservation. Repeating the call is harmless."""
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = lifecycle.finalize_reservation(store, reservation_id, clock=clock)
    if result is None:
        return _noop(reservation_id)
    dispatch(result.effects)
    return {
        "id": reservation_id,
        "changed": result.changed,
        "reservation": reservation_to_dict(result.reservation),
    }


@router.delete("/{reservation_id}")
def delete_reservation(
    reservation_id: int = Path(..., description="Reservation ID"),
    ctx: CallerContext = Depends(require_role("admin")),
) -> dict:
    """Physically delete a reservation. Requires admin role."""
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = lifecycle.delete_reservation(store, reservation_id)
    dispatch(result.effects)
    return {"id": reservation_id, "deleted": True}
