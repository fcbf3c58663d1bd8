"""Rooms, services and availability endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from hotelera.api.rbac import CallerContext, require_role
from hotelera.domain.availability import check_room_availability
from hotelera.domain.errors import ValidationError
from hotelera.domain.models import RoomStatus

router = APIRouter(tags=["rooms"])


@router.get("/rooms")
def list_rooms(ctx: CallerContext = Depends(require_role("customer"))) -> dict:
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        rooms = store.list_rooms()
    return {
        "items": [{"id": r.id, "number": r.number, "status": r.status.value} for r in rooms]
    }


@router.get("/rooms/{room_id}/availability")
def room_availability(
    room_id: int = Path(..., description="Room ID"),
    start: date = Query(..., description="Arrival date"),
    end: date = Query(..., description="Departure date"),
    exclude_reservation_id: int | None = Query(None, description="Reservation being edited"),
    ctx: CallerContext = Depends(require_role("customer")),
) -> dict:
    """Tell whether the room can be booked for ``[start, end)``.

    A departure on ``start`` does not block; early check-outs free the
    remaining nights. A room under maintenance is never bookable, whatever
    its calendar says; ``reason`` names what blocks the room.
    """
    from hotelera.infra.store import unit_of_work

    if start >= end:
        raise ValidationError("Start date must be before end date")

    with unit_of_work() as store:
        room = store.get_room(room_id)
        if room is None:
            raise HTTPException(status_code=404, detail="Room not found")
        if room.status == RoomStatus.MAINTENANCE:
            return {"room_id": room_id, "available": False, "reason": "maintenance", "conflict": None}
        conflict = check_room_availability(
            store,
            room_id=room_id,
            start=start,
            end=end,
            exclude_reservation_id=exclude_reservation_id,
        )

    if conflict is None:
        return {"room_id": room_id, "available": True, "reason": None, "conflict": None}
    return {
        "room_id": room_id,
        "available": False,
        "reason": "booked",
        "conflict": {
            "reservation_id": conflict.id,
            "start_date": conflict.start_date.isoformat(),
            "end_date": conflict.effective_end.isoformat(),
        },
    }


@router.get("/services")
def list_services(ctx: CallerContext = Depends(require_role("customer"))) -> dict:
    from hotelera.infra.db import txn
    from hotelera.infra.repositories.rooms_repository import list_services as _list_services

    with txn() as cur:
        services = _list_services(cur)
    return {
        "items": [{"id": s.id, "name": s.name, "price_cents": s.price_cents} for s in services]
    }
