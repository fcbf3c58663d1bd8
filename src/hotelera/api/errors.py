"""Translate domain exceptions into HTTP responses.

validation -> 400, room conflict -> 409, state conflict -> 409, not found -> 404.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hotelera.domain.errors import (
    CustomerHasActiveReservationsError,
    HoteleraError,
    NotFoundError,
    RoomConflictError,
    StateConflictError,
    ValidationError,
)
from hotelera.observability.logging import get_logger

logger = get_logger(__name__)


def status_for(exc: HoteleraError) -> int:
    # RoomConflictError is a ValidationError; check it first.
    if isinstance(exc, RoomConflictError):
        return 409
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, StateConflictError):
        return 409
    if isinstance(exc, NotFoundError):
        return 404
    return 500


def error_body(exc: HoteleraError) -> dict:
    body: dict = {"detail": str(exc)}
    if isinstance(exc, RoomConflictError):
        body["conflicting_reservation_id"] = exc.conflicting_reservation_id
        body["existing_start"] = exc.existing_start.isoformat()
        body["existing_end"] = exc.existing_end.isoformat()
    if isinstance(exc, CustomerHasActiveReservationsError):
        body["blocking_reservations"] = [
            {
                "reservation_id": b.reservation_id,
                "room_number": b.room_number,
                "status": b.status,
                "start_date": b.start_date.isoformat(),
                "end_date": b.end_date.isoformat(),
            }
            for b in exc.blocking
        ]
    return body


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HoteleraError)
    async def hotelera_error_handler(request: Request, exc: HoteleraError) -> JSONResponse:
        status_code = status_for(exc)
        logger.info(
            "request rejected",
            extra={
                "extra_fields": {
                    "path": request.url.path,
                    "status_code": status_code,
                    "error": type(exc).__name__,
                }
            },
        )
        return JSONResponse(status_code=status_code, content=error_body(exc))
