"""FastAPI application factory."""

from fastapi import FastAPI, Request, Response

from hotelera.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

from .errors import register_exception_handlers
from .routers import public
from .routes import customers, notifications, reports, reservations, rooms


def create_app() -> FastAPI:
    """Create the FastAPI app with every router and the correlation middleware."""
    app = FastAPI(
        title="Hotelera",
        docs_url=None,
        redoc_url=None,
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    register_exception_handlers(app)

    app.include_router(public.router)
    app.include_router(reservations.router)
    app.include_router(customers.router)
    app.include_router(rooms.router)
    app.include_router(reports.router)
    app.include_router(notifications.router)

    return app
