"""ASGI entry point: ``uvicorn hotelera.api.app:app``."""

from hotelera.api.factory import create_app
from hotelera.observability.logging import configure_logging

configure_logging()

app = create_app()
