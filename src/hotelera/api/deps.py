"""Shared FastAPI dependencies."""

from __future__ import annotations

from hotelera.infra.settings import Settings, get_settings
from hotelera.infra.time import SystemClock


def get_app_settings() -> Settings:
    return get_settings()


def get_clock() -> SystemClock:
    """Clock evaluated in the hotel's timezone (HOTEL_TIMEZONE)."""
    return SystemClock(get_settings().hotel_timezone)
