"""Shared pytest fixtures for hotelera tests."""
import sys
sys.dont_write_bytecode = True

from contextlib import contextmanager  # noqa: E402
from dataclasses import dataclass, field  # noqa: E402
from datetime import date  # noqa: E402
from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from .helpers import FixedClock, InMemoryStore, make_customer  # noqa: E402

TODAY = date(2024, 1, 15)


@pytest.fixture
def clock():
    return FixedClock(TODAY)


@pytest.fixture
def store():
    """In-memory store seeded with room 101, room 102 (maintenance) and customer 1."""
    from hotelera.domain.models import RoomStatus

    s = InMemoryStore()
    s.add_room(101, "101")
    s.add_room(102, "102", RoomStatus.MAINTENANCE)
    s.add_room(103, "103")
    s.add_service(1, "Breakfast", 2000)
    s.add_service(2, "Spa", 5000)
    s.add_customer(make_customer(1))
    return s


@dataclass
class ApiHarness:
    client: TestClient
    store: InMemoryStore
    dispatched: list = field(default_factory=list)

    def call(self, method: str, url: str, role: str | None = "admin", **kwargs):
        headers = kwargs.pop("headers", {})
        if role is not None:
            headers["X-User-Role"] = role
        return self.client.request(method, url, headers=headers, **kwargs)


@pytest.fixture
def api(store, clock):
    """TestClient whose units of work run against the in-memory store.

    Effects handed to ``dispatch`` are collected in ``api.dispatched``.
    """
    from hotelera.api.deps import get_clock
    from hotelera.api.factory import create_app

    harness = ApiHarness(client=None, store=store)

    @contextmanager
    def fake_unit_of_work(conn=None):
        yield store

    app = create_app()
    app.dependency_overrides[get_clock] = lambda: clock
    with patch("hotelera.infra.store.unit_of_work", fake_unit_of_work), \
         patch("hotelera.infra.sinks.dispatch", side_effect=harness.dispatched.extend):
        harness.client = TestClient(app, raise_server_exceptions=False)
        yield harness
