"""Tests for the /reports endpoints."""

from __future__ import annotations

from datetime import date

from hotelera.domain.models import ReservationStatus

from .helpers import make_reservation

S = ReservationStatus


def test_revenue_default_window_ends_today(api):
    api.store.add_reservation(
        make_reservation(7, date(2024, 1, 10), date(2024, 1, 14), status=S.FINALIZED,
                         amount_cents=5000, actual_check_out=date(2024, 1, 14))
    )

    resp = api.call("GET", "/reports/revenue", role="receptionist")

    data = resp.json()
    assert data["to"] == "2024-01-15"
    assert data["from"] == "2023-12-17"
    assert len(data["series"]) == 30
    assert data["total_cents"] == 5000
    assert {"date": "2024-01-14", "revenue_cents": 5000} in data["series"]


def test_default_window_counts_back_from_given_end(api):
    resp = api.call("GET", "/reports/movements", role="receptionist", params={"to": "2024-03-01"})

    data = resp.json()
    assert data["from"] == "2024-02-01"
    assert len(data["series"]) == 30
    assert data["series"][-1]["date"] == "2024-03-01"


def test_occupancy_and_movements(api):
    api.store.add_reservation(make_reservation(7, date(2024, 1, 2), date(2024, 1, 4), status=S.ACTIVE))
    params = {"from": "2024-01-01", "to": "2024-01-04"}

    occupancy = api.call("GET", "/reports/occupancy", role="receptionist", params=params).json()
    movements = api.call("GET", "/reports/movements", role="receptionist", params=params).json()

    assert [p["occupied"] for p in occupancy["series"]] == [0, 1, 1, 0]
    assert movements["series"][1] == {"date": "2024-01-02", "check_ins": 1, "check_outs": 0}
    assert movements["series"][3] == {"date": "2024-01-04", "check_ins": 0, "check_outs": 1}


def test_inverted_window_is_400(api):
    resp = api.call("GET", "/reports/occupancy", role="receptionist", params={"from": "2024-01-10", "to": "2024-01-01"})
    assert resp.status_code == 400


def test_window_too_wide_is_400(api):
    resp = api.call("GET", "/reports/revenue", role="receptionist", params={"from": "2020-01-01", "to": "2024-01-01"})
    assert resp.status_code == 400


def test_summary(api):
    api.store.add_reservation(make_reservation(7, date(2024, 1, 15), date(2024, 1, 17), amount_cents=100, paid=True))
    api.store.add_reservation(
        make_reservation(8, date(2024, 1, 10), date(2024, 1, 15), status=S.FINALIZED, room_id=103,
                         amount_cents=200, actual_check_out=date(2024, 1, 15))
    )

    data = api.call("GET", "/reports/summary", role="receptionist", params={"days": 7}).json()

    assert data["date"] == "2024-01-15"
    assert data["total_revenue_cents"] == 300
    assert data["recent_revenue_cents"] == 200
    assert data["arrivals_today"] == 1
    assert data["departures_today"] == 1
    assert data["check_outs_today"] == 1
    assert data["by_status"]["pending"] == 1


def test_customer_cannot_see_reports(api):
    assert api.call("GET", "/reports/summary", role="customer").status_code == 403
