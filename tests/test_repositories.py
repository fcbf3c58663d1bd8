"""Repository tests against a MagicMock cursor: SQL shape, params and error mapping."""

from datetime import date
from unittest.mock import MagicMock

import pytest
from psycopg2 import errors as pg_errors

from hotelera.domain.errors import DuplicateCustomerError, RoomConflictError
from hotelera.domain.models import Account, ReservationStatus, RoomStatus
from hotelera.infra.repositories import (
    activity_repository,
    customers_repository,
    reservations_repository,
    rooms_repository,
)

from .helpers import make_customer, make_reservation


def _reservation_row(reservation_id=7, *, payment=None):
    pay = payment or (None, None, None)
    return (
        reservation_id, 1, 101, date(2024, 2, 1), date(2024, 2, 3), "pending",
        10000, 0, None, None, *pay,
    )


class TestReservationsRepository:
    def test_get_reservation_hydrates_services_and_payment(self):
        cur = MagicMock()
        cur.fetchone.return_value = _reservation_row(payment=(3, "completed", 10000))
        cur.fetchall.return_value = [(7, 1, "Breakfast", 2000)]

        reservation = reservations_repository.get_reservation(cur, 7)

        assert reservation.id == 7
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.payment.id == 3
        assert reservation.has_completed_payment
        assert [s.name for s in reservation.services] == ["Breakfast"]

    def test_lock_targets_reservation_row_only(self):
        cur = MagicMock()
        cur.fetchone.return_value = None

        assert reservations_repository.get_reservation(cur, 7, lock=True) is None

        query = cur.execute.call_args[0][0]
        assert query.rstrip().endswith("FOR UPDATE OF r")

    def test_room_reservations_filters(self):
        cur = MagicMock()
        cur.fetchall.return_value = []

        reservations_repository.list_room_reservations(
            cur, 101, exclude_reservation_id=7, exclude_statuses=[ReservationStatus.CANCELLED]
        )

        query, params = cur.execute.call_args[0]
        assert "r.id <> %s" in query
        assert "r.status <> ALL(%s)" in query
        assert params == [101, 7, ["cancelled"]]

    def test_insert_returns_id(self):
        cur = MagicMock()
        cur.fetchone.return_value = (1001,)
        reservation = make_reservation(None, date(2024, 2, 1), date(2024, 2, 3))

        assert reservations_repository.insert_reservation(cur, reservation) == 1001
        params = cur.execute.call_args[0][1]
        assert params[4] == "pending"
        assert params[-1] is None

    def test_insert_exclusion_violation_is_room_conflict(self):
        cur = MagicMock()
        cur.execute.side_effect = pg_errors.ExclusionViolation("conflicting key value")
        reservation = make_reservation(None, date(2024, 2, 1), date(2024, 2, 3))

        with pytest.raises(RoomConflictError) as exc_info:
            reservations_repository.insert_reservation(cur, reservation)

        assert exc_info.value.room_id == 101
        assert exc_info.value.conflicting_reservation_id is None

    def test_update_exclusion_violation_is_room_conflict(self):
        cur = MagicMock()
        cur.execute.side_effect = pg_errors.ExclusionViolation("conflicting key value")

        with pytest.raises(RoomConflictError):
            reservations_repository.update_reservation(
                cur, make_reservation(7, date(2024, 2, 1), date(2024, 2, 3))
            )

    def test_set_services_replaces_set(self):
        cur = MagicMock()

        reservations_repository.set_reservation_services(cur, 7, [1, 2])

        calls = cur.execute.call_args_list
        assert calls[0][0][0].startswith("DELETE FROM reservation_services")
        assert [c[0][1] for c in calls[1:]] == [(7, 1), (7, 2)]


class TestRoomsRepository:
    def test_get_room_locked(self):
        cur = MagicMock()
        cur.fetchone.return_value = (101, "101", "available")

        room = rooms_repository.get_room(cur, 101, lock=True)

        assert room.status == RoomStatus.AVAILABLE
        assert cur.execute.call_args[0][0].endswith("FOR UPDATE")

    def test_get_room_missing(self):
        cur = MagicMock()
        cur.fetchone.return_value = None
        assert rooms_repository.get_room(cur, 999) is None

    def test_set_room_status(self):
        cur = MagicMock()
        rooms_repository.set_room_status(cur, 101, RoomStatus.OCCUPIED)
        assert cur.execute.call_args[0][1] == ("occupied", 101)

    def test_get_services_empty_skips_query(self):
        cur = MagicMock()
        assert rooms_repository.get_services(cur, []) == []
        cur.execute.assert_not_called()


class TestCustomersRepository:
    def test_search_escapes_like_wildcards(self):
        cur = MagicMock()
        cur.fetchall.return_value = []

        customers_repository.search_customers(cur, "50%_off", limit=20, offset=40)

        query, params = cur.execute.call_args[0]
        assert "ILIKE %(pattern)s" in query
        assert params == {"limit": 20, "offset": 40, "pattern": "%50\\%\\_off%"}

    def test_search_without_term_has_no_filter(self):
        cur = MagicMock()
        cur.fetchall.return_value = []

        customers_repository.search_customers(cur, None, limit=20, offset=0)

        query, params = cur.execute.call_args[0]
        assert "ILIKE" not in query
        assert params == {"limit": 20, "offset": 0}

    def test_insert_unique_violation_is_duplicate(self):
        cur = MagicMock()
        cur.execute.side_effect = pg_errors.UniqueViolation("duplicate key")

        with pytest.raises(DuplicateCustomerError):
            customers_repository.insert_customer(cur, make_customer(None))

    def test_update_leaves_loyalty_points(self):
        cur = MagicMock()
        customers_repository.update_customer(cur, make_customer(1))
        assert "loyalty_points" not in cur.execute.call_args[0][0]

    def test_duplicate_username(self):
        cur = MagicMock()
        cur.execute.side_effect = pg_errors.UniqueViolation("duplicate key")

        with pytest.raises(DuplicateCustomerError, match="Username"):
            customers_repository.insert_account(cur, Account(id=None, username="ana", password_hash="x"))


class TestActivityRepository:
    def test_mark_notification_read(self):
        cur = MagicMock()
        cur.fetchone.return_value = None
        assert activity_repository.mark_notification_read(cur, 5) is False

    def test_audit_record_carries_correlation_id(self):
        cur = MagicMock()
        activity_repository.insert_audit_record(
            cur,
            action="RESERVATION_CREATED",
            description="Reservation 7 created",
            subject_type="reservation",
            subject_id=7,
            correlation_id="req-1",
        )
        assert "req-1" in cur.execute.call_args[0][1]
