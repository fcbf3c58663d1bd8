"""Unit tests for room availability (half-open overlap, early check-out).

Run against the in-memory store; no Postgres needed.
"""

from datetime import date

import pytest

from hotelera.domain.availability import (
    assert_room_available,
    check_room_availability,
    find_conflict,
    ranges_overlap,
)
from hotelera.domain.errors import RoomConflictError, ValidationError
from hotelera.domain.models import ReservationStatus

from .helpers import make_reservation

D = date


class TestRangesOverlap:
    def test_touching_ranges_do_not_overlap(self):
        assert not ranges_overlap(D(2024, 1, 5), D(2024, 1, 8), D(2024, 1, 1), D(2024, 1, 5))

    def test_contained_range_overlaps(self):
        assert ranges_overlap(D(2024, 1, 2), D(2024, 1, 3), D(2024, 1, 1), D(2024, 1, 10))

    def test_partial_overlap(self):
        assert ranges_overlap(D(2024, 1, 8), D(2024, 1, 12), D(2024, 1, 1), D(2024, 1, 10))


class TestFindConflict:
    def test_cancelled_reservations_never_block(self):
        existing = [make_reservation(1, D(2024, 1, 1), D(2024, 1, 10), status=ReservationStatus.CANCELLED)]
        assert find_conflict(D(2024, 1, 2), D(2024, 1, 4), existing) is None

    @pytest.mark.parametrize(
        "status",
        [
            ReservationStatus.PENDING,
            ReservationStatus.PROCESSING,
            ReservationStatus.ACTIVE,
            ReservationStatus.FINALIZED,
        ],
    )
    def test_non_cancelled_statuses_block(self, status):
        existing = [make_reservation(1, D(2024, 1, 1), D(2024, 1, 10), status=status)]
        assert find_conflict(D(2024, 1, 2), D(2024, 1, 4), existing).id == 1

    def test_excluded_reservation_is_ignored(self):
        existing = [make_reservation(7, D(2024, 1, 1), D(2024, 1, 10))]
        assert find_conflict(D(2024, 1, 2), D(2024, 1, 4), existing, exclude_reservation_id=7) is None

    def test_returns_earliest_starting_conflict(self):
        existing = [
            make_reservation(2, D(2024, 1, 6), D(2024, 1, 9)),
            make_reservation(1, D(2024, 1, 1), D(2024, 1, 5)),
        ]
        assert find_conflict(D(2024, 1, 3), D(2024, 1, 8), existing).id == 1

    def test_finalized_without_actual_checkout_blocks_full_range(self):
        existing = [make_reservation(1, D(2024, 1, 1), D(2024, 1, 10), status=ReservationStatus.FINALIZED)]
        assert find_conflict(D(2024, 1, 6), D(2024, 1, 10), existing) is not None

    def test_active_with_actual_checkout_still_blocks_booked_range(self):
        """Only finalized stays are shortened by an actual check-out date."""
        existing = [
            make_reservation(
                1, D(2024, 1, 1), D(2024, 1, 10),
                status=ReservationStatus.ACTIVE,
                actual_check_out=D(2024, 1, 5),
            )
        ]
        assert find_conflict(D(2024, 1, 6), D(2024, 1, 10), existing) is not None


class TestEarlyCheckOut:
    """Room 101 booked 2024-01-01 to 01-10, finalized with check-out on 01-05."""

    @pytest.fixture
    def early_departure(self, store):
        store.add_reservation(
            make_reservation(
                1, D(2024, 1, 1), D(2024, 1, 10),
                status=ReservationStatus.FINALIZED,
                actual_check_out=D(2024, 1, 5),
            )
        )
        return store

    def test_remaining_nights_are_bookable(self, early_departure):
        assert_room_available(early_departure, room_id=101, start=D(2024, 1, 6), end=D(2024, 1, 10))

    def test_arrival_on_actual_checkout_day_is_bookable(self, early_departure):
        assert_room_available(early_departure, room_id=101, start=D(2024, 1, 5), end=D(2024, 1, 7))

    def test_range_before_actual_checkout_conflicts(self, early_departure):
        with pytest.raises(RoomConflictError) as exc_info:
            assert_room_available(early_departure, room_id=101, start=D(2024, 1, 3), end=D(2024, 1, 6))

        err = exc_info.value
        assert err.conflicting_reservation_id == 1
        assert err.existing_start == D(2024, 1, 1)
        assert err.existing_end == D(2024, 1, 5)
        assert "2024-01-01" in str(err)
        assert "2024-01-05" in str(err)


class TestLateCheckOut:
    """Room 101 booked 2024-01-10 to 01-15, finalized with check-out on 01-16."""

    @pytest.fixture
    def late_departure(self, store):
        store.add_reservation(
            make_reservation(
                1, D(2024, 1, 10), D(2024, 1, 15),
                status=ReservationStatus.FINALIZED,
                actual_check_out=D(2024, 1, 16),
            )
        )
        return store

    def test_effective_end_is_capped_at_booked_end(self, late_departure):
        assert late_departure.reservations[1].effective_end == D(2024, 1, 15)

    def test_next_arrival_on_booked_end_is_bookable(self, late_departure):
        assert_room_available(late_departure, room_id=101, start=D(2024, 1, 15), end=D(2024, 1, 18))


class TestAssertRoomAvailable:
    def test_inverted_range_is_validation_error(self, store):
        with pytest.raises(ValidationError):
            assert_room_available(store, room_id=101, start=D(2024, 1, 5), end=D(2024, 1, 5))

    def test_other_rooms_do_not_interfere(self, store):
        store.add_reservation(make_reservation(1, D(2024, 1, 1), D(2024, 1, 10), room_id=103))
        assert_room_available(store, room_id=101, start=D(2024, 1, 2), end=D(2024, 1, 4))

    def test_room_conflict_is_a_validation_error(self, store):
        store.add_reservation(make_reservation(1, D(2024, 1, 1), D(2024, 1, 10)))
        with pytest.raises(ValidationError):
            assert_room_available(store, room_id=101, start=D(2024, 1, 2), end=D(2024, 1, 4))

    def test_check_returns_conflict_instead_of_raising(self, store):
        store.add_reservation(make_reservation(1, D(2024, 1, 1), D(2024, 1, 10)))
        conflict = check_room_availability(store, room_id=101, start=D(2024, 1, 2), end=D(2024, 1, 4))
        assert conflict.id == 1

    def test_edit_in_place_does_not_conflict_with_itself(self, store):
        store.add_reservation(make_reservation(1, D(2024, 1, 1), D(2024, 1, 10)))
        assert_room_available(
            store, room_id=101, start=D(2024, 1, 2), end=D(2024, 1, 12), exclude_reservation_id=1
        )
