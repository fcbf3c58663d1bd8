"""Error taxonomy shared by the lifecycle, availability and retention modules.

Three families:
- ValidationError: malformed input or a rule the input breaks (bad dates,
  unknown room, overlap, duplicate identifiers).
- StateConflictError: the entity's current state forbids the operation.
- NotFoundError: the referenced entity does not exist.

Collaborator failures (email, notifications, audit) never surface here; the
effect dispatcher logs and swallows them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


class HoteleraError(Exception):
    """Base class for domain failures surfaced to callers."""


class ValidationError(HoteleraError):
    """Raised when input is missing, malformed or violates a booking rule."""


class StateConflictError(HoteleraError):
    """Raised when an operation is not permitted in the entity's current state."""


class NotFoundError(HoteleraError):
    """Raised when a referenced entity does not exist."""


# ── Validation ────────────────────────────────────────────


class RoomUnavailableError(ValidationError):
    """Raised when the room does not exist or is not operational."""


class RoomConflictError(ValidationError):
    """Raised when a room already has a reservation overlapping the range."""

    def __init__(
        self,
        room_id: int,
        conflicting_reservation_id: int | None,
        existing_start: date,
        existing_end: date,
    ) -> None:
        self.room_id = room_id
        self.conflicting_reservation_id = conflicting_reservation_id
        self.existing_start = existing_start
        self.existing_end = existing_end
        super().__init__(
            f"Room {room_id} is already booked from {existing_start} to {existing_end}"
        )


class DuplicateCustomerError(ValidationError):
    """Raised when a national ID, email or username is already registered."""


# ── State conflicts ───────────────────────────────────────


class ReservationNotCancellableError(StateConflictError):
    """Raised when cancelling a reservation that is already terminal."""


class PaidReservationCancellationError(StateConflictError):
    """Raised when a non-staff caller cancels a reservation with a completed payment."""


class InvalidTransitionError(StateConflictError):
    """Raised when a check-in, check-out or finalize targets a terminal reservation."""


@dataclass(frozen=True)
class BlockingReservation:
    """Summary of an open reservation that prevents a customer deletion."""

    reservation_id: int
    room_number: str
    status: str
    start_date: date
    end_date: date


class CustomerHasActiveReservationsError(StateConflictError):
    """Raised when deleting a customer that still has pending or active reservations."""

    def __init__(self, customer_id: int, blocking: list[BlockingReservation]) -> None:
        self.customer_id = customer_id
        self.blocking = blocking
        ids = ", ".join(str(b.reservation_id) for b in blocking)
        super().__init__(
            f"Customer {customer_id} has {len(blocking)} open reservation(s) "
            f"that must be cancelled or finalized first: {ids}"
        )


# ── Not found ─────────────────────────────────────────────


class ReservationNotFoundError(NotFoundError):
    pass


class CustomerNotFoundError(NotFoundError):
    pass
