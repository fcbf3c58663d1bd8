"""Reservation lifecycle: create/update, cancel, check-in, check-out, finalize, delete.

State machine:

    pending ──┐
    processing├──> active ──> finalized
    active ───┘        │
    pending/active ────┴──> cancelled

finalized and cancelled are terminal; nothing moves a reservation out of them.

Each operation runs against one store (one transaction) and returns a
LifecycleResult. Emails, notifications and audit records are returned as
effects for the caller to dispatch after commit, so a delivery failure can
never undo a committed booking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from .availability import assert_room_available
from .effects import Audit, Effect, Notify, SendEmail
from .errors import (
    InvalidTransitionError,
    PaidReservationCancellationError,
    ReservationNotCancellableError,
    ReservationNotFoundError,
    RoomUnavailableError,
    ValidationError,
)
from .models import (
    Customer,
    Reservation,
    ReservationDraft,
    ReservationStatus,
    Room,
    RoomStatus,
    Service,
)
from .room_sync import occupy_room, release_room, sync_after_save
from .store import Clock, Store

logger = logging.getLogger(__name__)

LOYALTY_POINTS_PER_BOOKING = 10

CANCELLABLE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.ACTIVE})

SUBJECT_TYPE = "reservation"


@dataclass
class LifecycleResult:
    """Outcome of a lifecycle operation.

    Attributes:
        reservation: Reservation as persisted by the operation.
        effects: Emails, notifications and audit records to dispatch after commit.
        changed: False when the operation was an idempotent no-op.
    """

    reservation: Reservation
    effects: list[Effect] = field(default_factory=list)
    changed: bool = True


# ── Validation helpers ────────────────────────────────────


def _validate_draft(draft: ReservationDraft) -> None:
    if draft.customer_id is None:
        raise ValidationError("A reservation must reference a customer")
    if draft.room_id is None:
        raise ValidationError("A reservation must reference a room")
    if draft.start_date is None or draft.end_date is None:
        raise ValidationError("Start and end dates are required")
    if draft.start_date >= draft.end_date:
        raise ValidationError("Start date must be before end date")
    if draft.amount_cents < 0:
        raise ValidationError("Amount due cannot be negative")
    if draft.discount_cents is not None and draft.discount_cents < 0:
        raise ValidationError("Discount cannot be negative")


def _require_customer(store: Store, customer_id: int) -> Customer:
    customer = store.get_customer(customer_id)
    if customer is None:
        raise ValidationError(f"Customer {customer_id} does not exist")
    return customer


def _require_operational_room(store: Store, room_id: int) -> Room:
    # Row lock serializes concurrent bookings of the same room until commit.
    room = store.get_room(room_id, lock=True)
    if room is None:
        raise RoomUnavailableError(f"Room {room_id} does not exist")
    if room.status == RoomStatus.MAINTENANCE:
        raise RoomUnavailableError(f"Room {room.number} is under maintenance")
    return room


def _resolve_services(store: Store, service_ids: Sequence[int]) -> list[Service]:
    if not service_ids:
        return []
    wanted = list(dict.fromkeys(service_ids))
    services = store.get_services(wanted)
    missing = set(wanted) - {s.id for s in services}
    if missing:
        raise ValidationError(
            f"Unknown service id(s): {', '.join(str(i) for i in sorted(missing))}"
        )
    return services


def _get_or_raise(store: Store, reservation_id: int) -> Reservation:
    reservation = store.get_reservation(reservation_id, lock=True)
    if reservation is None:
        raise ReservationNotFoundError(f"Reservation {reservation_id} not found")
    return reservation


# ── Effect builders ───────────────────────────────────────


def _money(cents: int) -> str:
    return f"{cents / 100:.2f}"


def _confirmation_email(
    reservation: Reservation, customer: Customer, room: Room
) -> SendEmail | None:
    if not customer.email:
        return None

    details = (
        "Reservation details:\n"
        f"- Room: {room.number}\n"
        f"- Arrival: {reservation.start_date.isoformat()}\n"
        f"- Departure: {reservation.end_date.isoformat()}\n"
        f"- Total due: {_money(reservation.total_cents)}\n\n"
    )

    if reservation.status == ReservationStatus.PENDING:
        subject = "Reservation registered - payment pending"
        body = (
            f"Dear {customer.first_name},\n\n"
            "Your reservation has been registered.\n"
            "Current status: PAYMENT PENDING.\n\n"
            f"{details}"
            "Please complete the payment to confirm your stay.\n"
            "Thank you for choosing us."
        )
    else:
        subject = "Reservation confirmed"
        body = (
            f"Dear {customer.first_name},\n\n"
            "Your reservation has been confirmed.\n\n"
            f"{details}"
            "Thank you for choosing us."
        )
    return SendEmail(recipient=customer.email, subject=subject, body=body)


def _front_desk_notice(
    store: Store, reservation: Reservation, title: str, verb: str
) -> Notify | None:
    customer = store.get_customer(reservation.customer_id)
    room = store.get_room(reservation.room_id)
    if customer is None or room is None:
        return None
    return Notify(title=title, message=f"{verb}: {customer.full_name} - Room {room.number}")


# ── Create / update ───────────────────────────────────────


def create_reservation(
    store: Store,
    draft: ReservationDraft,
    *,
    clock: Clock,
    loyalty_points: int = LOYALTY_POINTS_PER_BOOKING,
) -> LifecycleResult:
    """Book a room for a customer.

    Validates the draft, checks the room is operational and free for the
    range, credits loyalty points, persists, and marks the room occupied
    when the stay covers today.

    Args:
        store: Transactional store.
        draft: Caller-supplied reservation fields. ``status`` is the initial
            state decided by the booking intake (pending, processing or active).
        clock: Source of today's date.
        loyalty_points: Points credited to the customer for a new booking.

    Returns:
        LifecycleResult with the saved reservation and its effects.

    Raises:
        ValidationError: Missing fields, bad dates, unknown customer/services,
            or a terminal initial status.
        RoomUnavailableError: Room missing or under maintenance.
        RoomConflictError: Range overlaps an existing reservation.
    """
    _validate_draft(draft)
    if draft.status.is_terminal:
        raise ValidationError(
            f"A new reservation cannot start as '{draft.status.value}'"
        )

    customer = _require_customer(store, draft.customer_id)
    room = _require_operational_room(store, draft.room_id)
    assert_room_available(store, room_id=room.id, start=draft.start_date, end=draft.end_date)
    services = _resolve_services(store, draft.service_ids)

    store.add_loyalty_points(customer.id, loyalty_points)

    reservation = store.save_reservation(
        Reservation(
            id=None,
            customer_id=customer.id,
            room_id=room.id,
            start_date=draft.start_date,
            end_date=draft.end_date,
            status=draft.status,
            amount_cents=draft.amount_cents,
            discount_cents=draft.discount_cents if draft.discount_cents is not None else 0,
            payment=draft.payment,
        )
    )
    if services:
        store.set_reservation_services(reservation.id, [s.id for s in services])
        reservation.services = services

    sync_after_save(store, reservation, clock.today())

    effects: list[Effect] = [
        Audit(
            action="RESERVATION_CREATED",
            description=(
                f"Reservation {reservation.id} created for customer {customer.id}, "
                f"room {room.number}"
            ),
            subject_type=SUBJECT_TYPE,
            subject_id=reservation.id,
        )
    ]
    email = _confirmation_email(reservation, customer, room)
    if email is not None:
        effects.append(email)
    effects.append(
        Notify(
            title="New reservation",
            message=f"New reservation: {customer.full_name} - Room {room.number}",
        )
    )

    logger.info(
        "reservation created",
        extra={
            "extra_fields": {
                "reservation_id": reservation.id,
                "room_id": room.id,
                "status": reservation.status.value,
            }
        },
    )
    return LifecycleResult(reservation=reservation, effects=effects)


def update_reservation(
    store: Store,
    reservation_id: int,
    draft: ReservationDraft,
    *,
    clock: Clock,
) -> LifecycleResult:
    """Edit customer, room, dates or amounts of an open reservation.

    The status is left as is; moving between states only happens through the
    dedicated transitions. Services are managed with ``assign_services``.

    Raises:
        ReservationNotFoundError: Unknown reservation id.
        InvalidTransitionError: Reservation is finalized or cancelled.
        ValidationError / RoomUnavailableError / RoomConflictError: As for create.
    """
    reservation = _get_or_raise(store, reservation_id)
    if reservation.status.is_terminal:
        raise InvalidTransitionError(
            f"Reservation {reservation_id} is {reservation.status.value} and can no longer be modified"
        )

    _validate_draft(draft)
    customer = _require_customer(store, draft.customer_id)
    room = _require_operational_room(store, draft.room_id)
    assert_room_available(
        store,
        room_id=room.id,
        start=draft.start_date,
        end=draft.end_date,
        exclude_reservation_id=reservation_id,
    )

    previous_room_id = reservation.room_id
    reservation.customer_id = customer.id
    reservation.room_id = room.id
    reservation.start_date = draft.start_date
    reservation.end_date = draft.end_date
    reservation.amount_cents = draft.amount_cents
    reservation.discount_cents = draft.discount_cents if draft.discount_cents is not None else 0
    if draft.payment is not None:
        reservation.payment = draft.payment

    reservation = store.save_reservation(reservation)
    if previous_room_id != room.id:
        release_room(store, previous_room_id)
    sync_after_save(store, reservation, clock.today())

    logger.info(
        "reservation updated",
        extra={"extra_fields": {"reservation_id": reservation_id, "room_id": room.id}},
    )
    return LifecycleResult(
        reservation=reservation,
        effects=[
            Audit(
                action="RESERVATION_UPDATED",
                description=(
                    f"Reservation {reservation_id} updated: room {room.number}, "
                    f"{reservation.start_date.isoformat()} to {reservation.end_date.isoformat()}"
                ),
                subject_type=SUBJECT_TYPE,
                subject_id=reservation_id,
            )
        ],
    )


# ── Transitions ───────────────────────────────────────────


def cancel_reservation(
    store: Store,
    reservation_id: int,
    *,
    is_staff: bool,
    actor_role: str = "system",
) -> LifecycleResult:
    """Cancel a pending or active reservation and release its room.

    Args:
        store: Transactional store.
        reservation_id: Reservation to cancel.
        is_staff: Whether the caller is hotel staff. Only staff may cancel a
            reservation whose payment has completed.
        actor_role: Caller role, recorded in the audit trail.

    Raises:
        ReservationNotFoundError: Unknown reservation id.
        ReservationNotCancellableError: Already cancelled, finalized, or in a
            status that cannot be cancelled.
        PaidReservationCancellationError: Non-staff caller, completed payment.
    """
    reservation = _get_or_raise(store, reservation_id)

    if reservation.status == ReservationStatus.CANCELLED:
        raise ReservationNotCancellableError(f"Reservation {reservation_id} is already cancelled")
    if reservation.status == ReservationStatus.FINALIZED:
        raise ReservationNotCancellableError(
            f"Reservation {reservation_id} is finalized and cannot be cancelled"
        )
    if reservation.status not in CANCELLABLE_STATUSES:
        raise ReservationNotCancellableError(
            f"Reservation {reservation_id} has status '{reservation.status.value}', "
            "expected 'pending' or 'active'"
        )
    if not is_staff and reservation.has_completed_payment:
        raise PaidReservationCancellationError(
            "A paid reservation cannot be cancelled online. "
            "Please contact the front desk to request a refund or cancellation."
        )

    reservation.status = ReservationStatus.CANCELLED
    reservation = store.save_reservation(reservation)
    release_room(store, reservation.room_id)

    logger.info(
        "reservation cancelled",
        extra={"extra_fields": {"reservation_id": reservation_id, "actor_role": actor_role}},
    )
    return LifecycleResult(
        reservation=reservation,
        effects=[
            Audit(
                action="RESERVATION_CANCELLED",
                description=f"Reservation {reservation_id} cancelled by caller with role {actor_role}",
                subject_type=SUBJECT_TYPE,
                subject_id=reservation_id,
            )
        ],
    )


def check_in(
    store: Store,
    reservation_id: int,
    *,
    clock: Clock,
    on: date | None = None,
) -> LifecycleResult | None:
    """Register the guest's arrival: status active, room occupied.

    Returns:
        LifecycleResult, or None when the reservation does not exist.

    Raises:
        InvalidTransitionError: Reservation is finalized or cancelled.
    """
    reservation = store.get_reservation(reservation_id, lock=True)
    if reservation is None:
        logger.info("check-in skipped, reservation not found", extra={"extra_fields": {"reservation_id": reservation_id}})
        return None
    if reservation.status.is_terminal:
        raise InvalidTransitionError(
            f"Cannot check in reservation {reservation_id}: it is {reservation.status.value}"
        )

    reservation.status = ReservationStatus.ACTIVE
    reservation.actual_check_in = on or clock.today()
    reservation = store.save_reservation(reservation)
    occupy_room(store, reservation.room_id)

    effects: list[Effect] = []
    notice = _front_desk_notice(store, reservation, "Check-in completed", "Check-in")
    if notice is not None:
        effects.append(notice)
    effects.append(
        Audit(
            action="CHECK_IN",
            description=f"Check-in completed for reservation {reservation_id}",
            subject_type=SUBJECT_TYPE,
            subject_id=reservation_id,
        )
    )

    logger.info("check-in completed", extra={"extra_fields": {"reservation_id": reservation_id}})
    return LifecycleResult(reservation=reservation, effects=effects)


def check_out(
    store: Store,
    reservation_id: int,
    *,
    clock: Clock,
    on: date | None = None,
) -> LifecycleResult | None:
    """Register the guest's departure: status finalized, room released.

    Returns:
        LifecycleResult, or None when the reservation does not exist.

    Raises:
        InvalidTransitionError: Reservation is finalized or cancelled.
    """
    reservation = store.get_reservation(reservation_id, lock=True)
    if reservation is None:
        logger.info("check-out skipped, reservation not found", extra={"extra_fields": {"reservation_id": reservation_id}})
        return None
    if reservation.status.is_terminal:
        raise InvalidTransitionError(
            f"Cannot check out reservation {reservation_id}: it is {reservation.status.value}"
        )

    reservation.status = ReservationStatus.FINALIZED
    reservation.actual_check_out = on or clock.today()
    reservation = store.save_reservation(reservation)
    release_room(store, reservation.room_id)

    effects: list[Effect] = []
    notice = _front_desk_notice(store, reservation, "Check-out completed", "Check-out")
    if notice is not None:
        effects.append(notice)
    effects.append(
        Audit(
            action="CHECK_OUT",
            description=f"Check-out completed for reservation {reservation_id}",
            subject_type=SUBJECT_TYPE,
            subject_id=reservation_id,
        )
    )

    logger.info("check-out completed", extra={"extra_fields": {"reservation_id": reservation_id}})
    return LifecycleResult(reservation=reservation, effects=effects)


def finalize_reservation(
    store: Store,
    reservation_id: int,
    *,
    clock: Clock,
) -> LifecycleResult | None:
    """Close a reservation without the check-out ceremony. Idempotent.

    An actual check-out date already on record is kept.

    Returns:
        LifecycleResult (``changed=False`` if it was already finalized), or
        None when the reservation does not exist.

    Raises:
        InvalidTransitionError: Reservation is cancelled.
    """
    reservation = store.get_reservation(reservation_id, lock=True)
    if reservation is None:
        return None
    if reservation.status == ReservationStatus.FINALIZED:
        return LifecycleResult(reservation=reservation, effects=[], changed=False)
    if reservation.status == ReservationStatus.CANCELLED:
        raise InvalidTransitionError(f"Cannot finalize reservation {reservation_id}: it is cancelled")

    previous_status = reservation.status
    reservation.status = ReservationStatus.FINALIZED
    if reservation.actual_check_out is None:
        reservation.actual_check_out = clock.today()
    reservation = store.save_reservation(reservation)
    release_room(store, reservation.room_id)

    logger.info(
        "reservation finalized",
        extra={
            "extra_fields": {
                "reservation_id": reservation_id,
                "previous_status": previous_status.value,
            }
        },
    )
    return LifecycleResult(
        reservation=reservation,
        effects=[
            Audit(
                action="RESERVATION_FINALIZED",
                description=(
                    f"Reservation {reservation_id} finalized, previous status: {previous_status.value}"
                ),
                subject_type=SUBJECT_TYPE,
                subject_id=reservation_id,
            )
        ],
    )


def delete_reservation(store: Store, reservation_id: int) -> LifecycleResult:
    """Physically remove a reservation and release its room.

    Raises:
        ReservationNotFoundError: Unknown reservation id.
    """
    reservation = _get_or_raise(store, reservation_id)
    release_room(store, reservation.room_id)
    store.delete_reservation(reservation_id)

    logger.info("reservation deleted", extra={"extra_fields": {"reservation_id": reservation_id}})
    return LifecycleResult(
        reservation=reservation,
        effects=[
            Audit(
                action="RESERVATION_DELETED",
                description=f"Reservation {reservation_id} physically deleted",
                subject_type=SUBJECT_TYPE,
                subject_id=reservation_id,
            )
        ],
    )


def assign_services(
    store: Store,
    reservation_id: int,
    service_ids: Sequence[int],
) -> LifecycleResult:
    """Replace the set of services billed to a reservation.

    Raises:
        ReservationNotFoundError: Unknown reservation id.
        InvalidTransitionError: Reservation is cancelled.
        ValidationError: Unknown service id.
    """
    reservation = _get_or_raise(store, reservation_id)
    if reservation.status == ReservationStatus.CANCELLED:
        raise InvalidTransitionError(
            f"Cannot assign services to reservation {reservation_id}: it is cancelled"
        )

    services = _resolve_services(store, service_ids)
    store.set_reservation_services(reservation_id, [s.id for s in services])
    reservation.services = services

    return LifecycleResult(
        reservation=reservation,
        effects=[
            Audit(
                action="SERVICES_ASSIGNED",
                description=f"{len(services)} service(s) assigned to reservation {reservation_id}",
                subject_type=SUBJECT_TYPE,
                subject_id=reservation_id,
            )
        ],
    )
