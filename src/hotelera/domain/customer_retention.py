"""Customer deletion policy: anonymize when there is financial history, erase otherwise.

1. Any pending/processing/active reservation blocks the deletion.
2. At least one finalized reservation: the customer row stays for revenue
   reporting, but every personal identifier is overwritten and the login
   account is removed.
3. Only cancelled reservations (or none): the customer, those reservations
   and the login account are all removed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .effects import Audit, Effect
from .errors import BlockingReservation, CustomerHasActiveReservationsError, CustomerNotFoundError
from .models import OPEN_STATUSES, Customer, Reservation, ReservationStatus
from .store import Store

logger = logging.getLogger(__name__)

PLACEHOLDER_FIRST_NAME = "Customer"
PLACEHOLDER_EMAIL_DOMAIN = "system.local"
UNASSIGNED_ROOM = "unassigned"


class DeletionOutcome(str, Enum):
    ANONYMIZED = "anonymized"
    ERASED = "erased"


@dataclass
class DeletionResult:
    customer_id: int
    outcome: DeletionOutcome
    effects: list[Effect]


def placeholder_national_id(customer_id: int) -> str:
    """Synthetic national ID; never 8 digits, so it cannot clash with a real one."""
    return f"ANON-{customer_id}"


def placeholder_email(customer_id: int) -> str:
    return f"deleted_{customer_id}@{PLACEHOLDER_EMAIL_DOMAIN}"


def blocking_reservations(store: Store, reservations: list[Reservation]) -> list[BlockingReservation]:
    blocking = []
    for reservation in reservations:
        if reservation.status not in OPEN_STATUSES:
            continue
        room = store.get_room(reservation.room_id)
        blocking.append(
            BlockingReservation(
                reservation_id=reservation.id,
                room_number=room.number if room is not None else UNASSIGNED_ROOM,
                status=reservation.status.value,
                start_date=reservation.start_date,
                end_date=reservation.end_date,
            )
        )
    return blocking


def anonymize(customer: Customer) -> Customer:
    """Overwrite personal identifiers in place and detach the login account."""
    customer.first_name = PLACEHOLDER_FIRST_NAME
    customer.last_name = f"Deleted {customer.id}"
    customer.national_id = placeholder_national_id(customer.id)
    customer.email = placeholder_email(customer.id)
    customer.phone = None
    customer.account_id = None
    return customer


def delete_customer(store: Store, customer_id: int) -> DeletionResult:
    """Apply the retention policy to a customer deletion request.

    Raises:
        CustomerNotFoundError: Unknown customer id.
        CustomerHasActiveReservationsError: Open reservations still exist;
            the error lists them.
    """
    customer = store.get_customer(customer_id, lock=True)
    if customer is None:
        raise CustomerNotFoundError(f"Customer {customer_id} not found")

    reservations = store.list_customer_reservations(customer_id)
    blocking = blocking_reservations(store, reservations)
    if blocking:
        raise CustomerHasActiveReservationsError(customer_id, blocking)

    account_id = customer.account_id
    has_history = any(r.status == ReservationStatus.FINALIZED for r in reservations)

    if has_history:
        store.save_customer(anonymize(customer))
        if account_id is not None:
            store.delete_account(account_id)
        outcome = DeletionOutcome.ANONYMIZED
        description = f"Customer {customer_id} anonymized, reservation history kept"
    else:
        for reservation in reservations:
            store.delete_reservation(reservation.id)
        store.delete_customer(customer_id)
        if account_id is not None:
            store.delete_account(account_id)
        outcome = DeletionOutcome.ERASED
        description = f"Customer {customer_id} erased with {len(reservations)} cancelled reservation(s)"

    logger.info(
        "customer deleted",
        extra={"extra_fields": {"customer_id": customer_id, "outcome": outcome.value}},
    )
    return DeletionResult(
        customer_id=customer_id,
        outcome=outcome,
        effects=[
            Audit(
                action=f"CUSTOMER_{outcome.value.upper()}",
                description=description,
                subject_type="customer",
                subject_id=customer_id,
            )
        ],
    )
