"""Reservation, room and customer entities.

Entities reference each other by integer id only; a Room never holds its
reservations and a Customer never holds its bookings. Lookups go through the
store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


# ── Enums ─────────────────────────────────────────────────


class ReservationStatus(str, Enum):
    PENDING = "pending"
    # Payment in flight; set by the booking intake, never by a transition here.
    PROCESSING = "processing"
    ACTIVE = "active"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({ReservationStatus.FINALIZED, ReservationStatus.CANCELLED})

# Statuses that hold a customer "in house" and block customer deletion.
OPEN_STATUSES = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.PROCESSING, ReservationStatus.ACTIVE}
)

# Statuses that count as realised stays for revenue and occupancy series.
STAYED_STATUSES = frozenset({ReservationStatus.ACTIVE, ReservationStatus.FINALIZED})


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# ── Entities ──────────────────────────────────────────────


@dataclass
class Room:
    id: int
    number: str
    status: RoomStatus = RoomStatus.AVAILABLE


@dataclass(frozen=True)
class Service:
    id: int
    name: str
    price_cents: int


@dataclass(frozen=True)
class Payment:
    id: int
    status: PaymentStatus
    amount_cents: int = 0

    @property
    def is_completed(self) -> bool:
        return self.status == PaymentStatus.COMPLETED


@dataclass
class Account:
    """Login credentials linked to a customer."""

    id: int | None
    username: str
    password_hash: str
    role: str = "customer"


@dataclass
class Customer:
    id: int | None
    national_id: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    nationality: str | None = None
    loyalty_points: int = 0
    account_id: int | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Reservation:
    """A booking of one room by one customer.

    ``start_date``/``end_date`` are the booked stay; ``end_date`` is the
    departure day. ``actual_check_in``/``actual_check_out`` record what
    really happened.
    """

    id: int | None
    customer_id: int
    room_id: int
    start_date: date
    end_date: date
    status: ReservationStatus = ReservationStatus.PENDING
    amount_cents: int = 0
    discount_cents: int | None = 0
    actual_check_in: date | None = None
    actual_check_out: date | None = None
    services: list[Service] = field(default_factory=list)
    payment: Payment | None = None

    @property
    def services_total_cents(self) -> int:
        return sum(s.price_cents for s in self.services)

    @property
    def total_cents(self) -> int:
        """Amount due: base + services - discount, never below zero."""
        discount = self.discount_cents or 0
        return max(0, self.amount_cents + self.services_total_cents - discount)

    @property
    def has_completed_payment(self) -> bool:
        return self.payment is not None and self.payment.is_completed

    @property
    def effective_end(self) -> date:
        """Last blocked day boundary for availability purposes.

        An early departure on a finalized stay frees the remaining nights; a
        late one never extends the stay past the booked end.
        """
        if self.status == ReservationStatus.FINALIZED and self.actual_check_out is not None:
            return min(self.actual_check_out, self.end_date)
        return self.end_date

    @property
    def revenue_date(self) -> date:
        return self.actual_check_out or self.end_date

    def covers(self, day: date) -> bool:
        """True when ``day`` is a booked night (start <= day < end)."""
        return self.start_date <= day < self.end_date


@dataclass(frozen=True)
class ReservationDraft:
    """Caller-supplied fields for creating or editing a reservation."""

    customer_id: int | None
    room_id: int | None
    start_date: date | None
    end_date: date | None
    amount_cents: int = 0
    discount_cents: int | None = 0
    status: ReservationStatus = ReservationStatus.PENDING
    payment: Payment | None = None
    service_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class CustomerSummary:
    """Read-side view of a customer; recomputed from reservations on every read."""

    customer: Customer
    total_reservations: int
    has_active_reservation: bool
    active_reservation_id: int | None
    last_stay: date | None
