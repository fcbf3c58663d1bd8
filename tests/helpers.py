"""Shared test helpers for hotelera tests.

In-memory Store, fixed clock and recording effect sinks, plus small factory
functions. These are NOT fixtures; conftest.py wraps the ones tests need.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from hotelera.domain.effects import EffectSinks
from hotelera.domain.models import (
    Account,
    Customer,
    Payment,
    PaymentStatus,
    Reservation,
    ReservationStatus,
    Room,
    RoomStatus,
    Service,
)


class FixedClock:
    def __init__(self, today: date) -> None:
        self._today = today

    def today(self) -> date:
        return self._today


class InMemoryStore:
    """Dict-backed Store. Returns copies so callers cannot mutate state behind save_*."""

    def __init__(self) -> None:
        self.reservations: dict[int, Reservation] = {}
        self.rooms: dict[int, Room] = {}
        self.services: dict[int, Service] = {}
        self.customers: dict[int, Customer] = {}
        self.accounts: dict[int, Account] = {}
        self.room_status_writes: list[tuple[int, RoomStatus]] = []
        self.locked: list[tuple[str, int]] = []
        self._next_id = 1000

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    # ── Seeding ──
    def add_room(self, room_id: int, number: str, status: RoomStatus = RoomStatus.AVAILABLE) -> Room:
        room = Room(id=room_id, number=number, status=status)
        self.rooms[room_id] = room
        return room

    def add_service(self, service_id: int, name: str, price_cents: int) -> Service:
        service = Service(id=service_id, name=name, price_cents=price_cents)
        self.services[service_id] = service
        return service

    def add_customer(self, customer: Customer) -> Customer:
        if customer.id is None:
            customer.id = self._new_id()
        self.customers[customer.id] = customer
        return customer

    def add_reservation(self, reservation: Reservation) -> Reservation:
        if reservation.id is None:
            reservation.id = self._new_id()
        self.reservations[reservation.id] = reservation
        return reservation

    # ── Reservations ──
    def get_reservation(self, reservation_id: int, *, lock: bool = False) -> Reservation | None:
        if lock:
            self.locked.append(("reservation", reservation_id))
        reservation = self.reservations.get(reservation_id)
        return copy.deepcopy(reservation) if reservation else None

    def list_reservations(self) -> list[Reservation]:
        return [copy.deepcopy(r) for r in self.reservations.values()]

    def list_room_reservations(
        self,
        room_id: int,
        *,
        exclude_reservation_id: int | None = None,
        exclude_statuses: Sequence[ReservationStatus] = (),
    ) -> list[Reservation]:
        return sorted(
            (
                copy.deepcopy(r)
                for r in self.reservations.values()
                if r.room_id == room_id
                and r.id != exclude_reservation_id
                and r.status not in exclude_statuses
            ),
            key=lambda r: (r.start_date, r.id),
        )

    def list_customer_reservations(self, customer_id: int) -> list[Reservation]:
        return [copy.deepcopy(r) for r in self.reservations.values() if r.customer_id == customer_id]

    def save_reservation(self, reservation: Reservation) -> Reservation:
        if reservation.id is None:
            reservation.id = self._new_id()
        self.reservations[reservation.id] = copy.deepcopy(reservation)
        return reservation

    def delete_reservation(self, reservation_id: int) -> None:
        self.reservations.pop(reservation_id, None)

    def set_reservation_services(self, reservation_id: int, service_ids: Sequence[int]) -> None:
        self.reservations[reservation_id].services = [self.services[i] for i in service_ids]

    # ── Rooms ──
    def get_room(self, room_id: int, *, lock: bool = False) -> Room | None:
        if lock:
            self.locked.append(("room", room_id))
        room = self.rooms.get(room_id)
        return copy.deepcopy(room) if room else None

    def list_rooms(self) -> list[Room]:
        return [copy.deepcopy(r) for r in self.rooms.values()]

    def set_room_status(self, room_id: int, status: RoomStatus) -> None:
        self.room_status_writes.append((room_id, status))
        if room_id in self.rooms:
            self.rooms[room_id].status = status

    # ── Services ──
    def get_services(self, service_ids: Sequence[int]) -> list[Service]:
        return [self.services[i] for i in service_ids if i in self.services]

    # ── Customers ──
    def get_customer(self, customer_id: int, *, lock: bool = False) -> Customer | None:
        customer = self.customers.get(customer_id)
        return copy.deepcopy(customer) if customer else None

    def find_customer_by_national_id(self, national_id: str) -> Customer | None:
        for customer in self.customers.values():
            if customer.national_id == national_id:
                return copy.deepcopy(customer)
        return None

    def find_customer_by_email(self, email: str) -> Customer | None:
        for customer in self.customers.values():
            if customer.email and customer.email.lower() == email.lower():
                return copy.deepcopy(customer)
        return None

    def _matching(self, search: str | None) -> list[Customer]:
        customers = sorted(self.customers.values(), key=lambda c: (c.last_name, c.first_name, c.id))
        if not search:
            return customers
        term = search.lower()
        return [
            c for c in customers
            if term in c.national_id.lower()
            or term in c.first_name.lower()
            or term in c.last_name.lower()
            or term in c.full_name.lower()
        ]

    def search_customers(self, search: str | None, *, limit: int, offset: int) -> list[Customer]:
        return [copy.deepcopy(c) for c in self._matching(search)[offset:offset + limit]]

    def count_customers(self, search: str | None = None) -> int:
        return len(self._matching(search))

    def save_customer(self, customer: Customer) -> Customer:
        if customer.id is None:
            customer.id = self._new_id()
        self.customers[customer.id] = copy.deepcopy(customer)
        return customer

    def add_loyalty_points(self, customer_id: int, points: int) -> None:
        self.customers[customer_id].loyalty_points += points

    def delete_customer(self, customer_id: int) -> None:
        self.customers.pop(customer_id, None)

    # ── Accounts ──
    def find_account_by_username(self, username: str) -> Account | None:
        for account in self.accounts.values():
            if account.username == username:
                return account
        return None

    def save_account(self, account: Account) -> Account:
        if account.id is None:
            account.id = self._new_id()
        self.accounts[account.id] = account
        return account

    def delete_account(self, account_id: int) -> None:
        self.accounts.pop(account_id, None)


# ── Effect sinks ──────────────────────────────────────────


@dataclass
class RecordingNotificationSink:
    calls: list[tuple[str, str, str]] = field(default_factory=list)
    fail: bool = False

    def notify(self, title: str, message: str, severity: str) -> None:
        if self.fail:
            raise RuntimeError("notification backend down")
        self.calls.append((title, message, severity))


@dataclass
class RecordingEmailSink:
    calls: list[tuple[str, str, str]] = field(default_factory=list)
    fail: bool = False

    def send(self, recipient: str, subject: str, body: str) -> None:
        if self.fail:
            raise OSError("smtp unreachable")
        self.calls.append((recipient, subject, body))


@dataclass
class RecordingAuditSink:
    calls: list[tuple[str, str, str, int | None]] = field(default_factory=list)
    fail: bool = False

    def record(self, action: str, description: str, subject_type: str, subject_id: int | None) -> None:
        if self.fail:
            raise RuntimeError("audit table locked")
        self.calls.append((action, description, subject_type, subject_id))


def recording_sinks() -> EffectSinks:
    return EffectSinks(
        notifications=RecordingNotificationSink(),
        email=RecordingEmailSink(),
        audit=RecordingAuditSink(),
    )


# ── Factories ─────────────────────────────────────────────


def make_customer(
    customer_id: int | None = 1,
    *,
    national_id: str = "12345678",
    first_name: str = "Ana",
    last_name: str = "Torres",
    email: str | None = "ana@example.com",
    phone: str | None = "987654321",
    account_id: int | None = None,
) -> Customer:
    return Customer(
        id=customer_id,
        national_id=national_id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        account_id=account_id,
    )


def make_reservation(
    reservation_id: int | None,
    start: date,
    end: date,
    *,
    status: ReservationStatus = ReservationStatus.PENDING,
    room_id: int = 101,
    customer_id: int = 1,
    amount_cents: int = 0,
    discount_cents: int | None = 0,
    actual_check_in: date | None = None,
    actual_check_out: date | None = None,
    services: list[Service] | None = None,
    paid: bool = False,
) -> Reservation:
    return Reservation(
        id=reservation_id,
        customer_id=customer_id,
        room_id=room_id,
        start_date=start,
        end_date=end,
        status=status,
        amount_cents=amount_cents,
        discount_cents=discount_cents,
        actual_check_in=actual_check_in,
        actual_check_out=actual_check_out,
        services=services or [],
        payment=Payment(id=1, status=PaymentStatus.COMPLETED) if paid else None,
    )
