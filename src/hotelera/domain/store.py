"""Persistence contract consumed by the domain.

The PostgreSQL implementation lives in ``hotelera.infra.store``; every call
made through one store instance belongs to the same transaction, so a
lifecycle operation either commits all of its writes or none of them.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .models import (
    Account,
    Customer,
    Reservation,
    ReservationStatus,
    Room,
    RoomStatus,
    Service,
)


class Store(Protocol):
    # ── Reservations ──
    def get_reservation(self, reservation_id: int, *, lock: bool = False) -> Reservation | None: ...

    def list_reservations(self) -> list[Reservation]: ...

    def list_room_reservations(
        self,
        room_id: int,
        *,
        exclude_reservation_id: int | None = None,
        exclude_statuses: Sequence[ReservationStatus] = (),
    ) -> list[Reservation]: ...

    def list_customer_reservations(self, customer_id: int) -> list[Reservation]: ...

    def save_reservation(self, reservation: Reservation) -> Reservation: ...

    def delete_reservation(self, reservation_id: int) -> None: ...

    def set_reservation_services(self, reservation_id: int, service_ids: Sequence[int]) -> None: ...

    # ── Rooms ──
    def get_room(self, room_id: int, *, lock: bool = False) -> Room | None: ...

    def list_rooms(self) -> list[Room]: ...

    def set_room_status(self, room_id: int, status: RoomStatus) -> None: ...

    # ── Services ──
    def get_services(self, service_ids: Sequence[int]) -> list[Service]: ...

    # ── Customers ──
    def get_customer(self, customer_id: int, *, lock: bool = False) -> Customer | None: ...

    def find_customer_by_national_id(self, national_id: str) -> Customer | None: ...

    def find_customer_by_email(self, email: str) -> Customer | None: ...

    def search_customers(self, search: str | None, *, limit: int, offset: int) -> list[Customer]: ...

    def count_customers(self, search: str | None = None) -> int: ...

    def save_customer(self, customer: Customer) -> Customer: ...

    def add_loyalty_points(self, customer_id: int, points: int) -> None: ...

    def delete_customer(self, customer_id: int) -> None: ...

    # ── Accounts ──
    def find_account_by_username(self, username: str) -> Account | None: ...

    def save_account(self, account: Account) -> Account: ...

    def delete_account(self, account_id: int) -> None: ...


class Clock(Protocol):
    """Source of "today" for lifecycle defaults and room synchronization."""

    def today(self) -> date: ...
