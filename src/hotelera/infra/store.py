"""PostgreSQL implementation of the domain Store.

One PgStore wraps one cursor, so everything done through it shares a
transaction. Use ``unit_of_work()`` to get a store whose writes commit
together on exit and roll back together on any exception.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Sequence

from psycopg2.extensions import connection as PgConnection, cursor as PgCursor

from hotelera.domain.models import (
    Account,
    Customer,
    Reservation,
    ReservationStatus,
    Room,
    RoomStatus,
    Service,
)
from hotelera.infra.db import txn
from hotelera.infra.repositories import (
    customers_repository,
    reservations_repository,
    rooms_repository,
)


class PgStore:
    def __init__(self, cur: PgCursor) -> None:
        self.cur = cur

    # ── Reservations ──
    def get_reservation(self, reservation_id: int, *, lock: bool = False) -> Reservation | None:
        return reservations_repository.get_reservation(self.cur, reservation_id, lock=lock)

    def list_reservations(self) -> list[Reservation]:
        return reservations_repository.list_reservations(self.cur)

    def list_room_reservations(
        self,
        room_id: int,
        *,
        exclude_reservation_id: int | None = None,
        exclude_statuses: Sequence[ReservationStatus] = (),
    ) -> list[Reservation]:
        return reservations_repository.list_room_reservations(
            self.cur,
            room_id,
            exclude_reservation_id=exclude_reservation_id,
            exclude_statuses=exclude_statuses,
        )

    def list_customer_reservations(self, customer_id: int) -> list[Reservation]:
        return reservations_repository.list_customer_reservations(self.cur, customer_id)

    def save_reservation(self, reservation: Reservation) -> Reservation:
        if reservation.id is None:
            reservation.id = reservations_repository.insert_reservation(self.cur, reservation)
        else:
            reservations_repository.update_reservation(self.cur, reservation)
        return reservation

    def delete_reservation(self, reservation_id: int) -> None:
        reservations_repository.delete_reservation(self.cur, reservation_id)

    def set_reservation_services(self, reservation_id: int, service_ids: Sequence[int]) -> None:
        reservations_repository.set_reservation_services(self.cur, reservation_id, service_ids)

    # ── Rooms ──
    def get_room(self, room_id: int, *, lock: bool = False) -> Room | None:
        return rooms_repository.get_room(self.cur, room_id, lock=lock)

    def list_rooms(self) -> list[Room]:
        return rooms_repository.list_rooms(self.cur)

    def set_room_status(self, room_id: int, status: RoomStatus) -> None:
        rooms_repository.set_room_status(self.cur, room_id, status)

    # ── Services ──
    def get_services(self, service_ids: Sequence[int]) -> list[Service]:
        return rooms_repository.get_services(self.cur, service_ids)

    # ── Customers ──
    def get_customer(self, customer_id: int, *, lock: bool = False) -> Customer | None:
        return customers_repository.get_customer(self.cur, customer_id, lock=lock)

    def find_customer_by_national_id(self, national_id: str) -> Customer | None:
        return customers_repository.find_by_national_id(self.cur, national_id)

    def find_customer_by_email(self, email: str) -> Customer | None:
        return customers_repository.find_by_email(self.cur, email)

    def search_customers(self, search: str | None, *, limit: int, offset: int) -> list[Customer]:
        return customers_repository.search_customers(self.cur, search, limit=limit, offset=offset)

    def count_customers(self, search: str | None = None) -> int:
        return customers_repository.count_customers(self.cur, search)

    def save_customer(self, customer: Customer) -> Customer:
        if customer.id is None:
            customer.id = customers_repository.insert_customer(self.cur, customer)
        else:
            customers_repository.update_customer(self.cur, customer)
        return customer

    def add_loyalty_points(self, customer_id: int, points: int) -> None:
        customers_repository.add_loyalty_points(self.cur, customer_id, points)

    def delete_customer(self, customer_id: int) -> None:
        customers_repository.delete_customer(self.cur, customer_id)

    # ── Accounts ──
    def find_account_by_username(self, username: str) -> Account | None:
        return customers_repository.find_account_by_username(self.cur, username)

    def save_account(self, account: Account) -> Account:
        account.id = customers_repository.insert_account(self.cur, account)
        return account

    def delete_account(self, account_id: int) -> None:
        customers_repository.delete_account(self.cur, account_id)


@contextmanager
def unit_of_work(conn: PgConnection | None = None) -> Iterator[PgStore]:
    """Yield a PgStore bound to a fresh transaction.

    Example:
        with unit_of_work() as store:
            result = cancel_reservation(store, 42, is_staff=True)
        dispatch(result.effects)
    """
    with txn(conn) as cur:
        yield PgStore(cur)
