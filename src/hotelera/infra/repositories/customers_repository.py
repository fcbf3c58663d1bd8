"""Customers and accounts repository.

Uses raw SQL with psycopg2 (no ORM).

national_id, email and accounts.username carry UNIQUE constraints; a
UniqueViolation raised by a concurrent insert is translated to
DuplicateCustomerError so the API answers 400 instead of 500.
"""

from __future__ import annotations

from typing import Any

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from hotelera.domain.errors import DuplicateCustomerError
from hotelera.domain.models import Account, Customer

_SELECT = """
    SELECT id, national_id, first_name, last_name, email, phone,
           nationality, loyalty_points, account_id
    FROM customers
"""

_SEARCH_CLAUSE = """
    WHERE national_id ILIKE %(pattern)s
       OR first_name ILIKE %(pattern)s
       OR last_name ILIKE %(pattern)s
       OR (first_name || ' ' || last_name) ILIKE %(pattern)s
"""


def _row_to_customer(row: tuple[Any, ...]) -> Customer:
    return Customer(
        id=row[0],
        national_id=row[1],
        first_name=row[2],
        last_name=row[3],
        email=row[4],
        phone=row[5],
        nationality=row[6],
        loyalty_points=row[7],
        account_id=row[8],
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_customer(cur: PgCursor, customer_id: int, *, lock: bool = False) -> Customer | None:
    query = _SELECT + " WHERE id = %s"
    if lock:
        query += " FOR UPDATE"
    cur.execute(query, (customer_id,))
    row = cur.fetchone()
    return _row_to_customer(row) if row else None


def find_by_national_id(cur: PgCursor, national_id: str) -> Customer | None:
    cur.execute(_SELECT + " WHERE national_id = %s", (national_id,))
    row = cur.fetchone()
    return _row_to_customer(row) if row else None


def find_by_email(cur: PgCursor, email: str) -> Customer | None:
    cur.execute(_SELECT + " WHERE lower(email) = lower(%s)", (email,))
    row = cur.fetchone()
    return _row_to_customer(row) if row else None


def search_customers(
    cur: PgCursor, search: str | None, *, limit: int, offset: int
) -> list[Customer]:
    """Page through customers ordered by last name, optionally filtered.

    ``search`` matches anywhere in the national ID, first name, last name
    or full name, case-insensitively.
    """
    params: dict[str, Any] = {"limit": limit, "offset": offset}
    where_clause = ""
    if search:
        where_clause = _SEARCH_CLAUSE
        params["pattern"] = f"%{_escape_like(search)}%"
    cur.execute(
        _SELECT + where_clause + " ORDER BY last_name, first_name, id LIMIT %(limit)s OFFSET %(offset)s",
        params,
    )
    return [_row_to_customer(row) for row in cur.fetchall()]


def count_customers(cur: PgCursor, search: str | None = None) -> int:
    if search:
        cur.execute(
            "SELECT count(*) FROM customers" + _SEARCH_CLAUSE,
            {"pattern": f"%{_escape_like(search)}%"},
        )
    else:
        cur.execute("SELECT count(*) FROM customers")
    return cur.fetchone()[0]


def insert_customer(cur: PgCursor, customer: Customer) -> int:
    """Insert a customer and return its id.

    Raises:
        DuplicateCustomerError: national_id or email already taken.
    """
    try:
        cur.execute(
            """
            INSERT INTO customers (
                national_id, first_name, last_name, email, phone,
                nationality, loyalty_points, account_id
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id
            """,
            (
                customer.national_id,
                customer.first_name,
                customer.last_name,
                customer.email,
                customer.phone,
                customer.nationality,
                customer.loyalty_points,
                customer.account_id,
            ),
        )
    except pg_errors.UniqueViolation:
        raise DuplicateCustomerError("A customer with this national ID or email already exists")
    return cur.fetchone()[0]


def update_customer(cur: PgCursor, customer: Customer) -> None:
    """Write personal data and the account link.

    loyalty_points is left alone; it only moves through add_loyalty_points.

    Raises:
        DuplicateCustomerError: national_id or email already taken.
    """
    try:
        cur.execute(
            """
            UPDATE customers
            SET national_id = %s,
                first_name  = %s,
                last_name   = %s,
                email       = %s,
                phone       = %s,
                nationality = %s,
                account_id  = %s,
                updated_at  = now()
            WHERE id = %s
            """,
            (
                customer.national_id,
                customer.first_name,
                customer.last_name,
                customer.email,
                customer.phone,
                customer.nationality,
                customer.account_id,
                customer.id,
            ),
        )
    except pg_errors.UniqueViolation:
        raise DuplicateCustomerError("A customer with this national ID or email already exists")


def add_loyalty_points(cur: PgCursor, customer_id: int, points: int) -> None:
    cur.execute(
        "UPDATE customers SET loyalty_points = loyalty_points + %s WHERE id = %s",
        (points, customer_id),
    )


def delete_customer(cur: PgCursor, customer_id: int) -> None:
    cur.execute("DELETE FROM customers WHERE id = %s", (customer_id,))


# ── Accounts ──────────────────────────────────────────────


def find_account_by_username(cur: PgCursor, username: str) -> Account | None:
    cur.execute(
        "SELECT id, username, password_hash, role FROM accounts WHERE username = %s",
        (username,),
    )
    row = cur.fetchone()
    if row is None:
        return None
    return Account(id=row[0], username=row[1], password_hash=row[2], role=row[3])


def insert_account(cur: PgCursor, account: Account) -> int:
    """Insert a login account and return its id.

    Raises:
        DuplicateCustomerError: Username already taken.
    """
    try:
        cur.execute(
            """
            INSERT INTO accounts (username, password_hash, role)
            VALUES (%s, %s, %s)
            RETURNING id
            """,
            (account.username, account.password_hash, account.role),
        )
    except pg_errors.UniqueViolation:
        raise DuplicateCustomerError("Username is already taken")
    return cur.fetchone()[0]


def delete_account(cur: PgCursor, account_id: int) -> None:
    cur.execute("DELETE FROM accounts WHERE id = %s", (account_id,))
