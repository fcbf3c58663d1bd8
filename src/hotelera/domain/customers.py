"""Customer registration, edits and read-side summaries.

Derived fields (reservation count, open reservation, last stay) are never
stored; ``summarize`` recomputes them from the reservation set on each read.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import bcrypt

from .effects import Audit, Effect
from .errors import CustomerNotFoundError, DuplicateCustomerError, ValidationError
from .models import (
    OPEN_STATUSES,
    Account,
    Customer,
    CustomerSummary,
    Reservation,
    ReservationStatus,
)
from .store import Store

logger = logging.getLogger(__name__)

NATIONAL_ID_PATTERN = re.compile(r"^\d{8}$")
PHONE_PATTERN = re.compile(r"^\d{9}$")

CUSTOMER_ROLE = "customer"
SUBJECT_TYPE = "customer"


@dataclass(frozen=True)
class CustomerData:
    national_id: str | None
    first_name: str | None
    last_name: str | None
    email: str | None = None
    phone: str | None = None
    nationality: str | None = None
    username: str | None = None
    password: str | None = None


@dataclass(frozen=True)
class PageRequest:
    page: int
    size: int


@dataclass(frozen=True)
class CustomerPage:
    items: list[CustomerSummary]
    page: int
    size: int
    total: int


@dataclass
class CustomerResult:
    customer: Customer
    effects: list[Effect]


def _blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


def _normalize_email(email: str | None) -> str | None:
    if _blank(email):
        return None
    return email.strip().lower()


def validate_customer_data(data: CustomerData) -> None:
    """Check field formats. Uniqueness is checked against the store separately."""
    if _blank(data.national_id):
        raise ValidationError("National ID is required")
    if not NATIONAL_ID_PATTERN.match(data.national_id.strip()):
        raise ValidationError("National ID must contain exactly 8 digits")
    if _blank(data.first_name):
        raise ValidationError("First name is required")
    if _blank(data.last_name):
        raise ValidationError("Last name is required")
    if not _blank(data.phone) and not PHONE_PATTERN.match(data.phone.strip()):
        raise ValidationError("Phone must contain exactly 9 digits")


def _ensure_unique(
    store: Store,
    *,
    national_id: str,
    email: str | None,
    exclude_customer_id: int | None = None,
) -> None:
    existing = store.find_customer_by_national_id(national_id)
    if existing is not None and existing.id != exclude_customer_id:
        raise DuplicateCustomerError(f"A customer with national ID '{national_id}' already exists")
    if email is None:
        return
    existing = store.find_customer_by_email(email)
    if existing is not None and existing.id != exclude_customer_id:
        raise DuplicateCustomerError(f"A customer with email '{email}' already exists")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def _create_account(store: Store, data: CustomerData) -> Account | None:
    # Both blank means the customer does not want a login.
    if _blank(data.username) and _blank(data.password):
        return None
    if _blank(data.username):
        raise ValidationError("Username is required")
    if _blank(data.password):
        raise ValidationError("Password is required")

    username = data.username.strip()
    if store.find_account_by_username(username) is not None:
        raise DuplicateCustomerError("Username is already taken")

    return store.save_account(
        Account(
            id=None,
            username=username,
            password_hash=hash_password(data.password),
            role=CUSTOMER_ROLE,
        )
    )


def register_customer(store: Store, data: CustomerData) -> CustomerResult:
    """Validate and create a customer, with an optional login account.

    Raises:
        ValidationError: Malformed fields.
        DuplicateCustomerError: National ID, email or username already in use.
    """
    validate_customer_data(data)
    national_id = data.national_id.strip()
    email = _normalize_email(data.email)
    _ensure_unique(store, national_id=national_id, email=email)

    account = _create_account(store, data)
    customer = store.save_customer(
        Customer(
            id=None,
            national_id=national_id,
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=email,
            phone=None if _blank(data.phone) else data.phone.strip(),
            nationality=data.nationality,
            account_id=account.id if account else None,
        )
    )

    logger.info(
        "customer registered",
        extra={"extra_fields": {"customer_id": customer.id, "has_account": account is not None}},
    )
    return CustomerResult(
        customer=customer,
        effects=[
            Audit(
                action="CUSTOMER_CREATED",
                description=f"Customer {customer.id} registered",
                subject_type=SUBJECT_TYPE,
                subject_id=customer.id,
            )
        ],
    )


def update_customer(store: Store, customer_id: int, data: CustomerData) -> CustomerResult:
    """Edit a customer's personal data.

    Raises:
        CustomerNotFoundError: Unknown customer id.
        ValidationError / DuplicateCustomerError: As for registration.
    """
    customer = store.get_customer(customer_id, lock=True)
    if customer is None:
        raise CustomerNotFoundError(f"Customer {customer_id} not found")

    validate_customer_data(data)
    national_id = data.national_id.strip()
    email = _normalize_email(data.email)
    _ensure_unique(
        store,
        national_id=national_id,
        email=email if email != customer.email else None,
        exclude_customer_id=customer_id,
    )

    customer.national_id = national_id
    customer.first_name = data.first_name.strip()
    customer.last_name = data.last_name.strip()
    customer.email = email
    customer.phone = None if _blank(data.phone) else data.phone.strip()
    customer.nationality = data.nationality
    customer = store.save_customer(customer)

    logger.info("customer updated", extra={"extra_fields": {"customer_id": customer_id}})
    return CustomerResult(
        customer=customer,
        effects=[
            Audit(
                action="CUSTOMER_UPDATED",
                description=f"Customer {customer_id} updated",
                subject_type=SUBJECT_TYPE,
                subject_id=customer_id,
            )
        ],
    )


def summarize(customer: Customer, reservations: list[Reservation]) -> CustomerSummary:
    open_ = [r for r in reservations if r.status in OPEN_STATUSES]
    stays = [r.end_date for r in reservations if r.status == ReservationStatus.FINALIZED]
    return CustomerSummary(
        customer=customer,
        total_reservations=len(reservations),
        has_active_reservation=bool(open_),
        active_reservation_id=open_[0].id if open_ else None,
        last_stay=max(stays) if stays else None,
    )


def customer_summary(store: Store, customer_id: int) -> CustomerSummary:
    customer = store.get_customer(customer_id)
    if customer is None:
        raise CustomerNotFoundError(f"Customer {customer_id} not found")
    return summarize(customer, store.list_customer_reservations(customer_id))


def resolve_page(
    page: int | None,
    size: int | None,
    *,
    default_size: int,
    max_size: int,
) -> PageRequest:
    """Turn optional paging parameters into a concrete page.

    Missing or non-positive sizes fall back to ``default_size``; sizes above
    ``max_size`` are capped; negative pages become page 0.
    """
    resolved_page = page if page is not None and page >= 0 else 0
    if size is None or size <= 0:
        resolved_size = default_size
    else:
        resolved_size = min(size, max_size)
    return PageRequest(page=resolved_page, size=resolved_size)


def list_customers(
    store: Store,
    *,
    search: str | None,
    page: PageRequest,
) -> CustomerPage:
    """Page through customers, optionally filtered by national ID or name."""
    term = None if _blank(search) else search.strip()
    customers = store.search_customers(term, limit=page.size, offset=page.page * page.size)
    items = [
        summarize(c, store.list_customer_reservations(c.id)) for c in customers
    ]
    return CustomerPage(
        items=items,
        page=page.page,
        size=page.size,
        total=store.count_customers(term),
    )
