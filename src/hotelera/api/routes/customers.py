"""Customer endpoints: registration, edits, listing and deletion.

Responses carry personal data for the front desk; logs carry ids only.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel

from hotelera.api.deps import get_app_settings
from hotelera.api.rbac import CallerContext, require_role
from hotelera.domain import customer_retention, customers
from hotelera.domain.models import Customer, CustomerSummary
from hotelera.infra.settings import Settings


class CustomerRequest(BaseModel):
    national_id: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    nationality: str | None = None


class RegisterCustomerRequest(CustomerRequest):
    """Registration may also open a login account."""

    username: str | None = None
    password: str | None = None


router = APIRouter(prefix="/customers", tags=["customers"])


def customer_to_dict(customer: Customer) -> dict:
    return {
        "id": customer.id,
        "national_id": customer.national_id,
        "first_name": customer.first_name,
        "last_name": customer.last_name,
        "email": customer.email,
        "phone": customer.phone,
        "nationality": customer.nationality,
        "loyalty_points": customer.loyalty_points,
        "has_account": customer.account_id is not None,
    }


def summary_to_dict(summary: CustomerSummary) -> dict:
    return {
        **customer_to_dict(summary.customer),
        "total_reservations": summary.total_reservations,
        "has_active_reservation": summary.has_active_reservation,
        "active_reservation_id": summary.active_reservation_id,
        "last_stay": summary.last_stay.isoformat() if summary.last_stay else None,
    }


def _data(body: CustomerRequest) -> customers.CustomerData:
    return customers.CustomerData(
        national_id=body.national_id,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        phone=body.phone,
        nationality=body.nationality,
        username=getattr(body, "username", None),
        password=getattr(body, "password", None),
    )


@router.get("")
def list_customers(
    ctx: CallerContext = Depends(require_role("receptionist")),
    settings: Settings = Depends(get_app_settings),
    search: str | None = Query(None, description="National ID or name fragment"),
    page: int | None = Query(None, description="Zero-based page number"),
    size: int | None = Query(None, description="Page size"),
) -> dict:
    """Page through customers with their reservation summary.

    Requires receptionist role or higher.
    """
    from hotelera.infra.store import unit_of_work

    page_request = customers.resolve_page(
        page,
        size,
        default_size=settings.default_page_size,
        max_size=settings.max_page_size,
    )
    with unit_of_work() as store:
        result = customers.list_customers(store, search=search, page=page_request)

    return {
        "items": [summary_to_dict(s) for s in result.items],
        "page": result.page,
        "size": result.size,
        "total": result.total,
    }


@router.get("/{customer_id}")
def get_customer(
    customer_id: int = Path(..., description="Customer ID"),
    ctx: CallerContext = Depends(require_role("receptionist")),
) -> dict:
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        summary = customers.customer_summary(store, customer_id)
    return summary_to_dict(summary)


@router.post("", status_code=201)
def register_customer(
    body: RegisterCustomerRequest,
    ctx: CallerContext = Depends(require_role("receptionist")),
) -> dict:
    """Register a customer, optionally with a login account.

    Raises 400 on malformed fields or duplicated national ID, email or username.
    """
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = customers.register_customer(store, _data(body))
    dispatch(result.effects)
    return customer_to_dict(result.customer)


@router.put("/{customer_id}")
def update_customer(
    body: CustomerRequest,
    customer_id: int = Path(..., description="Customer ID"),
    ctx: CallerContext = Depends(require_role("receptionist")),
) -> dict:
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = customers.update_customer(store, customer_id, _data(body))
    dispatch(result.effects)
    return customer_to_dict(result.customer)


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int = Path(..., description="Customer ID"),
    ctx: CallerContext = Depends(require_role("admin")),
) -> dict:
    """Delete a customer: anonymized if they have stayed, erased otherwise.

    Raises 409 with ``blocking_reservations`` while open reservations remain.
    Requires admin role.
    """
    from hotelera.infra.sinks import dispatch
    from hotelera.infra.store import unit_of_work

    with unit_of_work() as store:
        result = customer_retention.delete_customer(store, customer_id)
    dispatch(result.effects)
    return {"id": customer_id, "outcome": result.outcome.value}
