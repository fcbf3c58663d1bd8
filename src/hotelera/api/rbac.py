"""Caller role checks.

Authentication happens at the gateway, which forwards the caller's role in
the X-User-Role header.

Provides:
- Role hierarchy: customer < receptionist < admin
- require_role(): FastAPI dependency enforcing a minimum role
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from fastapi import Header, HTTPException

# Role hierarchy: lower index = less privilege
ROLE_HIERARCHY = ["customer", "receptionist", "admin"]

STAFF_ROLES = frozenset({"receptionist", "admin"})


@dataclass
class CallerContext:
    """Context returned by require_role."""

    role: str

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


def _role_level(role: str) -> int:
    """Get numeric level for role (higher = more privilege)."""
    try:
        return ROLE_HIERARCHY.index(role)
    except ValueError:
        return -1


def require_role(min_role: str) -> Callable[..., CallerContext]:
    """Create a dependency that requires a minimum caller role.

    Args:
        min_role: Minimum required role (customer, receptionist, admin).

    Returns:
        FastAPI dependency function.

    Usage:
        @router.post("/{reservation_id}/check-in")
        def endpoint(ctx: CallerContext = Depends(require_role("receptionist"))):
            ...
    """
    min_level = _role_level(min_role)
    if min_level < 0:
        raise ValueError(f"Invalid role: {min_role}")

    def dependency(
        x_user_role: str | None = Header(None, alias="X-User-Role"),
    ) -> CallerContext:
        if not x_user_role:
            raise HTTPException(status_code=403, detail="Missing caller role")

        role = x_user_role.strip().lower()
        if _role_level(role) < min_level:
            raise HTTPException(status_code=403, detail="Insufficient role")

        return CallerContext(role=role)

    return dependency
