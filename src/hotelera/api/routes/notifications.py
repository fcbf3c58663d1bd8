"""Front desk notification feed."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from hotelera.api.rbac import CallerContext, require_role

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    ctx: CallerContext = Depends(require_role("receptionist")),
    limit: int = Query(50, ge=1, le=200),
) -> dict:
    from hotelera.infra.db import txn
    from hotelera.infra.repositories.activity_repository import list_unread_notifications

    with txn() as cur:
        items = list_unread_notifications(cur, limit=limit)
    return {"items": items}


@router.post("/{notification_id}/read")
def mark_read(
    notification_id: int = Path(..., description="Notification ID"),
    ctx: CallerContext = Depends(require_role("receptionist")),
) -> dict:
    from hotelera.infra.db import txn
    from hotelera.infra.repositories.activity_repository import mark_notification_read

    with txn() as cur:
        found = mark_notification_read(cur, notification_id)
    if not found:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"id": notification_id, "read": True}
