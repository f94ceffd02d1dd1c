"""
Notification Endpoints.

In-app notifications for the authenticated customer or vendor.
"""

from fastapi import APIRouter, Query

from fixfly.core.models.io.common import Page
from fixfly.core.models.io.notifications import MarkAllReadResponse, NotificationRead
from fixfly.server.services.deps import NotificationServiceDep, RecipientDep

router = APIRouter()


@router.get("", response_model=Page[NotificationRead], summary="My Notifications")
async def list_notifications(
    recipient: RecipientDep,
    notifications: NotificationServiceDep,
    unread: bool = False,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[NotificationRead]:
    items, total = await notifications.list_for(*recipient, unread_only=unread, limit=limit, offset=offset)
    return Page[NotificationRead](
        items=[NotificationRead.model_validate(n) for n in items], total=total, limit=limit, offset=offset
    )


@router.patch("/read-all", response_model=MarkAllReadResponse, summary="Mark All Read")
async def mark_all_read(recipient: RecipientDep, notifications: NotificationServiceDep) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await notifications.mark_all_read(*recipient))


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationRead,
    summary="Mark Read",
    responses={404: {"description": "Notification not found"}},
)
async def mark_read(notification_id: int, recipient: RecipientDep, notifications: NotificationServiceDep) -> NotificationRead:
    return NotificationRead.model_validate(await notifications.mark_read(notification_id, *recipient))
