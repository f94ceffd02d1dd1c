"""
In-app notifications for customers and vendors.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from fixfly.core.database import utc_now
from fixfly.core.database.entities.notifications import Notification
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import NotificationPriority, NotificationRecipient, NotificationType
from fixfly.server.errors import NotFoundError

logger = get_logger(__name__)


class NotificationService:
    """Create and read in-app notifications. Callers commit."""

    def __init__(self, repos: SqlRepoBundle):
        self.repos = repos

    async def notify(
        self,
        recipient_type: NotificationRecipient,
        recipient_id: str | int,
        title: str,
        message: str,
        *,
        notification_type: NotificationType = NotificationType.system,
        priority: NotificationPriority = NotificationPriority.medium,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(
            recipient_type=recipient_type.value,
            recipient_id=str(recipient_id),
            title=title[:100],
            message=message[:500],
            type=notification_type.value,
            priority=priority.value,
            data=data or {},
        )
        notification = await self.repos.notifications.create(notification)
        logger.debug(f"Notification {notification.id} queued for {recipient_type.value}:{recipient_id}")
        return notification

    async def notify_user(self, user_id: Optional[int], title: str, message: str, **kwargs: Any) -> Optional[Notification]:
        if user_id is None:
            return None
        return await self.notify(NotificationRecipient.user, user_id, title, message, **kwargs)

    async def notify_vendor(self, vendor_id: Optional[str], title: str, message: str, **kwargs: Any) -> Optional[Notification]:
        if not vendor_id:
            return None
        return await self.notify(NotificationRecipient.vendor, vendor_id, title, message, **kwargs)

    async def list_for(
        self,
        recipient_type: NotificationRecipient,
        recipient_id: str | int,
        *,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Notification], int]:
        return await self.repos.notifications.list_for_recipient(
            recipient_type.value, str(recipient_id), unread_only=unread_only, limit=limit, offset=offset
        )

    async def mark_read(
        self, notification_id: int, recipient_type: NotificationRecipient, recipient_id: str | int
    ) -> Notification:
        notification = await self.repos.notifications.get_by_id(notification_id)
        if (
            notification is None
            or notification.recipient_type != recipient_type.value
            or notification.recipient_id != str(recipient_id)
        ):
            raise NotFoundError("Notification not found")
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utc_now()
            notification = await self.repos.notifications.update(notification)
            await self.repos.commit()
        return notification

    async def mark_all_read(self, recipient_type: NotificationRecipient, recipient_id: str | int) -> int:
        updated = await self.repos.notifications.mark_all_read(recipient_type.value, str(recipient_id), utc_now())
        await self.repos.commit()
        return updated
