from __future__ import annotations

import pytest

from fixfly.core.models.domain.enums import NotificationPriority, NotificationRecipient, NotificationType
from fixfly.server.errors import NotFoundError
from fixfly.server.services.notifications import NotificationService

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(repos) -> NotificationService:
    return NotificationService(repos)


async def test_notify_truncates_and_stores(service, repos):
    notification = await service.notify(
        NotificationRecipient.user,
        7,
        "T" * 150,
        "M" * 600,
        notification_type=NotificationType.wallet,
        priority=NotificationPriority.high,
        data={"amount": 10},
    )
    await repos.commit()

    assert notification.id is not None
    assert notification.recipient_id == "7"
    assert len(notification.title) == 100
    assert len(notification.message) == 500
    assert notification.type == "wallet"
    assert notification.priority == "high"
    assert notification.data == {"amount": 10}
    assert notification.is_read is False


async def test_missing_recipients_are_skipped(service, repos):
    assert await service.notify_user(None, "Hi", "There") is None
    assert await service.notify_vendor(None, "Hi", "There") is None
    assert await service.notify_vendor("", "Hi", "There") is None
    assert await repos.notifications.count() == 0


async def test_list_for_recipient_newest_first(service, repos):
    await service.notify_vendor("101", "First", "one")
    await service.notify_vendor("101", "Second", "two")
    await service.notify_vendor("102", "Other", "three")
    await repos.commit()

    rows, total = await service.list_for(NotificationRecipient.vendor, "101")

    assert total == 2
    assert [row.title for row in rows] == ["Second", "First"]


async def test_mark_read(service, repos):
    notification = await service.notify_user(3, "Hello", "World")
    await repos.commit()

    read = await service.mark_read(notification.id, NotificationRecipient.user, 3)

    assert read.is_read is True
    assert read.read_at is not None
    unread, total = await service.list_for(NotificationRecipient.user, 3, unread_only=True)
    assert total == 0


async def test_mark_read_of_someone_else_is_not_found(service, repos):
    notification = await service.notify_user(3, "Hello", "World")
    await repos.commit()

    with pytest.raises(NotFoundError):
        await service.mark_read(notification.id, NotificationRecipient.user, 4)
    with pytest.raises(NotFoundError):
        await service.mark_read(notification.id, NotificationRecipient.vendor, 3)
    with pytest.raises(NotFoundError):
        await service.mark_read(9999, NotificationRecipient.user, 3)


async def test_mark_all_read(service, repos):
    for n in range(3):
        await service.notify_user(5, f"Note {n}", "body")
    await service.notify_user(6, "Other", "body")
    await repos.commit()

    assert await service.mark_all_read(NotificationRecipient.user, 5) == 3
    assert await service.mark_all_read(NotificationRecipient.user, 5) == 0

    _, unread_other = await service.list_for(NotificationRecipient.user, 6, unread_only=True)
    assert unread_other == 1
