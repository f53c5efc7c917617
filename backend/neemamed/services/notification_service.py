import logging
from neemamed.exceptions import AccessDeniedError, NotFoundError
from neemamed.schemas.notification import Notification
from neemamed.store.record_store import Collection, RecordStore, utcnow_iso

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def notify(self, user_id: str, title: str, message: str) -> Notification:
        record = await self.store.create(
            Collection.NOTIFICATIONS,
            {
                "user_id": user_id,
                "title": title,
                "message": message,
                "date": utcnow_iso(),
                "read": False,
            },
        )
        return Notification.model_validate(record)

    async def for_user(self, user_id: str) -> list[Notification]:
        """Newest first."""
        records = await self.store.filter_by_field(Collection.NOTIFICATIONS, "user_id", user_id)
        notifications = [Notification.model_validate(r) for r in records]
        return sorted(notifications, key=lambda n: n.date, reverse=True)

    async def unread_count(self, user_id: str) -> int:
        return sum(1 for n in await self.for_user(user_id) if not n.read)

    async def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        record = await self.store.get_by_id(Collection.NOTIFICATIONS, notification_id)
        if record is None:
            raise NotFoundError("Notification not found", {"id": notification_id})
        if record.get("user_id") != user_id:
            raise AccessDeniedError("This notification belongs to another user")
        return Notification.model_validate(await self.store.mark_as_read(notification_id))
