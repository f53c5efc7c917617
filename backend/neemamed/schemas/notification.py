from pydantic import BaseModel


class Notification(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    date: str
    read: bool = False


class NotificationListResponse(BaseModel):
    notifications: list[Notification]
    unread: int
