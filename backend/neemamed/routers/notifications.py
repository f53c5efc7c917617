from fastapi import APIRouter, Depends
from neemamed.auth import get_current_account, get_store
from neemamed.schemas.account import AccountBase
from neemamed.schemas.notification import NotificationListResponse
from neemamed.services.notification_service import NotificationService
from neemamed.store.record_store import RecordStore

router = APIRouter()


def get_notification_service(store: RecordStore = Depends(get_store)) -> NotificationService:
    return NotificationService(store)


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    service: NotificationService = Depends(get_notification_service),
    current_account: AccountBase = Depends(get_current_account),
):
    notifications = await service.for_user(current_account.id)
    return NotificationListResponse(
        notifications=notifications,
        unread=sum(1 for n in notifications if not n.read),
    )


@router.post("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service),
    current_account: AccountBase = Depends(get_current_account),
):
    return await service.mark_as_read(notification_id, current_account.id)
