from fastapi import APIRouter, Depends
from neemamed.auth import get_current_account, get_store
from neemamed.schemas.account import AccountBase
from neemamed.services.staff_service import StaffService
from neemamed.store.record_store import RecordStore

router = APIRouter()


@router.get("")
async def list_doctors(
    store: RecordStore = Depends(get_store),
    current_account: AccountBase = Depends(get_current_account),
):
    """Doctor directory for the booking form."""
    doctors = await StaffService(store).list_doctors()
    return {"doctors": doctors, "total": len(doctors)}
