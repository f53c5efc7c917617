from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from neemamed.auth import get_current_account, get_store, require_role
from neemamed.schemas.account import AccountBase, Role
from neemamed.schemas.appointment import AppointmentCreate, AppointmentStatusUpdate
from neemamed.services.appointment_service import AppointmentService
from neemamed.store.record_store import RecordStore

router = APIRouter()


def get_appointment_service(store: RecordStore = Depends(get_store)) -> AppointmentService:
    return AppointmentService(store)


@router.get("")
async def list_my_appointments(
    today: Optional[date] = Query(None),
    service: AppointmentService = Depends(get_appointment_service),
    current_account: AccountBase = Depends(require_role(Role.PATIENT)),
):
    appointments = await service.for_patient(current_account.id)
    upcoming = await service.upcoming(current_account.id, today)
    return {"appointments": appointments, "upcoming": upcoming, "total": len(appointments)}


@router.post("", status_code=201)
async def book_appointment(
    data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
    current_account: AccountBase = Depends(get_current_account),
):
    return await service.book(current_account, data)


@router.get("/doctor")
async def list_doctor_appointments(
    window: str = Query("all", description="all, today or week"),
    today: Optional[date] = Query(None),
    service: AppointmentService = Depends(get_appointment_service),
    current_account: AccountBase = Depends(require_role(Role.DOCTOR)),
):
    views = await service.for_doctor(current_account.id, window, today)
    return {"appointments": views, "total": len(views)}


@router.patch("/{appointment_id}/status")
async def change_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    service: AppointmentService = Depends(get_appointment_service),
    current_account: AccountBase = Depends(get_current_account),
):
    return await service.set_status(appointment_id, data.status, current_account)
