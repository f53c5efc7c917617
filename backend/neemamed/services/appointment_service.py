"""
Appointment flows: patient booking, patient and doctor views, status
transitions, and the doctor's board with optimistic status changes.
"""

import logging
from datetime import date, timedelta
from typing import Optional
from neemamed.exceptions import AccessDeniedError, NotFoundError, StoreError, ValidationFailedError
from neemamed.schemas.account import AccountBase, DoctorAccount, PatientAccount
from neemamed.schemas.appointment import (
    TERMINAL_APPOINTMENT_STATUSES,
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    AppointmentView,
)
from neemamed.services.notification_service import NotificationService
from neemamed.services.staff_service import UNKNOWN_DOCTOR, UNKNOWN_PATIENT, StaffService, summarize
from neemamed.store.record_store import Collection, RecordStore

logger = logging.getLogger(__name__)

WINDOWS = ("all", "today", "week")


def _sort_key(appointment: Appointment):
    return (appointment.date, appointment.time)


class AppointmentService:
    def __init__(self, store: RecordStore):
        self.store = store
        self.staff = StaffService(store)
        self.notifications = NotificationService(store)

    async def book(self, patient: AccountBase, data: AppointmentCreate) -> Appointment:
        if not isinstance(patient, PatientAccount):
            raise AccessDeniedError("Only patients can book appointments")
        doctor = await self.staff.get_doctor(data.doctor_id)
        if doctor is None:
            raise NotFoundError("Doctor not found", {"doctor_id": data.doctor_id})

        record = await self.store.create(
            Collection.APPOINTMENTS,
            {
                "patient_id": patient.id,
                "doctor_id": doctor.id,
                "date": data.date.isoformat(),
                "time": data.time,
                "status": AppointmentStatus.SCHEDULED.value,
                "type": data.type,
                "notes": data.notes,
            },
        )
        appointment = Appointment.model_validate(record)
        await self.notifications.notify(
            doctor.id,
            "New appointment",
            f"{patient.full_name} booked a {appointment.type.lower()} on {appointment.date} at {appointment.time}.",
        )
        logger.info("Appointment %s booked with %s", appointment.id, doctor.id)
        return appointment

    async def get(self, appointment_id: str) -> Optional[Appointment]:
        record = await self.store.get_by_id(Collection.APPOINTMENTS, appointment_id)
        return Appointment.model_validate(record) if record else None

    async def for_patient(self, patient_id: str) -> list[Appointment]:
        """Scheduled appointments first, then by date and time."""
        records = await self.store.filter_by_field(Collection.APPOINTMENTS, "patient_id", patient_id)
        appointments = [Appointment.model_validate(r) for r in records]
        return sorted(
            appointments,
            key=lambda a: (a.status != AppointmentStatus.SCHEDULED, _sort_key(a)),
        )

    async def upcoming(self, patient_id: str, today: Optional[date] = None) -> list[Appointment]:
        today = (today or date.today()).isoformat()
        return [
            a for a in await self.for_patient(patient_id)
            if a.status == AppointmentStatus.SCHEDULED and a.date >= today
        ]

    async def for_doctor(
        self,
        doctor_id: str,
        window: str = "all",
        today: Optional[date] = None,
    ) -> list[AppointmentView]:
        """Doctor's appointments in a date window, earliest first, joined with patients."""
        if window not in WINDOWS:
            raise ValidationFailedError(f"Unknown window '{window}'", {"allowed": list(WINDOWS)})
        today = today or date.today()
        start, end = None, None
        if window == "today":
            start, end = today, today + timedelta(days=1)
        elif window == "week":
            start, end = today, today + timedelta(days=7)

        records = await self.store.filter_by_field(Collection.APPOINTMENTS, "doctor_id", doctor_id)
        appointments = [Appointment.model_validate(r) for r in records]
        if start is not None:
            appointments = [
                a for a in appointments
                if start.isoformat() <= a.date < end.isoformat()
            ]

        accounts = await self.staff.accounts_by_id()
        return [
            AppointmentView(
                appointment=a,
                patient=summarize(accounts.get(a.patient_id), UNKNOWN_PATIENT),
                doctor=summarize(accounts.get(a.doctor_id), UNKNOWN_DOCTOR),
            )
            for a in sorted(appointments, key=_sort_key)
        ]

    async def set_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        actor: AccountBase,
    ) -> Appointment:
        if not actor.can_manage_appointments:
            raise AccessDeniedError("Your role does not permit changing appointments")
        status = AppointmentStatus(status)

        current = await self.get(appointment_id)
        if current is None:
            raise NotFoundError("Appointment not found", {"id": appointment_id})
        if isinstance(actor, DoctorAccount) and current.doctor_id != actor.id:
            raise AccessDeniedError("This appointment belongs to another doctor")
        if current.status == status:
            return current
        if current.status in TERMINAL_APPOINTMENT_STATUSES:
            raise ValidationFailedError(
                f"Appointment is already {current.status.value}",
                {"id": appointment_id, "status": current.status.value},
            )

        record = await self.store.update(Collection.APPOINTMENTS, appointment_id, {"status": status.value})
        appointment = Appointment.model_validate(record)
        await self.notifications.notify(
            appointment.patient_id,
            f"Appointment {status.value}",
            f"Your appointment on {appointment.date} at {appointment.time} is now {status.value}.",
        )
        logger.info("Appointment %s moved to %s by %s", appointment_id, status.value, actor.id)
        return appointment


class AppointmentBoard:
    """
    A doctor's local list of appointments with optimistic status changes.

    ``change_status`` updates the local list first, then asks the store to
    confirm. If the store rejects the change, the list is re-fetched from the
    store and the error is re-raised, so the local view never keeps a value
    the store did not accept.
    """

    def __init__(
        self,
        service: AppointmentService,
        doctor: AccountBase,
        window: str = "all",
        today: Optional[date] = None,
    ):
        self.service = service
        self.doctor = doctor
        self.window = window
        self.today = today
        self.items: list[AppointmentView] = []

    async def refresh(self) -> list[AppointmentView]:
        self.items = await self.service.for_doctor(self.doctor.id, self.window, self.today)
        return self.items

    def by_status(self, status: AppointmentStatus) -> list[AppointmentView]:
        return [v for v in self.items if v.appointment.status == status]

    async def change_status(self, appointment_id: str, status: AppointmentStatus) -> Appointment:
        for index, view in enumerate(self.items):
            if view.appointment.id == appointment_id:
                optimistic = view.appointment.model_copy(update={"status": AppointmentStatus(status)})
                self.items[index] = view.model_copy(update={"appointment": optimistic})
                break
        try:
            return await self.service.set_status(appointment_id, status, self.doctor)
        except (NotFoundError, ValidationFailedError, AccessDeniedError, StoreError):
            logger.warning("Status change for %s rejected, reloading board", appointment_id)
            await self.refresh()
            raise
