from datetime import date
import pytest
from neemamed.exceptions import AccessDeniedError, NotFoundError, StoreError, ValidationFailedError
from neemamed.schemas.account import Role
from neemamed.schemas.appointment import AppointmentCreate, AppointmentStatus
from neemamed.services.appointment_service import AppointmentBoard, AppointmentService
from neemamed.services.notification_service import NotificationService
from neemamed.store.record_store import Collection

TODAY = date(2026, 5, 4)


@pytest.fixture
def service(store):
    return AppointmentService(store)


async def book(service, patient, doctor, day, time="09:00"):
    return await service.book(patient, AppointmentCreate(doctor_id=doctor.id, date=day, time=time))


async def test_booking_starts_scheduled_and_notifies_doctor(service, store, patient, doctor):
    appointment = await book(service, patient, doctor, TODAY, "10:30")

    assert appointment.status == AppointmentStatus.SCHEDULED
    assert appointment.patient_id == patient.id
    assert appointment.doctor_id == doctor.id
    assert appointment.date == "2026-05-04"
    assert appointment.time == "10:30"

    [notification] = await NotificationService(store).for_user(doctor.id)
    assert notification.title == "New appointment"
    assert notification.read is False


async def test_only_patients_book_with_real_doctors(service, patient, other_patient, doctor):
    with pytest.raises(AccessDeniedError):
        await book(service, doctor, doctor, TODAY)
    with pytest.raises(NotFoundError):
        await service.book(patient, AppointmentCreate(doctor_id=other_patient.id, date=TODAY))


async def test_patient_view_puts_scheduled_first(service, patient, doctor):
    late = await book(service, patient, doctor, date(2026, 6, 1))
    done = await book(service, patient, doctor, date(2026, 4, 1))
    early = await book(service, patient, doctor, date(2026, 5, 10))
    await service.set_status(done.id, AppointmentStatus.COMPLETED, doctor)

    ordered = await service.for_patient(patient.id)

    assert [a.id for a in ordered] == [early.id, late.id, done.id]


async def test_upcoming_excludes_past_and_finished(service, patient, doctor):
    past = await book(service, patient, doctor, date(2026, 5, 1))
    today = await book(service, patient, doctor, TODAY)
    cancelled = await book(service, patient, doctor, date(2026, 5, 9))
    await service.set_status(cancelled.id, AppointmentStatus.CANCELLED, doctor)

    upcoming = await service.upcoming(patient.id, TODAY)

    assert [a.id for a in upcoming] == [today.id]
    assert past.id not in [a.id for a in upcoming]


async def test_doctor_windows(service, patient, doctor):
    in_week = await book(service, patient, doctor, date(2026, 5, 8))
    later = await book(service, patient, doctor, date(2026, 5, 20))
    today_late = await book(service, patient, doctor, TODAY, "15:00")
    today_early = await book(service, patient, doctor, TODAY, "08:00")
    past = await book(service, patient, doctor, date(2026, 5, 3))

    today_ids = [v.appointment.id for v in await service.for_doctor(doctor.id, "today", TODAY)]
    week_ids = [v.appointment.id for v in await service.for_doctor(doctor.id, "week", TODAY)]
    all_ids = [v.appointment.id for v in await service.for_doctor(doctor.id, "all", TODAY)]

    assert today_ids == [today_early.id, today_late.id]
    assert week_ids == [today_early.id, today_late.id, in_week.id]
    assert all_ids == [past.id, today_early.id, today_late.id, in_week.id, later.id]

    with pytest.raises(ValidationFailedError):
        await service.for_doctor(doctor.id, "month", TODAY)


async def test_doctor_view_uses_placeholder_for_missing_patient(service, store, patient, doctor):
    await book(service, patient, doctor, TODAY)
    await store.delete(Collection.ACCOUNTS, patient.id)

    [view] = await service.for_doctor(doctor.id)

    assert view.patient.name == "Unknown Patient"
    assert view.patient.known is False
    assert view.doctor.name == "Dr. Greg House"


async def test_status_change_notifies_patient(service, store, patient, doctor):
    appointment = await book(service, patient, doctor, TODAY)

    updated = await service.set_status(appointment.id, AppointmentStatus.COMPLETED, doctor)

    assert updated.status == AppointmentStatus.COMPLETED
    assert updated.model_dump(exclude={"status"}) == appointment.model_dump(exclude={"status"})
    [notification] = await NotificationService(store).for_user(patient.id)
    assert notification.title == "Appointment completed"


async def test_status_rules(service, patient, doctor):
    appointment = await book(service, patient, doctor, TODAY)

    with pytest.raises(AccessDeniedError):
        await service.set_status(appointment.id, AppointmentStatus.CANCELLED, patient)
    with pytest.raises(NotFoundError):
        await service.set_status("appointment_missing", AppointmentStatus.CANCELLED, doctor)

    await service.set_status(appointment.id, AppointmentStatus.CANCELLED, doctor)
    # Repeating the same transition is harmless
    await service.set_status(appointment.id, AppointmentStatus.CANCELLED, doctor)
    with pytest.raises(ValidationFailedError):
        await service.set_status(appointment.id, AppointmentStatus.COMPLETED, doctor)


async def test_board_keeps_confirmed_change(service, patient, doctor):
    appointment = await book(service, patient, doctor, TODAY)
    board = AppointmentBoard(service, doctor, today=TODAY)
    await board.refresh()

    await board.change_status(appointment.id, AppointmentStatus.COMPLETED)

    assert [v.appointment.id for v in board.by_status(AppointmentStatus.COMPLETED)] == [appointment.id]
    assert (await service.get(appointment.id)).status == AppointmentStatus.COMPLETED


async def test_board_reloads_when_store_rejects(service, storage, patient, doctor):
    appointment = await book(service, patient, doctor, TODAY)
    board = AppointmentBoard(service, doctor, today=TODAY)
    await board.refresh()

    # Storage is already over quota, so every write is refused
    storage.quota_bytes = sum(len(k) + len(v) for k, v in storage._items.items()) - 1
    with pytest.raises(StoreError):
        await board.change_status(appointment.id, AppointmentStatus.COMPLETED)

    [view] = board.items
    assert view.appointment.status == AppointmentStatus.SCHEDULED


async def test_board_drops_appointments_that_vanished(service, store, patient, doctor):
    appointment = await book(service, patient, doctor, TODAY)
    board = AppointmentBoard(service, doctor, today=TODAY)
    await board.refresh()
    await store.delete(Collection.APPOINTMENTS, appointment.id)

    with pytest.raises(NotFoundError):
        await board.change_status(appointment.id, AppointmentStatus.CANCELLED)

    assert board.items == []


async def test_doctors_only_change_their_own_appointments(service, auth, patient, doctor):
    appointment = await book(service, patient, doctor, TODAY)
    other_doctor = await auth.sign_up(
        "wilson@example.com", "doctor2", {"first_name": "James", "surname": "Wilson"}, role=Role.DOCTOR
    )

    with pytest.raises(AccessDeniedError):
        await service.set_status(appointment.id, AppointmentStatus.CANCELLED, other_doctor)
    assert (await service.get(appointment.id)).status == AppointmentStatus.SCHEDULED

    nurse = await auth.sign_up("nurse@example.com", "nurse01", {"first_name": "Carla"}, role=Role.NURSE)
    updated = await service.set_status(appointment.id, AppointmentStatus.CANCELLED, nurse)
    assert updated.status == AppointmentStatus.CANCELLED
