import logging
from typing import Optional
from neemamed.exceptions import AccessDeniedError, AlreadyExistsError, NotFoundError, ValidationFailedError
from neemamed.schemas.account import AccountBase
from neemamed.schemas.appointment import Appointment
from neemamed.schemas.lab_test import (
    TERMINAL_LAB_TEST_STATUSES,
    LabTest,
    LabTestRequest,
    LabTestStats,
    LabTestStatus,
    LabTestUpdate,
    LabTestView,
)
from neemamed.services.notification_service import NotificationService
from neemamed.services.staff_service import UNKNOWN_DOCTOR, UNKNOWN_PATIENT, StaffService, summarize
from neemamed.store.record_store import Collection, RecordStore

logger = logging.getLogger(__name__)


def _newest_first(tests: list[LabTest]) -> list[LabTest]:
    return sorted(tests, key=lambda t: t.created_at or "", reverse=True)


class LabTestService:
    def __init__(self, store: RecordStore):
        self.store = store
        self.staff = StaffService(store)
        self.notifications = NotificationService(store)

    async def request(self, doctor: AccountBase, data: LabTestRequest) -> LabTest:
        if not doctor.can_request_lab_tests:
            raise AccessDeniedError("Only doctors can request lab tests")
        if not data.test_type.strip() or not data.description.strip():
            raise ValidationFailedError("Please fill in all fields")

        record = await self.store.get_by_id(Collection.APPOINTMENTS, data.appointment_id)
        if record is None:
            raise NotFoundError("Appointment not found", {"appointment_id": data.appointment_id})
        appointment = Appointment.model_validate(record)
        if appointment.doctor_id != doctor.id:
            raise AccessDeniedError("This appointment belongs to another doctor")

        existing = await self.store.filter_by_field(Collection.LAB_TESTS, "appointment_id", appointment.id)
        if any(t.get("status") == LabTestStatus.COMPLETED.value for t in existing):
            raise AlreadyExistsError(
                "A completed lab test already exists for this appointment",
                {"appointment_id": appointment.id},
            )

        created = await self.store.create(
            Collection.LAB_TESTS,
            {
                "appointment_id": appointment.id,
                "doctor_id": doctor.id,
                "patient_id": appointment.patient_id,
                "test_type": data.test_type.strip(),
                "description": data.description.strip(),
                "status": LabTestStatus.PENDING.value,
                "results": None,
            },
        )
        logger.info("Lab test %s requested for appointment %s", created["id"], appointment.id)
        return LabTest.model_validate(created)

    async def _all(self) -> list[LabTest]:
        return [LabTest.model_validate(r) for r in await self.store.list_all(Collection.LAB_TESTS)]

    async def _views(self, tests: list[LabTest]) -> list[LabTestView]:
        accounts = await self.staff.accounts_by_id()
        return [
            LabTestView(
                test=t,
                patient=summarize(accounts.get(t.patient_id), UNKNOWN_PATIENT),
                doctor=summarize(accounts.get(t.doctor_id), UNKNOWN_DOCTOR),
            )
            for t in _newest_first(tests)
        ]

    async def for_lab(self) -> list[LabTestView]:
        """Every test, newest first, with patient and doctor names."""
        return await self._views(await self._all())

    async def for_patient(self, patient_id: str) -> list[LabTestView]:
        records = await self.store.filter_by_field(Collection.LAB_TESTS, "patient_id", patient_id)
        return await self._views([LabTest.model_validate(r) for r in records])

    async def for_doctor(self, doctor_id: str) -> dict[str, list[LabTestView]]:
        """A doctor's tests grouped by patient id; tests for missing patients are skipped."""
        records = await self.store.filter_by_field(Collection.LAB_TESTS, "doctor_id", doctor_id)
        grouped: dict[str, list[LabTestView]] = {}
        for view in await self._views([LabTest.model_validate(r) for r in records]):
            if not view.patient.known:
                continue
            grouped.setdefault(view.test.patient_id, []).append(view)
        return grouped

    async def stats(self) -> LabTestStats:
        stats = LabTestStats()
        for test in await self._all():
            stats.total += 1
            setattr(stats, test.status.value, getattr(stats, test.status.value) + 1)
        return stats

    async def update(self, test_id: str, data: LabTestUpdate, actor: AccountBase) -> LabTest:
        if not actor.can_process_lab_tests:
            raise AccessDeniedError("Only lab assistants can update lab tests")
        record = await self.store.get_by_id(Collection.LAB_TESTS, test_id)
        if record is None:
            raise NotFoundError("Lab test not found", {"id": test_id})
        current = LabTest.model_validate(record)
        if current.status == data.status:
            return current
        if current.status in TERMINAL_LAB_TEST_STATUSES:
            raise ValidationFailedError(
                f"Lab test is already {current.status.value}",
                {"id": test_id, "status": current.status.value},
            )

        changes: dict = {"status": data.status.value}
        if data.results is not None:
            changes["results"] = data.results
        test = LabTest.model_validate(await self.store.update(Collection.LAB_TESTS, test_id, changes))

        if test.status == LabTestStatus.COMPLETED:
            for user_id in (test.patient_id, test.doctor_id):
                await self.notifications.notify(
                    user_id,
                    "Lab results available",
                    f"Results for the {test.test_type} test are ready.",
                )
        logger.info("Lab test %s moved to %s", test_id, test.status.value)
        return test


def search(views: list[LabTestView], query: Optional[str]) -> list[LabTestView]:
    """Case-insensitive match on test type, patient name or doctor name."""
    if not query:
        return views
    needle = query.lower()
    return [
        v for v in views
        if needle in v.test.test_type.lower()
        or needle in v.patient.name.lower()
        or needle in v.doctor.name.lower()
    ]
