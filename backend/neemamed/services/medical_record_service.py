from datetime import date
from neemamed.exceptions import AccessDeniedError, NotFoundError
from neemamed.schemas.account import AccountBase, DoctorAccount, PatientAccount
from neemamed.schemas.medical_record import MedicalRecord, MedicalRecordCreate
from neemamed.services.staff_service import StaffService
from neemamed.store.record_store import Collection, RecordStore


class MedicalRecordService:
    def __init__(self, store: RecordStore):
        self.store = store
        self.staff = StaffService(store)

    async def create(self, doctor: AccountBase, data: MedicalRecordCreate) -> MedicalRecord:
        if not isinstance(doctor, DoctorAccount):
            raise AccessDeniedError("Only doctors can write medical records")
        patient = await self.staff.get_account(data.patient_id)
        if not isinstance(patient, PatientAccount):
            raise NotFoundError("Patient not found", {"patient_id": data.patient_id})

        record = await self.store.create(
            Collection.MEDICAL_RECORDS,
            {
                "patient_id": patient.id,
                "doctor_id": doctor.id,
                "date": data.date or date.today().isoformat(),
                "diagnosis": data.diagnosis,
                "prescription": data.prescription,
                "notes": data.notes,
            },
        )
        return MedicalRecord.model_validate(record)

    async def for_patient(self, patient_id: str) -> list[MedicalRecord]:
        records = await self.store.filter_by_field(Collection.MEDICAL_RECORDS, "patient_id", patient_id)
        return sorted(
            (MedicalRecord.model_validate(r) for r in records),
            key=lambda r: (r.date, r.created_at or ""),
            reverse=True,
        )
