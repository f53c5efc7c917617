from typing import Optional
from pydantic import BaseModel


class MedicalRecord(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    date: str
    diagnosis: str
    prescription: str = ""
    notes: str = ""
    created_at: Optional[str] = None


class MedicalRecordCreate(BaseModel):
    patient_id: str
    date: Optional[str] = None
    diagnosis: str
    prescription: str = ""
    notes: str = ""
