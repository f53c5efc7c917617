from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_APPOINTMENT_STATUSES = (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)


class Appointment(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    date: str                    # ISO date, YYYY-MM-DD
    time: str = "00:00"          # HH:MM
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    type: str = "Consultation"
    notes: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def scheduled_at(self) -> datetime:
        return datetime.fromisoformat(f"{self.date}T{self.time}")


class AppointmentCreate(BaseModel):
    doctor_id: str
    date: date
    time: str = Field("09:00", pattern=r"^\d{2}:\d{2}$")
    type: str = "Consultation"
    notes: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class PartySummary(BaseModel):
    """Minimal view of the other side of a join; a placeholder when missing."""
    id: str = ""
    name: str
    known: bool = True


class AppointmentView(BaseModel):
    appointment: Appointment
    patient: PartySummary
    doctor: PartySummary
