"""
Account schemas.

An account is a closed union over the five roles, discriminated by ``role``.
Role-specific behaviour (landing page, capabilities) lives on the variant
classes so callers never compare role strings themselves.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter


class Role(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    LAB_ASSISTANT = "lab_assistant"
    NURSE = "nurse"
    PHARMACIST = "pharmacist"


STAFF_ROLES = (Role.DOCTOR, Role.LAB_ASSISTANT, Role.NURSE, Role.PHARMACIST)


class AccountBase(BaseModel):
    id: str
    email: str
    # Stored in clear text. Replace with a salted hash before any real deployment.
    # Left out of the persisted session, so it may be absent there.
    password: Optional[str] = None
    first_name: str = ""
    surname: str = ""
    created_at: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.surname}".strip()

    @property
    def is_staff(self) -> bool:
        return True

    @property
    def home_path(self) -> str:
        raise NotImplementedError

    @property
    def can_manage_appointments(self) -> bool:
        return False

    @property
    def can_request_lab_tests(self) -> bool:
        return False

    @property
    def can_process_lab_tests(self) -> bool:
        return False

    def public_dict(self) -> dict:
        """Serialisable view without the password."""
        return self.model_dump(exclude={"password"})


class PatientAccount(AccountBase):
    role: Literal["patient"] = "patient"
    age: Optional[int] = None
    gender: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return False

    @property
    def home_path(self) -> str:
        return "/dashboard"


class StaffAccountBase(AccountBase):
    staff_number: Optional[str] = None
    department: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None


class DoctorAccount(StaffAccountBase):
    role: Literal["doctor"] = "doctor"

    @property
    def home_path(self) -> str:
        return "/doctor/dashboard"

    @property
    def can_manage_appointments(self) -> bool:
        return True

    @property
    def can_request_lab_tests(self) -> bool:
        return True


class LabAssistantAccount(StaffAccountBase):
    role: Literal["lab_assistant"] = "lab_assistant"

    @property
    def home_path(self) -> str:
        return "/lab/dashboard"

    @property
    def can_process_lab_tests(self) -> bool:
        return True


class NurseAccount(StaffAccountBase):
    role: Literal["nurse"] = "nurse"

    @property
    def home_path(self) -> str:
        return "/nurse/dashboard"

    @property
    def can_manage_appointments(self) -> bool:
        return True


class PharmacistAccount(StaffAccountBase):
    role: Literal["pharmacist"] = "pharmacist"

    @property
    def home_path(self) -> str:
        return "/pharmacy/dashboard"


Account = Annotated[
    Union[PatientAccount, DoctorAccount, LabAssistantAccount, NurseAccount, PharmacistAccount],
    Field(discriminator="role"),
]

account_adapter = TypeAdapter(Account)


def parse_account(data: dict) -> AccountBase:
    """Validate a stored account record into its role variant."""
    return account_adapter.validate_python(data)


class SignUpRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    first_name: str
    surname: str
    age: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = None


class SignInRequest(BaseModel):
    email: str
    password: str
