import pytest
from pydantic import ValidationError
from neemamed.schemas.account import (
    DoctorAccount,
    LabAssistantAccount,
    NurseAccount,
    PatientAccount,
    PharmacistAccount,
    parse_account,
)
from neemamed.schemas.appointment import Appointment


@pytest.mark.parametrize(
    "role,cls,home",
    [
        ("patient", PatientAccount, "/dashboard"),
        ("doctor", DoctorAccount, "/doctor/dashboard"),
        ("lab_assistant", LabAssistantAccount, "/lab/dashboard"),
        ("nurse", NurseAccount, "/nurse/dashboard"),
        ("pharmacist", PharmacistAccount, "/pharmacy/dashboard"),
    ],
)
def test_role_selects_account_variant(role, cls, home):
    account = parse_account({"id": "user_1", "email": "a@x.com", "password": "pw", "role": role})
    assert isinstance(account, cls)
    assert account.home_path == home
    assert account.is_staff == (role != "patient")


def test_capabilities_follow_role():
    base = {"id": "user_1", "email": "a@x.com", "password": "pw"}
    doctor = parse_account({**base, "role": "doctor"})
    nurse = parse_account({**base, "role": "nurse"})
    lab = parse_account({**base, "role": "lab_assistant"})
    patient = parse_account({**base, "role": "patient"})

    assert doctor.can_manage_appointments and doctor.can_request_lab_tests
    assert nurse.can_manage_appointments and not nurse.can_request_lab_tests
    assert lab.can_process_lab_tests and not lab.can_manage_appointments
    assert not (patient.can_manage_appointments or patient.can_process_lab_tests)


def test_unknown_role_is_rejected():
    with pytest.raises(ValidationError):
        parse_account({"id": "user_1", "email": "a@x.com", "password": "pw", "role": "janitor"})


def test_public_dict_hides_password():
    account = parse_account({"id": "user_1", "email": "a@x.com", "password": "pw", "role": "patient"})
    assert "password" not in account.public_dict()
    assert account.public_dict()["role"] == "patient"


def test_appointment_combines_date_and_time():
    appointment = Appointment(id="appointment_1", patient_id="p1", doctor_id="d1", date="2026-05-04", time="14:30")
    assert appointment.scheduled_at.isoformat() == "2026-05-04T14:30:00"
    assert appointment.status == "scheduled"
