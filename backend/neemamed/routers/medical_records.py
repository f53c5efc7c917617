from fastapi import APIRouter, Depends
from neemamed.auth import get_store, require_role
from neemamed.schemas.account import AccountBase, Role
from neemamed.schemas.medical_record import MedicalRecordCreate
from neemamed.services.lab_test_service import LabTestService
from neemamed.services.medical_record_service import MedicalRecordService
from neemamed.store.record_store import RecordStore

router = APIRouter()


@router.get("")
async def my_medical_records(
    store: RecordStore = Depends(get_store),
    current_account: AccountBase = Depends(require_role(Role.PATIENT)),
):
    """A patient's records together with their lab tests."""
    records = await MedicalRecordService(store).for_patient(current_account.id)
    lab_tests = await LabTestService(store).for_patient(current_account.id)
    return {"records": records, "lab_tests": lab_tests}


@router.post("", status_code=201)
async def add_medical_record(
    data: MedicalRecordCreate,
    store: RecordStore = Depends(get_store),
    current_account: AccountBase = Depends(require_role(Role.DOCTOR)),
):
    return await MedicalRecordService(store).create(current_account, data)
