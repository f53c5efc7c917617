from fastapi import APIRouter, Depends, Query
from neemamed.auth import get_current_account, get_store, require_role
from neemamed.schemas.account import AccountBase, Role
from neemamed.schemas.lab_test import LabTestRequest, LabTestUpdate
from neemamed.services.lab_test_service import LabTestService, search
from neemamed.store.record_store import RecordStore

router = APIRouter()


def get_lab_test_service(store: RecordStore = Depends(get_store)) -> LabTestService:
    return LabTestService(store)


@router.post("", status_code=201)
async def request_lab_test(
    data: LabTestRequest,
    service: LabTestService = Depends(get_lab_test_service),
    current_account: AccountBase = Depends(require_role(Role.DOCTOR)),
):
    return await service.request(current_account, data)


@router.get("")
async def list_lab_tests(
    search_query: str = Query("", alias="search", description="Search by test type, patient or doctor"),
    service: LabTestService = Depends(get_lab_test_service),
    current_account: AccountBase = Depends(get_current_account),
):
    """What each role sees: the whole queue for the lab, own tests otherwise."""
    if current_account.can_process_lab_tests:
        views = search(await service.for_lab(), search_query)
        return {"tests": views, "stats": await service.stats()}
    if current_account.can_request_lab_tests:
        return {"by_patient": await service.for_doctor(current_account.id)}
    views = search(await service.for_patient(current_account.id), search_query)
    return {"tests": views}


@router.patch("/{test_id}")
async def update_lab_test(
    test_id: str,
    data: LabTestUpdate,
    service: LabTestService = Depends(get_lab_test_service),
    current_account: AccountBase = Depends(require_role(Role.LAB_ASSISTANT)),
):
    return await service.update(test_id, data, current_account)
