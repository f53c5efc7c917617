from typing import Optional
from neemamed.schemas.account import AccountBase, DoctorAccount, parse_account
from neemamed.schemas.appointment import PartySummary
from neemamed.schemas.staff import StaffDirectoryEntry
from neemamed.store.record_store import Collection, RecordStore

UNKNOWN_PATIENT = PartySummary(name="Unknown Patient", known=False)
UNKNOWN_DOCTOR = PartySummary(name="Unknown Doctor", known=False)


class StaffService:
    """Staff directory lookups and account joins."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def list_doctors(self) -> list[StaffDirectoryEntry]:
        return [
            StaffDirectoryEntry.model_validate(r)
            for r in await self.store.list_all(Collection.DOCTORS)
        ]

    async def list_lab_technicians(self) -> list[StaffDirectoryEntry]:
        return [
            StaffDirectoryEntry.model_validate(r)
            for r in await self.store.list_all(Collection.LAB_TECHNICIANS)
        ]

    async def get_account(self, account_id: str) -> Optional[AccountBase]:
        record = await self.store.get_by_id(Collection.ACCOUNTS, account_id)
        return parse_account(record) if record else None

    async def get_doctor(self, account_id: str) -> Optional[DoctorAccount]:
        account = await self.get_account(account_id)
        return account if isinstance(account, DoctorAccount) else None

    async def accounts_by_id(self) -> dict[str, AccountBase]:
        """All accounts keyed by id, for joining a list in one read."""
        return {
            r["id"]: parse_account(r)
            for r in await self.store.list_all(Collection.ACCOUNTS)
        }


def summarize(account: Optional[AccountBase], placeholder: PartySummary) -> PartySummary:
    if account is None:
        return placeholder
    name = account.full_name
    if isinstance(account, DoctorAccount):
        name = f"Dr. {name}"
    return PartySummary(id=account.id, name=name)
