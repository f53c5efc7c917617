from typing import Optional
from pydantic import BaseModel


class StaffDirectoryEntry(BaseModel):
    id: str
    account_id: Optional[str] = None
    staff_number: str
    name: str
    department: Optional[str] = None
    specialization: Optional[str] = None
    created_at: Optional[str] = None
