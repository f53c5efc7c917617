import logging
from neemamed.schemas.account import Role
from neemamed.store.auth_service import AuthService
from neemamed.store.record_store import Collection, RecordStore

logger = logging.getLogger(__name__)

DEMO_ACCOUNTS = [
    {
        "email": "demo@example.com",
        "password": "demo123",
        "role": Role.PATIENT,
        "profile": {"first_name": "Demo", "surname": "User", "age": 30, "gender": "male"},
    },
    {
        "email": "doctor@example.com",
        "password": "doctor123",
        "role": Role.DOCTOR,
        "profile": {
            "first_name": "Sarah",
            "surname": "Johnson",
            "age": 35,
            "gender": "female",
            "staff_number": "DOC123",
            "department": "General Practice",
        },
    },
    {
        "email": "lab@example.com",
        "password": "lab123",
        "role": Role.LAB_ASSISTANT,
        "profile": {
            "first_name": "Michael",
            "surname": "Chen",
            "age": 40,
            "gender": "male",
            "staff_number": "LAB456",
            "department": "Laboratory",
        },
    },
]


async def seed_demo_data(store: RecordStore, auth: AuthService) -> int:
    """Create the demo accounts that do not exist yet. Idempotent."""
    created = 0
    for demo in DEMO_ACCOUNTS:
        if await store.find_one(Collection.ACCOUNTS, "email", demo["email"]):
            continue
        await auth.sign_up(demo["email"], demo["password"], demo["profile"], role=demo["role"])
        created += 1
    if created:
        logger.info("Seeded %d demo accounts", created)
    return created
