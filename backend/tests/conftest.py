from datetime import datetime, timedelta, timezone
import pytest
from fastapi.testclient import TestClient
from neemamed.config import Settings
from neemamed.database import create_all, make_engine
from neemamed.main import create_app
from neemamed.schemas.account import Role
from neemamed.store.auth_service import AuthService
from neemamed.store.record_store import RecordStore
from neemamed.store.storage import MemoryStorage


class FakeClock:
    def __init__(self, now: datetime = None):
        self.now = now or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings():
    return Settings(
        storage_backend="memory",
        seed_demo_data=False,
        jwt_secret_key="test-secret",
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return RecordStore(storage)


@pytest.fixture
async def sql_engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def auth(store, settings, clock):
    return AuthService(store, settings, clock)


@pytest.fixture
async def patient(auth):
    return await auth.sign_up(
        "pat@example.com",
        "secret1",
        {"first_name": "Pat", "surname": "Lee", "age": 30, "gender": "female"},
    )


@pytest.fixture
async def other_patient(auth):
    return await auth.sign_up(
        "sam@example.com",
        "secret2",
        {"first_name": "Sam", "surname": "Okafor", "age": 52, "gender": "male"},
    )


@pytest.fixture
async def doctor(auth):
    return await auth.sign_up(
        "house@example.com",
        "doctor1",
        {"first_name": "Greg", "surname": "House", "staff_number": "DOC900", "department": "Diagnostics"},
        role=Role.DOCTOR,
    )


@pytest.fixture
async def lab_assistant(auth):
    return await auth.sign_up(
        "lab@example.com",
        "labtech1",
        {"first_name": "Ana", "surname": "Silva", "staff_number": "LAB900", "department": "Laboratory"},
        role=Role.LAB_ASSISTANT,
    )


@pytest.fixture
def api_settings():
    return Settings(
        storage_backend="memory",
        seed_demo_data=True,
        jwt_secret_key="test-secret",
    )


@pytest.fixture
def client(api_settings):
    app = create_app(store=RecordStore(MemoryStorage()), settings=api_settings)
    with TestClient(app) as test_client:
        yield test_client
