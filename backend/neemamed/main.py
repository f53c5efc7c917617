import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from neemamed.config import Settings, get_settings
from neemamed.database import async_session, create_all, engine
from neemamed.exceptions import (
    AccessDeniedError,
    AlreadyExistsError,
    DomainError,
    InvalidCredentialsError,
    NoSessionError,
    NotFoundError,
    StoreError,
    ValidationFailedError,
)
from neemamed.routers import appointments, doctors, lab_tests, medical_records, notifications
from neemamed.routers import auth as auth_router
from neemamed.seeds import seed_demo_data
from neemamed.store.auth_service import AuthService
from neemamed.store.record_store import RecordStore
from neemamed.store.storage import MemoryStorage, SQLStorage

logging.basicConfig(
    level=get_settings().log_level,
    format='%(asctime)s %(levelname)s: %(message)s'
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFoundError: 404,
    AlreadyExistsError: 409,
    InvalidCredentialsError: 401,
    NoSessionError: 401,
    AccessDeniedError: 403,
    ValidationFailedError: 400,
}


def build_store(settings: Settings) -> RecordStore:
    if settings.storage_backend == "memory":
        storage = MemoryStorage(quota_bytes=settings.memory_quota_bytes)
    else:
        storage = SQLStorage(async_session)
    return RecordStore(storage, key_prefix=settings.storage_key_prefix)


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Middleware to add no-cache headers so patient data is never cached."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


def create_app(store: Optional[RecordStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Create the API. Tests pass their own store; otherwise one is built from settings."""
    settings = settings or get_settings()
    uses_sql = store is None and settings.storage_backend != "memory"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: create tables then seed demo accounts
        if uses_sql:
            await create_all()
        if settings.seed_demo_data:
            await seed_demo_data(app.state.store, AuthService(app.state.store, settings))
        yield
        # Shutdown
        if uses_sql:
            await engine.dispose()

    app = FastAPI(
        title="NeemaMed Portal",
        description="Patient, doctor and laboratory portal backend",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or build_store(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(NoCacheMiddleware)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        status_code = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400
        )
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "error": exc.reason, "details": exc.details},
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error("Store error on %s %s: %s %s", request.method, request.url.path, exc.reason, exc.details)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Something went wrong. Please try again."},
        )

    app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(doctors.router, prefix="/api/doctors", tags=["Doctors"])
    app.include_router(appointments.router, prefix="/api/appointments", tags=["Appointments"])
    app.include_router(lab_tests.router, prefix="/api/lab-tests", tags=["Lab tests"])
    app.include_router(medical_records.router, prefix="/api/medical-records", tags=["Medical records"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])

    @app.get("/api/health")
    async def health_check():
        return {"status": "healthy", "service": "neemamed-portal"}

    return app


app = create_app()
