"""
Authentication shim layered over the record store.

Accounts live in the ``users`` collection; the signed-in session lives under
its own key with an expiry 24 hours (configurable) after sign-in.

Passwords are stored and compared in clear text. This keeps behaviour
compatible with existing demo data and must be replaced by a salted hash
comparison before production use.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from neemamed.auth import create_token, decode_claims
from neemamed.config import Settings, get_settings
from neemamed.exceptions import (
    AccessDeniedError,
    AlreadyExistsError,
    InvalidCredentialsError,
    NoSessionError,
)
from neemamed.schemas.account import AccountBase, DoctorAccount, Role, parse_account
from neemamed.schemas.session import Session
from neemamed.store.record_store import Collection, RecordStore

logger = logging.getLogger(__name__)

DIRECTORY_COLLECTIONS = {
    Role.DOCTOR: Collection.DOCTORS,
    Role.LAB_ASSISTANT: Collection.LAB_TECHNICIANS,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    def __init__(
        self,
        store: RecordStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(seconds=self.settings.session_ttl_seconds)

    async def sign_up(
        self,
        email: str,
        password: str,
        profile: Optional[dict] = None,
        role: Role = Role.PATIENT,
    ) -> AccountBase:
        """
        Create an account. The role is patient unless the caller registers
        staff explicitly; a role inside ``profile`` is ignored.
        """
        email = email.strip()
        fields = {k: v for k, v in (profile or {}).items() if k not in ("id", "role", "email", "password")}
        record = {**fields, "email": email, "password": password, "role": Role(role).value}
        # Validate before writing so a bad profile never reaches storage
        parse_account({**record, "id": "pending"})

        try:
            created = await self.store.create_unique(Collection.ACCOUNTS, "email", record)
        except AlreadyExistsError as e:
            raise AlreadyExistsError("An account with this email already exists", {"email": email}) from e
        account = parse_account(created)
        if Role(role) in DIRECTORY_COLLECTIONS:
            await self._add_directory_entry(account)
        logger.info("Registered %s account %s", account.role, account.id)
        return account

    async def _add_directory_entry(self, account: AccountBase) -> None:
        name = account.full_name
        if isinstance(account, DoctorAccount):
            name = f"Dr. {name}"
        await self.store.create(
            DIRECTORY_COLLECTIONS[Role(account.role)],
            {
                "account_id": account.id,
                "staff_number": account.staff_number or "",
                "name": name,
                "department": account.department,
            },
        )

    async def sign_in(self, email: str, password: str, staff_only: bool = False) -> Session:
        record = await self.store.find_one(Collection.ACCOUNTS, "email", email.strip())
        stored = record.get("password") if record else None
        if not stored or not secrets.compare_digest(str(stored).encode(), password.encode()):
            logger.info("Failed sign-in for %s", email)
            raise InvalidCredentialsError()

        account = parse_account(record)
        if staff_only and not account.is_staff:
            raise AccessDeniedError("Access denied. This portal is for staff members only.")

        expires_at = self.clock() + self.session_ttl
        session = Session(
            account=account,
            expires_at=expires_at,
            access_token=create_token(account, expires_at, self.settings.jwt_secret_key),
        )
        await self.store.write_session(
            session.model_dump(mode="json", exclude={"account": {"password"}})
        )
        logger.info("Signed in %s (%s)", account.id, account.role)
        return session

    async def get_session(self) -> Session:
        data = await self.store.read_session()
        if data is None:
            raise NoSessionError()
        session = Session.model_validate(data)
        if session.is_expired(self.clock()):
            await self.store.clear_session()
            raise NoSessionError("Session expired")
        return session

    async def get_current_user(self) -> AccountBase:
        session = await self.get_session()
        record = await self.store.get_by_id(Collection.ACCOUNTS, session.account.id)
        if record is None:
            await self.store.clear_session()
            raise NoSessionError("Account no longer exists")
        return parse_account(record)

    async def sign_out(self, access_token: Optional[str] = None) -> None:
        """
        End a session. Without a token this clears the stored session. With a
        token, that token is revoked and the stored session is cleared only if
        it was opened with the same token.
        """
        if access_token is None:
            await self.store.clear_session()
            return

        claims = decode_claims(access_token, self.settings.jwt_secret_key)
        if claims and claims.get("jti"):
            await self.store.create(
                Collection.REVOKED_TOKENS,
                {
                    "jti": claims["jti"],
                    "account_id": claims.get("sub"),
                    "expires_at": claims.get("exp"),
                },
            )
            logger.info("Revoked token for %s", claims.get("sub"))

        data = await self.store.read_session()
        if data is not None and data.get("access_token") == access_token:
            await self.store.clear_session()
