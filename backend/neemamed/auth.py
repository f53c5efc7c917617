"""
Auth module: JWT creation/validation and the FastAPI dependencies that
resolve the calling account.

Tokens are issued when a session is opened (see store.auth_service) and carry
the account id as ``sub``, the session expiry as ``exp`` and a unique ``jti``.
Unlike the session kept in the record store, the token travels with each
request, so several clients can be signed in at once. Signing out records the
token's ``jti`` in the revoked_tokens collection.
"""

import uuid
from datetime import datetime
from typing import Optional
from jose import jwt, JWTError
from fastapi import Depends, Request
from neemamed.config import get_settings
from neemamed.exceptions import AccessDeniedError, NoSessionError
from neemamed.schemas.account import AccountBase, Role, parse_account
from neemamed.store.record_store import Collection, RecordStore

ALGORITHM = "HS256"


def create_token(account: AccountBase, expires_at: datetime, secret_key: Optional[str] = None) -> str:
    """Create a signed JWT for the given account."""
    payload = {
        "sub": account.id,
        "role": account.role,
        "exp": int(expires_at.timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret_key or get_settings().jwt_secret_key, algorithm=ALGORITHM)


def decode_claims(token: str, secret_key: Optional[str] = None) -> Optional[dict]:
    """Decode and validate a JWT. Returns its claims, or None if invalid/expired."""
    try:
        return jwt.decode(token, secret_key or get_settings().jwt_secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


def decode_token(token: str, secret_key: Optional[str] = None) -> Optional[str]:
    """Returns the account id of a valid token, or None."""
    claims = decode_claims(token, secret_key)
    return claims.get("sub") if claims else None


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise NoSessionError("Authentication required")
    return auth_header[7:]


async def get_current_account(
    request: Request,
    store: RecordStore = Depends(get_store),
) -> AccountBase:
    """FastAPI dependency. Resolves the bearer token to a stored account."""
    claims = decode_claims(get_bearer_token(request), request.app.state.settings.jwt_secret_key)
    if not claims or not claims.get("sub"):
        raise NoSessionError("Session expired or invalid")
    if await store.find_one(Collection.REVOKED_TOKENS, "jti", claims.get("jti")):
        raise NoSessionError("Session has ended")
    record = await store.get_by_id(Collection.ACCOUNTS, claims["sub"])
    if record is None:
        raise NoSessionError("Account no longer exists")
    return parse_account(record)


def require_role(*roles: Role):
    allowed = {r.value for r in roles}

    async def _inner(account: AccountBase = Depends(get_current_account)) -> AccountBase:
        if account.role not in allowed:
            raise AccessDeniedError(
                "Your role does not permit this action",
                {"role": account.role, "allowed": sorted(allowed)},
            )
        return account

    return _inner
