from fastapi import APIRouter, Depends, Request
from neemamed.auth import get_bearer_token, get_current_account, get_store
from neemamed.schemas.account import AccountBase, SignInRequest, SignUpRequest
from neemamed.store.auth_service import AuthService
from neemamed.store.record_store import RecordStore

router = APIRouter()


def get_auth_service(request: Request, store: RecordStore = Depends(get_store)) -> AuthService:
    return AuthService(store, request.app.state.settings)


@router.post("/signup", status_code=201)
async def sign_up(body: SignUpRequest, auth: AuthService = Depends(get_auth_service)):
    """Register a patient account. Staff accounts are provisioned separately."""
    profile = body.model_dump(exclude={"email", "password"})
    account = await auth.sign_up(body.email, body.password, profile)
    return {"account": account.public_dict(), "message": "Account created successfully! Please log in."}


@router.post("/signin")
async def sign_in(body: SignInRequest, auth: AuthService = Depends(get_auth_service)):
    session = await auth.sign_in(body.email, body.password)
    return session.public_dict()


@router.post("/staff/signin")
async def staff_sign_in(body: SignInRequest, auth: AuthService = Depends(get_auth_service)):
    """Staff portal sign-in; patients are refused."""
    session = await auth.sign_in(body.email, body.password, staff_only=True)
    return session.public_dict()


@router.get("/me")
async def me(account: AccountBase = Depends(get_current_account)):
    return {"account": account.public_dict(), "home_path": account.home_path}


@router.post("/signout")
async def sign_out(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
    account: AccountBase = Depends(get_current_account),
):
    """Revokes the caller's bearer token."""
    await auth.sign_out(get_bearer_token(request))
    return {"success": True, "message": "Signed out"}
