from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import HTTPAuthorizationCredentials

from core.credentials import AuthError, CredentialStore
from core.logging_config import logger
from core.permission_helpers import permissions_for, role_display_name
from dependencies.auth import bearer_scheme, get_credential_store, get_current_user
from models.auth import ActorContext, ActorRead, LoginRequest, TokenResponse


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# ============================================================
# LOGIN
# ============================================================
@router.post("/login", response_model=TokenResponse, summary="Authenticate user")
def login(payload: LoginRequest, store: CredentialStore = Depends(get_credential_store)):

    username = payload.username.strip()
    if not username or not payload.password:
        raise HTTPException(400, "Username and password are required")

    try:
        session = store.login(username, payload.password)
    except AuthError:
        # Don't tell the caller whether the user or the role was the problem
        raise HTTPException(
            status_code=401,
            detail="Invalid username or password"
        )

    logger.info(f"Login: {session.actor.id} as {session.actor.role}")
    return TokenResponse(access_token=session.access_token, actor=session.actor)


# ============================================================
# LOGOUT
# ============================================================
@router.post("/logout", summary="End the current session")
def logout(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    current_user: ActorContext = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    store.logout(credentials.credentials)
    logger.info(f"Logout: {current_user.id}")
    return {"success": True}


# ============================================================
# CURRENT USER
# ============================================================
@router.get("/me", response_model=ActorRead, summary="Current authenticated user")
def read_me(current_user: ActorContext = Depends(get_current_user)):
    return ActorRead(
        actor=current_user,
        role_display_name=role_display_name(current_user.role),
        permissions=sorted(permissions_for(current_user.role)),
    )
