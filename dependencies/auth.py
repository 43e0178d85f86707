from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.credentials import AuthError, CredentialStore, SupabaseCredentialStore
from core.supabase_client import get_supabase_client
from models.auth import ActorContext


bearer_scheme = HTTPBearer()


# ============================================================
# Credential store (overridden in tests / local dev)
# ============================================================
def get_credential_store() -> CredentialStore:
    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")
    return SupabaseCredentialStore(client)


# ============================================================
# AUTH DECODING (bearer token → ActorContext)
# ============================================================
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    store: CredentialStore = Depends(get_credential_store),
) -> ActorContext:

    try:
        return store.resolve_token(credentials.credentials)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


# ============================================================
# PERMISSION CHECK (DELEGATES TO permission_helpers)
# ============================================================
def requires_permission(permission: str):
    """
    Thin wrapper so routes can still import from dependencies.auth.
    Real RBAC logic lives in core.permission_helpers.
    """
    from core.permission_helpers import requires_permission as new_checker
    return new_checker(permission)

