from typing import List, Optional
from pydantic import BaseModel, ConfigDict


# -----------------------------------------------------
# ACTOR CONTEXT (authenticated identity for the session)
# -----------------------------------------------------
class ActorContext(BaseModel):
    """
    Resolved once at login and never re-derived per call.

    ``role`` stays a plain string so a malformed session degrades to
    "no access" in the permission lookup instead of failing validation.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    role: str
    email: Optional[str] = None
    name: Optional[str] = None


# -----------------------------------------------------
# LOGIN REQUEST
# -----------------------------------------------------
class LoginRequest(BaseModel):
    username: str             # Supabase store treats this as the email
    password: str


# -----------------------------------------------------
# TOKEN RESPONSE
# -----------------------------------------------------
class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    actor: ActorContext


class ActorRead(BaseModel):
    actor: ActorContext
    role_display_name: str
    permissions: List[str]
