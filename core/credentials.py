# core/credentials.py

"""
Pluggable identity lookup.

Routers never know how a user is authenticated; they ask a
``CredentialStore`` for an ``ActorContext``. The role is resolved here,
once, and carried unchanged for the whole session.
"""

import hashlib
import hmac
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from jose import JWTError, jwt

from core.logging_config import logger
from models.auth import ActorContext
from models.enums import Role


class AuthError(Exception):
    """Credentials or token rejected."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class Session:
    actor: ActorContext
    access_token: str


def resolve_role(raw) -> Role:
    try:
        return Role(str(raw).strip().lower())
    except ValueError:
        raise AuthError(f"Unrecognized role: {raw!r}")


class CredentialStore(ABC):

    @abstractmethod
    def login(self, username: str, secret: str) -> Session:
        """Authenticate and open a session."""

    @abstractmethod
    def resolve_token(self, token: str) -> ActorContext:
        """Map a bearer token back to the actor that owns it."""

    @abstractmethod
    def logout(self, token: str):
        """End the session behind the token."""

    def authenticate(self, username: str, secret: str) -> ActorContext:
        return self.login(username, secret).actor


# ============================================================
# Supabase Auth
# ============================================================
def _issued_role(token: str) -> Role:
    """
    Role baked into the access token when Supabase issued it at sign-in.
    Only call after the token itself has been validated.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        raise AuthError("Invalid or expired authentication token")

    return resolve_role((claims.get("app_metadata") or {}).get("role"))


class SupabaseCredentialStore(CredentialStore):
    """
    Email/password sign-in against Supabase GoTrue.

    Role comes only from the auth user's ``app_metadata``, which users
    cannot edit themselves. ``user_metadata`` and profile rows never
    grant a role. Per request the actor carries the role issued with
    the token; if the account's role has changed since sign-in the
    token is refused and the user must sign in again.
    """

    def __init__(self, client):
        if client is None:
            raise RuntimeError("Supabase client not configured")
        self.client = client

    @staticmethod
    def _account_role(auth_user) -> Role:
        app_meta = getattr(auth_user, "app_metadata", None) or {}
        return resolve_role(app_meta.get("role"))

    @staticmethod
    def _actor(auth_user, role: Role) -> ActorContext:
        user_meta = getattr(auth_user, "user_metadata", None) or {}
        return ActorContext(
            id=auth_user.id,
            role=role.value,
            email=auth_user.email,
            name=user_meta.get("full_name") or user_meta.get("name"),
        )

    def login(self, username: str, secret: str) -> Session:
        email = username.strip().lower()
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": secret}
            )
        except Exception as e:
            logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
            raise AuthError()

        if not response or not response.session or not response.session.access_token:
            raise AuthError()

        actor = self._actor(response.user, self._account_role(response.user))
        return Session(actor=actor, access_token=response.session.access_token)

    def resolve_token(self, token: str) -> ActorContext:
        try:
            auth_resp = self.client.auth.get_user(token)
        except Exception:
            raise AuthError("Invalid or expired authentication token")

        if not auth_resp or not auth_resp.user:
            raise AuthError("Invalid or expired authentication token")

        issued = _issued_role(token)
        if self._account_role(auth_resp.user) != issued:
            logger.warning(f"Role changed since sign-in for {auth_resp.user.id}; token refused")
            raise AuthError("Your role has changed. Sign in again.")

        return self._actor(auth_resp.user, issued)

    def logout(self, token: str):
        try:
            self.client.auth.admin.sign_out(token)
        except Exception as e:
            logger.warning(f"Supabase sign-out failed: {type(e).__name__}")


# ============================================================
# In-memory (local development and tests)
# ============================================================
@dataclass(frozen=True)
class _StoredUser:
    actor: ActorContext
    salt: bytes
    digest: bytes


def _hash_secret(secret: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), salt, 100_000)


class InMemoryCredentialStore(CredentialStore):

    def __init__(self):
        self._users: Dict[str, _StoredUser] = {}
        self._tokens: Dict[str, ActorContext] = {}

    def add_user(self, username: str, secret: str, *, user_id: str, role, email: Optional[str] = None, name: Optional[str] = None) -> ActorContext:
        actor = ActorContext(
            id=user_id,
            role=resolve_role(role).value,
            email=email,
            name=name,
        )
        salt = secrets.token_bytes(16)
        self._users[username] = _StoredUser(actor=actor, salt=salt, digest=_hash_secret(secret, salt))
        return actor

    def login(self, username: str, secret: str) -> Session:
        stored = self._users.get(username)
        if stored is None or not hmac.compare_digest(stored.digest, _hash_secret(secret, stored.salt)):
            logger.warning(f"Login attempt failed for {username}")
            raise AuthError()

        token = secrets.token_urlsafe(32)
        self._tokens[token] = stored.actor
        return Session(actor=stored.actor, access_token=token)

    def resolve_token(self, token: str) -> ActorContext:
        actor = self._tokens.get(token)
        if actor is None:
            raise AuthError("Invalid or expired authentication token")
        return actor

    def logout(self, token: str):
        self._tokens.pop(token, None)
