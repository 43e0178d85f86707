from typing import FrozenSet, Iterable

from fastapi import Depends, HTTPException

from core.permissions import ROLE_PERMISSIONS, ROLE_DISPLAY_NAMES
from models.enums import Role


EMPTY_PERMISSIONS: FrozenSet[str] = frozenset()


# -----------------------------------------------------
# Role lookup (total: unknown roles resolve to None)
# -----------------------------------------------------
def _coerce_role(role) -> Role | None:
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role).strip().lower())
    except ValueError:
        return None


# -----------------------------------------------------
# Permission evaluation
# -----------------------------------------------------
def permissions_for(role) -> FrozenSet[str]:
    """
    Fixed permission set for a role.

    Never raises: an unrecognized or missing role gets the empty set,
    so callers can gate UI on a malformed session without crashing.
    """
    known = _coerce_role(role)
    if known is None:
        return EMPTY_PERMISSIONS
    return ROLE_PERMISSIONS.get(known, EMPTY_PERMISSIONS)


def is_granted(role, permission: str) -> bool:
    return permission in permissions_for(role)


def has_any_permission(role, permissions: Iterable[str]) -> bool:
    granted = permissions_for(role)
    return any(p in granted for p in permissions)


def has_all_permissions(role, permissions: Iterable[str]) -> bool:
    granted = permissions_for(role)
    return all(p in granted for p in permissions)


# -----------------------------------------------------
# Named capability checks
# -----------------------------------------------------
def can_manage_requests(role) -> bool:
    return has_any_permission(role, ("manage_requests", "approve_requests"))


def can_create_requests(role) -> bool:
    return is_granted(role, "create_requests")


def can_approve_requests(role) -> bool:
    """Admin only."""
    return is_granted(role, "approve_requests")


def can_assign_workers(role) -> bool:
    return is_granted(role, "assign_workers")


def can_access_admin_ui(role) -> bool:
    return _coerce_role(role) in (Role.admin, Role.manager)


def role_display_name(role) -> str:
    known = _coerce_role(role)
    return ROLE_DISPLAY_NAMES.get(known, "Unknown")


# -----------------------------------------------------
# FastAPI dependency wrapper
# -----------------------------------------------------
def requires_permission(permission: str):
    """
    Usage:
        @router.post("/", dependencies=[Depends(requires_permission("assign_workers"))])
    """
    from dependencies.auth import get_current_user, ActorContext

    def dependency(current_user: ActorContext = Depends(get_current_user)):
        if not is_granted(current_user.role, permission):
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions: '{permission}' required"
            )
        return current_user

    return dependency


def requires_any_permission(*permissions: str):
    from dependencies.auth import get_current_user, ActorContext

    def dependency(current_user: ActorContext = Depends(get_current_user)):
        if not has_any_permission(current_user.role, permissions):
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions: one of {list(permissions)} required"
            )
        return current_user

    return dependency
