"""
Role-based route guarding.

``guard`` decides whether a caller may see a view; ``resolve`` applies it to
the application's route table.
"""
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel

from storespark.schemas import Role, UserPublic

LOGIN_ROUTE = "/login"
ROOT_ROUTE = "/"

HOME_ROUTES = {
    Role.ADMIN: "/admin/dashboard",
    Role.STORE_OWNER: "/store-owner/dashboard",
    Role.USER: "/dashboard",
}

PUBLIC_ROUTES = {"/login", "/signup"}

# path -> roles allowed; None means any signed-in user
PROTECTED_ROUTES = {
    "/update-password": None,
    "/dashboard": {Role.USER},
    "/admin/dashboard": {Role.ADMIN},
    "/admin/users": {Role.ADMIN},
    "/admin/users/add": {Role.ADMIN},
    "/admin/stores": {Role.ADMIN},
    "/admin/stores/add": {Role.ADMIN},
    "/store-owner/dashboard": {Role.STORE_OWNER},
}


class Outcome(str, Enum):
    RENDER = "render"
    LOGIN = "login"
    HOME = "home"


class GuardDecision(BaseModel):
    outcome: Outcome
    redirect_to: Optional[str] = None


def home_for(role: Role) -> str:
    return HOME_ROUTES[role]


def guard(user: Optional[UserPublic], allowed_roles: Optional[Iterable[Role]] = None) -> GuardDecision:
    if user is None:
        return GuardDecision(outcome=Outcome.LOGIN, redirect_to=LOGIN_ROUTE)
    if allowed_roles is not None and user.role not in set(allowed_roles):
        return GuardDecision(outcome=Outcome.HOME, redirect_to=home_for(user.role))
    return GuardDecision(outcome=Outcome.RENDER)


def _allowed_roles_for(path: str):
    if path in PROTECTED_ROUTES:
        return True, PROTECTED_ROUTES[path]
    # /admin/users/<id>
    if path.startswith("/admin/users/"):
        return True, {Role.ADMIN}
    return False, None


def resolve(path: str, user: Optional[UserPublic]) -> GuardDecision:
    """Decision for navigating to ``path``, following the app's route table."""
    path = path.rstrip("/") or ROOT_ROUTE
    if path in PUBLIC_ROUTES:
        return GuardDecision(outcome=Outcome.RENDER)
    if path == ROOT_ROUTE:
        if user is None:
            return GuardDecision(outcome=Outcome.LOGIN, redirect_to=LOGIN_ROUTE)
        return GuardDecision(outcome=Outcome.HOME, redirect_to=home_for(user.role))
    known, roles = _allowed_roles_for(path)
    if not known:
        # unknown paths go to the root, which redirects again by role
        return GuardDecision(outcome=Outcome.HOME, redirect_to=ROOT_ROUTE)
    return guard(user, roles)
