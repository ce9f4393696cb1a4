from typing import Callable, Dict

from fastapi import Depends

from dbmonitor.auth.dependencies import get_current_user
from dbmonitor.auth.enums import UserRole
from dbmonitor.auth.schemas import UserContext
from dbmonitor.utils import Forbidden, as_http_exception

# Higher ranks satisfy every requirement of a lower rank.
ROLE_HIERARCHY: Dict[UserRole, int] = {
    UserRole.ADMIN: 2,
    UserRole.USER: 1,
}


def has_role(user: UserContext, required_role: UserRole) -> bool:
    return ROLE_HIERARCHY.get(user.role, 0) >= ROLE_HIERARCHY[required_role]


def authorize(user: UserContext, required_role: UserRole) -> None:
    """Raise Forbidden unless ``user`` satisfies ``required_role``."""
    if not has_role(user, required_role):
        raise Forbidden(f"{required_role.value.capitalize()} privileges required")


def require_role(required_role: UserRole) -> Callable[..., UserContext]:
    """Build a dependency that authenticates the caller and checks their role."""

    def dependency(current_user: UserContext = Depends(get_current_user)) -> UserContext:
        try:
            authorize(current_user, required_role)
        except Forbidden as exc:
            raise as_http_exception(exc) from exc
        return current_user

    dependency.__name__ = f"require_{required_role.value}"
    return dependency


require_user = require_role(UserRole.USER)
require_admin = require_role(UserRole.ADMIN)
