from typing import Dict, FrozenSet, Tuple

from fastapi import Depends, HTTPException, status

from leavedesk.auth.dependencies import get_current_user
from leavedesk.auth.schemas import CurrentUser
from leavedesk.core.enums import UserRole


# (module, action) pairs granted per role. Admins are granted everything.
ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Tuple[str, str]]] = {
    UserRole.ADMIN: frozenset(),
    UserRole.TEACHER: frozenset({
        ("leave", "create"),
        ("leave", "read"),
    }),
    UserRole.CLASS_TEACHER: frozenset({
        ("leave", "read"),
        ("refund", "read"),
    }),
}


def has_permission(user: CurrentUser, module: str, action: str) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    return (module, action) in ROLE_PERMISSIONS.get(user.role, frozenset())


def check_permission(module: str, action: str):
    """
    Dependency factory to enforce a specific permission.

    Example:
        Depends(check_permission("leave", "approve"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> None:
        if not has_permission(current_user, module, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )

    return _checker
