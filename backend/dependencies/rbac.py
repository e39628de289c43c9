"""
RBAC dependencies for FastAPI routes
Role-based access control implemented as dependencies that run after authentication
"""
from fastapi import Depends
from routers.auth.auth import get_current_user
from routers.auth.schemas import Principal, UserRole
from utils.errors import AuthorizationError
from typing import Iterable
import logging

logger = logging.getLogger(__name__)


def authorize(user_role: str, required_roles: Iterable[str]) -> bool:
    """Admin can act on every buyer-only or vendor-only route"""
    required = {UserRole(role).value for role in required_roles}
    role = UserRole(user_role).value
    return role in required or role == UserRole.ADMIN.value


def require_roles(*roles: UserRole):
    """
    Create an RBAC dependency that resolves the caller and checks the role

    Args:
        roles: Roles allowed on the route; admin is always allowed
    """
    allowed = [UserRole(role).value for role in roles]
    hint = list(allowed)
    if UserRole.ADMIN.value not in hint:
        hint.append(UserRole.ADMIN.value)

    def check_rbac(current_user: Principal = Depends(get_current_user)) -> Principal:
        """RBAC dependency function"""
        logger.info(f"RBAC Check - User: {current_user.user_id}, Role: {current_user.role.value}, Required: {allowed}")

        if not authorize(current_user.role, allowed):
            logger.warning(f"Access denied - User: {current_user.user_id}, Role: {current_user.role.value}, Required: {allowed}")
            raise AuthorizationError(hint)

        return current_user

    return check_rbac


require_buyer = require_roles(UserRole.BUYER)
require_vendor = require_roles(UserRole.VENDOR)
require_admin = require_roles(UserRole.ADMIN)
