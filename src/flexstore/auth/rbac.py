"""
Role-Based Access Control (RBAC) for service operations.

Provides:
- Principal: the resolved (user, tenant, role) of an authenticated caller
- requires(): decorator that gates a service method on a permission

Every gated method takes the principal as its first argument after `self`;
the check runs before the method body, so nothing is written when it fails.

Usage:
    class SchemaRegistry:
        @requires(Permission.CREATE_DATABASE)
        def create_database(self, principal: Principal, name: str):
            ...
"""
import functools
import logging
from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID

from flexstore.auth.permissions import Permission, has_permission
from flexstore.errors import AuthenticationRequired, Forbidden

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller.

    Built from the stored user row, never from token claims alone, so the
    role reflects the user's current role.
    """
    user_id: UUID
    tenant_id: UUID
    role: str

    def has_permission(self, permission: Permission) -> bool:
        """Check if the principal has a specific permission."""
        return has_permission(self.role, permission)


def ensure_permission(principal: Optional[Principal], permission: Permission) -> Principal:
    """
    Raise unless `principal` is authenticated and holds `permission`.

    Raises:
        AuthenticationRequired: principal is None
        Forbidden: the principal's role lacks the permission
    """
    if principal is None:
        raise AuthenticationRequired()

    if not principal.has_permission(permission):
        logger.warning(
            "Permission denied: user=%s role=%s permission=%s tenant=%s",
            principal.user_id,
            principal.role,
            permission.value,
            principal.tenant_id,
        )
        raise Forbidden()

    return principal


def requires(permission: Permission) -> Callable:
    """
    Decorator for service methods with signature `(self, principal, ...)`.

    Args:
        permission: Required permission

    Returns:
        Decorator that raises AuthenticationRequired/Forbidden before the
        wrapped method runs
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, principal: Optional[Principal], *args, **kwargs):
            ensure_permission(principal, permission)
            return func(self, principal, *args, **kwargs)

        wrapper.required_permission = permission
        return wrapper

    return decorator
