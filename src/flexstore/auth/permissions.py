"""
Permission definitions and role-based access control.

This module defines:
- All permissions in the system
- Role -> Permission mappings
- Helper functions to check permissions

Roles (highest to lowest privilege):
- Admin: Full access, including database and field schema changes
- Editor: Can create, update and delete records
- Viewer: Read-only access to databases, records and the activity log
"""
from enum import Enum
from typing import Set


class Permission(str, Enum):
    """All permissions in the flexstore system."""

    # Read permissions (all roles have these)
    READ_DATABASES = "read:databases"
    READ_RECORDS = "read:records"
    READ_ACTIVITY = "read:activity"

    # Record management (editor+)
    CREATE_RECORD = "create:record"
    UPDATE_RECORD = "update:record"
    DELETE_RECORD = "delete:record"

    # Schema management (admin only)
    CREATE_DATABASE = "create:database"
    UPDATE_DATABASE = "update:database"
    DELETE_DATABASE = "delete:database"
    MANAGE_FIELDS = "manage:fields"


class Role(str, Enum):
    """User roles in order of privilege (highest first)."""
    ADMIN = "Admin"
    EDITOR = "Editor"
    VIEWER = "Viewer"


_READ = {
    Permission.READ_DATABASES,
    Permission.READ_RECORDS,
    Permission.READ_ACTIVITY,
}

_RECORD_WRITE = {
    Permission.CREATE_RECORD,
    Permission.UPDATE_RECORD,
    Permission.DELETE_RECORD,
}

_SCHEMA_WRITE = {
    Permission.CREATE_DATABASE,
    Permission.UPDATE_DATABASE,
    Permission.DELETE_DATABASE,
    Permission.MANAGE_FIELDS,
}

# Define which permissions each role has
ROLE_PERMISSIONS: dict[Role, Set[Permission]] = {
    Role.VIEWER: set(_READ),
    Role.EDITOR: _READ | _RECORD_WRITE,
    Role.ADMIN: _READ | _RECORD_WRITE | _SCHEMA_WRITE,
}


def _coerce_role(role: str | Role | None) -> Role | None:
    if role is None or isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        # Unknown role has no permissions
        return None


def has_permission(role: str | Role | None, permission: Permission) -> bool:
    """
    Check if a role has a specific permission.

    Args:
        role: User's role (string or Role enum)
        permission: Permission to check

    Returns:
        True if role has the permission, False otherwise
    """
    role = _coerce_role(role)
    if role is None:
        return False
    return permission in ROLE_PERMISSIONS.get(role, set())


def get_role_permissions(role: str | Role | None) -> Set[Permission]:
    """Get all permissions for a role."""
    role = _coerce_role(role)
    if role is None:
        return set()
    return ROLE_PERMISSIONS.get(role, set())
