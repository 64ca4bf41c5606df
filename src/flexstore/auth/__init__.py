"""
Authentication and Authorization module for flexstore.

This module provides:
- Signed bearer credentials (tokens.py)
- Password hashing (passwords.py)
- Permission definitions (permissions.py)
- The Principal and the service-level permission decorator (rbac.py)

Usage:
    from flexstore.auth import (
        Permission,
        Role,
        Principal,
        requires,
    )
"""

from flexstore.auth.passwords import hash_password, verify_password

from flexstore.auth.permissions import (
    Permission,
    Role,
    has_permission,
    get_role_permissions,
)

from flexstore.auth.rbac import (
    Principal,
    ensure_permission,
    requires,
)

from flexstore.auth.tokens import (
    TokenError,
    create_access_token,
    decode_access_token,
)

__all__ = [
    # Credentials
    "hash_password",
    "verify_password",
    "TokenError",
    "create_access_token",
    "decode_access_token",

    # Permissions
    "Permission",
    "Role",
    "has_permission",
    "get_role_permissions",

    # RBAC
    "Principal",
    "ensure_permission",
    "requires",
]
