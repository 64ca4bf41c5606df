"""
Signed bearer credentials.

A credential is an HS256 JWT carrying `sub` (user id), `role`, `tenant_id`
and `exp`. Verification only proves the token was issued by us and is still
valid; the identity service re-loads the user before trusting it.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from flexstore.config import Settings, get_settings

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Raised when a credential cannot be decoded or has expired."""


def create_access_token(
    *,
    user_id: UUID,
    tenant_id: UUID,
    role: str,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    claims = {
        "sub": str(user_id),
        "role": role,
        "tenant_id": str(tenant_id),
        "exp": expire,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises:
        TokenError: token is malformed, tampered with, expired or lacks `sub`
    """
    settings = settings or get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise TokenError(str(exc)) from exc

    if not claims.get("sub"):
        raise TokenError("Token has no subject")
    return claims
