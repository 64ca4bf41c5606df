"""
Identity and tenant context.

Handles:
- Resolving a bearer credential into a Principal (fails soft)
- Login with email and password
- Signup, which creates the user's own tenant with the user as Admin
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from flexstore.auth.passwords import hash_password, verify_password
from flexstore.auth.permissions import Role
from flexstore.auth.rbac import Principal
from flexstore.auth.tokens import TokenError, create_access_token, decode_access_token
from flexstore.config import Settings, get_settings
from flexstore.errors import (
    AuthenticationRequired,
    Conflict,
    DuplicateUser,
    InvalidCredentials,
    InvalidInput,
)
from flexstore.metrics import auth_failures_total
from flexstore.models.user import User
from flexstore.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class AuthPayload:
    token: str
    user: User


class IdentityService:
    """Service for credentials and the principal they resolve to."""

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def _issue_token(self, user: User) -> str:
        return create_access_token(
            user_id=user.id,
            tenant_id=user.tenant_id,
            role=user.role,
            settings=self.settings,
        )

    def authenticate(self, token: Optional[str]) -> Optional[Principal]:
        """
        Resolve a bearer credential.

        Never raises: a missing, invalid or expired token, or one whose user
        no longer exists, yields None (anonymous).
        """
        if not token:
            return None

        try:
            claims = decode_access_token(token, self.settings)
            user_id = UUID(str(claims["sub"]))
        except (TokenError, ValueError) as exc:
            auth_failures_total.labels(reason="invalid_token").inc()
            logger.info("Rejected credential: %s", exc)
            return None

        try:
            user = UserRepository.get_by_id(self.db, user_id)
        except SQLAlchemyError:
            logger.exception("User lookup failed while resolving credential sub=%s", user_id)
            return None

        if user is None:
            auth_failures_total.labels(reason="unknown_user").inc()
            logger.info("Credential refers to missing user=%s", user_id)
            return None

        # Role and tenant come from the stored row, not from the claims
        return Principal(user_id=user.id, tenant_id=user.tenant_id, role=user.role)

    def login(self, email: str, password: str) -> AuthPayload:
        """
        Raises:
            InvalidCredentials: unknown email or wrong password, same message for both
        """
        email = (email or "").strip().lower()
        user = UserRepository.get_by_email(self.db, email) if email else None

        if user is None or not verify_password(password or "", user.password_hash):
            auth_failures_total.labels(reason="bad_credentials").inc()
            logger.info("Failed login attempt")
            raise InvalidCredentials()

        logger.info("User %s logged in to tenant %s", user.id, user.tenant_id)
        return AuthPayload(token=self._issue_token(user), user=user)

    def signup(self, username: str, email: str, password: str) -> AuthPayload:
        """
        Create a tenant named after the user and the user as its Admin.

        Raises:
            InvalidInput: blank username, email or password
            DuplicateUser: email already registered
            Conflict: the workspace name is already taken
        """
        username = (username or "").strip()
        email = (email or "").strip().lower()
        for name, value in (("username", username), ("email", email), ("password", password)):
            if not value or not value.strip():
                raise InvalidInput(f"{name.capitalize()} is required", field=name)

        if UserRepository.get_by_email(self.db, email) is not None:
            raise DuplicateUser()

        try:
            user = UserRepository.create_with_tenant(
                self.db,
                username=username,
                email=email,
                password_hash=hash_password(password),
                tenant_name=f"{username}'s Workspace",
                role=Role.ADMIN.value,
            )
        except IntegrityError:
            # Lost a race on the email, or the workspace name is taken
            if UserRepository.get_by_email(self.db, email) is not None:
                raise DuplicateUser()
            raise Conflict(f"A workspace named \"{username}'s Workspace\" already exists.")

        return AuthPayload(token=self._issue_token(user), user=user)

    def me(self, principal: Optional[Principal]) -> User:
        if principal is None:
            raise AuthenticationRequired()
        user = UserRepository.get_by_id(self.db, principal.user_id)
        if user is None:
            raise AuthenticationRequired()
        return user
