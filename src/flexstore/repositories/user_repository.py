# src/flexstore/repositories/user_repository.py

from __future__ import annotations

import logging
from uuid import UUID

from opentelemetry import trace
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flexstore.auth.permissions import Role
from flexstore.models.tenant import Tenant, TenantPlan
from flexstore.models.user import User

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class UserRepository:
    """
    Persistence for users and the tenants they own.

    Lookups by id and email are global: they run before any tenant context
    exists (login, credential resolution).
    """

    @staticmethod
    def get_by_id(db: Session, user_id: UUID) -> User | None:
        with tracer.start_as_current_span("db.get_user_by_id") as span:
            span.set_attribute("user.id", str(user_id))
            return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> User | None:
        with tracer.start_as_current_span("db.get_user_by_email"):
            return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create_with_tenant(
        db: Session,
        *,
        username: str,
        email: str,
        password_hash: str,
        tenant_name: str,
        role: str = Role.ADMIN.value,
    ) -> User:
        """
        Create a tenant and its first user in a single transaction.

        Raises:
            IntegrityError: tenant name or email already taken
        """
        with tracer.start_as_current_span("db.create_user_with_tenant") as span:
            tenant = Tenant(name=tenant_name, plan=TenantPlan.FREE.value)
            user = User(
                username=username,
                email=email,
                password_hash=password_hash,
                role=role,
            )

            try:
                db.add(tenant)
                db.flush()
                user.tenant_id = tenant.id
                db.add(user)
                db.commit()
                db.refresh(user)
            except IntegrityError:
                db.rollback()
                logger.info("Signup rejected by unique constraint: tenant_name=%s", tenant_name)
                raise
            except Exception:
                logger.exception("DB create failed for User username=%s", username)
                db.rollback()
                raise

            span.set_attribute("tenant.id", str(tenant.id))
            span.set_attribute("user.id", str(user.id))

        logger.info("Created tenant=%s with admin user=%s", tenant.id, user.id)
        return user
