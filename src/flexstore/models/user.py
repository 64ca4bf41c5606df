from sqlalchemy import Column, String, UniqueConstraint

from flexstore.auth.permissions import Role
from flexstore.db.database import Base
from flexstore.models.base_model import timestamp_created, uuid_pk
from flexstore.models.mixins import TenantScopedMixin


class User(Base, TenantScopedMixin):
    __tablename__ = "users"

    id = uuid_pk()

    username = Column(String(100), nullable=False)
    # Login looks users up by email alone, so email is unique across tenants
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.VIEWER.value, index=True)

    created_at = timestamp_created()

    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
        UniqueConstraint("tenant_id", "username", name="uq_users_tenant_username"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, tenant={self.tenant_id}, role={self.role})>"
