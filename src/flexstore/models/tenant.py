import enum

from sqlalchemy import Column, String

from flexstore.db.database import Base
from flexstore.models.base_model import timestamp_created, uuid_pk


class TenantPlan(str, enum.Enum):
    FREE = "Free"
    PRO = "Pro"


class Tenant(Base):
    """
    Root of isolation: one workspace, many users and databases.

    Created implicitly on signup; only `plan` may change afterwards.
    """
    __tablename__ = "tenants"

    id = uuid_pk()
    name = Column(String(255), unique=True, nullable=False)
    plan = Column(String(20), nullable=False, default=TenantPlan.FREE.value)

    created_at = timestamp_created()

    def __repr__(self):
        return f"<Tenant(id={self.id}, name={self.name!r}, plan={self.plan})>"
