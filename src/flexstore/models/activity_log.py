"""
ActivityLog model - append-only trail of schema and record mutations.
"""
import enum

from sqlalchemy import Column, Index, String

from flexstore.db.database import Base
from flexstore.models.base_model import JSON_TYPE, timestamp_created, uuid_fk, uuid_pk
from flexstore.models.mixins import TenantScopedMixin


class ActivityAction(str, enum.Enum):
    CREATE_DATABASE = "CREATE_DATABASE"
    UPDATE_DATABASE = "UPDATE_DATABASE"
    DELETE_DATABASE = "DELETE_DATABASE"
    CREATE_FIELD = "CREATE_FIELD"
    UPDATE_FIELD = "UPDATE_FIELD"
    DELETE_FIELD = "DELETE_FIELD"
    CREATE_RECORD = "CREATE_RECORD"
    UPDATE_RECORD = "UPDATE_RECORD"
    DELETE_RECORD = "DELETE_RECORD"


class ActivityLog(Base, TenantScopedMixin):
    __tablename__ = "activity_logs"

    id = uuid_pk()
    user_id = uuid_fk("users")
    action = Column(String(32), nullable=False)
    details = Column(JSON_TYPE, nullable=True)
    created_at = timestamp_created()

    __table_args__ = (
        Index("ix_activity_logs_tenant_time", "tenant_id", "created_at"),
    )

    def __repr__(self):
        return f"<ActivityLog(tenant={self.tenant_id}, action={self.action})>"
