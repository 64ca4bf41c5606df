from sqlalchemy import JSON, Column, Index

from flexstore.db.database import Base
from flexstore.models.base_model import uuid_fk, uuid_pk
from flexstore.models.mixins import SoftDeleteMixin, TenantScopedMixin, TimestampMixin


class Record(Base, TenantScopedMixin, TimestampMixin, SoftDeleteMixin):
    """
    One row of schema-flexible data.

    `values` is a JSON object keyed by field name. Keys are not tied to the
    owning database's current field list: removed or renamed fields leave
    their values behind.
    """
    __tablename__ = "records"

    id = uuid_pk()
    database_id = uuid_fk("databases")
    # json rather than jsonb on PostgreSQL: key insertion order is kept
    values = Column("data", JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_records_tenant_database", "tenant_id", "database_id"),
    )

    def __repr__(self):
        return f"<Record(id={self.id}, database={self.database_id}, tenant={self.tenant_id})>"
