"""
Database and FieldDefinition models.

A Database is a tenant-scoped named collection; its FieldDefinitions are the
user-defined column schema, kept in insertion order through `position`.
"""
import enum

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from flexstore.db.database import Base
from flexstore.models.base_model import JSON_TYPE, timestamp_created, uuid_fk, uuid_pk
from flexstore.models.mixins import SoftDeleteMixin, TenantScopedMixin


class FieldType(str, enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTI_SELECT = "multi-select"
    RELATION = "relation"


class Database(Base, TenantScopedMixin, SoftDeleteMixin):
    __tablename__ = "databases"

    id = uuid_pk()
    name = Column(String(255), nullable=False)
    created_at = timestamp_created()

    fields = relationship(
        "FieldDefinition",
        back_populates="database",
        foreign_keys="FieldDefinition.database_id",
        order_by="FieldDefinition.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        # Case-sensitive; soft-deleted databases keep holding their name
        UniqueConstraint("tenant_id", "name", name="uq_databases_tenant_name"),
    )

    def field_by_id(self, field_id):
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    def field_names(self) -> list[str]:
        return [field.name for field in self.fields]

    def __repr__(self):
        return f"<Database(id={self.id}, tenant={self.tenant_id}, name={self.name!r})>"


class FieldDefinition(Base):
    __tablename__ = "database_fields"

    id = uuid_pk()
    database_id = uuid_fk("databases")
    position = Column(Integer, nullable=False, default=0)

    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)
    options = Column(JSON_TYPE, nullable=True)
    relation_database_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("databases.id", ondelete="SET NULL"),
        nullable=True,
    )

    database = relationship(
        "Database",
        back_populates="fields",
        foreign_keys=[database_id],
    )

    def __repr__(self):
        return f"<FieldDefinition(id={self.id}, name={self.name!r}, type={self.type})>"
