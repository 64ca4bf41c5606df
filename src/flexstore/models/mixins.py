"""
Mixins for SQLAlchemy models.
Provides reusable column sets for tenant scoping, timestamps and soft delete.
"""
from sqlalchemy import Boolean, Column, false
from sqlalchemy.orm import declared_attr

from flexstore.models.base_model import timestamp_created, timestamp_updated, uuid_fk


class TenantScopedMixin:
    """
    Adds the mandatory tenant reference.

    Every query against a model carrying this mixin must filter on
    `tenant_id`; repositories take the tenant id as a required argument.
    """

    @declared_attr
    def tenant_id(cls):
        return uuid_fk("tenants")


class TimestampMixin:
    """
    Provides:
    - created_at: set once when the row is inserted (UTC)
    - updated_at: refreshed on every ORM update (UTC)
    """

    @declared_attr
    def created_at(cls):
        return timestamp_created()

    @declared_attr
    def updated_at(cls):
        return timestamp_updated()


class SoftDeleteMixin:
    """
    Rows are never physically removed; `is_deleted` hides them instead.
    """

    @declared_attr
    def is_deleted(cls):
        return Column(
            Boolean,
            nullable=False,
            default=False,
            server_default=false(),
            index=True,
            comment="Soft-delete flag; deleted rows stay in place",
        )
