"""create initial tables

Revision ID: 4f1c2a9d7e3b
Revises:
Create Date: 2026-10-19 09:12:44.108215

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "4f1c2a9d7e3b"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _uuid_fk(table: str, name: str = None, nullable: bool = False, ondelete: str = "CASCADE"):
    return sa.Column(
        name or f"{table[:-1]}_id",
        sa.Uuid(as_uuid=True),
        sa.ForeignKey(f"{table}.id", ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("plan", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_tenants_created_at", "tenants", ["created_at"])

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _uuid_fk("tenants"),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
        sa.UniqueConstraint("tenant_id", "username", name="uq_users_tenant_username"),
    )
    op.create_index("ix_users_tenant_id", "users", ["tenant_id"])
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "databases",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _uuid_fk("tenants"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "is_deleted",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
            comment="Soft-delete flag; deleted rows stay in place",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("tenant_id", "name", name="uq_databases_tenant_name"),
    )
    op.create_index("ix_databases_tenant_id", "databases", ["tenant_id"])
    op.create_index("ix_databases_is_deleted", "databases", ["is_deleted"])
    op.create_index("ix_databases_created_at", "databases", ["created_at"])

    op.create_table(
        "database_fields",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _uuid_fk("databases", name="database_id"),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("options", JSON_TYPE, nullable=True),
        _uuid_fk("databases", name="relation_database_id", nullable=True, ondelete="SET NULL"),
    )
    op.create_index("ix_database_fields_database_id", "database_fields", ["database_id"])

    op.create_table(
        "records",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _uuid_fk("tenants"),
        _uuid_fk("databases", name="database_id"),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column(
            "is_deleted",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
            comment="Soft-delete flag; deleted rows stay in place",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_records_tenant_id", "records", ["tenant_id"])
    op.create_index("ix_records_database_id", "records", ["database_id"])
    op.create_index("ix_records_is_deleted", "records", ["is_deleted"])
    op.create_index("ix_records_created_at", "records", ["created_at"])
    op.create_index("ix_records_tenant_database", "records", ["tenant_id", "database_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _uuid_fk("tenants"),
        _uuid_fk("users", name="user_id"),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("details", JSON_TYPE, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_activity_logs_tenant_id", "activity_logs", ["tenant_id"])
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])
    op.create_index("ix_activity_logs_tenant_time", "activity_logs", ["tenant_id", "created_at"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("records")
    op.drop_table("database_fields")
    op.drop_table("databases")
    op.drop_table("users")
    op.drop_table("tenants")
