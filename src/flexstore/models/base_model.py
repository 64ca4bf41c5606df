"""Standard column definitions for consistency."""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Column, ForeignKey, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import DateTime

# JSONB on PostgreSQL, plain JSON (TEXT-backed) elsewhere
JSON_TYPE = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def uuid_pk():
    return Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        nullable=False
    )

def uuid_fk(table: str, nullable: bool = False, ondelete: str = "CASCADE"):
    return Column(
        Uuid(as_uuid=True),
        ForeignKey(f"{table}.id", ondelete=ondelete),
        nullable=nullable,
        index=True
    )

def timestamp_created():
    # Python-side default keeps sub-second ordering on every backend
    return Column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True
    )

def timestamp_updated():
    return Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False
    )
