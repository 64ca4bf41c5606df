# src/flexstore/repositories/record_repository.py

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from opentelemetry import trace
from sqlalchemy import Select
from sqlalchemy.orm import Session

from flexstore.models.base_model import utcnow
from flexstore.models.record import Record

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class RecordRepository:
    """
    Raw persistence of records.

    Which keys are accepted is decided by the record store service; this
    layer writes whatever mapping it is given.
    """

    @staticmethod
    def _commit(db: Session, record: Record, operation: str) -> Record:
        try:
            db.add(record)
            db.commit()
            db.refresh(record)
        except Exception:
            logger.exception(
                "DB %s failed for Record id=%s tenant=%s",
                operation,
                record.id,
                record.tenant_id,
            )
            db.rollback()
            raise
        return record

    @staticmethod
    def create(
        db: Session,
        *,
        tenant_id: UUID,
        database_id: UUID,
        values: dict[str, Any],
    ) -> Record:
        record = Record(tenant_id=tenant_id, database_id=database_id, values=values)

        with tracer.start_as_current_span("db.create_record") as span:
            span.set_attribute("tenant.id", str(tenant_id))
            span.set_attribute("database.id", str(database_id))
            span.set_attribute("record.keys", len(values))
            RecordRepository._commit(db, record, "create")

        logger.info("Created Record id=%s tenant=%s database=%s", record.id, tenant_id, database_id)
        return record

    @staticmethod
    def get_by_id(db: Session, *, tenant_id: UUID, record_id: UUID) -> Record | None:
        """Tenant-scoped lookup of a live record. The owning database may be deleted."""
        with tracer.start_as_current_span("db.get_record_by_id") as span:
            span.set_attribute("tenant.id", str(tenant_id))
            span.set_attribute("record.id", str(record_id))

            return (
                db.query(Record)
                .filter(
                    Record.id == record_id,
                    Record.tenant_id == tenant_id,
                    Record.is_deleted.is_(False),
                )
                .first()
            )

    @staticmethod
    def merge_values(db: Session, *, record: Record, values: dict[str, Any]) -> Record:
        # A new dict is assigned so the JSON column is flagged as changed
        record.values = {**(record.values or {}), **values}
        record.updated_at = utcnow()

        with tracer.start_as_current_span("db.update_record") as span:
            span.set_attribute("tenant.id", str(record.tenant_id))
            span.set_attribute("record.id", str(record.id))
            RecordRepository._commit(db, record, "update")

        logger.info("Updated Record id=%s tenant=%s keys=%s", record.id, record.tenant_id, list(values))
        return record

    @staticmethod
    def soft_delete(db: Session, *, record: Record) -> Record:
        record.is_deleted = True
        record.updated_at = utcnow()

        with tracer.start_as_current_span("db.soft_delete_record") as span:
            span.set_attribute("tenant.id", str(record.tenant_id))
            span.set_attribute("record.id", str(record.id))
            RecordRepository._commit(db, record, "soft delete")

        logger.info("Soft-deleted Record id=%s tenant=%s", record.id, record.tenant_id)
        return record

    @staticmethod
    def run_query(db: Session, *, tenant_id: UUID, statement: Select) -> list[Record]:
        """Execute a fully built, tenant-scoped select over records."""
        with tracer.start_as_current_span("db.query_records") as span:
            span.set_attribute("tenant.id", str(tenant_id))
            results = list(db.scalars(statement).all())
            span.set_attribute("records.returned", len(results))

        logger.debug("Query returned %d records for tenant=%s", len(results), tenant_id)
        return results
