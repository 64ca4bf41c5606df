"""
Record store: create, merge-update, soft-delete and fetch records.

Create keeps only keys that name a field of the database and drops the rest
silently. Update merges any valid key, defined or not. Neither checks values
against the field's declared type.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from flexstore.auth.permissions import Permission
from flexstore.auth.rbac import Principal, requires
from flexstore.errors import InvalidInput, NotFound
from flexstore.metrics import records_mutations_total
from flexstore.models.activity_log import ActivityAction
from flexstore.models.record import Record
from flexstore.repositories.database_repository import DatabaseRepository
from flexstore.repositories.record_repository import RecordRepository
from flexstore.services.audit_log import AuditLog
from flexstore.services.field_values import normalize_value, normalize_values

logger = logging.getLogger(__name__)


class RecordStore:
    """Service for tenant-scoped record payloads."""

    def __init__(self, db: Session, audit: AuditLog | None = None):
        self.db = db
        self.audit = audit or AuditLog(db)

    def _require_record(self, principal: Principal, record_id: UUID) -> Record:
        record = RecordRepository.get_by_id(
            self.db, tenant_id=principal.tenant_id, record_id=record_id
        )
        if record is None:
            raise NotFound("Record not found")
        return record

    @requires(Permission.CREATE_RECORD)
    def create_record(
        self,
        principal: Principal,
        database_id: UUID,
        values: Optional[Mapping[str, Any]] = None,
    ) -> Record:
        database = DatabaseRepository.get_by_id(
            self.db, tenant_id=principal.tenant_id, database_id=database_id
        )
        if database is None:
            raise NotFound("Database not found")

        values = values or {}
        if not isinstance(values, Mapping):
            raise InvalidInput("Values must be an object", field="values")

        kept: dict[str, Any] = {}
        for name in database.field_names():
            if name in values:
                kept[name] = normalize_value(values[name], name)

        dropped = [key for key in values if key not in kept]
        if dropped:
            logger.debug("Dropping undefined keys %s for database=%s", dropped, database.id)

        record = RecordRepository.create(
            self.db,
            tenant_id=principal.tenant_id,
            database_id=database.id,
            values=kept,
        )

        records_mutations_total.labels(action=ActivityAction.CREATE_RECORD.value).inc()
        self.audit.log_action(
            principal,
            ActivityAction.CREATE_RECORD,
            database_id=database.id,
            database_name=database.name,
            record_id=record.id,
        )
        return record

    @requires(Permission.UPDATE_RECORD)
    def update_record(
        self,
        principal: Principal,
        record_id: UUID,
        values: Optional[Mapping[str, Any]] = None,
    ) -> Record:
        """Overwrite-or-insert every key of `values`; no key is ever removed."""
        changes = normalize_values(values)
        record = self._require_record(principal, record_id)
        record = RecordRepository.merge_values(self.db, record=record, values=changes)

        records_mutations_total.labels(action=ActivityAction.UPDATE_RECORD.value).inc()
        self.audit.log_action(
            principal,
            ActivityAction.UPDATE_RECORD,
            database_id=record.database_id,
            record_id=record.id,
            keys=list(changes),
        )
        return record

    @requires(Permission.DELETE_RECORD)
    def delete_record(self, principal: Principal, record_id: UUID) -> Record:
        record = self._require_record(principal, record_id)
        record = RecordRepository.soft_delete(self.db, record=record)

        records_mutations_total.labels(action=ActivityAction.DELETE_RECORD.value).inc()
        self.audit.log_action(
            principal,
            ActivityAction.DELETE_RECORD,
            database_id=record.database_id,
            record_id=record.id,
        )
        return record

    @requires(Permission.READ_RECORDS)
    def get_record(self, principal: Principal, record_id: UUID) -> Optional[Record]:
        """Returns None when the record is absent, foreign or soft-deleted."""
        return RecordRepository.get_by_id(
            self.db, tenant_id=principal.tenant_id, record_id=record_id
        )
