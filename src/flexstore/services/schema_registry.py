"""
Schema registry: tenant databases and their field definitions.

Mutations require the Admin role and append one activity log entry each.
Soft-deleted databases are invisible here: lookups return None and
mutations fail with NotFound.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flexstore.auth.permissions import Permission
from flexstore.auth.rbac import Principal, requires
from flexstore.errors import Conflict, InvalidInput, NotFound
from flexstore.metrics import schema_mutations_total
from flexstore.models.activity_log import ActivityAction
from flexstore.models.database_definition import Database, FieldDefinition, FieldType
from flexstore.repositories.database_repository import DatabaseRepository
from flexstore.services.audit_log import AuditLog
from flexstore.services.field_values import validate_key

logger = logging.getLogger(__name__)

SELECT_TYPES = {FieldType.SELECT, FieldType.MULTI_SELECT}
MAX_DATABASE_NAME_LENGTH = 255


@dataclass
class FieldSpec:
    """Caller-supplied attributes of a field definition."""
    name: str
    type: str
    options: Optional[list[str]] = None
    relation_database_id: Optional[UUID] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FieldSpec":
        return cls(
            name=data.get("name"),
            type=data.get("type"),
            options=data.get("options"),
            relation_database_id=data.get("relation_database_id"),
        )


class SchemaRegistry:
    """Service for databases and field definitions."""

    def __init__(self, db: Session, audit: AuditLog | None = None):
        self.db = db
        self.audit = audit or AuditLog(db)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    @staticmethod
    def _validate_database_name(name: Any) -> str:
        if not isinstance(name, str) or not name.strip():
            raise InvalidInput("Database name is required", field="name")
        name = name.strip()
        if len(name) > MAX_DATABASE_NAME_LENGTH:
            raise InvalidInput(
                f"Database name must be at most {MAX_DATABASE_NAME_LENGTH} characters",
                field="name",
            )
        return name

    def _require_database(self, principal: Principal, database_id: UUID) -> Database:
        database = DatabaseRepository.get_by_id(
            self.db, tenant_id=principal.tenant_id, database_id=database_id
        )
        if database is None:
            raise NotFound("Database not found")
        return database

    def _validate_field_spec(self, principal: Principal, spec: FieldSpec) -> dict[str, Any]:
        name = validate_key(spec.name.strip() if isinstance(spec.name, str) else spec.name)

        try:
            field_type = FieldType(spec.type)
        except ValueError:
            allowed = ", ".join(t.value for t in FieldType)
            raise InvalidInput(f"Field type must be one of: {allowed}", field="type")

        options = None
        if field_type in SELECT_TYPES and spec.options is not None:
            if not isinstance(spec.options, (list, tuple)) or not all(
                isinstance(opt, str) and opt.strip() for opt in spec.options
            ):
                raise InvalidInput("Options must be a list of non-empty strings", field="options")
            options = list(spec.options)

        relation_database_id = None
        if field_type is FieldType.RELATION and spec.relation_database_id is not None:
            target = DatabaseRepository.get_by_id(
                self.db,
                tenant_id=principal.tenant_id,
                database_id=spec.relation_database_id,
            )
            if target is None:
                raise InvalidInput(
                    "Relation target database does not exist", field="relation_database_id"
                )
            relation_database_id = target.id

        return {
            "name": name,
            "type": field_type.value,
            "options": options,
            "relation_database_id": relation_database_id,
        }

    @staticmethod
    def _check_name_free(database: Database, name: str, exclude_id: UUID | None = None) -> None:
        folded = name.casefold()
        for field in database.fields:
            if field.id != exclude_id and field.name.casefold() == folded:
                raise Conflict(f"A field named {field.name!r} already exists in this database.")

    def _require_field(self, database: Database, field_id: UUID) -> FieldDefinition:
        field = database.field_by_id(field_id)
        if field is None:
            raise NotFound("Field not found")
        return field

    # -------------------------------------------------------------------------
    # READ
    # -------------------------------------------------------------------------
    @requires(Permission.READ_DATABASES)
    def list_databases(self, principal: Principal) -> list[Database]:
        return DatabaseRepository.list_for_tenant(self.db, tenant_id=principal.tenant_id)

    @requires(Permission.READ_DATABASES)
    def get_database(self, principal: Principal, database_id: UUID) -> Optional[Database]:
        """Returns None when the database is absent, foreign or soft-deleted."""
        return DatabaseRepository.get_by_id(
            self.db, tenant_id=principal.tenant_id, database_id=database_id
        )

    # -------------------------------------------------------------------------
    # DATABASES
    # -------------------------------------------------------------------------
    @requires(Permission.CREATE_DATABASE)
    def create_database(self, principal: Principal, name: str) -> Database:
        name = self._validate_database_name(name)

        try:
            database = DatabaseRepository.create(self.db, tenant_id=principal.tenant_id, name=name)
        except IntegrityError:
            raise Conflict(f"A database named {name!r} already exists.")

        schema_mutations_total.labels(action=ActivityAction.CREATE_DATABASE.value).inc()
        self.audit.log_action(
            principal,
            ActivityAction.CREATE_DATABASE,
            database_id=database.id,
            database_name=database.name,
        )
        return database

    @requires(Permission.UPDATE_DATABASE)
    def update_database(self, principal: Principal, database_id: UUID, name: str) -> Database:
        name = self._validate_database_name(name)
        database = self._require_database(principal, database_id)
        previous_name = database.name

        try:
            database = DatabaseRepository.rename(self.db, database=database, name=name)
        except IntegrityError:
            raise Conflict(f"A database named {name!r} already exists.")

        schema_mutations_total.labels(action=ActivityAction.UPDATE_DATABASE.value).inc()
        self.audit.log_action(
            principal,
            ActivityAction.UPDATE_DATABASE,
            database_id=database.id,
            database_name=database.name,
            previous_name=previous_name,
        )
        return database

    @requires(Permission.DELETE_DATABASE)
    def delete_database(self, principal: Principal, database_id: UUID) -> Database:
        """Soft delete. Records of the database are left untouched."""
        database = self._require_database(principal, database_id)
        database = DatabaseRepository.soft_delete(self.db, database=database)

        schema_mutations_total.labels(action=ActivityAction.DELETE_DATABASE.value).inc()
        self.audit.log_action(
            principal,
            ActivityAction.DELETE_DATABASE,
            database_id=database.id,
            database_name=database.name,
        )
        return database

    # -------------------------------------------------------------------------
    # FIELDS
    # -------------------------------------------------------------------------
    @requires(Permission.MANAGE_FIELDS)
    def add_field(self, principal: Principal, database_id: UUID, spec: FieldSpec) -> Database:
        database = self._require_database(principal, database_id)
        attrs = self._validate_field_spec(principal, spec)
        self._check_name_free(database, attrs["name"])

        field = DatabaseRepository.add_field(self.db, database=database, **attrs)

        schema_mutations_total.labels(action=ActivityAction.CREATE_FIELD.value).inc()
        self.audit.log_action(
            principal,
            ActivityAction.CREATE_FIELD,
            database_id=database.id,
            database_name=database.name,
            field_id=field.id,
            field_name=field.name,
            field_type=field.type,
        )
        return database

    @requires(Permission.MANAGE_FIELDS)
    def update_field(
        self,
        principal: Principal,
        database_id: UUID,
        field_id: UUID,
        spec: FieldSpec,
    ) -> Database:
        """Replace a field's attributes; its id and position are kept."""
        database = self._require_database(principal, database_id)
        field = self._require_field(database, field_id)
        attrs = self._validate_field_spec(principal, spec)
        self._check_name_free(database, attrs["name"], exclude_id=field.id)

        previous_name = field.name
        field = DatabaseRepository.update_field(self.db, database=database, field=field, changes=attrs)

        schema_mutations_total.labels(action=ActivityAction.UPDATE_FIELD.value).inc()
        self.audit.log_action(
            principal,
            ActivityAction.UPDATE_FIELD,
            database_id=database.id,
            database_name=database.name,
            field_id=field.id,
            field_name=field.name,
            previous_name=previous_name,
        )
        return database

    @requires(Permission.MANAGE_FIELDS)
    def remove_field(self, principal: Principal, database_id: UUID, field_id: UUID) -> Database:
        """Values already stored under the field's name are not cleaned up."""
        database = self._require_database(principal, database_id)
        field = self._require_field(database, field_id)
        field_name = field.name

        DatabaseRepository.remove_field(self.db, database=database, field=field)

        schema_mutations_total.labels(action=ActivityAction.DELETE_FIELD.value).inc()
        self.audit.log_action(
            principal,
            ActivityAction.DELETE_FIELD,
            database_id=database.id,
            database_name=database.name,
            field_id=field_id,
            field_name=field_name,
        )
        return database
