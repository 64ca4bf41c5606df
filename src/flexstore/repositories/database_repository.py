# src/flexstore/repositories/database_repository.py

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from opentelemetry import trace
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flexstore.models.database_definition import Database, FieldDefinition

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class DatabaseRepository:
    """
    Persistence for tenant databases and their field definitions.

    Every read takes the tenant id; soft-deleted databases are excluded from
    all lookups.
    """

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    @staticmethod
    def _commit(db: Session, database: Database, operation: str) -> Database:
        try:
            db.add(database)
            db.commit()
            db.refresh(database)
        except IntegrityError:
            db.rollback()
            logger.info(
                "%s rejected by unique constraint: tenant=%s name=%s",
                operation,
                database.tenant_id,
                database.name,
            )
            raise
        except Exception:
            logger.exception(
                "DB %s failed for Database id=%s tenant=%s",
                operation,
                database.id,
                database.tenant_id,
            )
            db.rollback()
            raise
        return database

    # -------------------------------------------------------------------------
    # READ
    # -------------------------------------------------------------------------
    @staticmethod
    def get_by_id(db: Session, *, tenant_id: UUID, database_id: UUID) -> Database | None:
        with tracer.start_as_current_span("db.get_database_by_id") as span:
            span.set_attribute("tenant.id", str(tenant_id))
            span.set_attribute("database.id", str(database_id))

            return (
                db.query(Database)
                .filter(
                    Database.id == database_id,
                    Database.tenant_id == tenant_id,
                    Database.is_deleted.is_(False),
                )
                .first()
            )

    @staticmethod
    def list_for_tenant(db: Session, *, tenant_id: UUID) -> list[Database]:
        with tracer.start_as_current_span("db.list_databases_for_tenant") as span:
            span.set_attribute("tenant.id", str(tenant_id))

            results = (
                db.query(Database)
                .filter(
                    Database.tenant_id == tenant_id,
                    Database.is_deleted.is_(False),
                )
                .order_by(Database.created_at, Database.id)
                .all()
            )

        logger.debug("Listed %d databases for tenant=%s", len(results), tenant_id)
        return results

    # -------------------------------------------------------------------------
    # CREATE / UPDATE / DELETE
    # -------------------------------------------------------------------------
    @staticmethod
    def create(db: Session, *, tenant_id: UUID, name: str) -> Database:
        database = Database(tenant_id=tenant_id, name=name)

        with tracer.start_as_current_span("db.create_database") as span:
            span.set_attribute("tenant.id", str(tenant_id))
            DatabaseRepository._commit(db, database, "create")

        logger.info("Created Database id=%s tenant=%s name=%s", database.id, tenant_id, name)
        return database

    @staticmethod
    def rename(db: Session, *, database: Database, name: str) -> Database:
        database.name = name

        with tracer.start_as_current_span("db.rename_database") as span:
            span.set_attribute("tenant.id", str(database.tenant_id))
            span.set_attribute("database.id", str(database.id))
            DatabaseRepository._commit(db, database, "rename")

        logger.info("Renamed Database id=%s tenant=%s to %s", database.id, database.tenant_id, name)
        return database

    @staticmethod
    def soft_delete(db: Session, *, database: Database) -> Database:
        database.is_deleted = True

        with tracer.start_as_current_span("db.soft_delete_database") as span:
            span.set_attribute("tenant.id", str(database.tenant_id))
            span.set_attribute("database.id", str(database.id))
            DatabaseRepository._commit(db, database, "soft delete")

        logger.info("Soft-deleted Database id=%s tenant=%s", database.id, database.tenant_id)
        return database

    # -------------------------------------------------------------------------
    # FIELDS
    # -------------------------------------------------------------------------
    @staticmethod
    def add_field(
        db: Session,
        *,
        database: Database,
        name: str,
        type: str,
        options: list[str] | None = None,
        relation_database_id: UUID | None = None,
    ) -> FieldDefinition:
        position = max((f.position for f in database.fields), default=-1) + 1
        field = FieldDefinition(
            name=name,
            type=type,
            options=options,
            relation_database_id=relation_database_id,
            position=position,
        )

        with tracer.start_as_current_span("db.add_field") as span:
            span.set_attribute("tenant.id", str(database.tenant_id))
            span.set_attribute("database.id", str(database.id))
            span.set_attribute("field.type", type)

            database.fields.append(field)
            DatabaseRepository._commit(db, database, "add field")

        logger.info(
            "Added field id=%s name=%s type=%s to Database id=%s",
            field.id,
            name,
            type,
            database.id,
        )
        return field

    @staticmethod
    def update_field(
        db: Session,
        *,
        database: Database,
        field: FieldDefinition,
        changes: dict[str, Any],
    ) -> FieldDefinition:
        for attr, value in changes.items():
            setattr(field, attr, value)

        with tracer.start_as_current_span("db.update_field") as span:
            span.set_attribute("tenant.id", str(database.tenant_id))
            span.set_attribute("database.id", str(database.id))
            span.set_attribute("field.id", str(field.id))
            DatabaseRepository._commit(db, database, "update field")

        logger.info("Updated field id=%s on Database id=%s", field.id, database.id)
        return field

    @staticmethod
    def remove_field(db: Session, *, database: Database, field: FieldDefinition) -> None:
        field_id = field.id

        with tracer.start_as_current_span("db.remove_field") as span:
            span.set_attribute("tenant.id", str(database.tenant_id))
            span.set_attribute("database.id", str(database.id))
            span.set_attribute("field.id", str(field_id))

            database.fields.remove(field)
            DatabaseRepository._commit(db, database, "remove field")

        logger.info("Removed field id=%s from Database id=%s", field_id, database.id)
