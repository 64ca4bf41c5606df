# src/flexstore/api/routes/databases.py

import logging
from dataclasses import asdict
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from opentelemetry import trace

from flexstore.api.dependencies import (
    get_principal,
    get_query_engine,
    get_record_store,
    get_schema_registry,
)
from flexstore.api.rate_limit import rate_limit
from flexstore.api.schemas import (
    DatabaseIn,
    DatabaseOut,
    FieldIn,
    RecordOut,
    RecordPageOut,
    RecordQueryIn,
    RecordValuesIn,
)
from flexstore.auth.rbac import Principal
from flexstore.services.query_engine import QueryEngine, SortSpec, format_record
from flexstore.services.record_store import RecordStore
from flexstore.services.schema_registry import FieldSpec, SchemaRegistry

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

router = APIRouter(
    prefix="/databases",
    tags=["Databases"],
)


def _span_tenant(span, principal: Optional[Principal]) -> None:
    if principal is not None:
        span.set_attribute("tenant.id", str(principal.tenant_id))


# ----------------------------------------
# Databases
# ----------------------------------------
@router.get("", response_model=list[DatabaseOut])
async def list_databases(
    principal: Optional[Principal] = Depends(get_principal),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    """
    List the live databases of the caller's tenant.
    """
    with tracer.start_as_current_span("api.list_databases") as span:
        _span_tenant(span, principal)
        return registry.list_databases(principal)


@router.post("", response_model=DatabaseOut, status_code=status.HTTP_201_CREATED)
async def create_database(
    payload: DatabaseIn,
    principal: Optional[Principal] = Depends(get_principal),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    with tracer.start_as_current_span("api.create_database") as span:
        _span_tenant(span, principal)
        return registry.create_database(principal, payload.name)


@router.get("/{database_id}", response_model=Optional[DatabaseOut])
async def get_database(
    database_id: UUID,
    principal: Optional[Principal] = Depends(get_principal),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    """
    Retrieve one database. Responds with `null` when it is absent, belongs to
    another tenant, or was deleted.
    """
    with tracer.start_as_current_span("api.get_database") as span:
        _span_tenant(span, principal)
        span.set_attribute("database.id", str(database_id))
        return registry.get_database(principal, database_id)


@router.patch("/{database_id}", response_model=DatabaseOut)
async def update_database(
    database_id: UUID,
    payload: DatabaseIn,
    principal: Optional[Principal] = Depends(get_principal),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    with tracer.start_as_current_span("api.update_database") as span:
        _span_tenant(span, principal)
        span.set_attribute("database.id", str(database_id))
        return registry.update_database(principal, database_id, payload.name)


@router.delete("/{database_id}")
async def delete_database(
    database_id: UUID,
    principal: Optional[Principal] = Depends(get_principal),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    with tracer.start_as_current_span("api.delete_database") as span:
        _span_tenant(span, principal)
        span.set_attribute("database.id", str(database_id))
        registry.delete_database(principal, database_id)
        return {"success": True}


# ----------------------------------------
# Fields
# ----------------------------------------
def _field_spec(payload: FieldIn) -> FieldSpec:
    return FieldSpec(
        name=payload.name,
        type=payload.type,
        options=payload.options,
        relation_database_id=payload.relation_database_id,
    )


@router.post(
    "/{database_id}/fields",
    response_model=DatabaseOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_field(
    database_id: UUID,
    payload: FieldIn,
    principal: Optional[Principal] = Depends(get_principal),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    with tracer.start_as_current_span("api.add_field") as span:
        _span_tenant(span, principal)
        span.set_attribute("database.id", str(database_id))
        return registry.add_field(principal, database_id, _field_spec(payload))


@router.patch("/{database_id}/fields/{field_id}", response_model=DatabaseOut)
async def update_field(
    database_id: UUID,
    field_id: UUID,
    payload: FieldIn,
    principal: Optional[Principal] = Depends(get_principal),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    with tracer.start_as_current_span("api.update_field") as span:
        _span_tenant(span, principal)
        span.set_attribute("field.id", str(field_id))
        return registry.update_field(principal, database_id, field_id, _field_spec(payload))


@router.delete("/{database_id}/fields/{field_id}", response_model=DatabaseOut)
async def remove_field(
    database_id: UUID,
    field_id: UUID,
    principal: Optional[Principal] = Depends(get_principal),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    with tracer.start_as_current_span("api.remove_field") as span:
        _span_tenant(span, principal)
        span.set_attribute("field.id", str(field_id))
        return registry.remove_field(principal, database_id, field_id)


# ----------------------------------------
# Records of a database
# ----------------------------------------
@router.post(
    "/{database_id}/records",
    response_model=RecordOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("create_record"))],
)
async def create_record(
    database_id: UUID,
    payload: RecordValuesIn,
    principal: Optional[Principal] = Depends(get_principal),
    store: RecordStore = Depends(get_record_store),
):
    """
    Create a record. Keys that are not fields of the database are dropped.
    """
    with tracer.start_as_current_span("api.create_record") as span:
        _span_tenant(span, principal)
        span.set_attribute("database.id", str(database_id))
        record = store.create_record(principal, database_id, payload.values)
        return format_record(record)


@router.post(
    "/{database_id}/records/query",
    response_model=RecordPageOut,
    dependencies=[Depends(rate_limit("list_records"))],
)
async def query_records(
    database_id: UUID,
    payload: RecordQueryIn,
    principal: Optional[Principal] = Depends(get_principal),
    engine: QueryEngine = Depends(get_query_engine),
):
    """
    Filter, sort, search and paginate the records of a database.
    """
    sort = SortSpec(field=payload.sort.field, order=payload.sort.order) if payload.sort else None

    with tracer.start_as_current_span("api.query_records") as span:
        _span_tenant(span, principal)
        span.set_attribute("database.id", str(database_id))
        result = engine.list_records(
            principal,
            database_id,
            filter=payload.filter,
            sort=sort,
            search=payload.search,
            page=payload.page,
            limit=payload.limit,
        )
        return asdict(result)


@router.get(
    "/{database_id}/records",
    response_model=RecordPageOut,
    dependencies=[Depends(rate_limit("list_records"))],
)
async def list_records(
    database_id: UUID,
    search: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_field: Optional[str] = Query(None, alias="sort"),
    order: str = "asc",
    principal: Optional[Principal] = Depends(get_principal),
    engine: QueryEngine = Depends(get_query_engine),
):
    sort = SortSpec(field=sort_field, order=order) if sort_field else None

    with tracer.start_as_current_span("api.list_records") as span:
        _span_tenant(span, principal)
        span.set_attribute("database.id", str(database_id))
        result = engine.list_records(
            principal,
            database_id,
            sort=sort,
            search=search,
            page=page,
            limit=limit,
        )
        return asdict(result)
