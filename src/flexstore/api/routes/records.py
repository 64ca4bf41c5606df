# src/flexstore/api/routes/records.py

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from opentelemetry import trace

from flexstore.api.dependencies import get_principal, get_record_store
from flexstore.api.schemas import RecordOut, RecordValuesIn
from flexstore.auth.rbac import Principal
from flexstore.services.query_engine import format_record
from flexstore.services.record_store import RecordStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

router = APIRouter(
    prefix="/records",
    tags=["Records"],
)


@router.get("/{record_id}", response_model=Optional[RecordOut])
async def get_record(
    record_id: UUID,
    principal: Optional[Principal] = Depends(get_principal),
    store: RecordStore = Depends(get_record_store),
):
    """
    Retrieve one record, or `null` when it is absent, foreign or deleted.
    """
    with tracer.start_as_current_span("api.get_record") as span:
        span.set_attribute("record.id", str(record_id))
        record = store.get_record(principal, record_id)
        return format_record(record) if record is not None else None


@router.patch("/{record_id}", response_model=RecordOut)
async def update_record(
    record_id: UUID,
    payload: RecordValuesIn,
    principal: Optional[Principal] = Depends(get_principal),
    store: RecordStore = Depends(get_record_store),
):
    """
    Merge `values` into the record. Any key is accepted; none is removed.
    """
    with tracer.start_as_current_span("api.update_record") as span:
        span.set_attribute("record.id", str(record_id))
        record = store.update_record(principal, record_id, payload.values)
        return format_record(record)


@router.delete("/{record_id}")
async def delete_record(
    record_id: UUID,
    principal: Optional[Principal] = Depends(get_principal),
    store: RecordStore = Depends(get_record_store),
):
    with tracer.start_as_current_span("api.delete_record") as span:
        span.set_attribute("record.id", str(record_id))
        store.delete_record(principal, record_id)
        return {"success": True}
