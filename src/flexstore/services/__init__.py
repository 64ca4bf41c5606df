# src/flexstore/services/__init__.py
from .audit_log import AuditLog
from .identity_service import AuthPayload, IdentityService
from .query_engine import QueryEngine, RecordPage, SortSpec, format_record
from .record_store import RecordStore
from .schema_registry import FieldSpec, SchemaRegistry

__all__ = [
    "AuditLog",
    "AuthPayload",
    "FieldSpec",
    "IdentityService",
    "QueryEngine",
    "RecordPage",
    "RecordStore",
    "SchemaRegistry",
    "SortSpec",
    "format_record",
]
