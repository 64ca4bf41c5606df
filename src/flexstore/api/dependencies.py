from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from flexstore.auth.rbac import Principal
from flexstore.config import Settings, get_settings
from flexstore.db.database import get_db
from flexstore.services.audit_log import AuditLog
from flexstore.services.identity_service import IdentityService
from flexstore.services.query_engine import QueryEngine
from flexstore.services.record_store import RecordStore
from flexstore.services.schema_registry import SchemaRegistry

# Missing credentials are not an error here; each operation decides
security = HTTPBearer(auto_error=False)


def get_identity_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> IdentityService:
    return IdentityService(db, settings)


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity: IdentityService = Depends(get_identity_service),
) -> Optional[Principal]:
    """
    Resolve the bearer token into a Principal, or None when anonymous.
    """
    if credentials is None:
        return None
    return identity.authenticate(credentials.credentials)


def get_audit_log(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuditLog:
    return AuditLog(db, settings)


def get_schema_registry(
    db: Session = Depends(get_db),
    audit: AuditLog = Depends(get_audit_log),
) -> SchemaRegistry:
    return SchemaRegistry(db, audit)


def get_record_store(
    db: Session = Depends(get_db),
    audit: AuditLog = Depends(get_audit_log),
) -> RecordStore:
    return RecordStore(db, audit)


def get_query_engine(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> QueryEngine:
    return QueryEngine(db, settings)
