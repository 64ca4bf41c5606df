# src/flexstore/api/routes/activity_logs.py

from typing import Optional

from fastapi import APIRouter, Depends

from flexstore.api.dependencies import get_audit_log, get_principal
from flexstore.api.schemas import ActivityLogOut
from flexstore.auth.rbac import Principal
from flexstore.services.audit_log import AuditLog

router = APIRouter(
    prefix="/activity-logs",
    tags=["Activity Logs"],
)


@router.get("", response_model=list[ActivityLogOut])
async def list_activity_logs(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    principal: Optional[Principal] = Depends(get_principal),
    audit: AuditLog = Depends(get_audit_log),
):
    """
    Activity of the caller's tenant, most recent first.
    """
    return audit.list_for_tenant(principal, page=page, limit=limit)
