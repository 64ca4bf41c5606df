"""
Activity log service.

`append` is best-effort: it runs after the primary write has committed and
never raises, so a mutation cannot fail because its audit entry did.
"""
from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from flexstore.auth.permissions import Permission
from flexstore.auth.rbac import Principal, requires
from flexstore.config import Settings, get_settings
from flexstore.metrics import audit_failures_total
from flexstore.models.activity_log import ActivityAction, ActivityLog
from flexstore.repositories.activity_log_repository import ActivityLogRepository
from flexstore.services.pagination import resolve_page

logger = logging.getLogger(__name__)


class AuditLog:
    """Append-only trail of schema and record mutations."""

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def append(
        self,
        tenant_id: UUID,
        user_id: UUID,
        action: ActivityAction,
        details: dict[str, Any] | None = None,
    ) -> Optional[ActivityLog]:
        """
        Write one entry. Returns None when the write failed.
        """
        try:
            return ActivityLogRepository.create(
                self.db,
                tenant_id=tenant_id,
                user_id=user_id,
                action=ActivityAction(action).value,
                details=details,
            )
        except Exception:
            audit_failures_total.inc()
            logger.exception(
                "Failed to append activity log action=%s tenant=%s user=%s",
                action,
                tenant_id,
                user_id,
            )
            return None

    def log_action(self, principal: Principal, action: ActivityAction, **details: Any) -> None:
        """Append an entry attributed to `principal`, stringifying ids in `details`."""
        payload = {key: str(value) if isinstance(value, UUID) else value for key, value in details.items()}
        self.append(principal.tenant_id, principal.user_id, action, payload)

    @requires(Permission.READ_ACTIVITY)
    def list_for_tenant(
        self,
        principal: Principal,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[ActivityLog]:
        page, limit = resolve_page(
            page,
            limit,
            default_limit=self.settings.activity_logs_default_limit,
            max_limit=self.settings.records_max_limit,
        )
        return ActivityLogRepository.list_for_tenant(
            self.db,
            tenant_id=principal.tenant_id,
            offset=(page - 1) * limit,
            limit=limit,
        )
