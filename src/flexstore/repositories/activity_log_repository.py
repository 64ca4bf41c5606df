# src/flexstore/repositories/activity_log_repository.py

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from opentelemetry import trace
from sqlalchemy.orm import Session

from flexstore.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ActivityLogRepository:
    """Append-only storage of activity log entries. Entries are never updated or deleted."""

    @staticmethod
    def create(
        db: Session,
        *,
        tenant_id: UUID,
        user_id: UUID,
        action: str,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            tenant_id=tenant_id,
            user_id=user_id,
            action=action,
            details=details,
        )

        with tracer.start_as_current_span("db.create_activity_log") as span:
            span.set_attribute("tenant.id", str(tenant_id))
            span.set_attribute("activity.action", action)

            try:
                db.add(entry)
                db.commit()
                db.refresh(entry)
            except Exception:
                db.rollback()
                raise

        logger.debug("Appended activity log action=%s tenant=%s user=%s", action, tenant_id, user_id)
        return entry

    @staticmethod
    def list_for_tenant(
        db: Session,
        *,
        tenant_id: UUID,
        offset: int,
        limit: int,
    ) -> list[ActivityLog]:
        """Most recent first."""
        with tracer.start_as_current_span("db.list_activity_logs_for_tenant") as span:
            span.set_attribute("tenant.id", str(tenant_id))

            return (
                db.query(ActivityLog)
                .filter(ActivityLog.tenant_id == tenant_id)
                .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
