"""Audit log read view for platform operators."""

import uuid

from fastapi import APIRouter, Query

from app.api.deps import Operator, Session
from app.models.audit_log import AuditLogRead
from app.services.audit import AuditService

router = APIRouter(prefix="/admin/audit-logs", tags=["admin"])


@router.get("", response_model=list[AuditLogRead])
async def list_audit_logs(
    operator: Operator,
    session: Session,
    limit: int = Query(default=50, ge=1, le=500),
    tenant_id: uuid.UUID | None = None,
) -> list[AuditLogRead]:
    """Most recent administrative actions first."""
    return await AuditService(session).recent(limit=limit, tenant_id=tenant_id)
