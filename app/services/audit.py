"""Audit sink — append-only log of administrative actions. Never raises."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.audit_log import AuditLog, AuditLogRead

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who performed an action, and from where."""

    user_id: uuid.UUID | None
    ip_address: str | None = None


class AuditService:
    """Writes audit records on a short-lived session of their own.

    Callers commit their own mutation first. A failed audit write is logged
    and rolled back without touching the caller's session or its objects.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        actor_id: uuid.UUID | None,
        action: str,
        tenant_id: uuid.UUID | None = None,
        target_id: uuid.UUID | str | None = None,
        details: dict | None = None,
        ip_address: str | None = None,
    ) -> None:
        audit_session = AsyncSession(self.session.bind, expire_on_commit=False)
        try:
            entry = AuditLog(
                actor_id=actor_id,
                tenant_id=tenant_id,
                action=action,
                target_id=str(target_id) if target_id is not None else None,
                details=json.dumps(details, default=str) if details is not None else None,
                ip_address=ip_address,
            )
            audit_session.add(entry)
            await audit_session.commit()
        except Exception:
            logger.exception("Audit write failed for action %s (target %s)", action, target_id)
            await self._discard(audit_session)
        finally:
            await audit_session.close()

    async def record(
        self,
        actor: Actor,
        action: str,
        tenant_id: uuid.UUID | None = None,
        target_id: uuid.UUID | str | None = None,
        details: dict | None = None,
    ) -> None:
        """Shorthand for ``log`` with an ``Actor``."""
        await self.log(
            actor.user_id,
            action,
            tenant_id=tenant_id,
            target_id=target_id,
            details=details,
            ip_address=actor.ip_address,
        )

    async def recent(
        self, limit: int = 50, tenant_id: uuid.UUID | None = None
    ) -> list[AuditLogRead]:
        stmt = select(AuditLog)
        if tenant_id is not None:
            stmt = stmt.where(AuditLog.tenant_id == tenant_id)
        stmt = stmt.order_by(AuditLog.created_at.desc()).limit(limit)  # type: ignore[union-attr]
        result = await self.session.execute(stmt)
        return [
            AuditLogRead(
                id=row.id,
                actor_id=row.actor_id,
                tenant_id=row.tenant_id,
                action=row.action,
                target_id=row.target_id,
                details=json.loads(row.details) if row.details else None,
                ip_address=row.ip_address,
                created_at=row.created_at,
            )
            for row in result.scalars().all()
        ]

    @staticmethod
    async def _discard(audit_session: AsyncSession) -> None:
        try:
            await audit_session.rollback()
        except Exception:
            logger.exception("Rollback after failed audit write also failed")
