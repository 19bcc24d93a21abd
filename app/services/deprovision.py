"""Tenant deprovisioning — cascade-delete a tenant and everything it owns.

Runs the deletion catalog phase by phase, each in its own transaction. A
failed phase is logged and skipped so that a single broken table does not
leave the whole tenant behind. Only the final removal of the tenant row is
fatal. Afterwards, users left without any membership are reclaimed and
object storage cleanup is handed off to the background.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.membership import TenantMember
from app.models.tenant import Tenant
from app.services import deletion_catalog
from app.services.audit import Actor, AuditService
from app.services.best_effort import FailurePolicy, attempt
from app.services.deletion_catalog import TENANT_PHASE, DeletionPhase
from app.services.errors import TenantDeletionError, TenantNotFoundError
from app.services.reclamation import OrphanReclaimer, ReclamationResult

logger = logging.getLogger(__name__)

StorageCleanup = Callable[[str], None]


@dataclass
class PhaseReport:
    name: str
    ok: bool
    rows: int = 0
    error: str | None = None


@dataclass
class DeletionReport:
    tenant_id: uuid.UUID
    name: str
    slug: str
    phases: list[PhaseReport] = field(default_factory=list)
    orphans: ReclamationResult = field(default_factory=ReclamationResult)
    tenant_deleted: bool = False

    @property
    def failed_phases(self) -> list[str]:
        return [p.name for p in self.phases if not p.ok]


class TenantDeprovisioner:
    def __init__(
        self,
        session: AsyncSession,
        audit: AuditService,
        *,
        schedule_storage_cleanup: StorageCleanup | None = None,
        catalog: tuple[DeletionPhase, ...] | None = None,
        reclaimer: OrphanReclaimer | None = None,
    ):
        self.session = session
        self.audit = audit
        self.schedule_storage_cleanup = schedule_storage_cleanup
        # Looked up per instance so the module-level catalog can be swapped
        self.catalog = catalog if catalog is not None else deletion_catalog.CATALOG
        self.reclaimer = reclaimer or OrphanReclaimer(session)

    async def run(self, tenant_id: uuid.UUID, actor: Actor) -> DeletionReport:
        tenant = await self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)

        report = DeletionReport(tenant_id=tenant_id, name=tenant.name, slug=tenant.slug)
        # Captured before the members phase wipes the links
        candidates = await self._member_user_ids(tenant_id)
        logger.info(
            "Deleting tenant %s (%s) with %d member users", tenant_id, report.slug, len(candidates),
        )

        fatal: str | None = None
        vanished = False
        for phase in self.catalog:
            outcome = await attempt(phase.name, partial(self._run_phase, phase, tenant_id))
            report.phases.append(
                PhaseReport(
                    name=phase.name,
                    ok=outcome.ok,
                    rows=outcome.value or 0,
                    error=outcome.error,
                )
            )
            if not outcome.ok and phase.on_failure is FailurePolicy.RAISE:
                fatal = outcome.error
                break
            # Row removed behind our back: nothing of ours to audit or purge
            if outcome.ok and phase.name == TENANT_PHASE and not outcome.value:
                vanished = True

        report.tenant_deleted = fatal is None and not vanished
        # Memberships are already gone even if the tenant row survived
        report.orphans = await self.reclaimer.reclaim(candidates)

        if vanished:
            logger.warning("Tenant %s was already gone before its row could be deleted", tenant_id)
            raise TenantNotFoundError(tenant_id)

        if fatal is not None:
            await self.audit.record(
                actor,
                "delete_tenant_failed",
                tenant_id=tenant_id,
                target_id=tenant_id,
                details={
                    "name": report.name,
                    "slug": report.slug,
                    "error": fatal,
                    "failed_phases": report.failed_phases,
                },
            )
            raise TenantDeletionError(tenant_id, fatal)

        self._schedule_cleanup(report.slug)
        await self.audit.record(
            actor,
            "delete_tenant",
            target_id=tenant_id,
            details={
                "name": report.name,
                "slug": report.slug,
                "failed_phases": report.failed_phases,
                "orphans_deleted": len(report.orphans.deleted),
            },
        )
        logger.info(
            "Deleted tenant %s (%s); %d phases failed, %d users reclaimed",
            tenant_id, report.slug, len(report.failed_phases), len(report.orphans.deleted),
        )
        return report

    async def _member_user_ids(self, tenant_id: uuid.UUID) -> list[uuid.UUID]:
        rows = await self.session.execute(
            select(TenantMember.user_id).where(TenantMember.tenant_id == tenant_id).distinct()
        )
        return list(rows.scalars().all())

    async def _run_phase(self, phase: DeletionPhase, tenant_id: uuid.UUID) -> int:
        rows = 0
        try:
            for step in phase.steps:
                result = await self.session.execute(step.statement(tenant_id))
                rows += max(result.rowcount or 0, 0)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return rows

    def _schedule_cleanup(self, slug: str) -> None:
        if self.schedule_storage_cleanup is None:
            return
        try:
            self.schedule_storage_cleanup(slug)
        except Exception:
            logger.exception("Failed to schedule storage cleanup for tenant %s", slug)
