"""Tenant lifecycle — status, tier, quotas, archive/restore, grace periods.

Every mutation validates its input, commits, then writes one audit record.
Validation and not-found errors are raised before anything is written.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.base import touch, utcnow
from app.models.membership import MemberRole, TenantMember, TenantRole
from app.models.site import WebsitePage
from app.models.tenant import QUOTA_KEYS, QuotaPatch, Tenant, TenantStatus, TenantTier
from app.models.user import User
from app.services.audit import Actor, AuditService
from app.services.errors import LifecycleValidationError, SlugConflictError, TenantNotFoundError

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"[a-z0-9-]+")

DEFAULT_HOME_PAGE = {
    "blocks": [
        {"type": "hero", "heading": "Welcome", "body": "Classes, workshops and community."},
        {"type": "schedule"},
    ],
}


def parse_status(value: Any) -> TenantStatus:
    try:
        return TenantStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in TenantStatus)
        raise LifecycleValidationError(
            f"Invalid status {value!r}; expected one of: {allowed}"
        ) from None


def parse_tier(value: Any) -> TenantTier:
    try:
        return TenantTier(value)
    except ValueError:
        allowed = ", ".join(t.value for t in TenantTier)
        raise LifecycleValidationError(
            f"Invalid tier {value!r}; expected one of: {allowed}"
        ) from None


def parse_quota_patch(changes: Mapping[str, Any]) -> QuotaPatch:
    """Validate a quota patch against the allow-list. Rejects the whole patch on any bad key."""
    if not isinstance(changes, Mapping):
        raise LifecycleValidationError("Quota patch must be an object")
    unknown = sorted(set(changes) - set(QUOTA_KEYS))
    if unknown:
        raise LifecycleValidationError(f"Unknown quota keys: {', '.join(unknown)}")
    if not changes:
        raise LifecycleValidationError("Quota patch is empty")
    if "billing_exempt" in changes and changes["billing_exempt"] is None:
        raise LifecycleValidationError("billing_exempt must be true or false")
    try:
        return QuotaPatch.model_validate(dict(changes))
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise LifecycleValidationError(f"Invalid quota patch: {errors}") from exc


def quota_settings(tenant: Tenant) -> dict[str, Any]:
    return {key: getattr(tenant, key) for key in QUOTA_KEYS}


class TenantLifecycleService:
    def __init__(self, session: AsyncSession, audit: AuditService | None = None):
        self.session = session
        self.audit = audit or AuditService(session)

    async def get(self, tenant_id: uuid.UUID) -> Tenant:
        tenant = await self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        return tenant

    async def list_tenants(self) -> list[dict[str, Any]]:
        """All tenants, newest first, with member and owner counts."""
        tenants = (
            await self.session.execute(
                select(Tenant).order_by(Tenant.created_at.desc())  # type: ignore[attr-defined]
            )
        ).scalars().all()

        member_counts = dict(
            (
                await self.session.execute(
                    select(TenantMember.tenant_id, func.count())
                    .group_by(TenantMember.tenant_id)
                )
            ).all()
        )
        owner_counts = dict(
            (
                await self.session.execute(
                    select(TenantMember.tenant_id, func.count(func.distinct(TenantMember.id)))
                    .join(TenantRole, TenantRole.member_id == TenantMember.id)
                    .where(TenantRole.role == MemberRole.OWNER)
                    .group_by(TenantMember.tenant_id)
                )
            ).all()
        )
        return [
            {
                "tenant": t,
                "member_count": member_counts.get(t.id, 0),
                "owner_count": owner_counts.get(t.id, 0),
            }
            for t in tenants
        ]

    async def create_tenant(
        self, name: str, slug: str, tier: TenantTier | str, actor: Actor,
    ) -> Tenant:
        """Create a tenant; the acting user becomes its owner."""
        tier = parse_tier(tier)
        slug = slug.strip().lower()
        if not SLUG_PATTERN.fullmatch(slug):
            raise LifecycleValidationError(
                f"Invalid slug {slug!r}; use lowercase letters, digits and hyphens"
            )

        existing = await self.session.execute(select(Tenant.id).where(Tenant.slug == slug))
        if existing.first() is not None:
            raise SlugConflictError(slug)

        tenant = Tenant(name=name.strip(), slug=slug, tier=tier)
        self.session.add(tenant)
        try:
            await self.session.flush()

            if actor.user_id is not None and await self.session.get(User, actor.user_id):
                member = TenantMember(tenant_id=tenant.id, user_id=actor.user_id)
                self.session.add(member)
                await self.session.flush()
                self.session.add(TenantRole(member_id=member.id, role=MemberRole.OWNER))

            self.session.add(
                WebsitePage(
                    tenant_id=tenant.id,
                    slug="home",
                    title=tenant.name,
                    content=json.dumps(DEFAULT_HOME_PAGE),
                    is_published=True,
                )
            )
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise SlugConflictError(slug) from exc

        await self.audit.record(
            actor, "create_tenant", tenant_id=tenant.id, target_id=tenant.id,
            details={"name": tenant.name, "slug": slug, "tier": tier.value},
        )
        logger.info("Created tenant %s (%s)", tenant.id, slug)
        return tenant

    async def set_status(self, tenant_id: uuid.UUID, value: Any, actor: Actor) -> Tenant:
        status = parse_status(value)
        tenant = await self.get(tenant_id)
        previous = tenant.status

        if status == TenantStatus.ARCHIVED:
            if tenant.archived_at is None:
                tenant.archived_at = utcnow()
            tenant.student_access_disabled = True
        elif previous == TenantStatus.ARCHIVED:
            tenant.archived_at = None
            tenant.student_access_disabled = False

        tenant.status = status
        touch(tenant)
        self.session.add(tenant)
        await self.session.commit()

        await self.audit.record(
            actor, "update_tenant_status", tenant_id=tenant.id, target_id=tenant.id,
            details={"from": previous, "to": status},
        )
        return tenant

    async def set_tier(self, tenant_id: uuid.UUID, value: Any, actor: Actor) -> Tenant:
        tier = parse_tier(value)
        tenant = await self.get(tenant_id)
        previous = tenant.tier

        tenant.tier = tier
        touch(tenant)
        self.session.add(tenant)
        await self.session.commit()

        await self.audit.record(
            actor, "update_tenant_tier", tenant_id=tenant.id, target_id=tenant.id,
            details={"from": previous, "to": tier},
        )
        return tenant

    async def patch_quotas(
        self, tenant_id: uuid.UUID, changes: Mapping[str, Any], actor: Actor,
    ) -> dict[str, Any]:
        """Apply only the keys present in ``changes``; return the full quota settings."""
        patch = parse_quota_patch(changes)
        tenant = await self.get(tenant_id)

        for key in changes:
            setattr(tenant, key, getattr(patch, key))
        touch(tenant)
        self.session.add(tenant)
        await self.session.commit()

        await self.audit.record(
            actor, "update_tenant_quotas", tenant_id=tenant.id, target_id=tenant.id,
            details={"changes": patch.model_dump(include=set(changes))},
        )
        return quota_settings(tenant)

    async def archive(self, tenant_id: uuid.UUID, actor: Actor) -> Tenant:
        tenant = await self.get(tenant_id)
        tenant.status = TenantStatus.ARCHIVED
        tenant.archived_at = utcnow()
        tenant.student_access_disabled = True
        touch(tenant)
        self.session.add(tenant)
        await self.session.commit()

        await self.audit.record(actor, "archive_tenant", tenant_id=tenant.id, target_id=tenant.id)
        return tenant

    async def restore(self, tenant_id: uuid.UUID, actor: Actor) -> Tenant:
        tenant = await self.get(tenant_id)
        tenant.status = TenantStatus.ACTIVE
        tenant.archived_at = None
        tenant.student_access_disabled = False
        touch(tenant)
        self.session.add(tenant)
        await self.session.commit()

        await self.audit.record(actor, "restore_tenant", tenant_id=tenant.id, target_id=tenant.id)
        return tenant

    async def set_grace_period(
        self,
        tenant_id: uuid.UUID,
        enabled: bool,
        ends_at: datetime | None,
        actor: Actor,
    ) -> Tenant:
        if ends_at is not None and ends_at.tzinfo is not None:
            # Stored as naive UTC, like every other timestamp
            ends_at = ends_at.astimezone(timezone.utc).replace(tzinfo=None)
        tenant = await self.get(tenant_id)

        # Enabling the grace period locks students out of the portal
        tenant.student_access_disabled = enabled
        tenant.grace_period_ends_at = ends_at
        touch(tenant)
        self.session.add(tenant)
        await self.session.commit()

        await self.audit.record(
            actor, "update_grace_period", tenant_id=tenant.id, target_id=tenant.id,
            details={"enabled": enabled, "ends_at": tenant.grace_period_ends_at},
        )
        return tenant

    async def waive_usage(self, tenant_id: uuid.UUID, actor: Actor) -> dict[str, int]:
        """Reset the current period's usage counters. Returns what was waived."""
        tenant = await self.get(tenant_id)
        waived = {
            "sms_usage": tenant.sms_usage,
            "email_usage": tenant.email_usage,
            "streaming_usage": tenant.streaming_usage,
        }
        tenant.sms_usage = 0
        tenant.email_usage = 0
        tenant.streaming_usage = 0
        touch(tenant)
        self.session.add(tenant)
        await self.session.commit()

        await self.audit.record(
            actor, "waive_billing_usage", tenant_id=tenant.id, target_id=tenant.id, details={"waived": waived},
        )
        return waived
