"""Tenant data export — a JSON snapshot, or one CSV dataset at a time."""

from __future__ import annotations

import csv
import io
import uuid
from collections import defaultdict
from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.base import utcnow
from app.models.commerce import MembershipPlan, Subscription
from app.models.membership import TenantMember, TenantRole
from app.models.retail import Product
from app.models.scheduling import Booking, StudioClass
from app.models.tenant import Tenant, TenantRead
from app.models.user import User
from app.services.deletion_catalog import TENANT_PHASE, StepAction, iter_steps
from app.services.errors import LifecycleValidationError, TenantNotFoundError

EXPORT_DATASETS = ("subscribers", "financials", "products")


def _iso(value) -> str:
    return value.isoformat() if value else ""


class TenantExporter:
    def __init__(self, session: AsyncSession, tenant_id: uuid.UUID):
        self.session = session
        self.tenant_id = tenant_id

    # ── JSON snapshot ─────────────────────────────────────────

    async def snapshot(self) -> dict[str, Any]:
        tenant = await self.session.get(Tenant, self.tenant_id)
        if tenant is None:
            raise TenantNotFoundError(self.tenant_id)

        return {
            "tenant": TenantRead.model_validate(tenant).model_dump(mode="json"),
            "members": await self._members(),
            "membership_plans": [
                {"id": str(p.id), "title": p.title, "price": p.price,
                 "interval": p.interval, "is_active": p.is_active}
                for p in await self._all(MembershipPlan)
            ],
            "subscriptions": [
                {"id": str(s.id), "member_id": str(s.member_id), "plan_id": str(s.plan_id),
                 "status": s.status, "current_period_end": _iso(s.current_period_end)}
                for s in await self._all(Subscription)
            ],
            "products": [
                {"id": str(p.id), "name": p.name, "sku": p.sku, "price": p.price,
                 "stock_quantity": p.stock_quantity, "is_active": p.is_active}
                for p in await self._all(Product)
            ],
            "classes": await self._classes(),
            "record_counts": await self.record_counts(),
            "exported_at": utcnow().isoformat(),
        }

    async def record_counts(self) -> dict[str, int]:
        """Rows per cataloged table that tenant deletion would touch."""
        counts: dict[str, int] = {}
        for phase, step in iter_steps():
            if phase.name == TENANT_PHASE or step.action is StepAction.DETACH:
                continue
            result = await self.session.execute(
                select(func.count()).select_from(step.model).where(step.scope(self.tenant_id))
            )
            counts[step.table] = result.scalar_one()
        return counts

    async def _all(self, model) -> list:
        result = await self.session.execute(
            select(model).where(model.tenant_id == self.tenant_id).order_by(model.created_at)
        )
        return list(result.scalars().all())

    async def _members(self) -> list[dict[str, Any]]:
        rows = (
            await self.session.execute(
                select(TenantMember, User)
                .join(User, User.id == TenantMember.user_id)
                .where(TenantMember.tenant_id == self.tenant_id)
                .order_by(TenantMember.created_at)
            )
        ).all()
        roles = await self._roles_by_member()
        return [
            {
                "member_id": str(member.id),
                "user_id": str(user.id),
                "email": user.email,
                "display_name": user.display_name,
                "status": member.status,
                "roles": roles.get(member.id, []),
                "joined_at": _iso(member.created_at),
            }
            for member, user in rows
        ]

    async def _roles_by_member(self) -> dict[uuid.UUID, list[str]]:
        rows = (
            await self.session.execute(
                select(TenantRole.member_id, TenantRole.role)
                .join(TenantMember, TenantMember.id == TenantRole.member_id)
                .where(TenantMember.tenant_id == self.tenant_id)
            )
        ).all()
        roles: dict[uuid.UUID, list[str]] = defaultdict(list)
        for member_id, role in rows:
            roles[member_id].append(str(role))
        return roles

    async def _classes(self) -> list[dict[str, Any]]:
        rows = (
            await self.session.execute(
                select(StudioClass, func.count(Booking.id))
                .outerjoin(Booking, Booking.class_id == StudioClass.id)
                .where(StudioClass.tenant_id == self.tenant_id)
                .group_by(StudioClass.id)
                .order_by(StudioClass.start_time)
            )
        ).all()
        return [
            {"id": str(c.id), "title": c.title, "start_time": _iso(c.start_time),
             "capacity": c.capacity, "booking_count": count}
            for c, count in rows
        ]

    # ── CSV datasets ──────────────────────────────────────────

    async def dataset_csv(self, dataset: str) -> tuple[str, str]:
        """Return ``(filename, csv_text)`` for one dataset."""
        builders = {
            "subscribers": self._subscribers,
            "financials": self._financials,
            "products": self._products,
        }
        builder = builders.get(dataset)
        if builder is None:
            raise LifecycleValidationError(
                f"Invalid export dataset {dataset!r}; expected one of: {', '.join(EXPORT_DATASETS)}"
            )
        header, rows = await builder()

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(header)
        writer.writerows(rows)
        stamp = utcnow().strftime("%Y%m%dT%H%M%S")
        return f"{dataset}_{self.tenant_id}_{stamp}.csv", output.getvalue()

    async def _subscribers(self):
        header = ["MemberID", "Status", "JoinedDate", "Email", "Name", "Phone", "Roles"]
        roles = await self._roles_by_member()
        rows = (
            await self.session.execute(
                select(TenantMember, User)
                .join(User, User.id == TenantMember.user_id)
                .where(TenantMember.tenant_id == self.tenant_id)
                .order_by(TenantMember.created_at)
            )
        ).all()
        return header, [
            [str(m.id), m.status, _iso(m.created_at), u.email, u.display_name,
             u.phone or "", ";".join(roles.get(m.id, []))]
            for m, u in rows
        ]

    async def _financials(self):
        header = ["SubscriptionID", "UserEmail", "PlanName", "Status", "Interval",
                  "Amount", "CurrentPeriodEnd", "CanceledAt"]
        rows = (
            await self.session.execute(
                select(Subscription, MembershipPlan, User)
                .join(MembershipPlan, MembershipPlan.id == Subscription.plan_id)
                .join(TenantMember, TenantMember.id == Subscription.member_id)
                .join(User, User.id == TenantMember.user_id)
                .where(Subscription.tenant_id == self.tenant_id)
                .order_by(Subscription.created_at)
            )
        ).all()
        return header, [
            [str(s.id), u.email, p.title, s.status, p.interval, p.price,
             _iso(s.current_period_end), _iso(s.canceled_at)]
            for s, p, u in rows
        ]

    async def _products(self):
        header = ["PlanID", "Title", "Price", "Interval", "Active"]
        return header, [
            [str(p.id), p.title, p.price, p.interval, p.is_active]
            for p in await self._all(MembershipPlan)
        ]
