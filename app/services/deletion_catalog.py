"""Ordered catalog of tenant-owned tables, removed before the tenant row itself.

Every step is a (model, scope, action) triple. ``scope(tenant_id)`` returns the
WHERE clause selecting the tenant's rows in that table. Children come before
their parents: within a phase by position, across phases by phase order. The
tenant row is the last phase and the only one whose failure is fatal.

``catalog_violations`` checks the ordering against the foreign keys declared
in ``SQLModel.metadata``; the test suite runs it on every change.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy import MetaData, Select, delete, or_, select, update
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import SQLModel

from app.models import (
    Appointment,
    AppointmentService,
    AuditLog,
    AutomationLog,
    Availability,
    Booking,
    BrandingAsset,
    Challenge,
    ChatMessage,
    ChatRoom,
    ClassPackDefinition,
    ClassSeries,
    CommunityComment,
    CommunityPost,
    Coupon,
    CouponRedemption,
    EmailLog,
    GiftCard,
    GiftCardTransaction,
    InventoryAdjustment,
    Lead,
    Location,
    MarketingAutomation,
    MarketingCampaign,
    MembershipPlan,
    Payout,
    PayrollItem,
    PosOrder,
    PosOrderItem,
    Product,
    ProgressEntry,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchasedPack,
    ScheduledReport,
    SmsConfig,
    SmsLog,
    StudentNote,
    StudioClass,
    Subscription,
    Substitution,
    Supplier,
    Tenant,
    TenantFeature,
    TenantMember,
    TenantRole,
    Upload,
    UsageLog,
    UserChallenge,
    Video,
    VideoCollection,
    VideoCollectionItem,
    WaitlistEntry,
    WaiverSignature,
    WaiverTemplate,
    WebsitePage,
)
from app.services.best_effort import FailurePolicy

Scope = Callable[[uuid.UUID], ColumnElement[bool]]

# Global identity tables. Reclaimed separately, never by tenant scope.
SHARED_TABLES = frozenset({"users", "user_relationships"})

MEMBERS_PHASE = "members"
TENANT_PHASE = "tenant"


class StepAction(StrEnum):
    DELETE = "delete"
    DETACH = "detach"  # keep the row, null out tenant_id


@dataclass(frozen=True)
class CatalogStep:
    model: type[SQLModel]
    scope: Scope
    action: StepAction = StepAction.DELETE

    @property
    def table(self) -> str:
        return self.model.__tablename__  # type: ignore[return-value]

    def statement(self, tenant_id: uuid.UUID):
        where = self.scope(tenant_id)
        if self.action is StepAction.DETACH:
            stmt = update(self.model).where(where).values(tenant_id=None)
        else:
            stmt = delete(self.model).where(where)
        return stmt.execution_options(synchronize_session=False)


@dataclass(frozen=True)
class DeletionPhase:
    name: str
    steps: tuple[CatalogStep, ...]
    on_failure: FailurePolicy = FailurePolicy.TOLERATE


# ── Scope builders ───────────────────────────────────────────

def owned(model: type[SQLModel], action: StepAction = StepAction.DELETE) -> CatalogStep:
    """Rows carrying the tenant id directly."""
    return CatalogStep(model, lambda tenant_id: model.tenant_id == tenant_id, action)  # type: ignore[attr-defined]


def via(model: type[SQLModel], fk_column, parent: type[SQLModel]) -> CatalogStep:
    """Rows reachable only through a tenant-scoped parent."""

    def scope(tenant_id: uuid.UUID) -> ColumnElement[bool]:
        parents = select(parent.id).where(parent.tenant_id == tenant_id)  # type: ignore[attr-defined]
        return fk_column.in_(parents)

    return CatalogStep(model, scope)


def tenant_class_ids(tenant_id: uuid.UUID) -> Select:
    """Classes owned by the tenant, or generated from one of its series."""
    series = select(ClassSeries.id).where(ClassSeries.tenant_id == tenant_id)
    return select(StudioClass.id).where(
        or_(
            StudioClass.tenant_id == tenant_id,
            StudioClass.series_id.in_(series),  # type: ignore[union-attr]
        )
    )


def via_classes(model: type[SQLModel]) -> CatalogStep:
    return CatalogStep(model, lambda tenant_id: model.class_id.in_(tenant_class_ids(tenant_id)))  # type: ignore[attr-defined]


# ── Catalog ──────────────────────────────────────────────────

CATALOG: tuple[DeletionPhase, ...] = (
    DeletionPhase("logs", (
        owned(EmailLog),
        owned(SmsLog),
        owned(UsageLog),
        owned(AutomationLog),
        # Audit history outlives the tenant
        owned(AuditLog, StepAction.DETACH),
    )),
    DeletionPhase("social", (
        via(CommunityComment, CommunityComment.post_id, CommunityPost),
        owned(CommunityPost),
    )),
    DeletionPhase("crm", (
        owned(StudentNote),
        owned(Lead),
        owned(MarketingCampaign),
        owned(MarketingAutomation),
    )),
    DeletionPhase("loyalty", (
        owned(UserChallenge),
        owned(Challenge),
        owned(ProgressEntry),
    )),
    DeletionPhase("commerce", (
        via(GiftCardTransaction, GiftCardTransaction.gift_card_id, GiftCard),
        owned(GiftCard),
        owned(CouponRedemption),
        owned(Coupon),
        owned(PurchasedPack),
        owned(ClassPackDefinition),
        owned(Subscription),
        owned(MembershipPlan),
        via(PosOrderItem, PosOrderItem.order_id, PosOrder),
        owned(PosOrder),
        via(PayrollItem, PayrollItem.payout_id, Payout),
        owned(Payout),
    )),
    DeletionPhase("retail", (
        owned(InventoryAdjustment),
        via(PurchaseOrderItem, PurchaseOrderItem.purchase_order_id, PurchaseOrder),
        owned(PurchaseOrder),
        owned(Supplier),
        owned(Product),
    )),
    DeletionPhase("scheduling", (
        via_classes(Booking),
        via_classes(WaitlistEntry),
        via_classes(Substitution),
        owned(Appointment),
        owned(Availability),
        owned(AppointmentService),
        CatalogStep(StudioClass, lambda tenant_id: StudioClass.id.in_(tenant_class_ids(tenant_id))),  # type: ignore[attr-defined]
        owned(ClassSeries),
        owned(Location),
    )),
    DeletionPhase("media", (
        via(VideoCollectionItem, VideoCollectionItem.collection_id, VideoCollection),
        owned(VideoCollection),
        owned(Video),
        owned(BrandingAsset),
        owned(Upload),
    )),
    DeletionPhase("site", (
        via(WaiverSignature, WaiverSignature.template_id, WaiverTemplate),
        owned(WaiverTemplate),
        owned(WebsitePage),
        owned(TenantFeature),
        owned(SmsConfig),
    )),
    DeletionPhase("communications", (
        via(ChatMessage, ChatMessage.room_id, ChatRoom),
        owned(ChatRoom),
        owned(ScheduledReport),
    )),
    DeletionPhase(MEMBERS_PHASE, (
        via(TenantRole, TenantRole.member_id, TenantMember),
        owned(TenantMember),
    )),
    DeletionPhase(
        TENANT_PHASE,
        (CatalogStep(Tenant, lambda tenant_id: Tenant.id == tenant_id),),
        on_failure=FailurePolicy.RAISE,
    ),
)


def iter_steps(catalog: tuple[DeletionPhase, ...] = CATALOG):
    for phase in catalog:
        for step in phase.steps:
            yield phase, step


def catalog_violations(
    metadata: MetaData, catalog: tuple[DeletionPhase, ...] = CATALOG,
) -> list[str]:
    """Return human-readable ordering and coverage problems (empty when sound)."""
    position: dict[str, int] = {}
    for index, (_, step) in enumerate(iter_steps(catalog)):
        position.setdefault(step.table, index)

    problems: list[str] = []
    for name in sorted(set(metadata.tables) - set(position) - SHARED_TABLES):
        problems.append(f"{name} is not covered by the catalog")

    for name, index in position.items():
        table = metadata.tables.get(name)
        if table is None:
            problems.append(f"{name} is cataloged but not declared")
            continue
        for fk in table.foreign_keys:
            target = fk.column.table.name
            if target == name:
                continue
            if target in SHARED_TABLES:
                if name not in (TenantMember.__tablename__, "user_relationships"):
                    problems.append(f"{name} references shared table {target}")
                continue
            if target not in position:
                problems.append(f"{name} references {target}, which is never deleted")
            elif position[target] <= index:
                problems.append(f"{name} is deleted after its parent {target}")
    return problems
