"""Platform-operator tenant administration: lifecycle, quotas, export, deletion."""

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from app.api.deps import Operator, Session
from app.models.tenant import TenantCreate, TenantRead, TenantTier
from app.services.audit import AuditService
from app.services.deprovision import TenantDeprovisioner
from app.services.errors import (
    LifecycleValidationError,
    SlugConflictError,
    TenantDeletionError,
    TenantLifecycleError,
    TenantNotFoundError,
)
from app.services.export import EXPORT_DATASETS, TenantExporter
from app.services.lifecycle import TenantLifecycleService
from app.services.seeding import seed_tenant
from app.workers.storage import enqueue_storage_purge

router = APIRouter(prefix="/admin/tenants", tags=["admin"])


# ── Request / response schemas ────────────────────────────────

class TenantSummary(TenantRead):
    member_count: int = 0
    owner_count: int = 0


class StatusUpdate(BaseModel):
    status: str


class TierUpdate(BaseModel):
    tier: str


class GracePeriodUpdate(BaseModel):
    enabled: bool
    ends_at: datetime | None = None


class SeedRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    slug: str | None = Field(default=None, max_length=100, pattern=r"^[a-zA-Z0-9\-]+$")
    tier: TenantTier = TenantTier.GROWTH
    instructor_count: int = Field(default=2, ge=0, le=50)
    student_count: int = Field(default=5, ge=0, le=500)
    class_count: int = Field(default=4, ge=1, le=100)


class QuotaResponse(BaseModel):
    success: bool = True
    settings: dict[str, Any]


class WaiveUsageResponse(BaseModel):
    success: bool = True
    waived: dict[str, int]


class PhaseResult(BaseModel):
    name: str
    ok: bool
    rows: int
    error: str | None = None


class TenantDeletionResponse(BaseModel):
    success: bool
    tenant_id: uuid.UUID
    phases: list[PhaseResult]
    orphans_deleted: int


def _http_error(exc: TenantLifecycleError) -> HTTPException:
    if isinstance(exc, TenantNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    if isinstance(exc, SlugConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, LifecycleValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, TenantDeletionError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Tenant deletion failed: {exc.reason}",
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


# ── Read views ────────────────────────────────────────────────

@router.get("", response_model=list[TenantSummary])
async def list_tenants(operator: Operator, session: Session) -> list[TenantSummary]:
    rows = await TenantLifecycleService(session).list_tenants()
    return [
        TenantSummary(
            **TenantRead.model_validate(row["tenant"]).model_dump(),
            member_count=row["member_count"],
            owner_count=row["owner_count"],
        )
        for row in rows
    ]


@router.get("/{tenant_id}", response_model=TenantRead)
async def get_tenant(tenant_id: uuid.UUID, operator: Operator, session: Session) -> TenantRead:
    try:
        tenant = await TenantLifecycleService(session).get(tenant_id)
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc
    return TenantRead.model_validate(tenant)


# ── Creation ──────────────────────────────────────────────────

@router.post("", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
async def create_tenant(body: TenantCreate, operator: Operator, session: Session) -> TenantRead:
    """Create a tenant owned by the calling operator."""
    try:
        tenant = await TenantLifecycleService(session).create_tenant(
            body.name, body.slug, body.tier, operator.actor,
        )
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc
    return TenantRead.model_validate(tenant)


@router.post("/seed", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
async def seed_test_tenant(
    operator: Operator,
    session: Session,
    body: SeedRequest | None = None,
) -> TenantRead:
    """Create a tenant filled with realistic demo data in every table."""
    body = body or SeedRequest()
    try:
        tenant = await seed_tenant(
            session,
            name=body.name,
            slug=body.slug,
            tier=body.tier,
            owner_user_id=operator.user_id,
            instructor_count=body.instructor_count,
            student_count=body.student_count,
            class_count=body.class_count,
        )
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc

    await AuditService(session).record(
        operator.actor, "seed_test_tenant", tenant_id=tenant.id, target_id=tenant.id,
        details={"slug": tenant.slug, "students": body.student_count},
    )
    return TenantRead.model_validate(tenant)


# ── Lifecycle ─────────────────────────────────────────────────

@router.patch("/{tenant_id}/status", response_model=TenantRead)
async def set_status(
    tenant_id: uuid.UUID, body: StatusUpdate, operator: Operator, session: Session,
) -> TenantRead:
    try:
        tenant = await TenantLifecycleService(session).set_status(
            tenant_id, body.status, operator.actor,
        )
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc
    return TenantRead.model_validate(tenant)


@router.patch("/{tenant_id}/tier", response_model=TenantRead)
async def set_tier(
    tenant_id: uuid.UUID, body: TierUpdate, operator: Operator, session: Session,
) -> TenantRead:
    try:
        tenant = await TenantLifecycleService(session).set_tier(tenant_id, body.tier, operator.actor)
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc
    return TenantRead.model_validate(tenant)


@router.patch("/{tenant_id}/quotas", response_model=QuotaResponse)
async def patch_quotas(
    tenant_id: uuid.UUID,
    operator: Operator,
    session: Session,
    body: dict[str, Any] = Body(...),
) -> QuotaResponse:
    try:
        settings = await TenantLifecycleService(session).patch_quotas(
            tenant_id, body, operator.actor,
        )
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc
    return QuotaResponse(settings=settings)


@router.post("/{tenant_id}/lifecycle/archive", response_model=TenantRead)
async def archive_tenant(tenant_id: uuid.UUID, operator: Operator, session: Session) -> TenantRead:
    try:
        tenant = await TenantLifecycleService(session).archive(tenant_id, operator.actor)
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc
    return TenantRead.model_validate(tenant)


@router.post("/{tenant_id}/lifecycle/restore", response_model=TenantRead)
async def restore_tenant(tenant_id: uuid.UUID, operator: Operator, session: Session) -> TenantRead:
    try:
        tenant = await TenantLifecycleService(session).restore(tenant_id, operator.actor)
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc
    return TenantRead.model_validate(tenant)


@router.post("/{tenant_id}/lifecycle/grace-period", response_model=TenantRead)
async def set_grace_period(
    tenant_id: uuid.UUID, body: GracePeriodUpdate, operator: Operator, session: Session,
) -> TenantRead:
    try:
        tenant = await TenantLifecycleService(session).set_grace_period(
            tenant_id, body.enabled, body.ends_at, operator.actor,
        )
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc
    return TenantRead.model_validate(tenant)


@router.post("/{tenant_id}/billing/waive-usage", response_model=WaiveUsageResponse)
async def waive_usage(
    tenant_id: uuid.UUID, operator: Operator, session: Session,
) -> WaiveUsageResponse:
    try:
        waived = await TenantLifecycleService(session).waive_usage(tenant_id, operator.actor)
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc
    return WaiveUsageResponse(waived=waived)


# ── Export ────────────────────────────────────────────────────

@router.get("/{tenant_id}/export")
async def export_tenant(
    tenant_id: uuid.UUID,
    operator: Operator,
    session: Session,
    format: str = Query(default="json", pattern="^(json|csv)$"),
    dataset: str = Query(default="subscribers"),
):
    """JSON snapshot of the tenant, or one CSV dataset as an attachment."""
    exporter = TenantExporter(session, tenant_id)
    try:
        if format == "csv":
            if dataset not in EXPORT_DATASETS:
                raise LifecycleValidationError(
                    f"Invalid export dataset {dataset!r}; expected one of: {', '.join(EXPORT_DATASETS)}"
                )
            # Surface a missing tenant as 404 rather than an empty file
            await TenantLifecycleService(session).get(tenant_id)
            filename, content = await exporter.dataset_csv(dataset)
        else:
            snapshot = await exporter.snapshot()
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc

    await AuditService(session).record(
        operator.actor, "export_data", tenant_id=tenant_id, target_id=tenant_id,
        details={"format": format, "dataset": dataset if format == "csv" else None},
    )

    if format == "csv":
        return StreamingResponse(
            iter([content]),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return snapshot


# ── Deletion ──────────────────────────────────────────────────

@router.delete("/{tenant_id}", response_model=TenantDeletionResponse)
async def delete_tenant(
    tenant_id: uuid.UUID,
    operator: Operator,
    session: Session,
    background_tasks: BackgroundTasks,
) -> TenantDeletionResponse:
    """Permanently delete a tenant and everything it owns.

    Dependent records are removed best-effort; only failing to remove the
    tenant row itself is an error. Stored objects are purged in the
    background after the response is sent.
    """
    deprovisioner = TenantDeprovisioner(
        session,
        AuditService(session),
        schedule_storage_cleanup=lambda slug: background_tasks.add_task(enqueue_storage_purge, slug),
    )
    try:
        report = await deprovisioner.run(tenant_id, operator.actor)
    except TenantLifecycleError as exc:
        raise _http_error(exc) from exc

    return TenantDeletionResponse(
        success=report.tenant_deleted,
        tenant_id=tenant_id,
        phases=[
            PhaseResult(name=p.name, ok=p.ok, rows=p.rows, error=p.error)
            for p in report.phases
        ],
        orphans_deleted=len(report.orphans.deleted),
    )
