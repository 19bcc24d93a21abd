"""Cascading tenant deletion: completeness, isolation, reclamation, failure handling."""

import json
import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy import delete, event, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.audit_log import AuditLog
from app.models.base import utcnow
from app.models.crm import Lead
from app.models.membership import TenantMember
from app.models.scheduling import Booking, ClassSeries, StudioClass
from app.models.tenant import Tenant
from app.models.user import RelationshipType, User, UserRelationship, UserRole
from app.services import deletion_catalog
from app.services.audit import Actor, AuditService
from app.services.deletion_catalog import (
    CATALOG,
    TENANT_PHASE,
    CatalogStep,
    DeletionPhase,
    StepAction,
    iter_steps,
    owned,
)
from app.services.deprovision import TenantDeprovisioner
from app.services.errors import TenantDeletionError, TenantNotFoundError
from app.services.reclamation import OrphanReclaimer
from app.services.seeding import seed_tenant


def _boom(_tenant_id):
    raise RuntimeError("boom")


async def _tenant(session: AsyncSession, slug: str) -> Tenant:
    tenant = Tenant(name=slug.title(), slug=slug)
    session.add(tenant)
    await session.commit()
    return tenant


async def _user(session: AsyncSession, label: str, **extra) -> User:
    user = User(email=f"{label}-{uuid.uuid4().hex[:6]}@example.test", **extra)
    session.add(user)
    await session.commit()
    return user


async def _join(session: AsyncSession, tenant: Tenant, user: User) -> TenantMember:
    member = TenantMember(tenant_id=tenant.id, user_id=user.id)
    session.add(member)
    await session.commit()
    return member


async def _exists(session: AsyncSession, model, row_id) -> bool:
    result = await session.execute(select(model.id).where(model.id == row_id))
    return result.first() is not None


async def _scoped_ids(session: AsyncSession, tenant_id: uuid.UUID) -> dict[str, set]:
    """Ids of every row each catalog step would remove for ``tenant_id``."""
    ids: dict[str, set] = {}
    for _, step in iter_steps():
        if step.action is StepAction.DETACH:
            continue
        rows = await session.execute(select(step.model.id).where(step.scope(tenant_id)))
        ids[step.table] = set(rows.scalars().all())
    return ids


async def _surviving(session: AsyncSession, ids: dict[str, set]) -> dict[str, int]:
    models = {step.table: step.model for _, step in iter_steps()}
    left = {}
    for table, row_ids in ids.items():
        if not row_ids:
            continue
        model = models[table]
        count = (
            await session.execute(
                select(func.count()).select_from(model).where(model.id.in_(row_ids))
            )
        ).scalar_one()
        if count:
            left[table] = count
    return left


def _deprovisioner(session, **kwargs) -> TenantDeprovisioner:
    return TenantDeprovisioner(session, AuditService(session), **kwargs)


ACTOR = Actor(user_id=None, ip_address="198.51.100.7")


# ── Scenario ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_reclaims_only_unaffiliated_non_admin_users(
    client: AsyncClient, session: AsyncSession, operator: User, operator_headers: dict,
):
    tenant = await _tenant(session, "scenario-t")
    other = await _tenant(session, "scenario-t2")
    only_here = await _user(session, "u1")
    shared = await _user(session, "u2")
    admin = await _user(session, "u3", is_platform_admin=True)
    role_admin = await _user(session, "u4", role=UserRole.ADMIN)
    for user in (only_here, shared, admin, role_admin):
        await _join(session, tenant, user)
    await _join(session, other, shared)

    enqueued: list[str] = []

    async def fake_enqueue(slug: str) -> None:
        enqueued.append(slug)

    with patch("app.api.v1.tenants.enqueue_storage_purge", fake_enqueue):
        resp = await client.delete(f"/v1/admin/tenants/{tenant.id}", headers=operator_headers)

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["orphans_deleted"] == 1
    assert [p["name"] for p in body["phases"]][-1] == TENANT_PHASE
    assert all(p["ok"] for p in body["phases"])

    assert not await _exists(session, Tenant, tenant.id)
    assert await _exists(session, Tenant, other.id)
    assert not await _exists(session, User, only_here.id)
    assert await _exists(session, User, shared.id)
    assert await _exists(session, User, admin.id)
    assert await _exists(session, User, role_admin.id)

    assert enqueued == ["scenario-t"]

    audit = (
        await session.execute(
            select(AuditLog).where(
                AuditLog.action == "delete_tenant", AuditLog.target_id == str(tenant.id),
            )
        )
    ).scalar_one()
    assert audit.tenant_id is None
    assert audit.actor_id == operator.id
    details = json.loads(audit.details)
    assert details["slug"] == "scenario-t"
    assert details["name"] == "Scenario-T"
    assert details["orphans_deleted"] == 1


@pytest.mark.asyncio
async def test_delete_unknown_tenant_writes_nothing(
    client: AsyncClient, session: AsyncSession, operator_headers: dict,
):
    missing = uuid.uuid4()
    enqueued: list[str] = []

    async def fake_enqueue(slug: str) -> None:
        enqueued.append(slug)

    with patch("app.api.v1.tenants.enqueue_storage_purge", fake_enqueue):
        resp = await client.delete(f"/v1/admin/tenants/{missing}", headers=operator_headers)

    assert resp.status_code == 404
    assert enqueued == []
    rows = await session.execute(select(AuditLog.id).where(AuditLog.target_id == str(missing)))
    assert rows.first() is None


@pytest.mark.asyncio
async def test_delete_requires_operator(client: AsyncClient, session: AsyncSession, regular_user: User):
    from app.core.security import create_jwt

    tenant = await _tenant(session, "not-yours")
    headers = {"Authorization": f"Bearer {create_jwt(str(regular_user.id))}"}
    resp = await client.delete(f"/v1/admin/tenants/{tenant.id}", headers=headers)
    assert resp.status_code == 403
    assert await _exists(session, Tenant, tenant.id)


# ── Completeness and isolation ────────────────────────────────

@pytest.mark.asyncio
async def test_seeded_tenant_is_removed_completely(
    client: AsyncClient, session: AsyncSession, operator: User, operator_headers: dict,
):
    resp = await client.post(
        "/v1/admin/tenants/seed", json={"slug": "full-wipe"}, headers=operator_headers,
    )
    assert resp.status_code == 201
    tid = uuid.UUID(resp.json()["id"])

    before = await _scoped_ids(session, tid)
    empty = sorted(table for table, ids in before.items() if not ids)
    assert empty == [], f"seed left tables empty: {empty}"
    member_users = (
        await session.execute(select(TenantMember.user_id).where(TenantMember.tenant_id == tid))
    ).scalars().all()

    async def fake_enqueue(slug: str) -> None:
        pass

    with patch("app.api.v1.tenants.enqueue_storage_purge", fake_enqueue):
        resp = await client.delete(f"/v1/admin/tenants/{tid}", headers=operator_headers)

    assert resp.status_code == 200, resp.text
    phases = resp.json()["phases"]
    assert [p for p in phases if not p["ok"]] == []
    assert await _surviving(session, before) == {}

    # Audit history stays, detached from the tenant
    detached = (
        await session.execute(select(AuditLog).where(AuditLog.target_id == str(tid)))
    ).scalars().all()
    assert {a.action for a in detached} >= {"seed_test_tenant", "delete_tenant"}
    left_linked = await session.execute(select(AuditLog.id).where(AuditLog.tenant_id == tid))
    assert left_linked.first() is None

    # Every seeded user except the operator is reclaimed
    remaining = (
        await session.execute(select(User.id).where(User.id.in_(member_users)))
    ).scalars().all()
    assert remaining == [operator.id]
    assert resp.json()["orphans_deleted"] == len(member_users) - 1


@pytest.mark.asyncio
async def test_other_tenants_untouched(session: AsyncSession):
    doomed = await seed_tenant(session, slug="iso-doomed")
    kept = await seed_tenant(session, slug="iso-kept")
    kept_ids = await _scoped_ids(session, kept.id)
    kept_users = (
        await session.execute(select(TenantMember.user_id).where(TenantMember.tenant_id == kept.id))
    ).scalars().all()

    await _deprovisioner(session).run(doomed.id, ACTOR)

    assert not await _exists(session, Tenant, doomed.id)
    assert await _exists(session, Tenant, kept.id)
    assert await _scoped_ids(session, kept.id) == kept_ids
    count = (
        await session.execute(select(func.count()).select_from(User).where(User.id.in_(kept_users)))
    ).scalar_one()
    assert count == len(kept_users)


@pytest.mark.asyncio
async def test_classes_reached_through_series_are_removed(session: AsyncSession):
    tenant = await _tenant(session, "series-owner")
    other = await _tenant(session, "series-guest")
    instructor = await _join(session, tenant, await _user(session, "inst"))
    guest_instructor = await _join(session, other, await _user(session, "guest-inst"))
    guest_student = await _join(session, other, await _user(session, "guest-student"))

    series = ClassSeries(
        tenant_id=tenant.id, instructor_member_id=instructor.id,
        title="Owned series", recurrence_rule="FREQ=WEEKLY",
    )
    session.add(series)
    await session.commit()
    # Linked to the tenant only through its series
    stray = StudioClass(
        tenant_id=other.id, series_id=series.id, instructor_member_id=guest_instructor.id,
        title="Stray", start_time=utcnow() + timedelta(days=1),
    )
    own = StudioClass(
        tenant_id=other.id, instructor_member_id=guest_instructor.id,
        title="Guest's own", start_time=utcnow() + timedelta(days=1),
    )
    session.add_all([stray, own])
    await session.commit()
    booking = Booking(class_id=stray.id, member_id=guest_student.id)
    session.add(booking)
    await session.commit()

    report = await _deprovisioner(session).run(tenant.id, ACTOR)

    assert report.tenant_deleted
    assert report.failed_phases == []
    assert not await _exists(session, StudioClass, stray.id)
    assert not await _exists(session, Booking, booking.id)
    assert await _exists(session, StudioClass, own.id)
    assert await _exists(session, Tenant, other.id)


# ── Reclamation details ───────────────────────────────────────

@pytest.mark.asyncio
async def test_relationships_of_reclaimed_users_are_removed(session: AsyncSession):
    tenant = await _tenant(session, "family")
    elsewhere = await _tenant(session, "family-elsewhere")
    parent = await _user(session, "parent")
    child = await _user(session, "child", is_minor=True)
    outsider = await _user(session, "outsider")
    await _join(session, tenant, parent)
    await _join(session, tenant, child)
    await _join(session, elsewhere, outsider)

    links = [
        UserRelationship(parent_user_id=parent.id, child_user_id=child.id),
        UserRelationship(
            parent_user_id=outsider.id, child_user_id=parent.id, type=RelationshipType.SPOUSE,
        ),
    ]
    session.add_all(links)
    await session.commit()

    report = await _deprovisioner(session).run(tenant.id, ACTOR)

    assert set(report.orphans.deleted) == {parent.id, child.id}
    assert await _exists(session, User, outsider.id)
    for link in links:
        assert not await _exists(session, UserRelationship, link.id)


@pytest.mark.asyncio
async def test_reclamation_is_chunked(session: AsyncSession, engine):
    tenant = await _tenant(session, "big-studio")
    users = [User(email=f"bulk{i}-{uuid.uuid4().hex[:6]}@example.test") for i in range(120)]
    session.add_all(users)
    await session.commit()
    session.add_all([TenantMember(tenant_id=tenant.id, user_id=u.id) for u in users])
    await session.commit()

    reclaimer = OrphanReclaimer(session, chunk_size=50)
    sizes: list[int] = []
    original = reclaimer._reclaim_chunk

    async def spy(chunk, result):
        sizes.append(len(chunk))
        return await original(chunk, result)

    reclaimer._reclaim_chunk = spy

    bound: list[int] = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("DELETE FROM USERS"):
            bound.append(len(parameters))

    event.listen(engine.sync_engine, "before_cursor_execute", capture)
    try:
        report = await _deprovisioner(session, reclaimer=reclaimer).run(tenant.id, ACTOR)
    finally:
        event.remove(engine.sync_engine, "before_cursor_execute", capture)

    assert sizes == [50, 50, 20]
    assert bound and max(bound) <= 50
    assert len(report.orphans.deleted) == 120
    assert report.orphans.failed_chunks == 0
    count = (
        await session.execute(
            select(func.count()).select_from(User).where(User.id.in_([u.id for u in users[:50]]))
        )
    ).scalar_one()
    assert count == 0


@pytest.mark.asyncio
async def test_failed_chunk_does_not_stop_the_rest(session: AsyncSession):
    tenant = await _tenant(session, "flaky-chunks")
    users = [await _user(session, f"flaky{i}") for i in range(4)]
    for user in users:
        await _join(session, tenant, user)

    reclaimer = OrphanReclaimer(session, chunk_size=2)
    original = reclaimer._reclaim_chunk
    calls = 0

    async def flaky(chunk, result):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("lock timeout")
        return await original(chunk, result)

    reclaimer._reclaim_chunk = flaky
    report = await _deprovisioner(session, reclaimer=reclaimer).run(tenant.id, ACTOR)

    assert report.tenant_deleted
    assert report.orphans.failed_chunks == 1
    assert len(report.orphans.deleted) == 2
    # The failed chunk's users survive as orphans
    survivors = [u for u in users if await _exists(session, User, u.id)]
    assert len(survivors) == 2


# ── Failure handling ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_failing_phase_is_tolerated(session: AsyncSession):
    tenant = await _tenant(session, "tolerant")
    lead = Lead(tenant_id=tenant.id, email="walkin@example.test")
    session.add(lead)
    await session.commit()
    tenant_id, lead_id = tenant.id, lead.id

    broken = DeletionPhase("broken", (owned(Lead), CatalogStep(Lead, _boom)))
    cleaned: list[str] = []
    report = await _deprovisioner(
        session, catalog=(broken, *CATALOG), schedule_storage_cleanup=cleaned.append,
    ).run(tenant_id, ACTOR)

    assert report.tenant_deleted
    assert report.failed_phases == ["broken"]
    assert report.phases[0].error == "boom"
    assert all(p.ok for p in report.phases[1:])
    assert not await _exists(session, Lead, lead_id)
    assert cleaned == ["tolerant"]


@pytest.mark.asyncio
async def test_fatal_tenant_step_raises_and_still_reclaims(session: AsyncSession):
    tenant = await _tenant(session, "stubborn")
    loner = await _user(session, "loner")
    await _join(session, tenant, loner)
    # A failed phase rolls back and expires loaded objects
    tenant_id, loner_id = tenant.id, loner.id

    fatal_catalog = (
        *CATALOG[:-1],
        DeletionPhase(TENANT_PHASE, (CatalogStep(Tenant, _boom),), on_failure=CATALOG[-1].on_failure),
    )
    cleaned: list[str] = []
    with pytest.raises(TenantDeletionError, match="boom"):
        await _deprovisioner(
            session, catalog=fatal_catalog, schedule_storage_cleanup=cleaned.append,
        ).run(tenant_id, ACTOR)

    assert await _exists(session, Tenant, tenant_id)
    assert not await _exists(session, User, loner_id)
    assert cleaned == []
    failed = (
        await session.execute(
            select(AuditLog).where(
                AuditLog.action == "delete_tenant_failed", AuditLog.target_id == str(tenant_id),
            )
        )
    ).scalar_one()
    assert json.loads(failed.details)["error"] == "boom"

    # Every phase is a filtered delete, so a re-run finishes the job
    report = await _deprovisioner(session).run(tenant_id, ACTOR)
    assert report.tenant_deleted
    assert not await _exists(session, Tenant, tenant_id)


@pytest.mark.asyncio
async def test_fatal_failure_maps_to_500(
    client: AsyncClient, session: AsyncSession, operator_headers: dict,
):
    tenant = await _tenant(session, "http-fatal")
    fatal_catalog = (
        *CATALOG[:-1],
        DeletionPhase(TENANT_PHASE, (CatalogStep(Tenant, _boom),), on_failure=CATALOG[-1].on_failure),
    )
    enqueued: list[str] = []

    async def fake_enqueue(slug: str) -> None:
        enqueued.append(slug)

    with (
        patch.object(deletion_catalog, "CATALOG", fatal_catalog),
        patch("app.api.v1.tenants.enqueue_storage_purge", fake_enqueue),
    ):
        resp = await client.delete(f"/v1/admin/tenants/{tenant.id}", headers=operator_headers)

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Tenant deletion failed: boom"
    assert enqueued == []


@pytest.mark.asyncio
async def test_run_on_missing_tenant_raises_not_found(session: AsyncSession):
    cleaned: list[str] = []
    with pytest.raises(TenantNotFoundError):
        await _deprovisioner(session, schedule_storage_cleanup=cleaned.append).run(uuid.uuid4(), ACTOR)
    assert cleaned == []


@pytest.mark.asyncio
async def test_cleanup_scheduler_failure_is_swallowed(session: AsyncSession):
    tenant = await _tenant(session, "scheduler-down")

    def broken_scheduler(slug: str) -> None:
        raise ConnectionError("redis unavailable")

    report = await _deprovisioner(session, schedule_storage_cleanup=broken_scheduler).run(
        tenant.id, ACTOR,
    )
    assert report.tenant_deleted


@pytest.mark.asyncio
async def test_tenant_removed_concurrently_is_not_reported_as_deleted(
    session: AsyncSession, test_session_factory,
):
    tenant = await _tenant(session, "raced-away")
    tenant_id = tenant.id

    # Another request deletes the row; this session still holds it in its identity map
    async with test_session_factory() as other:
        await other.execute(delete(Tenant).where(Tenant.id == tenant_id))
        await other.commit()

    cleaned: list[str] = []
    with pytest.raises(TenantNotFoundError):
        await _deprovisioner(session, schedule_storage_cleanup=cleaned.append).run(tenant_id, ACTOR)

    assert cleaned == []
    audits = (
        await session.execute(select(AuditLog.action).where(AuditLog.target_id == str(tenant_id)))
    ).scalars().all()
    assert audits == []
