"""Demo/test data generator — a tenant with rows in every cataloged table."""

from __future__ import annotations

import json
import logging
import random
import uuid
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from app.models import (
    Appointment,
    AppointmentService,
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
    MemberRole,
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
    RelationshipType,
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
    TenantTier,
    Upload,
    UsageLog,
    User,
    UserChallenge,
    UserRelationship,
    Video,
    VideoCollection,
    VideoCollectionItem,
    WaitlistEntry,
    WaiverSignature,
    WaiverTemplate,
    WebsitePage,
)
from app.models.base import utcnow
from app.services.errors import SlugConflictError

logger = logging.getLogger(__name__)

CLASS_TITLES = ["Vinyasa Flow", "Power Yoga", "Yin", "Pilates Mat", "Barre", "Meditation"]


async def _add(session: AsyncSession, *rows: SQLModel) -> None:
    """Add one dependency layer and flush so later layers can reference it."""
    session.add_all(rows)
    await session.flush()


async def seed_tenant(
    session: AsyncSession,
    *,
    name: str | None = None,
    slug: str | None = None,
    tier: TenantTier = TenantTier.GROWTH,
    owner_user_id: uuid.UUID | None = None,
    instructor_count: int = 2,
    student_count: int = 5,
    class_count: int = 4,
) -> Tenant:
    """Create a fully populated tenant and commit it.

    Students and instructors are new global users; ``owner_user_id`` (usually
    the operator) is linked as owner when given.
    """
    suffix = uuid.uuid4().hex[:6]
    slug = (slug or f"test-studio-{suffix}").lower()
    name = name or f"Test Studio {suffix}"

    existing = await session.execute(select(Tenant.id).where(Tenant.slug == slug))
    if existing.first() is not None:
        raise SlugConflictError(slug)

    rng = random.Random(slug)
    now = utcnow()

    tenant = Tenant(
        name=name, slug=slug, tier=tier,
        sms_usage=rng.randint(0, 200), email_usage=rng.randint(0, 2000),
    )
    await _add(session, tenant)
    tid = tenant.id

    # ── People ────────────────────────────────────────────────
    instructors = [
        User(email=f"instructor{i}+{slug}@example.test", display_name=f"Instructor {i}")
        for i in range(instructor_count)
    ]
    students = [
        User(email=f"student{i}+{slug}@example.test", display_name=f"Student {i}",
             phone=f"+1555{rng.randint(1000000, 9999999)}")
        for i in range(student_count)
    ]
    await _add(session, *instructors, *students)
    if len(students) >= 2:
        students[1].is_minor = True
        await _add(session, UserRelationship(
            parent_user_id=students[0].id, child_user_id=students[1].id,
            type=RelationshipType.PARENT_CHILD,
        ))

    owner = None
    if owner_user_id is not None and await session.get(User, owner_user_id):
        owner = TenantMember(tenant_id=tid, user_id=owner_user_id)
    inst_members = [TenantMember(tenant_id=tid, user_id=u.id) for u in instructors]
    stud_members = [TenantMember(tenant_id=tid, user_id=u.id) for u in students]
    await _add(session, *([owner] if owner else []), *inst_members, *stud_members)

    roles = [TenantRole(member_id=m.id, role=MemberRole.INSTRUCTOR) for m in inst_members]
    roles += [TenantRole(member_id=m.id, role=MemberRole.STUDENT) for m in stud_members]
    if owner:
        roles.append(TenantRole(member_id=owner.id, role=MemberRole.OWNER))
    await _add(session, *roles)

    staff = inst_members or ([owner] if owner else [])
    if not staff or not stud_members:
        await session.commit()
        return tenant
    lead_instructor = staff[0]
    student = stud_members[0]

    # ── Scheduling ────────────────────────────────────────────
    location = Location(tenant_id=tid, name="Main Studio", address="1 Studio Way")
    await _add(session, location)
    series = ClassSeries(
        tenant_id=tid, instructor_member_id=lead_instructor.id, location_id=location.id,
        title="Morning Flow", recurrence_rule="FREQ=WEEKLY;BYDAY=MO,WE,FR",
    )
    await _add(session, series)
    classes = [
        StudioClass(
            tenant_id=tid,
            series_id=series.id if i % 2 == 0 else None,
            instructor_member_id=staff[i % len(staff)].id,
            location_id=location.id,
            title=CLASS_TITLES[i % len(CLASS_TITLES)],
            start_time=now + timedelta(days=i, hours=9),
            capacity=20,
            price=2000,
        )
        for i in range(max(class_count, 1))
    ]
    service = AppointmentService(tenant_id=tid, title="Private Session", price=8000)
    await _add(session, *classes, service)
    first_class = classes[0]

    await _add(
        session,
        *[Booking(class_id=c.id, member_id=m.id) for c in classes for m in stud_members[:3]],
        WaitlistEntry(class_id=first_class.id, member_id=stud_members[-1].id),
        Substitution(
            class_id=first_class.id, requesting_member_id=lead_instructor.id,
            covering_member_id=staff[-1].id,
        ),
        Availability(tenant_id=tid, instructor_member_id=lead_instructor.id, day_of_week=1),
        Appointment(
            tenant_id=tid, service_id=service.id, member_id=student.id,
            instructor_member_id=lead_instructor.id, location_id=location.id,
            start_time=now + timedelta(days=2, hours=14),
        ),
    )

    # ── Commerce ──────────────────────────────────────────────
    plan = MembershipPlan(tenant_id=tid, title="Unlimited Monthly", price=12900)
    pack = ClassPackDefinition(tenant_id=tid, name="10 Class Pack", credits=10, price=15000)
    coupon = Coupon(tenant_id=tid, code="WELCOME10", percent_off=10)
    gift_card = GiftCard(
        tenant_id=tid, buyer_member_id=student.id, code=f"GC-{suffix.upper()}",
        initial_value=5000, balance=3000,
    )
    payout = Payout(tenant_id=tid, instructor_member_id=lead_instructor.id, amount=4500)
    product = Product(tenant_id=tid, name="Yoga Mat", sku="MAT-01", price=4500, stock_quantity=12)
    supplier = Supplier(tenant_id=tid, name="Mat Supply Co", email="orders@matsupply.test")
    await _add(session, plan, pack, coupon, gift_card, payout, product, supplier)

    pos_order = PosOrder(tenant_id=tid, member_id=student.id, total=4500)
    purchase_order = PurchaseOrder(
        tenant_id=tid, supplier_id=supplier.id, po_number=f"PO-{suffix}", total_amount=30000,
    )
    await _add(
        session,
        pos_order,
        purchase_order,
        *[Subscription(tenant_id=tid, member_id=m.id, plan_id=plan.id,
                       current_period_end=now + timedelta(days=30)) for m in stud_members],
        PurchasedPack(tenant_id=tid, member_id=student.id, pack_definition_id=pack.id,
                      remaining_credits=7),
        CouponRedemption(tenant_id=tid, coupon_id=coupon.id, member_id=student.id),
        GiftCardTransaction(gift_card_id=gift_card.id, amount=-2000),
        PayrollItem(payout_id=payout.id, class_id=first_class.id, amount=4500),
    )
    await _add(
        session,
        PosOrderItem(order_id=pos_order.id, product_id=product.id, unit_price=4500),
        PurchaseOrderItem(purchase_order_id=purchase_order.id, product_id=product.id,
                          quantity_ordered=10, quantity_received=10, unit_cost=3000),
        InventoryAdjustment(tenant_id=tid, product_id=product.id,
                            purchase_order_id=purchase_order.id, delta=10),
    )

    # ── CRM, loyalty, social ──────────────────────────────────
    campaign = MarketingCampaign(tenant_id=tid, subject="Spring schedule is live")
    automation = MarketingAutomation(tenant_id=tid, trigger_event="first_class", is_enabled=True)
    challenge = Challenge(tenant_id=tid, title="10 classes in 30 days")
    post = CommunityPost(tenant_id=tid, author_member_id=lead_instructor.id,
                         content="Welcome to the studio community!")
    await _add(session, campaign, automation, challenge, post)
    await _add(
        session,
        StudentNote(tenant_id=tid, student_member_id=student.id,
                    author_member_id=lead_instructor.id, note="Prefers modifications for wrists."),
        Lead(tenant_id=tid, email=f"lead+{slug}@example.test"),
        UserChallenge(tenant_id=tid, challenge_id=challenge.id, member_id=student.id, progress=3),
        ProgressEntry(tenant_id=tid, member_id=student.id, class_id=first_class.id),
        CommunityComment(post_id=post.id, author_member_id=student.id, content="Excited!"),
        EmailLog(tenant_id=tid, campaign_id=campaign.id, recipient=students[0].email,
                 subject=campaign.subject),
        SmsLog(tenant_id=tid, member_id=student.id, recipient=students[0].phone or "",
               body="See you in class"),
        UsageLog(tenant_id=tid, metric="sms", value=tenant.sms_usage),
        AutomationLog(tenant_id=tid, automation_id=automation.id, member_id=student.id),
    )

    # ── Media, site, communications ───────────────────────────
    video = Video(tenant_id=tid, title="Sun Salutation Basics",
                  object_key=f"tenants/{slug}/videos/sun-salutation.mp4", status="ready")
    collection = VideoCollection(tenant_id=tid, title="Beginner Series")
    waiver = WaiverTemplate(tenant_id=tid, title="Liability Waiver", content="I agree...")
    room = ChatRoom(tenant_id=tid)
    await _add(session, video, collection, waiver, room)
    await _add(
        session,
        VideoCollectionItem(collection_id=collection.id, video_id=video.id),
        BrandingAsset(tenant_id=tid, object_key=f"tenants/{slug}/branding/logo.png"),
        Upload(tenant_id=tid, object_key=f"tenants/{slug}/uploads/welcome.pdf",
               mime_type="application/pdf", size_bytes=20480),
        WaiverSignature(template_id=waiver.id, member_id=student.id,
                        signature_object_key=f"tenants/{slug}/waivers/{student.id}.png"),
        WebsitePage(tenant_id=tid, slug="home", title=name,
                    content=json.dumps({"blocks": [{"type": "hero", "heading": name}]}),
                    is_published=True),
        TenantFeature(tenant_id=tid, feature_key="vod", enabled=True),
        SmsConfig(tenant_id=tid, sender_number="+15550100",
                  enabled_events=json.dumps(["class_reminder"])),
        ChatMessage(room_id=room.id, sender_member_id=student.id, content="Hi, question about packs"),
        ScheduledReport(tenant_id=tid, report_type="revenue",
                        recipients=json.dumps([instructors[0].email] if instructors else [])),
    )

    await session.commit()
    logger.info(
        "Seeded tenant %s (%s) with %d instructors and %d students",
        tid, slug, len(inst_members), len(stud_members),
    )
    return tenant
