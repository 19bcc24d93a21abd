"""Import all models so SQLModel.metadata picks them up."""

from app.models.audit_log import AuditLog, AuditLogRead
from app.models.commerce import (
    ClassPackDefinition,
    Coupon,
    CouponRedemption,
    GiftCard,
    GiftCardTransaction,
    MembershipPlan,
    Payout,
    PayrollItem,
    PosOrder,
    PosOrderItem,
    PurchasedPack,
    Subscription,
)
from app.models.communications import ChatMessage, ChatRoom, ScheduledReport
from app.models.community import CommunityComment, CommunityPost
from app.models.crm import Lead, MarketingAutomation, MarketingCampaign, StudentNote
from app.models.logs import AutomationLog, EmailLog, SmsLog, UsageLog
from app.models.loyalty import Challenge, ProgressEntry, UserChallenge
from app.models.media import BrandingAsset, Upload, Video, VideoCollection, VideoCollectionItem
from app.models.membership import MemberRole, MemberStatus, TenantMember, TenantRole
from app.models.retail import (
    InventoryAdjustment,
    Product,
    PurchaseOrder,
    PurchaseOrderItem,
    Supplier,
)
from app.models.scheduling import (
    Appointment,
    AppointmentService,
    Availability,
    Booking,
    ClassSeries,
    Location,
    StudioClass,
    Substitution,
    WaitlistEntry,
)
from app.models.site import SmsConfig, TenantFeature, WaiverSignature, WaiverTemplate, WebsitePage
from app.models.tenant import (
    QUOTA_KEYS,
    QuotaPatch,
    Tenant,
    TenantCreate,
    TenantRead,
    TenantStatus,
    TenantTier,
)
from app.models.user import (
    RelationshipType,
    User,
    UserRead,
    UserRelationship,
    UserRole,
    is_platform_operator,
)

__all__ = [
    "QUOTA_KEYS",
    "Appointment",
    "AppointmentService",
    "AuditLog",
    "AuditLogRead",
    "AutomationLog",
    "Availability",
    "Booking",
    "BrandingAsset",
    "Challenge",
    "ChatMessage",
    "ChatRoom",
    "ClassPackDefinition",
    "ClassSeries",
    "CommunityComment",
    "CommunityPost",
    "Coupon",
    "CouponRedemption",
    "EmailLog",
    "GiftCard",
    "GiftCardTransaction",
    "InventoryAdjustment",
    "Lead",
    "Location",
    "MarketingAutomation",
    "MarketingCampaign",
    "MemberRole",
    "MemberStatus",
    "MembershipPlan",
    "Payout",
    "PayrollItem",
    "PosOrder",
    "PosOrderItem",
    "Product",
    "ProgressEntry",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchasedPack",
    "QuotaPatch",
    "RelationshipType",
    "ScheduledReport",
    "SmsConfig",
    "SmsLog",
    "StudentNote",
    "StudioClass",
    "Subscription",
    "Substitution",
    "Supplier",
    "Tenant",
    "TenantCreate",
    "TenantFeature",
    "TenantMember",
    "TenantRead",
    "TenantRole",
    "TenantStatus",
    "TenantTier",
    "Upload",
    "UsageLog",
    "User",
    "UserChallenge",
    "UserRead",
    "UserRelationship",
    "UserRole",
    "Video",
    "VideoCollection",
    "VideoCollectionItem",
    "WaitlistEntry",
    "WaiverSignature",
    "WaiverTemplate",
    "WebsitePage",
    "is_platform_operator",
]
