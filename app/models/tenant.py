"""Tenant model — the studio, root of every tenant-scoped record."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class TenantStatus(StrEnum):
    ACTIVE = "active"
    PAUSED = "paused"
    SUSPENDED = "suspended"
    ARCHIVED = "archived"


class TenantTier(StrEnum):
    LAUNCH = "launch"
    GROWTH = "growth"
    SCALE = "scale"


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    # Object storage paths key off the slug, so it never changes after creation
    slug: str = Field(max_length=100, unique=True, nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)

    status: TenantStatus = Field(default=TenantStatus.ACTIVE)
    tier: TenantTier = Field(default=TenantTier.LAUNCH)

    # Lifecycle
    archived_at: datetime | None = Field(default=None)
    student_access_disabled: bool = Field(default=False)
    grace_period_ends_at: datetime | None = Field(default=None)

    # Quotas (None = unlimited)
    sms_limit: int | None = Field(default=None)
    email_limit: int | None = Field(default=None)
    streaming_limit: int | None = Field(default=None)
    billing_exempt: bool = Field(default=False)

    # Usage counters for the current billing period
    sms_usage: int = Field(default=0)
    email_usage: int = Field(default=0)
    streaming_usage: int = Field(default=0)


# ── Pydantic schemas ─────────────────────────────────────────

class TenantCreate(BaseModel):
    name: str = PydanticField(min_length=1, max_length=255)
    slug: str = PydanticField(min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9\-]+$")
    tier: TenantTier = TenantTier.LAUNCH


class TenantRead(SQLModel):
    id: uuid.UUID
    slug: str
    name: str
    status: TenantStatus
    tier: TenantTier
    archived_at: datetime | None
    student_access_disabled: bool
    grace_period_ends_at: datetime | None
    sms_limit: int | None
    email_limit: int | None
    streaming_limit: int | None
    billing_exempt: bool
    sms_usage: int
    email_usage: int
    streaming_usage: int
    created_at: datetime


QUOTA_KEYS = ("sms_limit", "email_limit", "streaming_limit", "billing_exempt")


class QuotaPatch(BaseModel):
    """Quota overrides. Any key outside the allow-list rejects the whole patch."""

    # Strict: "100", 5.0 or true are rejected rather than coerced
    model_config = ConfigDict(extra="forbid", strict=True)

    sms_limit: int | None = PydanticField(default=None, ge=0)
    email_limit: int | None = PydanticField(default=None, ge=0)
    streaming_limit: int | None = PydanticField(default=None, ge=0)
    billing_exempt: bool | None = None
