"""Delivery and analytics logs — high-volume, tenant-scoped, leaf records."""

import uuid

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class EmailLog(TimestampMixin, SQLModel, table=True):
    __tablename__ = "email_logs"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    campaign_id: uuid.UUID | None = Field(
        default=None, foreign_key="marketing_campaigns.id", nullable=True, index=True,
    )
    recipient: str = Field(max_length=320, nullable=False)
    subject: str = Field(default="", max_length=500)
    status: str = Field(default="sent", max_length=20)


class SmsLog(TimestampMixin, SQLModel, table=True):
    __tablename__ = "sms_logs"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    member_id: uuid.UUID | None = Field(
        default=None, foreign_key="tenant_members.id", nullable=True, index=True,
    )
    recipient: str = Field(max_length=50, nullable=False)
    body: str = Field(default="", max_length=1600)
    status: str = Field(default="queued", max_length=20)


class UsageLog(TimestampMixin, SQLModel, table=True):
    __tablename__ = "usage_logs"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    metric: str = Field(max_length=50, nullable=False)
    value: int = Field(default=0)


class AutomationLog(TimestampMixin, SQLModel, table=True):
    __tablename__ = "automation_logs"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    automation_id: uuid.UUID = Field(
        foreign_key="marketing_automations.id", nullable=False, index=True,
    )
    member_id: uuid.UUID | None = Field(
        default=None, foreign_key="tenant_members.id", nullable=True, index=True,
    )
    step: int = Field(default=0)
