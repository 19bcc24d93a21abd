"""Studio website and configuration: pages, waivers, feature entitlements, SMS setup."""

import uuid

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class WaiverTemplate(TimestampMixin, SQLModel, table=True):
    __tablename__ = "waiver_templates"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    title: str = Field(max_length=255, nullable=False)
    content: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    is_active: bool = Field(default=True)


class WaiverSignature(TimestampMixin, SQLModel, table=True):
    __tablename__ = "waiver_signatures"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    template_id: uuid.UUID = Field(foreign_key="waiver_templates.id", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    signature_object_key: str | None = Field(default=None, max_length=500)


class WebsitePage(TimestampMixin, SQLModel, table=True):
    __tablename__ = "website_pages"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    slug: str = Field(max_length=100, nullable=False)
    title: str = Field(max_length=255, nullable=False)
    content: str = Field(default="{}", sa_column=Column(Text, nullable=False, server_default="{}"))
    is_published: bool = Field(default=False)


class TenantFeature(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenant_features"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    feature_key: str = Field(max_length=50, nullable=False)
    enabled: bool = Field(default=False)
    source: str = Field(default="manual", max_length=20)


class SmsConfig(TimestampMixin, SQLModel, table=True):
    __tablename__ = "sms_configs"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    sender_number: str | None = Field(default=None, max_length=50)
    enabled_events: str = Field(default="[]", sa_column=Column(Text, nullable=False, server_default="[]"))
