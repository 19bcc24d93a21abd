"""CRM and marketing records."""

import uuid

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class StudentNote(TimestampMixin, SQLModel, table=True):
    __tablename__ = "student_notes"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    student_member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    author_member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    note: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))


class Lead(TimestampMixin, SQLModel, table=True):
    __tablename__ = "leads"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    email: str = Field(max_length=320, nullable=False)
    source: str = Field(default="website", max_length=50)
    status: str = Field(default="new", max_length=20)


class MarketingCampaign(TimestampMixin, SQLModel, table=True):
    __tablename__ = "marketing_campaigns"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    subject: str = Field(max_length=500, nullable=False)
    status: str = Field(default="draft", max_length=20)


class MarketingAutomation(TimestampMixin, SQLModel, table=True):
    __tablename__ = "marketing_automations"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    trigger_event: str = Field(max_length=100, nullable=False)
    is_enabled: bool = Field(default=False)
