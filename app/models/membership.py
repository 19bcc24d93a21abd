"""Membership models — link a global user to a tenant with tenant-scoped roles."""

import uuid
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class MemberStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class MemberRole(StrEnum):
    OWNER = "owner"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class TenantMember(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenant_members"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    status: MemberStatus = Field(default=MemberStatus.ACTIVE)
    # Studio-specific profile overrides (e.g. instructor bio), JSON-encoded
    profile: str = Field(default="{}")


class TenantRole(TimestampMixin, SQLModel, table=True):
    """A member can hold several roles in one tenant (e.g. owner + instructor)."""

    __tablename__ = "tenant_roles"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    role: MemberRole = Field(nullable=False)
