"""Global user model — one person record shared across every studio they belong to."""

import uuid
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"


class RelationshipType(StrEnum):
    PARENT_CHILD = "parent_child"
    SPOUSE = "spouse"
    GUARDIAN = "guardian"


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, nullable=False, index=True)
    display_name: str = Field(default="", max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    role: UserRole = Field(default=UserRole.USER)
    is_platform_admin: bool = Field(default=False)
    is_minor: bool = Field(default=False)


class UserRelationship(TimestampMixin, SQLModel, table=True):
    """Family links between global users (parent/child, spouse, guardian)."""

    __tablename__ = "user_relationships"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    parent_user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    child_user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    type: RelationshipType = Field(default=RelationshipType.PARENT_CHILD)


def is_platform_operator(user: User | None) -> bool:
    """True if the user may run platform-wide administrative actions."""
    if user is None:
        return False
    return bool(user.is_platform_admin) or user.role == UserRole.ADMIN


# ── Pydantic schemas ─────────────────────────────────────────

class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    display_name: str
    role: UserRole
    is_platform_admin: bool
