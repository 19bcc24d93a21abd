"""Loyalty and progress tracking: challenges and attendance milestones."""

import uuid

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Challenge(TimestampMixin, SQLModel, table=True):
    __tablename__ = "challenges"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    title: str = Field(max_length=255, nullable=False)
    target_value: int = Field(default=10)
    reward_type: str = Field(default="badge", max_length=20)


class UserChallenge(TimestampMixin, SQLModel, table=True):
    __tablename__ = "user_challenges"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    challenge_id: uuid.UUID = Field(foreign_key="challenges.id", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    progress: int = Field(default=0)
    completed: bool = Field(default=False)


class ProgressEntry(TimestampMixin, SQLModel, table=True):
    __tablename__ = "progress_entries"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    class_id: uuid.UUID | None = Field(
        default=None, foreign_key="classes.id", nullable=True, index=True,
    )
    metric: str = Field(default="classes_attended", max_length=50)
    value: int = Field(default=1)
