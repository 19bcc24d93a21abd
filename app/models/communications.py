"""Communications: support chat rooms and scheduled report deliveries."""

import uuid

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class ChatRoom(TimestampMixin, SQLModel, table=True):
    __tablename__ = "chat_rooms"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    kind: str = Field(default="support", max_length=20)
    status: str = Field(default="open", max_length=20)


class ChatMessage(TimestampMixin, SQLModel, table=True):
    __tablename__ = "chat_messages"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    room_id: uuid.UUID = Field(foreign_key="chat_rooms.id", nullable=False, index=True)
    sender_member_id: uuid.UUID | None = Field(
        default=None, foreign_key="tenant_members.id", nullable=True, index=True,
    )
    content: str = Field(sa_column=Column(Text, nullable=False))


class ScheduledReport(TimestampMixin, SQLModel, table=True):
    __tablename__ = "scheduled_reports"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    report_type: str = Field(max_length=50, nullable=False)
    frequency: str = Field(default="weekly", max_length=20)
    recipients: str = Field(default="[]", sa_column=Column(Text, nullable=False, server_default="[]"))
