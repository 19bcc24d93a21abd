"""Community feed — posts and comments written by studio members."""

import uuid

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class CommunityPost(TimestampMixin, SQLModel, table=True):
    __tablename__ = "community_posts"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    author_member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    content: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    is_pinned: bool = Field(default=False)


class CommunityComment(TimestampMixin, SQLModel, table=True):
    __tablename__ = "community_comments"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    post_id: uuid.UUID = Field(foreign_key="community_posts.id", nullable=False, index=True)
    author_member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    content: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
