"""Media and assets. Blobs live in object storage under ``tenants/{slug}/``."""

import uuid

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Video(TimestampMixin, SQLModel, table=True):
    __tablename__ = "videos"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    title: str = Field(max_length=255, nullable=False)
    object_key: str = Field(max_length=500, nullable=False)
    duration_seconds: int = Field(default=0)
    status: str = Field(default="processing", max_length=20)


class VideoCollection(TimestampMixin, SQLModel, table=True):
    __tablename__ = "video_collections"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    title: str = Field(max_length=255, nullable=False)


class VideoCollectionItem(TimestampMixin, SQLModel, table=True):
    __tablename__ = "video_collection_items"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    collection_id: uuid.UUID = Field(foreign_key="video_collections.id", nullable=False, index=True)
    video_id: uuid.UUID = Field(foreign_key="videos.id", nullable=False, index=True)
    position: int = Field(default=0)


class BrandingAsset(TimestampMixin, SQLModel, table=True):
    __tablename__ = "branding_assets"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    kind: str = Field(default="logo", max_length=20)
    object_key: str = Field(max_length=500, nullable=False)


class Upload(TimestampMixin, SQLModel, table=True):
    __tablename__ = "uploads"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    object_key: str = Field(max_length=500, nullable=False)
    mime_type: str = Field(default="application/octet-stream", max_length=100)
    size_bytes: int = Field(default=0)
