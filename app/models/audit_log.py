"""AuditLog model — append-only record of administrative actions."""

import uuid
from datetime import datetime

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class AuditLog(TimestampMixin, SQLModel, table=True):
    __tablename__ = "audit_logs"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    # Plain column, not a foreign key: the actor may be reclaimed later
    actor_id: uuid.UUID | None = Field(default=None, index=True)
    # Detached (set to NULL) when the tenant is deleted, never cascaded
    tenant_id: uuid.UUID | None = Field(default=None, foreign_key="tenants.id", index=True)
    action: str = Field(max_length=100, nullable=False, index=True)
    target_id: str | None = Field(default=None, max_length=100, index=True)
    details: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    ip_address: str | None = Field(default=None, max_length=64)


# ── Pydantic schemas ─────────────────────────────────────────

class AuditLogRead(SQLModel):
    id: uuid.UUID
    actor_id: uuid.UUID | None
    tenant_id: uuid.UUID | None
    action: str
    target_id: str | None
    details: dict | None
    ip_address: str | None
    created_at: datetime
