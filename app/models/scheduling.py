"""Scheduling: locations, recurring series, class sessions, bookings, appointments."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Location(TimestampMixin, SQLModel, table=True):
    __tablename__ = "locations"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    address: str | None = Field(default=None, max_length=500)
    timezone: str = Field(default="UTC", max_length=64)


class ClassSeries(TimestampMixin, SQLModel, table=True):
    __tablename__ = "class_series"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    instructor_member_id: uuid.UUID = Field(
        foreign_key="tenant_members.id", nullable=False, index=True,
    )
    location_id: uuid.UUID | None = Field(
        default=None, foreign_key="locations.id", nullable=True, index=True,
    )
    title: str = Field(max_length=255, nullable=False)
    duration_minutes: int = Field(default=60)
    recurrence_rule: str = Field(max_length=255, nullable=False)  # RRULE, e.g. FREQ=WEEKLY;BYDAY=MO


class StudioClass(TimestampMixin, SQLModel, table=True):
    """A single scheduled class session."""

    __tablename__ = "classes"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    series_id: uuid.UUID | None = Field(
        default=None, foreign_key="class_series.id", nullable=True, index=True,
    )
    instructor_member_id: uuid.UUID = Field(
        foreign_key="tenant_members.id", nullable=False, index=True,
    )
    location_id: uuid.UUID | None = Field(
        default=None, foreign_key="locations.id", nullable=True, index=True,
    )
    title: str = Field(max_length=255, nullable=False)
    start_time: datetime = Field(nullable=False, index=True)
    duration_minutes: int = Field(default=60)
    capacity: int | None = Field(default=None)
    price: int = Field(default=0)


class Booking(TimestampMixin, SQLModel, table=True):
    __tablename__ = "bookings"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    class_id: uuid.UUID = Field(foreign_key="classes.id", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    status: str = Field(default="confirmed", max_length=20)
    checked_in_at: datetime | None = Field(default=None)


class WaitlistEntry(TimestampMixin, SQLModel, table=True):
    __tablename__ = "waitlist_entries"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    class_id: uuid.UUID = Field(foreign_key="classes.id", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    position: int = Field(default=1)


class Substitution(TimestampMixin, SQLModel, table=True):
    __tablename__ = "substitutions"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    class_id: uuid.UUID = Field(foreign_key="classes.id", nullable=False, index=True)
    requesting_member_id: uuid.UUID = Field(
        foreign_key="tenant_members.id", nullable=False, index=True,
    )
    covering_member_id: uuid.UUID | None = Field(
        default=None, foreign_key="tenant_members.id", nullable=True, index=True,
    )
    status: str = Field(default="pending", max_length=20)


class AppointmentService(TimestampMixin, SQLModel, table=True):
    __tablename__ = "appointment_services"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    title: str = Field(max_length=255, nullable=False)
    duration_minutes: int = Field(default=60)
    price: int = Field(default=0)


class Availability(TimestampMixin, SQLModel, table=True):
    __tablename__ = "availabilities"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    instructor_member_id: uuid.UUID = Field(
        foreign_key="tenant_members.id", nullable=False, index=True,
    )
    day_of_week: int = Field(default=0)  # 0 = Monday
    start_minute: int = Field(default=540)
    end_minute: int = Field(default=1020)


class Appointment(TimestampMixin, SQLModel, table=True):
    __tablename__ = "appointments"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    service_id: uuid.UUID = Field(foreign_key="appointment_services.id", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    instructor_member_id: uuid.UUID = Field(
        foreign_key="tenant_members.id", nullable=False, index=True,
    )
    location_id: uuid.UUID | None = Field(
        default=None, foreign_key="locations.id", nullable=True, index=True,
    )
    start_time: datetime = Field(nullable=False)
    status: str = Field(default="confirmed", max_length=20)
