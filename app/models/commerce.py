"""Commerce, billing and payroll records. Amounts are stored in cents."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class GiftCard(TimestampMixin, SQLModel, table=True):
    __tablename__ = "gift_cards"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    buyer_member_id: uuid.UUID | None = Field(
        default=None, foreign_key="tenant_members.id", nullable=True, index=True,
    )
    code: str = Field(max_length=50, nullable=False, index=True)
    initial_value: int = Field(default=0)
    balance: int = Field(default=0)


class GiftCardTransaction(TimestampMixin, SQLModel, table=True):
    __tablename__ = "gift_card_transactions"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    gift_card_id: uuid.UUID = Field(foreign_key="gift_cards.id", nullable=False, index=True)
    amount: int = Field(nullable=False)
    kind: str = Field(default="redemption", max_length=20)


class Coupon(TimestampMixin, SQLModel, table=True):
    __tablename__ = "coupons"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    code: str = Field(max_length=50, nullable=False)
    percent_off: int = Field(default=0)
    is_active: bool = Field(default=True)


class CouponRedemption(TimestampMixin, SQLModel, table=True):
    __tablename__ = "coupon_redemptions"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    coupon_id: uuid.UUID = Field(foreign_key="coupons.id", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)


class ClassPackDefinition(TimestampMixin, SQLModel, table=True):
    __tablename__ = "class_pack_definitions"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    credits: int = Field(default=10)
    price: int = Field(default=0)


class PurchasedPack(TimestampMixin, SQLModel, table=True):
    __tablename__ = "purchased_packs"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    pack_definition_id: uuid.UUID = Field(
        foreign_key="class_pack_definitions.id", nullable=False, index=True,
    )
    remaining_credits: int = Field(default=0)


class MembershipPlan(TimestampMixin, SQLModel, table=True):
    __tablename__ = "membership_plans"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    title: str = Field(max_length=255, nullable=False)
    price: int = Field(default=0)
    interval: str = Field(default="month", max_length=20)
    is_active: bool = Field(default=True)


class Subscription(TimestampMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    member_id: uuid.UUID = Field(foreign_key="tenant_members.id", nullable=False, index=True)
    plan_id: uuid.UUID = Field(foreign_key="membership_plans.id", nullable=False, index=True)
    status: str = Field(default="active", max_length=20)
    current_period_end: datetime | None = Field(default=None)
    canceled_at: datetime | None = Field(default=None)


class PosOrder(TimestampMixin, SQLModel, table=True):
    __tablename__ = "pos_orders"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    member_id: uuid.UUID | None = Field(
        default=None, foreign_key="tenant_members.id", nullable=True, index=True,
    )
    total: int = Field(default=0)
    status: str = Field(default="completed", max_length=20)


class PosOrderItem(TimestampMixin, SQLModel, table=True):
    __tablename__ = "pos_order_items"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    order_id: uuid.UUID = Field(foreign_key="pos_orders.id", nullable=False, index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", nullable=False, index=True)
    quantity: int = Field(default=1)
    unit_price: int = Field(default=0)


class Payout(TimestampMixin, SQLModel, table=True):
    __tablename__ = "payouts"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    instructor_member_id: uuid.UUID = Field(
        foreign_key="tenant_members.id", nullable=False, index=True,
    )
    amount: int = Field(default=0)
    status: str = Field(default="processing", max_length=20)


class PayrollItem(TimestampMixin, SQLModel, table=True):
    __tablename__ = "payroll_items"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    payout_id: uuid.UUID = Field(foreign_key="payouts.id", nullable=False, index=True)
    class_id: uuid.UUID | None = Field(
        default=None, foreign_key="classes.id", nullable=True, index=True,
    )
    amount: int = Field(default=0)
