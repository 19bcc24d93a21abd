"""Retail and inventory: products, suppliers, purchase orders, stock adjustments."""

import uuid

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class Product(TimestampMixin, SQLModel, table=True):
    __tablename__ = "products"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    sku: str | None = Field(default=None, max_length=100)
    price: int = Field(default=0)
    stock_quantity: int = Field(default=0)
    is_active: bool = Field(default=True)


class Supplier(TimestampMixin, SQLModel, table=True):
    __tablename__ = "suppliers"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    email: str | None = Field(default=None, max_length=320)


class PurchaseOrder(TimestampMixin, SQLModel, table=True):
    __tablename__ = "purchase_orders"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    supplier_id: uuid.UUID | None = Field(
        default=None, foreign_key="suppliers.id", nullable=True, index=True,
    )
    po_number: str = Field(max_length=50, nullable=False)
    status: str = Field(default="draft", max_length=20)
    total_amount: int = Field(default=0)


class PurchaseOrderItem(TimestampMixin, SQLModel, table=True):
    __tablename__ = "purchase_order_items"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    purchase_order_id: uuid.UUID = Field(
        foreign_key="purchase_orders.id", nullable=False, index=True,
    )
    product_id: uuid.UUID = Field(foreign_key="products.id", nullable=False, index=True)
    quantity_ordered: int = Field(default=1)
    quantity_received: int = Field(default=0)
    unit_cost: int = Field(default=0)


class InventoryAdjustment(TimestampMixin, SQLModel, table=True):
    __tablename__ = "inventory_adjustments"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", nullable=False, index=True)
    purchase_order_id: uuid.UUID | None = Field(
        default=None, foreign_key="purchase_orders.id", nullable=True, index=True,
    )
    delta: int = Field(nullable=False)
    reason: str = Field(default="restock", max_length=50)
