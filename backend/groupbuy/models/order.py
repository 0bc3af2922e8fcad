"""SQLModel models for order batches, order lines and per-batch income settings."""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


class OrderGroup(SQLModel, table=True):
    """One settlement batch, e.g. "202505" or "202505A"."""

    __tablename__ = "order_groups"

    id: str = Field(primary_key=True)
    year: int = Field(index=True)
    month: int = Field(index=True)
    suffix: str = Field(default="")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class OrderItem(SQLModel, table=True):
    """
    A single buyer order line within a batch.

    The product reference is kept as literal id strings (no foreign key):
    the product may disappear later and the line must survive it.
    A negative quantity is a refund / adjustment.
    """

    __tablename__ = "order_items"

    id: str = Field(primary_key=True)
    order_group_id: str = Field(foreign_key="order_groups.id", index=True)
    product_group_id: str = Field(default="", index=True)
    product_item_id: str = Field(default="", index=True)
    description: str = Field(default="")
    buyer: str = Field(default="", index=True)
    quantity: int = Field(default=1)
    remarks: str = Field(default="")   # free text; "退" / "支" mark refunds & payouts
    note: str = Field(default="")
    date: Optional[str] = Field(default=None)   # ISO "YYYY-MM-DD"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class IncomeSettings(SQLModel, table=True):
    """Manual income-statement inputs for one batch."""

    __tablename__ = "income_settings"

    order_group_id: str = Field(primary_key=True, foreign_key="order_groups.id")
    packaging_revenue: float = Field(default=0.0)
    card_charge: float = Field(default=0.0)
    card_fee: float = Field(default=0.0)
    intl_shipping: float = Field(default=0.0)
    dad_receivable: float = Field(default=0.0)
    payment_note: str = Field(default="")
    updated_at: datetime = Field(default_factory=datetime.utcnow)
