"""SQLModel models for the product catalog (product groups and priced items)."""
from datetime import datetime
from sqlmodel import SQLModel, Field

from groupbuy.core.config import settings


class ProductGroup(SQLModel, table=True):
    """A named group of products. `id` is a zero-padded sequence ("01", "02" …)."""

    __tablename__ = "product_groups"

    id: str = Field(primary_key=True)
    name: str = Field(default="")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ProductItem(SQLModel, table=True):
    """
    A purchasable product priced in JPY.

    Keyed by (group_id, id); `id` is only unique within its group.
    rate_sale / rate_cost are JPY → TWD multipliers.
    """

    __tablename__ = "product_items"

    group_id: str = Field(primary_key=True, foreign_key="product_groups.id")
    id: str = Field(primary_key=True)
    name: str = Field(default="", index=True)

    # Cost inputs
    jpy_price: float = Field(default=0.0)
    domestic_ship: float = Field(default=0.0)
    handling_fee: float = Field(default=0.0)
    intl_ship: float = Field(default=0.0)
    rate_sale: float = Field(default_factory=lambda: settings.DEFAULT_RATE_SALE)
    rate_cost: float = Field(default_factory=lambda: settings.DEFAULT_RATE_COST)

    # What the buyer is actually charged (TWD)
    input_price: float = Field(default=0.0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
