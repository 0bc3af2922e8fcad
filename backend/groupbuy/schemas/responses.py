"""Pydantic schemas for engine results and API responses."""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    db: str
    version: str = "1.0.0"


# ── Catalog ───────────────────────────────────────────────────────────────────


class ProductStats(BaseModel):
    """Derived figures for one product, unrounded."""
    twd_cost: float = 0.0          # jpy_price × rate_cost
    cost_plus_ship: float = 0.0    # twd_cost + every shipping / handling leg
    price_plus_ship: float = 0.0   # jpy_price × rate_sale + intl_ship (reference only)
    profit: float = 0.0            # input_price − cost_plus_ship


class ProductItemRead(BaseModel):
    group_id: str
    id: str
    name: str
    jpy_price: float
    domestic_ship: float
    handling_fee: float
    intl_ship: float
    rate_sale: float
    rate_cost: float
    input_price: float
    stats: ProductStats


class ProductGroupRead(BaseModel):
    id: str
    name: str
    items: list[ProductItemRead] = []


# ── Orders ────────────────────────────────────────────────────────────────────


class OrderGroupRead(BaseModel):
    id: str
    year: int
    month: int
    suffix: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderItemRead(BaseModel):
    id: str
    order_group_id: str
    product_group_id: str
    product_item_id: str
    description: str
    buyer: str
    quantity: int
    remarks: str
    note: str
    date: Optional[str]

    class Config:
        from_attributes = True


class IncomeSettingsRead(BaseModel):
    order_group_id: str
    packaging_revenue: float = 0.0
    card_charge: float = 0.0
    card_fee: float = 0.0
    intl_shipping: float = 0.0
    dad_receivable: float = 0.0
    payment_note: str = ""


# ── Reports ───────────────────────────────────────────────────────────────────


class DetailLine(BaseModel):
    """One order line joined to its product (or to nothing)."""
    id: str
    order_group_id: str
    product_group_id: str
    product_item_id: str
    product_name: str      # "" when the product no longer exists
    description: str
    buyer: str
    quantity: int
    remarks: str
    note: str
    date: str
    unit_price: float      # product input_price, 0 if unmatched
    total: float           # unit_price × quantity


class DetailBucket(BaseModel):
    label: str
    total_qty: int
    total_price: float
    lines: list[DetailLine]


class AnalysisRow(BaseModel):
    label: str
    qty: int
    total: float


class IncomeStatement(BaseModel):
    total_sales: float = 0.0
    total_base_cost: float = 0.0
    total_jpy: float = 0.0
    total_domestic: float = 0.0
    total_handling: float = 0.0
    avg_rate_cost: float = 0.205

    # Manual inputs, echoed back
    packaging_revenue: float = 0.0
    card_charge: float = 0.0
    card_fee: float = 0.0
    intl_shipping: float = 0.0
    dad_receivable: float = 0.0
    payment_note: str = ""

    total_revenue: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    profit_rate: float = 0.0       # percent
    card_fee_rate: float = 0.0     # percent

    # Fixed profit split, unrounded
    dad_share: float = 0.0
    sister_share: float = 0.0


class ReportViews(BaseModel):
    """Every derived view for one batch, recomputed from a snapshot."""
    order_group_id: Optional[str]
    catalog: list[ProductGroupRead]
    detail: list[DetailBucket]
    analysis: list[AnalysisRow]
    deposits: list[DetailLine]
    income: IncomeStatement
