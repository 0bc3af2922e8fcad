"""
Order batch API routes.

Endpoints:
  GET    /api/orders                                   – list batches
  POST   /api/orders                                   – create batch for year/month
  DELETE /api/orders/{batch_id}                        – delete empty batch
  GET    /api/orders/{batch_id}/items                  – order lines joined to products
  POST   /api/orders/{batch_id}/items                  – add order line
  PUT    /api/orders/{batch_id}/items/{item_id}        – edit order line
  DELETE /api/orders/{batch_id}/items/{item_id}        – delete order line
  GET    /api/orders/{batch_id}/income-settings        – manual income inputs
  PUT    /api/orders/{batch_id}/income-settings        – save manual income inputs
  GET    /api/orders/{batch_id}/export/csv             – order sheet download
"""
from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from groupbuy.api.routes import csv_response, get_store, store_http_error
from groupbuy.engine.reports import ProductIndex, batch_order_items, detail_line
from groupbuy.export.csv_export import export_filename, orders_csv
from groupbuy.schemas.responses import (
    DetailLine,
    IncomeSettingsRead,
    OrderGroupRead,
    OrderItemRead,
)
from groupbuy.store.exceptions import StoreError
from groupbuy.store.sql_store import SqlStore

order_router = APIRouter(prefix="/api/orders", tags=["orders"])

NumberInput = Optional[Union[float, str]]


# ── Pydantic schemas ──────────────────────────────────────────────────────────


class OrderGroupIn(BaseModel):
    year: int = Field(ge=2000, le=2999)
    month: int = Field(ge=1, le=12)


class OrderItemIn(BaseModel):
    product_group_id: Optional[str] = None
    product_item_id: Optional[str] = None
    description: Optional[str] = None
    buyer: Optional[str] = None
    quantity: Optional[Union[int, str]] = None   # negative = refund / adjustment
    remarks: Optional[str] = None
    note: Optional[str] = None
    date: Optional[str] = None


class IncomeSettingsIn(BaseModel):
    packaging_revenue: NumberInput = None
    card_charge: NumberInput = None
    card_fee: NumberInput = None
    intl_shipping: NumberInput = None
    dad_receivable: NumberInput = None
    payment_note: Optional[str] = None


# ── Helpers ───────────────────────────────────────────────────────────────────


def _batch_lines(store: SqlStore, order_group_id: str) -> list[DetailLine]:
    index = ProductIndex(store.list_items())
    return [
        detail_line(item, index.lookup(item))
        for item in batch_order_items(store.list_order_items(), order_group_id)
    ]


# ── Routes ────────────────────────────────────────────────────────────────────


@order_router.get("/", response_model=list[OrderGroupRead])
def list_order_groups(store: SqlStore = Depends(get_store)):
    return store.list_order_groups()


@order_router.post("/", response_model=OrderGroupRead, status_code=201)
def create_order_group(body: OrderGroupIn, store: SqlStore = Depends(get_store)):
    try:
        return store.create_order_group(body.year, body.month)
    except StoreError as exc:
        raise store_http_error(exc)


@order_router.delete("/{order_group_id}")
def delete_order_group(order_group_id: str, store: SqlStore = Depends(get_store)) -> dict:
    try:
        store.delete_order_group(order_group_id)
    except StoreError as exc:
        raise store_http_error(exc)
    return {"status": "deleted", "order_group_id": order_group_id}


@order_router.get("/{order_group_id}/items", response_model=list[DetailLine])
def list_order_items(order_group_id: str, store: SqlStore = Depends(get_store)):
    try:
        store.get_order_group(order_group_id)
    except StoreError as exc:
        raise store_http_error(exc)
    return _batch_lines(store, order_group_id)


@order_router.post("/{order_group_id}/items", response_model=OrderItemRead, status_code=201)
def add_order_item(order_group_id: str, body: OrderItemIn, store: SqlStore = Depends(get_store)):
    try:
        return store.save_order_item(order_group_id, body.model_dump(exclude_unset=True))
    except StoreError as exc:
        raise store_http_error(exc)


@order_router.put("/{order_group_id}/items/{order_item_id}", response_model=OrderItemRead)
def update_order_item(
    order_group_id: str,
    order_item_id: str,
    body: OrderItemIn,
    store: SqlStore = Depends(get_store),
):
    try:
        return store.save_order_item(
            order_group_id, body.model_dump(exclude_unset=True), order_item_id=order_item_id
        )
    except StoreError as exc:
        raise store_http_error(exc)


@order_router.delete("/{order_group_id}/items/{order_item_id}")
def delete_order_item(order_group_id: str, order_item_id: str, store: SqlStore = Depends(get_store)) -> dict:
    try:
        store.delete_order_item(order_group_id, order_item_id)
    except StoreError as exc:
        raise store_http_error(exc)
    return {"status": "deleted", "order_item_id": order_item_id}


@order_router.get("/{order_group_id}/income-settings", response_model=IncomeSettingsRead)
def get_income_settings(order_group_id: str, store: SqlStore = Depends(get_store)):
    """Saved manual inputs, or all-zero defaults when none were saved."""
    income = store.get_income_settings(order_group_id)
    if income is None:
        return IncomeSettingsRead(order_group_id=order_group_id)
    return IncomeSettingsRead.model_validate(income, from_attributes=True)


@order_router.put("/{order_group_id}/income-settings", response_model=IncomeSettingsRead)
def save_income_settings(order_group_id: str, body: IncomeSettingsIn, store: SqlStore = Depends(get_store)):
    try:
        income = store.save_income_settings(order_group_id, body.model_dump(exclude_unset=True))
    except StoreError as exc:
        raise store_http_error(exc)
    return IncomeSettingsRead.model_validate(income, from_attributes=True)


@order_router.get("/{order_group_id}/export/csv")
def export_orders_csv(order_group_id: str, store: SqlStore = Depends(get_store)):
    content = orders_csv(_batch_lines(store, order_group_id))
    return csv_response(content, export_filename("orders", order_group_id))
