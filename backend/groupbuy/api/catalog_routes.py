"""
Product catalog API.

Endpoints:
  GET    /api/catalog                                  – groups with items and stats
  POST   /api/catalog/groups                           – add group (next free id)
  PATCH  /api/catalog/groups/{group_id}                – rename group
  DELETE /api/catalog/groups/{group_id}                – delete empty group
  GET    /api/catalog/groups/{group_id}/next-item-id   – id the next item would get
  POST   /api/catalog/groups/{group_id}/items          – add item (next free id)
  PUT    /api/catalog/groups/{group_id}/items/{item_id}    – create / update item
  PATCH  /api/catalog/groups/{group_id}/items/{item_id}    – rename item
  DELETE /api/catalog/groups/{group_id}/items/{item_id}    – delete unreferenced item
  POST   /api/catalog/stats                            – stats preview for unsaved inputs
  GET    /api/catalog/export/csv                       – product sheet download
"""
from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from groupbuy.api.routes import csv_response, get_store, store_http_error
from groupbuy.engine.identifiers import next_item_id
from groupbuy.engine.pricing import compute_stats
from groupbuy.engine.snapshot import build_catalog, product_item_read
from groupbuy.export.csv_export import export_filename, products_csv
from groupbuy.schemas.responses import ProductGroupRead, ProductItemRead, ProductStats
from groupbuy.store.exceptions import StoreError
from groupbuy.store.sql_store import SqlStore

catalog_router = APIRouter(prefix="/api/catalog", tags=["catalog"])

# Form inputs arrive as numbers or raw strings; junk is stored as 0.
NumberInput = Optional[Union[float, str]]


# ── Pydantic schemas ──────────────────────────────────────────────────────────


class NameIn(BaseModel):
    name: str


class ProductItemIn(BaseModel):
    name: Optional[str] = None
    jpy_price: NumberInput = None
    domestic_ship: NumberInput = None
    handling_fee: NumberInput = None
    intl_ship: NumberInput = None
    rate_sale: NumberInput = None
    rate_cost: NumberInput = None
    input_price: NumberInput = None


# ── Routes ────────────────────────────────────────────────────────────────────


@catalog_router.get("/", response_model=list[ProductGroupRead])
def list_catalog(store: SqlStore = Depends(get_store)):
    return build_catalog(store.list_groups(), store.list_items())


@catalog_router.post("/groups", response_model=ProductGroupRead, status_code=201)
def add_group(body: NameIn, store: SqlStore = Depends(get_store)):
    try:
        group = store.add_group(body.name)
    except StoreError as exc:
        raise store_http_error(exc)
    return ProductGroupRead(id=group.id, name=group.name)


@catalog_router.patch("/groups/{group_id}", response_model=ProductGroupRead)
def rename_group(group_id: str, body: NameIn, store: SqlStore = Depends(get_store)):
    try:
        group = store.rename_group(group_id, body.name)
    except StoreError as exc:
        raise store_http_error(exc)
    return build_catalog([group], store.list_items())[0]


@catalog_router.delete("/groups/{group_id}")
def delete_group(group_id: str, store: SqlStore = Depends(get_store)) -> dict:
    try:
        store.delete_group(group_id)
    except StoreError as exc:
        raise store_http_error(exc)
    return {"status": "deleted", "group_id": group_id}


@catalog_router.get("/groups/{group_id}/next-item-id")
def preview_next_item_id(group_id: str, store: SqlStore = Depends(get_store)) -> dict:
    try:
        store.get_group(group_id)
    except StoreError as exc:
        raise store_http_error(exc)
    siblings = [i.id for i in store.list_items() if i.group_id == group_id]
    return {"group_id": group_id, "next_item_id": next_item_id(siblings)}


@catalog_router.post("/groups/{group_id}/items", response_model=ProductItemRead, status_code=201)
def add_item(group_id: str, body: ProductItemIn, store: SqlStore = Depends(get_store)):
    try:
        item = store.save_item(group_id, body.model_dump(exclude_unset=True))
    except StoreError as exc:
        raise store_http_error(exc)
    return product_item_read(item)


@catalog_router.put("/groups/{group_id}/items/{item_id}", response_model=ProductItemRead)
def save_item(group_id: str, item_id: str, body: ProductItemIn, store: SqlStore = Depends(get_store)):
    try:
        item = store.save_item(group_id, body.model_dump(exclude_unset=True), item_id=item_id)
    except StoreError as exc:
        raise store_http_error(exc)
    return product_item_read(item)


@catalog_router.patch("/groups/{group_id}/items/{item_id}", response_model=ProductItemRead)
def rename_item(group_id: str, item_id: str, body: NameIn, store: SqlStore = Depends(get_store)):
    try:
        item = store.rename_item(group_id, item_id, body.name)
    except StoreError as exc:
        raise store_http_error(exc)
    return product_item_read(item)


@catalog_router.delete("/groups/{group_id}/items/{item_id}")
def delete_item(group_id: str, item_id: str, store: SqlStore = Depends(get_store)) -> dict:
    try:
        store.delete_item(group_id, item_id)
    except StoreError as exc:
        raise store_http_error(exc)
    return {"status": "deleted", "group_id": group_id, "item_id": item_id}


@catalog_router.post("/stats", response_model=ProductStats)
def preview_stats(body: ProductItemIn):
    """Live figures for a product form that has not been saved yet."""
    return compute_stats(body.model_dump())


@catalog_router.get("/export/csv")
def export_products_csv(store: SqlStore = Depends(get_store)):
    content = products_csv(store.list_groups(), store.list_items())
    return csv_response(content, export_filename("products"))
