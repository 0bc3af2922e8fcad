"""
Batch report API routes.

Every response is recomputed from a fresh store snapshot; nothing is cached.

Endpoints:
  GET /api/reports                              – all views (latest batch unless ?order_group_id=)
  GET /api/reports/{batch_id}                   – all views of one batch
  GET /api/reports/{batch_id}/detail            – ?mode=buyer|product
  GET /api/reports/{batch_id}/analysis          – ?mode=buyer|product
  GET /api/reports/{batch_id}/deposits          – ?mode=income|expense
  GET /api/reports/{batch_id}/income
  GET /api/reports/{batch_id}/detail/csv        – CSV variants of the above
  GET /api/reports/{batch_id}/analysis/csv
  GET /api/reports/{batch_id}/deposits/csv
  GET /api/reports/{batch_id}/income/csv

An unknown batch id yields empty reports, not a 404.
"""
from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from groupbuy.api.routes import csv_response, get_store
from groupbuy.engine.reports import (
    ProductIndex,
    batch_order_items,
    build_analysis_report,
    build_detail_report,
    classify_deposits,
    compute_income_statement,
    detail_line,
)
from groupbuy.engine.snapshot import recompute
from groupbuy.export.csv_export import (
    analysis_csv,
    deposits_csv,
    detail_csv,
    export_filename,
    income_csv,
)
from groupbuy.schemas.responses import (
    AnalysisRow,
    DetailBucket,
    DetailLine,
    IncomeStatement,
    ReportViews,
)
from groupbuy.store.sql_store import SqlStore

report_router = APIRouter(prefix="/api/reports", tags=["reports"])

Grouping = Literal["buyer", "product"]
Deposit = Literal["income", "expense"]


def _batch(store: SqlStore, order_group_id: str) -> tuple[list, ProductIndex]:
    """One batch's lines in display order, plus the product lookup."""
    snapshot = store.snapshot()
    return (
        batch_order_items(snapshot.order_items, order_group_id),
        ProductIndex(snapshot.items),
    )


# ── All views ─────────────────────────────────────────────────────────────────


@report_router.get("/", response_model=ReportViews)
def all_views(
    order_group_id: Optional[str] = Query(default=None, description="Defaults to the latest batch"),
    detail_mode: Grouping = Query(default="buyer"),
    analysis_mode: Grouping = Query(default="buyer"),
    deposit_mode: Deposit = Query(default="income"),
    store: SqlStore = Depends(get_store),
):
    return recompute(
        store.snapshot(),
        order_group_id,
        detail_mode=detail_mode,
        analysis_mode=analysis_mode,
        deposit_mode=deposit_mode,
    )


@report_router.get("/{order_group_id}", response_model=ReportViews)
def batch_views(
    order_group_id: str,
    detail_mode: Grouping = Query(default="buyer"),
    analysis_mode: Grouping = Query(default="buyer"),
    deposit_mode: Deposit = Query(default="income"),
    store: SqlStore = Depends(get_store),
):
    return recompute(
        store.snapshot(),
        order_group_id,
        detail_mode=detail_mode,
        analysis_mode=analysis_mode,
        deposit_mode=deposit_mode,
    )


# ── Single views ──────────────────────────────────────────────────────────────


@report_router.get("/{order_group_id}/detail", response_model=list[DetailBucket])
def detail_report(order_group_id: str, mode: Grouping = Query(default="buyer"), store: SqlStore = Depends(get_store)):
    lines, index = _batch(store, order_group_id)
    return build_detail_report(lines, index, mode)


@report_router.get("/{order_group_id}/analysis", response_model=list[AnalysisRow])
def analysis_report(order_group_id: str, mode: Grouping = Query(default="buyer"), store: SqlStore = Depends(get_store)):
    lines, index = _batch(store, order_group_id)
    return build_analysis_report(lines, index, mode)


@report_router.get("/{order_group_id}/deposits", response_model=list[DetailLine])
def deposits_report(order_group_id: str, mode: Deposit = Query(default="income"), store: SqlStore = Depends(get_store)):
    lines, index = _batch(store, order_group_id)
    return [detail_line(i, index.lookup(i)) for i in classify_deposits(lines, mode)]


@report_router.get("/{order_group_id}/income", response_model=IncomeStatement)
def income_report(order_group_id: str, store: SqlStore = Depends(get_store)):
    lines, index = _batch(store, order_group_id)
    return compute_income_statement(lines, index, store.get_income_settings(order_group_id))


# ── CSV exports ───────────────────────────────────────────────────────────────


@report_router.get("/{order_group_id}/detail/csv")
def export_detail_csv(order_group_id: str, mode: Grouping = Query(default="buyer"), store: SqlStore = Depends(get_store)):
    lines, index = _batch(store, order_group_id)
    content = detail_csv(build_detail_report(lines, index, mode), mode)
    return csv_response(content, export_filename("detail", order_group_id, mode))


@report_router.get("/{order_group_id}/analysis/csv")
def export_analysis_csv(order_group_id: str, mode: Grouping = Query(default="buyer"), store: SqlStore = Depends(get_store)):
    lines, index = _batch(store, order_group_id)
    content = analysis_csv(build_analysis_report(lines, index, mode), mode)
    return csv_response(content, export_filename("analysis", order_group_id, mode))


@report_router.get("/{order_group_id}/deposits/csv")
def export_deposits_csv(order_group_id: str, store: SqlStore = Depends(get_store)):
    lines, index = _batch(store, order_group_id)
    content = deposits_csv([detail_line(i, index.lookup(i)) for i in lines])
    return csv_response(content, export_filename("deposits", order_group_id))


@report_router.get("/{order_group_id}/income/csv")
def export_income_csv(order_group_id: str, store: SqlStore = Depends(get_store)):
    lines, index = _batch(store, order_group_id)
    statement = compute_income_statement(lines, index, store.get_income_settings(order_group_id))
    return csv_response(income_csv(statement), export_filename("income", order_group_id))
