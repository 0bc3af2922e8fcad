"""
Shared API routes and helpers.

Endpoints:
  GET  /api/health
  GET  /api/next-ids     – preview of the ids the next writes would allocate
"""
from __future__ import annotations

from datetime import date
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from loguru import logger
from sqlmodel import Session, select

from groupbuy.core.database import get_session
from groupbuy.engine.identifiers import next_group_id, next_order_batch_id
from groupbuy.models.catalog import ProductGroup
from groupbuy.schemas.responses import HealthResponse
from groupbuy.store.exceptions import NotFoundError, ReferenceInUseError, StoreError
from groupbuy.store.sql_store import SqlStore

router = APIRouter(prefix="/api")


# ── Helpers ───────────────────────────────────────────────────────────────────


def get_store(session: Session = Depends(get_session)) -> SqlStore:
    """FastAPI dependency: a store bound to the request's session."""
    return SqlStore(session)


def store_http_error(exc: StoreError) -> HTTPException:
    """Map a store error onto an HTTP status (404 / 409 / 422)."""
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, ReferenceInUseError):
        status_code = 409
    else:
        status_code = 422
    logger.warning(f"store refused write ({status_code}): {exc}")
    return HTTPException(status_code=status_code, detail=str(exc))


def csv_response(content: str, filename: str) -> StreamingResponse:
    """Stream CSV text as a UTF-8 attachment (RFC 5987 filename for non-ASCII names)."""
    return StreamingResponse(
        iter([content.encode("utf-8")]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


# ── Health ────────────────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
def health(session: Session = Depends(get_session)):
    try:
        session.exec(select(ProductGroup).limit(1))
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {e}"
    return HealthResponse(status="ok", db=db_status)


# ── Id preview ────────────────────────────────────────────────────────────────


@router.get("/next-ids")
def next_ids(
    year: Optional[int] = Query(default=None),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    store: SqlStore = Depends(get_store),
) -> dict:
    """Ids a new product group / order batch would get right now."""
    today = date.today()
    year = year or today.year
    month = month or today.month
    same_month = [
        g.id for g in store.list_order_groups() if g.year == year and g.month == month
    ]
    return {
        "group_id": next_group_id([g.id for g in store.list_groups()]),
        "order_group_id": next_order_batch_id(year, month, same_month),
    }
