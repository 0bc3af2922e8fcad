"""
Group-purchase bookkeeping – FastAPI application entry point.

Run with:
    uvicorn groupbuy.main:app --reload --host 0.0.0.0 --port 8000
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from groupbuy.api.catalog_routes import catalog_router
from groupbuy.api.order_routes import order_router
from groupbuy.api.report_routes import report_router
from groupbuy.api.routes import router
from groupbuy.core.config import settings
from groupbuy.core.database import create_db_and_tables
from groupbuy.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown hooks."""
    setup_logging()
    logger.info("Starting group-purchase backend …")
    create_db_and_tables()
    logger.info("Database tables ready")
    yield
    logger.info("Group-purchase backend shut down")


app = FastAPI(
    title="Group Purchase API",
    description="Product pricing, order batches and settlement reports for group purchases",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS – allow frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(catalog_router)
app.include_router(order_router)
app.include_router(report_router)


@app.get("/")
def root():
    return {"message": "Group Purchase API", "docs": "/docs"}
