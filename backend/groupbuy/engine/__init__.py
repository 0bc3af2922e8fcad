from groupbuy.engine.identifiers import (
    new_order_item_id,
    next_group_id,
    next_item_id,
    next_order_batch_id,
)
from groupbuy.engine.pricing import compute_stats
from groupbuy.engine.reports import (
    build_analysis_report,
    build_detail_report,
    classify_deposits,
    compute_income_statement,
)
from groupbuy.engine.snapshot import Snapshot, recompute

__all__ = [
    "next_group_id",
    "next_item_id",
    "next_order_batch_id",
    "new_order_item_id",
    "compute_stats",
    "build_detail_report",
    "build_analysis_report",
    "classify_deposits",
    "compute_income_statement",
    "Snapshot",
    "recompute",
]
