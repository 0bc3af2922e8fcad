"""
Batch report aggregation.

Every function here is a stateless fold over the order lines of one batch,
joined to the current products by (group id, item id). A line whose product
no longer exists still counts: its price is 0 and its label is
UNKNOWN_PRODUCT. Nothing here raises on missing products, missing settings
or an empty batch.

Views:
  detail    – lines bucketed by buyer or product, buckets sorted by label
  analysis  – per-bucket qty / revenue, sorted by revenue (highest first)
  deposits  – remark-based income / expense classification
  income    – batch income statement and the fixed profit split
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal, Optional, Union

from loguru import logger

from groupbuy.engine.collation import collation_key, sort_by_label
from groupbuy.engine.pricing import compute_stats
from groupbuy.engine.values import field, number_field, text_field, to_quantity
from groupbuy.schemas.responses import (
    AnalysisRow,
    DetailBucket,
    DetailLine,
    IncomeStatement,
)

GroupingMode = Literal["buyer", "product"]
DepositMode = Literal["income", "expense"]

UNKNOWN_PRODUCT = "未知商品"

DEFAULT_AVG_RATE_COST = 0.205

# Settlement split of net profit
DAD_SHARE = 0.2
SISTER_SHARE = 0.8

# Remark markers
REFUND_MARK = "退"        # return / refund
PAYOUT_MARK = "支"        # payout
TRANSFER_MARK = "匯"      # buyer paid by wire transfer


# ── Bucket keys ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BuyerKey:
    name: str


@dataclass(frozen=True)
class ProductKey:
    group_id: str
    item_id: str


BucketKey = Union[BuyerKey, ProductKey]


def _check_grouping(mode: str) -> None:
    if mode not in ("buyer", "product"):
        raise ValueError(f"unknown grouping mode {mode!r}; expected 'buyer' or 'product'")


# ── Product lookup ────────────────────────────────────────────────────────────


class ProductIndex:
    """(group id, item id) → product, tolerant of dangling references."""

    def __init__(self, products: Iterable[Any]) -> None:
        self._by_key: dict[tuple[str, str], Any] = {}
        for product in products or ():
            key = (text_field(product, "group_id"), text_field(product, "id"))
            # First one wins, as a linear scan would
            self._by_key.setdefault(key, product)

    def lookup(self, order_item: Any) -> Optional[Any]:
        key = (
            text_field(order_item, "product_group_id"),
            text_field(order_item, "product_item_id"),
        )
        product = self._by_key.get(key)
        if product is None:
            logger.debug(
                f"reports: order line {text_field(order_item, 'id')!r} "
                f"references missing product {key[0]}-{key[1]}"
            )
        return product


def _index(products: Any) -> ProductIndex:
    return products if isinstance(products, ProductIndex) else ProductIndex(products)


def product_label(product: Optional[Any]) -> str:
    name = text_field(product, "name") if product is not None else ""
    return name or UNKNOWN_PRODUCT


def _bucket_for(order_item: Any, product: Optional[Any], mode: str) -> tuple[BucketKey, str]:
    if mode == "buyer":
        buyer = text_field(order_item, "buyer")
        return BuyerKey(buyer), buyer
    key = ProductKey(
        text_field(order_item, "product_group_id"),
        text_field(order_item, "product_item_id"),
    )
    return key, product_label(product)


def detail_line(order_item: Any, product: Optional[Any]) -> DetailLine:
    """Flatten one order line joined to its product."""
    unit_price = number_field(product, "input_price") if product is not None else 0.0
    quantity = to_quantity(field(order_item, "quantity"))
    return DetailLine(
        id=text_field(order_item, "id"),
        order_group_id=text_field(order_item, "order_group_id"),
        product_group_id=text_field(order_item, "product_group_id"),
        product_item_id=text_field(order_item, "product_item_id"),
        product_name=text_field(product, "name") if product is not None else "",
        description=text_field(order_item, "description"),
        buyer=text_field(order_item, "buyer"),
        quantity=quantity,
        remarks=text_field(order_item, "remarks"),
        note=text_field(order_item, "note"),
        date=text_field(order_item, "date"),
        unit_price=unit_price,
        total=unit_price * quantity,
    )


# ── Batch selection ───────────────────────────────────────────────────────────


def batch_order_items(order_items: Iterable[Any], order_group_id: Optional[str]) -> list[Any]:
    """
    Lines of one batch in display order: product group, product item, buyer.

    This is the order the detail view keeps inside each bucket.
    """
    if order_group_id is None:
        return []
    selected = [
        item for item in order_items or ()
        if text_field(item, "order_group_id") == order_group_id
    ]
    return sorted(
        selected,
        key=lambda item: (
            text_field(item, "product_group_id"),
            text_field(item, "product_item_id"),
            collation_key(text_field(item, "buyer")),
        ),
    )


# ── Detail / analysis ─────────────────────────────────────────────────────────


def build_detail_report(
    order_items: Iterable[Any],
    products: Any,
    mode: GroupingMode = "buyer",
) -> list[DetailBucket]:
    """Bucket lines by buyer or product; buckets sorted by collated label."""
    _check_grouping(mode)
    index = _index(products)

    buckets: dict[BucketKey, DetailBucket] = {}
    for order_item in order_items or ():
        product = index.lookup(order_item)
        key, label = _bucket_for(order_item, product, mode)
        line = detail_line(order_item, product)

        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = DetailBucket(label=label, total_qty=0, total_price=0.0, lines=[])
        bucket.total_qty += line.quantity
        bucket.total_price += line.total
        bucket.lines.append(line)

    return sort_by_label(buckets.values(), lambda b: b.label)


def build_analysis_report(
    order_items: Iterable[Any],
    products: Any,
    mode: GroupingMode = "buyer",
) -> list[AnalysisRow]:
    """Per-bucket quantity and revenue, highest revenue first (ties keep first-seen order)."""
    _check_grouping(mode)
    index = _index(products)

    rows: dict[BucketKey, AnalysisRow] = {}
    for order_item in order_items or ():
        product = index.lookup(order_item)
        key, label = _bucket_for(order_item, product, mode)
        quantity = to_quantity(field(order_item, "quantity"))
        revenue = (number_field(product, "input_price") if product is not None else 0.0) * quantity

        row = rows.get(key)
        if row is None:
            row = rows[key] = AnalysisRow(label=label, qty=0, total=0.0)
        row.qty += quantity
        row.total += revenue

    return sorted(rows.values(), key=lambda r: r.total, reverse=True)


# ── Deposits ──────────────────────────────────────────────────────────────────


def is_income_deposit(order_item: Any) -> bool:
    """Remarked (or wire-transfer) lines that are not refunds or payouts."""
    remarks = text_field(order_item, "remarks")
    if REFUND_MARK in remarks or PAYOUT_MARK in remarks:
        return False
    return bool(remarks.strip()) or TRANSFER_MARK in text_field(order_item, "buyer")


def is_expense_deposit(order_item: Any) -> bool:
    """Refunds, payouts and negative-quantity adjustments."""
    remarks = text_field(order_item, "remarks")
    return (
        REFUND_MARK in remarks
        or PAYOUT_MARK in remarks
        or to_quantity(field(order_item, "quantity")) < 0
    )


def classify_deposits(order_items: Iterable[Any], mode: DepositMode = "income") -> list[Any]:
    """
    Select income or expense lines, sorted by buyer.

    The two selections need not cover every line: a line with no remarks
    from a buyer without the transfer mark is in neither.
    """
    if mode == "income":
        keep = is_income_deposit
    elif mode == "expense":
        keep = is_expense_deposit
    else:
        raise ValueError(f"unknown deposit mode {mode!r}; expected 'income' or 'expense'")
    selected = [item for item in order_items or () if keep(item)]
    return sort_by_label(selected, lambda item: text_field(item, "buyer"))


# ── Income statement ──────────────────────────────────────────────────────────


def compute_income_statement(
    order_items: Iterable[Any],
    products: Any,
    settings: Optional[Any] = None,
) -> IncomeStatement:
    """
    Batch income statement.

    Product-derived totals cover matched lines only. `settings` holds the
    manual inputs (packaging revenue, card charge / fee, actual international
    shipping, receivable, payment note); absent means all zero.
    """
    index = _index(products)

    total_sales = total_base_cost = total_jpy = total_domestic = total_handling = 0.0
    rate_sum = 0.0
    rate_count = 0

    for order_item in order_items or ():
        product = index.lookup(order_item)
        if product is None:
            continue
        qty = to_quantity(field(order_item, "quantity"))
        stats = compute_stats(product)
        total_sales += number_field(product, "input_price") * qty
        total_base_cost += stats.twd_cost * qty
        total_jpy += number_field(product, "jpy_price") * qty
        total_domestic += number_field(product, "domestic_ship") * qty
        total_handling += number_field(product, "handling_fee") * qty
        rate_cost = number_field(product, "rate_cost")
        if rate_cost:
            rate_sum += rate_cost
            rate_count += 1

    avg_rate_cost = rate_sum / rate_count if rate_count > 0 else DEFAULT_AVG_RATE_COST

    packaging_revenue = number_field(settings, "packaging_revenue")
    card_charge = number_field(settings, "card_charge")
    card_fee = number_field(settings, "card_fee")
    intl_shipping = number_field(settings, "intl_shipping")

    total_revenue = total_sales + packaging_revenue
    total_expenses = card_charge + intl_shipping + card_fee
    net_profit = total_revenue - total_expenses
    profit_rate = net_profit / total_revenue * 100 if total_revenue > 0 else 0.0
    card_fee_rate = card_fee / card_charge * 100 if card_charge > 0 else 0.0

    return IncomeStatement(
        total_sales=total_sales,
        total_base_cost=total_base_cost,
        total_jpy=total_jpy,
        total_domestic=total_domestic,
        total_handling=total_handling,
        avg_rate_cost=avg_rate_cost,
        packaging_revenue=packaging_revenue,
        card_charge=card_charge,
        card_fee=card_fee,
        intl_shipping=intl_shipping,
        dad_receivable=number_field(settings, "dad_receivable"),
        payment_note=text_field(settings, "payment_note"),
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_profit=net_profit,
        profit_rate=profit_rate,
        card_fee_rate=card_fee_rate,
        dad_share=net_profit * DAD_SHARE,
        sister_share=net_profit * SISTER_SHARE,
    )
