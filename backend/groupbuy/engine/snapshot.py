"""
Snapshot in, views out.

The store hands over its whole current state as a Snapshot; recompute()
derives every view for one batch from it. Nothing is cached between calls,
so the same snapshot always yields the same views.
"""
from __future__ import annotations

from dataclasses import dataclass, field as dc_field
from typing import Any, Iterable, Mapping, Optional

from groupbuy.engine.pricing import compute_stats
from groupbuy.engine.reports import (
    DepositMode,
    GroupingMode,
    ProductIndex,
    batch_order_items,
    build_analysis_report,
    build_detail_report,
    classify_deposits,
    compute_income_statement,
    detail_line,
)
from groupbuy.engine.values import number_field, text_field
from groupbuy.schemas.responses import ProductGroupRead, ProductItemRead, ReportViews


@dataclass(frozen=True)
class Snapshot:
    groups: tuple = ()
    items: tuple = ()
    order_groups: tuple = ()
    order_items: tuple = ()
    income_settings: Mapping[str, Any] = dc_field(default_factory=dict)

    @classmethod
    def of(
        cls,
        groups: Iterable[Any] = (),
        items: Iterable[Any] = (),
        order_groups: Iterable[Any] = (),
        order_items: Iterable[Any] = (),
        income_settings: Optional[Mapping[str, Any]] = None,
    ) -> "Snapshot":
        return cls(
            groups=tuple(groups),
            items=tuple(items),
            order_groups=tuple(order_groups),
            order_items=tuple(order_items),
            income_settings=dict(income_settings or {}),
        )


def latest_order_group_id(order_groups: Iterable[Any]) -> Optional[str]:
    """The batch shown by default: the greatest id."""
    ids = [text_field(g, "id") for g in order_groups or ()]
    return max(ids) if ids else None


def product_item_read(product: Any) -> ProductItemRead:
    return ProductItemRead(
        group_id=text_field(product, "group_id"),
        id=text_field(product, "id"),
        name=text_field(product, "name"),
        jpy_price=number_field(product, "jpy_price"),
        domestic_ship=number_field(product, "domestic_ship"),
        handling_fee=number_field(product, "handling_fee"),
        intl_ship=number_field(product, "intl_ship"),
        rate_sale=number_field(product, "rate_sale"),
        rate_cost=number_field(product, "rate_cost"),
        input_price=number_field(product, "input_price"),
        stats=compute_stats(product),
    )


def build_catalog(groups: Iterable[Any], items: Iterable[Any]) -> list[ProductGroupRead]:
    """Groups ordered by id, each with its items ordered by id and their stats."""
    items = list(items or ())
    catalog: list[ProductGroupRead] = []
    for group in sorted(groups or (), key=lambda g: text_field(g, "id")):
        group_id = text_field(group, "id")
        members = sorted(
            (i for i in items if text_field(i, "group_id") == group_id),
            key=lambda i: text_field(i, "id"),
        )
        catalog.append(
            ProductGroupRead(
                id=group_id,
                name=text_field(group, "name"),
                items=[product_item_read(i) for i in members],
            )
        )
    return catalog


def recompute(
    snapshot: Snapshot,
    order_group_id: Optional[str] = None,
    detail_mode: GroupingMode = "buyer",
    analysis_mode: GroupingMode = "buyer",
    deposit_mode: DepositMode = "income",
) -> ReportViews:
    """
    Every view for one batch.

    `order_group_id` defaults to the latest batch. An unknown batch yields
    empty views and a zeroed income statement.
    """
    if order_group_id is None:
        order_group_id = latest_order_group_id(snapshot.order_groups)

    index = ProductIndex(snapshot.items)
    lines = batch_order_items(snapshot.order_items, order_group_id)
    settings = snapshot.income_settings.get(order_group_id) if order_group_id else None

    return ReportViews(
        order_group_id=order_group_id,
        catalog=build_catalog(snapshot.groups, snapshot.items),
        detail=build_detail_report(lines, index, detail_mode),
        analysis=build_analysis_report(lines, index, analysis_mode),
        deposits=[detail_line(i, index.lookup(i)) for i in classify_deposits(lines, deposit_mode)],
        income=compute_income_statement(lines, index, settings),
    )
