"""
Product cost / price / profit figures.

    twd_cost        = jpy_price × rate_cost
    cost_plus_ship  = twd_cost + domestic_ship + handling_fee + intl_ship
    price_plus_ship = jpy_price × rate_sale + intl_ship
    profit          = input_price − cost_plus_ship

price_plus_ship is only a reference figure: the customer pays the
international leg but never sees the domestic shipping or handling legs,
so those two stay out of it. Profit is measured against input_price, the
amount actually charged.
"""
from __future__ import annotations

from typing import Any

from groupbuy.engine.values import number_field
from groupbuy.schemas.responses import ProductStats


def compute_stats(product: Any) -> ProductStats:
    """Derive the four figures; absent or malformed inputs count as 0."""
    jpy_price = number_field(product, "jpy_price")
    intl_ship = number_field(product, "intl_ship")

    twd_cost = jpy_price * number_field(product, "rate_cost")
    cost_plus_ship = (
        twd_cost
        + number_field(product, "domestic_ship")
        + number_field(product, "handling_fee")
        + intl_ship
    )
    price_plus_ship = jpy_price * number_field(product, "rate_sale") + intl_ship
    profit = number_field(product, "input_price") - cost_plus_ship

    return ProductStats(
        twd_cost=twd_cost,
        cost_plus_ship=cost_plus_ship,
        price_plus_ship=price_plus_ship,
        profit=profit,
    )
