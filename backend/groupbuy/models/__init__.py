from groupbuy.models.catalog import ProductGroup, ProductItem
from groupbuy.models.order import IncomeSettings, OrderGroup, OrderItem

__all__ = [
    "ProductGroup",
    "ProductItem",
    "OrderGroup",
    "OrderItem",
    "IncomeSettings",
]
