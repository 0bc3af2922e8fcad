"""
SQLModel-backed store: the local stand-in for the shared document store.

Reads return whole tables (the engine recomputes from full snapshots).
Writes allocate ids with the engine's identifier rules and enforce the
reference guards:
  - a product group cannot be deleted while it still has items
  - a product item cannot be deleted while order lines reference it
  - an order batch cannot be deleted while it still has order lines
Two writers allocating an id at the same moment can still collide; that
race is accepted.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from loguru import logger
from sqlmodel import Session, func, select

from groupbuy.core.config import settings
from groupbuy.engine.identifiers import (
    new_order_item_id,
    next_group_id,
    next_item_id,
    next_order_batch_id,
    order_batch_suffix,
)
from groupbuy.engine.snapshot import Snapshot
from groupbuy.engine.values import to_number, to_quantity, to_text
from groupbuy.models.catalog import ProductGroup, ProductItem
from groupbuy.models.order import IncomeSettings, OrderGroup, OrderItem
from groupbuy.store.base import take_snapshot
from groupbuy.store.exceptions import NotFoundError, ReferenceInUseError, ValidationError

_PRICE_FIELDS = (
    "jpy_price",
    "domestic_ship",
    "handling_fee",
    "intl_ship",
    "rate_sale",
    "rate_cost",
    "input_price",
)
_ORDER_TEXT_FIELDS = ("description", "buyer", "remarks", "note", "date")
_INCOME_NUMBER_FIELDS = (
    "packaging_revenue",
    "card_charge",
    "card_fee",
    "intl_shipping",
    "dad_receivable",
)


class SqlStore:
    """Catalog, order and income-settings records in one SQLModel session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # ── Reads ────────────────────────────────────────────────────────────────

    def list_groups(self) -> list[ProductGroup]:
        return list(self.session.exec(select(ProductGroup).order_by(ProductGroup.id)).all())

    def list_items(self) -> list[ProductItem]:
        stmt = select(ProductItem).order_by(ProductItem.group_id, ProductItem.id)
        return list(self.session.exec(stmt).all())

    def list_order_groups(self) -> list[OrderGroup]:
        return list(self.session.exec(select(OrderGroup).order_by(OrderGroup.id)).all())

    def list_order_items(self) -> list[OrderItem]:
        return list(self.session.exec(select(OrderItem)).all())

    def get_income_settings(self, order_group_id: str) -> Optional[IncomeSettings]:
        return self.session.get(IncomeSettings, order_group_id)

    def list_income_settings(self) -> list[IncomeSettings]:
        return list(self.session.exec(select(IncomeSettings)).all())

    def snapshot(self) -> Snapshot:
        return take_snapshot(self)

    # ── Lookups that must hit ────────────────────────────────────────────────

    def get_group(self, group_id: str) -> ProductGroup:
        group = self.session.get(ProductGroup, group_id)
        if group is None:
            raise NotFoundError(f"Product group '{group_id}' not found")
        return group

    def get_item(self, group_id: str, item_id: str) -> ProductItem:
        item = self.session.get(ProductItem, (group_id, item_id))
        if item is None:
            raise NotFoundError(f"Product '{group_id}-{item_id}' not found")
        return item

    def get_order_group(self, order_group_id: str) -> OrderGroup:
        order_group = self.session.get(OrderGroup, order_group_id)
        if order_group is None:
            raise NotFoundError(f"Order batch '{order_group_id}' not found")
        return order_group

    def get_order_item(self, order_group_id: str, order_item_id: str) -> OrderItem:
        """An order line, only if it belongs to `order_group_id`."""
        order_item = self.session.get(OrderItem, order_item_id)
        if order_item is None or order_item.order_group_id != order_group_id:
            raise NotFoundError(f"Order line '{order_item_id}' not found in batch '{order_group_id}'")
        return order_item

    def _count(self, stmt) -> int:
        return int(self.session.exec(stmt).one() or 0)

    # ── Product groups ───────────────────────────────────────────────────────

    def add_group(self, name: str) -> ProductGroup:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name must not be blank")
        existing = [g.id for g in self.list_groups()]
        group = ProductGroup(id=next_group_id(existing), name=name)
        self.session.add(group)
        self.session.commit()
        self.session.refresh(group)
        logger.info(f"store: added product group {group.id} '{group.name}'")
        return group

    def rename_group(self, group_id: str, name: str) -> ProductGroup:
        group = self.get_group(group_id)
        name = (name or "").strip()
        if not name:
            # Blank rename is a no-op
            return group
        group.name = name
        group.updated_at = datetime.utcnow()
        self.session.add(group)
        self.session.commit()
        self.session.refresh(group)
        return group

    def delete_group(self, group_id: str) -> None:
        group = self.get_group(group_id)
        in_use = self._count(
            select(func.count()).select_from(ProductItem).where(ProductItem.group_id == group_id)
        )
        if in_use:
            raise ReferenceInUseError(
                f"Product group '{group_id}' still has {in_use} product(s); remove them first"
            )
        self.session.delete(group)
        self.session.commit()
        logger.info(f"store: deleted product group {group_id}")

    # ── Product items ────────────────────────────────────────────────────────

    def save_item(self, group_id: str, data: dict[str, Any], item_id: Optional[str] = None) -> ProductItem:
        """
        Create or update a product in `group_id`.

        Without `item_id` the next free id in the group is allocated.
        Numeric inputs are coerced (blank / junk → 0).
        """
        self.get_group(group_id)
        item = self.session.get(ProductItem, (group_id, item_id)) if item_id else None

        if item is None:
            if not item_id:
                siblings = self.session.exec(
                    select(ProductItem.id).where(ProductItem.group_id == group_id)
                ).all()
                item_id = next_item_id(siblings)
            item = ProductItem(
                group_id=group_id,
                id=item_id,
                rate_sale=settings.DEFAULT_RATE_SALE,
                rate_cost=settings.DEFAULT_RATE_COST,
            )
            created = True
        else:
            created = False

        if "name" in data:
            item.name = to_text(data["name"]).strip()
        for name in _PRICE_FIELDS:
            if name in data and data[name] is not None:
                setattr(item, name, to_number(data[name]))
        item.updated_at = datetime.utcnow()

        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        logger.info(
            f"store: {'added' if created else 'updated'} product {item.group_id}-{item.id} '{item.name}'"
        )
        return item

    def rename_item(self, group_id: str, item_id: str, name: str) -> ProductItem:
        item = self.get_item(group_id, item_id)
        name = (name or "").strip()
        if not name:
            return item
        item.name = name
        item.updated_at = datetime.utcnow()
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def delete_item(self, group_id: str, item_id: str) -> None:
        item = self.get_item(group_id, item_id)
        referencing = self.session.exec(
            select(OrderItem).where(
                OrderItem.product_group_id == group_id,
                OrderItem.product_item_id == item_id,
            )
        ).all()
        if referencing:
            example = referencing[0]
            raise ReferenceInUseError(
                f"Product '{group_id}-{item_id}' is referenced by {len(referencing)} order line(s), "
                f"e.g. {example.order_group_id} - {example.buyer or 'unknown buyer'}"
            )
        self.session.delete(item)
        self.session.commit()
        logger.info(f"store: deleted product {group_id}-{item_id}")

    # ── Order batches ────────────────────────────────────────────────────────

    def create_order_group(self, year: int, month: int) -> OrderGroup:
        if not 1 <= int(month) <= 12:
            raise ValidationError(f"Month must be 1-12, got {month}")
        same_month = self.session.exec(
            select(OrderGroup.id).where(OrderGroup.year == year, OrderGroup.month == month)
        ).all()
        batch_id = next_order_batch_id(year, month, same_month)
        order_group = OrderGroup(
            id=batch_id,
            year=year,
            month=month,
            suffix=order_batch_suffix(batch_id, year, month),
        )
        self.session.add(order_group)
        self.session.commit()
        self.session.refresh(order_group)
        logger.info(f"store: created order batch {batch_id}")
        return order_group

    def delete_order_group(self, order_group_id: str) -> None:
        order_group = self.get_order_group(order_group_id)
        in_use = self._count(
            select(func.count()).select_from(OrderItem).where(OrderItem.order_group_id == order_group_id)
        )
        if in_use:
            raise ReferenceInUseError(
                f"Order batch '{order_group_id}' still has {in_use} order line(s); clear them first"
            )
        income = self.session.get(IncomeSettings, order_group_id)
        if income is not None:
            self.session.delete(income)
        self.session.delete(order_group)
        self.session.commit()
        logger.info(f"store: deleted order batch {order_group_id}")

    # ── Order lines ──────────────────────────────────────────────────────────

    def save_order_item(
        self,
        order_group_id: str,
        data: dict[str, Any],
        order_item_id: Optional[str] = None,
    ) -> OrderItem:
        """
        Create (no `order_item_id`) or update an order line.

        The product reference must resolve when it is first set or changed;
        afterwards the line keeps the literal ids even if the product goes.
        """
        self.get_order_group(order_group_id)

        if order_item_id:
            order_item = self.get_order_item(order_group_id, order_item_id)
            created = False
        else:
            order_item = OrderItem(
                id=new_order_item_id(),
                order_group_id=order_group_id,
                date=date.today().isoformat(),
            )
            created = True

        group_id = to_text(data.get("product_group_id", order_item.product_group_id))
        item_id = to_text(data.get("product_item_id", order_item.product_item_id))
        reference_changed = (
            created
            or group_id != order_item.product_group_id
            or item_id != order_item.product_item_id
        )
        product = self.get_item(group_id, item_id) if reference_changed else None
        order_item.product_group_id = group_id
        order_item.product_item_id = item_id

        for name in _ORDER_TEXT_FIELDS:
            if name in data and data[name] is not None:
                setattr(order_item, name, to_text(data[name]))
        if "quantity" in data and data["quantity"] is not None:
            order_item.quantity = to_quantity(data["quantity"])

        # New lines default their description to the product name
        if created and product is not None and not order_item.description.strip():
            order_item.description = product.name

        order_item.updated_at = datetime.utcnow()
        self.session.add(order_item)
        self.session.commit()
        self.session.refresh(order_item)
        logger.info(
            f"store: {'added' if created else 'updated'} order line {order_item.id} "
            f"in {order_group_id} ({order_item.buyer} × {order_item.quantity})"
        )
        return order_item

    def delete_order_item(self, order_group_id: str, order_item_id: str) -> None:
        order_item = self.get_order_item(order_group_id, order_item_id)
        self.session.delete(order_item)
        self.session.commit()
        logger.info(f"store: deleted order line {order_item_id}")

    # ── Income settings ──────────────────────────────────────────────────────

    def save_income_settings(self, order_group_id: str, data: dict[str, Any]) -> IncomeSettings:
        self.get_order_group(order_group_id)
        income = self.session.get(IncomeSettings, order_group_id)
        if income is None:
            income = IncomeSettings(order_group_id=order_group_id)
        for name in _INCOME_NUMBER_FIELDS:
            if name in data and data[name] is not None:
                setattr(income, name, to_number(data[name]))
        if "payment_note" in data and data["payment_note"] is not None:
            income.payment_note = to_text(data["payment_note"])
        income.updated_at = datetime.utcnow()
        self.session.add(income)
        self.session.commit()
        self.session.refresh(income)
        logger.info(f"store: saved income settings for {order_group_id}")
        return income
