"""Unit tests for the SQLModel store: id allocation and reference guards."""
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from groupbuy.engine.reports import UNKNOWN_PRODUCT
from groupbuy.engine.snapshot import recompute
from groupbuy.models.catalog import ProductItem
from groupbuy.store.base import SnapshotStore
from groupbuy.store.exceptions import NotFoundError, ReferenceInUseError, ValidationError
from groupbuy.store.sql_store import SqlStore


@pytest.fixture
def store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield SqlStore(session)


@pytest.fixture
def stocked(store):
    """One group with two products and a batch holding one order line."""
    store.add_group("零食")
    store.save_item("01", {"name": "抹茶餅乾", "jpy_price": 1000, "input_price": 300})
    store.save_item("01", {"name": "Pocky", "jpy_price": "200", "input_price": "80"})
    store.create_order_group(2025, 5)
    line = store.save_order_item(
        "202505", {"product_group_id": "01", "product_item_id": "01", "buyer": "Bob", "quantity": 2}
    )
    return store, line


class TestCatalogWrites:
    def test_is_a_snapshot_store(self, store):
        assert isinstance(store, SnapshotStore)

    def test_group_ids_fill_gaps(self, store):
        assert [store.add_group(n).id for n in ("a", "b", "c")] == ["01", "02", "03"]
        store.delete_group("02")
        assert store.add_group("d").id == "02"

    def test_blank_group_name_rejected(self, store):
        with pytest.raises(ValidationError):
            store.add_group("   ")

    def test_blank_rename_is_noop(self, store):
        store.add_group("零食")
        assert store.rename_group("01", "").name == "零食"
        assert store.rename_group("01", "糖果").name == "糖果"

    def test_item_defaults_and_coercion(self, stocked):
        store, _ = stocked
        item = store.get_item("01", "02")
        assert item.jpy_price == 200
        assert item.input_price == 80
        assert item.rate_sale == pytest.approx(0.25)
        assert item.rate_cost == pytest.approx(0.205)

    def test_junk_number_stored_as_zero(self, stocked):
        store, _ = stocked
        item = store.save_item("01", {"jpy_price": "abc"}, item_id="02")
        assert item.jpy_price == 0
        assert item.name == "Pocky"

    def test_item_in_missing_group(self, store):
        with pytest.raises(NotFoundError):
            store.save_item("99", {"name": "x"})

    def test_group_with_items_cannot_be_deleted(self, stocked):
        store, _ = stocked
        with pytest.raises(ReferenceInUseError):
            store.delete_group("01")

    def test_referenced_item_cannot_be_deleted(self, stocked):
        store, _ = stocked
        with pytest.raises(ReferenceInUseError) as excinfo:
            store.delete_item("01", "01")
        assert "202505" in str(excinfo.value)
        store.delete_item("01", "02")
        with pytest.raises(NotFoundError):
            store.get_item("01", "02")


class TestOrderWrites:
    def test_batch_suffixes(self, store):
        ids = [store.create_order_group(2025, 5).id for _ in range(3)]
        assert ids == ["202505", "202505A", "202505B"]
        assert store.get_order_group("202505A").suffix == "A"
        assert store.create_order_group(2025, 6).id == "202506"

    def test_invalid_month(self, store):
        with pytest.raises(ValidationError):
            store.create_order_group(2025, 13)

    def test_new_line_defaults(self, stocked):
        _, line = stocked
        assert line.description == "抹茶餅乾"
        assert line.quantity == 2
        assert line.date

    def test_line_needs_existing_product(self, stocked):
        store, _ = stocked
        with pytest.raises(NotFoundError):
            store.save_order_item("202505", {"product_group_id": "01", "product_item_id": "09"})

    def test_line_needs_existing_batch(self, stocked):
        store, _ = stocked
        with pytest.raises(NotFoundError):
            store.save_order_item("209901", {"product_group_id": "01", "product_item_id": "01"})

    def test_update_keeps_reference(self, stocked):
        store, line = stocked
        updated = store.save_order_item("202505", {"quantity": "-1", "remarks": "退貨"}, order_item_id=line.id)
        assert updated.quantity == -1
        assert updated.product_item_id == "01"

    def test_line_scoped_to_its_batch(self, stocked):
        store, line = stocked
        store.create_order_group(2025, 6)
        with pytest.raises(NotFoundError):
            store.delete_order_item("202506", line.id)
        with pytest.raises(NotFoundError):
            store.save_order_item("202506", {"quantity": 9}, order_item_id=line.id)
        kept = store.list_order_items()
        assert [(l.id, l.order_group_id, l.quantity) for l in kept] == [(line.id, "202505", 2)]

    def test_batch_with_lines_cannot_be_deleted(self, stocked):
        store, line = stocked
        with pytest.raises(ReferenceInUseError):
            store.delete_order_group("202505")
        store.save_income_settings("202505", {"card_charge": 10})
        store.delete_order_item("202505", line.id)
        store.delete_order_group("202505")
        assert store.list_order_groups() == []
        assert store.get_income_settings("202505") is None

    def test_income_settings_upsert(self, stocked):
        store, _ = stocked
        store.save_income_settings("202505", {"card_charge": "1000", "payment_note": "轉帳"})
        income = store.save_income_settings("202505", {"card_fee": 15})
        assert (income.card_charge, income.card_fee, income.payment_note) == (1000, 15, "轉帳")


class TestSnapshot:
    def test_recompute_from_rows(self, stocked):
        store, _ = stocked
        store.save_income_settings("202505", {"packaging_revenue": 50})
        views = recompute(store.snapshot())
        assert views.order_group_id == "202505"
        assert views.detail[0].label == "Bob"
        assert views.detail[0].total_price == pytest.approx(600)
        assert views.income.total_revenue == pytest.approx(650)

    def test_dangling_reference_survives(self, stocked):
        store, _ = stocked
        # Bypass the guard, as a concurrent writer on the shared store could
        store.session.delete(store.session.get(ProductItem, ("01", "01")))
        store.session.commit()
        views = recompute(store.snapshot(), detail_mode="product")
        assert [b.label for b in views.detail] == [UNKNOWN_PRODUCT]
        assert views.detail[0].total_qty == 2
        assert views.income.total_sales == 0
