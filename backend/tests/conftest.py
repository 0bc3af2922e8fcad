"""
Shared pytest fixtures.

Environment variables are set here, before any groupbuy module is imported,
so the settings singleton and the DB engine point at a throwaway SQLite file.
"""
import os
import sys
import tempfile

_tmp_dir = tempfile.mkdtemp(prefix="groupbuy-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["LOG_FILE"] = os.path.join(_tmp_dir, "test.log")

# Ensure the groupbuy package is importable when running pytest from the repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest  # noqa: E402


@pytest.fixture
def products():
    """Three products across two groups; the second uses document-store camelCase keys."""
    return [
        {
            "group_id": "01", "id": "01", "name": "抹茶餅乾",
            "jpy_price": 1000, "rate_cost": 0.205, "rate_sale": 0.25,
            "domestic_ship": 20, "handling_fee": 10, "intl_ship": 30,
            "input_price": 300,
        },
        {
            "groupId": "01", "id": "02", "name": "Pocky",
            "jpyPrice": 200, "rateCost": 0.2, "rateSale": 0.25,
            "domesticShip": 0, "handlingFee": 0, "intlShip": 10,
            "inputPrice": 80,
        },
        {
            "group_id": "02", "id": "01", "name": "面膜",
            "jpy_price": 2000, "rate_cost": 0.21, "rate_sale": 0.25,
            "input_price": 500,
        },
    ]


def _line(id, buyer, group_id, item_id, quantity, remarks="", batch="202505"):
    return {
        "id": id,
        "order_group_id": batch,
        "product_group_id": group_id,
        "product_item_id": item_id,
        "description": "",
        "buyer": buyer,
        "quantity": quantity,
        "remarks": remarks,
        "note": "",
        "date": "2025-05-10",
    }


@pytest.fixture
def batch_items():
    """
    Batch 202505 (revenue 1200, quantity 9):

      o1  Bob     抹茶餅乾  ×2    600
      o2  alice   Pocky     ×3    240
      o3  Bob     Pocky     ×1     80
      o4  王小明  面膜      ×1    500   remarks 已匯款
      o5  alice   抹茶餅乾  ×-1  -300   remarks 退貨
      o6  陳匯款  (deleted) ×2      0
      o8  Carol   Pocky     ×1     80   remarks 支出運費
    """
    return [
        _line("o1", "Bob", "01", "01", 2),
        _line("o2", "alice", "01", "02", 3),
        _line("o3", "Bob", "01", "02", 1),
        _line("o4", "王小明", "02", "01", 1, remarks="已匯款"),
        _line("o5", "alice", "01", "01", -1, remarks="退貨"),
        _line("o6", "陳匯款", "09", "09", 2),
        {
            "id": "o8", "orderGroupId": "202505", "productGroupId": "01",
            "productItemId": "02", "buyer": "Carol", "quantity": 1,
            "remarks": "支出運費",
        },
    ]


@pytest.fixture
def other_batch_items():
    return [_line("o7", "Bob", "01", "01", 5, batch="202506")]


@pytest.fixture
def income_settings():
    return {
        "order_group_id": "202505",
        "packaging_revenue": 100,
        "card_charge": 1000,
        "card_fee": 15,
        "intl_shipping": 200,
        "dad_receivable": 50,
        "payment_note": "轉帳",
    }
