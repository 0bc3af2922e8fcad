"""
Integration tests: store + API.

Uses the temporary SQLite file configured in conftest.py; the tests in
TestBatchWorkflow build on each other and run in file order.
"""
import pytest
from fastapi.testclient import TestClient

from groupbuy.main import app

BOM = b"\xef\xbb\xbf"


@pytest.fixture(scope="module")
def client():
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


class TestAPIHealth:
    def test_health(self, client):
        r = client.get("/api/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "ok"
        assert data["db"] == "ok"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/docs"


class TestStatsPreview:
    def test_unsaved_form(self, client):
        r = client.post("/api/catalog/stats", json={
            "jpy_price": "1000", "rate_cost": 0.205, "rate_sale": 0.25,
            "domestic_ship": 20, "handling_fee": 10, "intl_ship": 30, "input_price": 300,
        })
        assert r.status_code == 200
        stats = r.json()
        assert stats["twd_cost"] == pytest.approx(205)
        assert stats["cost_plus_ship"] == pytest.approx(265)
        assert stats["price_plus_ship"] == pytest.approx(280)
        assert stats["profit"] == pytest.approx(35)

    def test_junk_input_is_zero(self, client):
        r = client.post("/api/catalog/stats", json={"jpy_price": "abc"})
        assert r.status_code == 200
        assert r.json()["profit"] == 0


class TestBatchWorkflow:
    def test_create_catalog(self, client):
        r = client.post("/api/catalog/groups", json={"name": "零食"})
        assert r.status_code == 201
        assert r.json()["id"] == "01"

        r = client.post("/api/catalog/groups/01/items", json={
            "name": "抹茶餅乾", "jpy_price": 1000, "domestic_ship": 20,
            "handling_fee": 10, "intl_ship": 30, "input_price": 300,
        })
        assert r.status_code == 201
        item = r.json()
        assert item["id"] == "01"
        assert item["rate_cost"] == pytest.approx(0.205)
        assert item["stats"]["profit"] == pytest.approx(35)

    def test_blank_group_name_rejected(self, client):
        assert client.post("/api/catalog/groups", json={"name": " "}).status_code == 422

    def test_catalog_listing(self, client):
        r = client.get("/api/catalog/")
        assert r.status_code == 200
        groups = r.json()
        assert [g["name"] for g in groups] == ["零食"]
        assert [i["name"] for i in groups[0]["items"]] == ["抹茶餅乾"]

    def test_next_ids(self, client):
        assert client.get("/api/catalog/groups/01/next-item-id").json()["next_item_id"] == "02"
        ids = client.get("/api/next-ids", params={"year": 2025, "month": 5}).json()
        assert ids == {"group_id": "02", "order_group_id": "202505"}

    def test_create_batch(self, client):
        r = client.post("/api/orders/", json={"year": 2025, "month": 5})
        assert r.status_code == 201
        assert r.json()["id"] == "202505"
        assert client.post("/api/orders/", json={"year": 2025, "month": 13}).status_code == 422

    def test_add_order_lines(self, client):
        r = client.post("/api/orders/202505/items", json={
            "product_group_id": "01", "product_item_id": "01", "buyer": "Bob", "quantity": 2,
        })
        assert r.status_code == 201
        assert r.json()["description"] == "抹茶餅乾"

        r = client.post("/api/orders/202505/items", json={
            "product_group_id": "01", "product_item_id": "01", "buyer": "alice",
            "quantity": -1, "remarks": "退貨",
        })
        assert r.status_code == 201

    def test_order_line_needs_product(self, client):
        r = client.post("/api/orders/202505/items", json={
            "product_group_id": "01", "product_item_id": "99", "buyer": "Bob",
        })
        assert r.status_code == 404

    def test_list_batch_lines(self, client):
        r = client.get("/api/orders/202505/items")
        assert r.status_code == 200
        lines = r.json()
        assert [l["buyer"] for l in lines] == ["alice", "Bob"]
        assert lines[1]["total"] == pytest.approx(600)
        assert client.get("/api/orders/209901/items").status_code == 404

    def test_reference_guards(self, client):
        assert client.delete("/api/catalog/groups/01/items/01").status_code == 409
        assert client.delete("/api/catalog/groups/01").status_code == 409
        assert client.delete("/api/orders/202505").status_code == 409

    def test_income_settings(self, client):
        r = client.get("/api/orders/202505/income-settings")
        assert r.status_code == 200
        assert r.json()["card_charge"] == 0

        r = client.put("/api/orders/202505/income-settings", json={
            "packaging_revenue": 100, "card_charge": "200", "card_fee": 4,
        })
        assert r.status_code == 200
        assert r.json()["card_charge"] == 200

    def test_all_views(self, client):
        r = client.get("/api/reports/", params={"order_group_id": "202505"})
        assert r.status_code == 200
        views = r.json()
        assert [b["label"] for b in views["detail"]] == ["alice", "Bob"]
        assert [row["label"] for row in views["analysis"]] == ["Bob", "alice"]
        assert [d["buyer"] for d in views["deposits"]] == []
        income = views["income"]
        assert income["total_sales"] == pytest.approx(300)
        assert income["net_profit"] == pytest.approx(196)
        assert income["card_fee_rate"] == pytest.approx(2)

    def test_latest_batch_by_default(self, client):
        assert client.get("/api/reports/").json()["order_group_id"] == "202505"

    def test_views_by_batch_path(self, client):
        r = client.get("/api/reports/202505", params={"detail_mode": "product"})
        assert r.status_code == 200
        assert [b["label"] for b in r.json()["detail"]] == ["抹茶餅乾"]

    def test_single_views(self, client):
        rows = client.get("/api/reports/202505/analysis", params={"mode": "product"}).json()
        assert rows == [{"label": "抹茶餅乾", "qty": 1, "total": 300.0}]

        expense = client.get("/api/reports/202505/deposits", params={"mode": "expense"}).json()
        assert [d["buyer"] for d in expense] == ["alice"]

        income = client.get("/api/reports/202505/income").json()
        assert income["dad_share"] == pytest.approx(196 * 0.2)

    def test_invalid_mode(self, client):
        assert client.get("/api/reports/202505/detail", params={"mode": "date"}).status_code == 422

    def test_unknown_batch_is_empty(self, client):
        r = client.get("/api/reports/209901/detail")
        assert r.status_code == 200
        assert r.json() == []

    @pytest.mark.parametrize("path", [
        "/api/reports/202505/detail/csv?mode=product",
        "/api/reports/202505/analysis/csv",
        "/api/reports/202505/deposits/csv",
        "/api/reports/202505/income/csv",
        "/api/orders/202505/export/csv",
        "/api/catalog/export/csv",
    ])
    def test_csv_downloads(self, client, path):
        r = client.get(path)
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        assert "filename*=UTF-8''" in r.headers["content-disposition"]
        assert r.content.startswith(BOM)

    def test_cleanup_in_dependency_order(self, client):
        lines = client.get("/api/orders/202505/items").json()
        other = lines[0]["id"]
        assert client.delete(f"/api/orders/209901/items/{other}").status_code == 404
        assert client.put(f"/api/orders/209901/items/{other}", json={"quantity": 5}).status_code == 404
        assert len(client.get("/api/orders/202505/items").json()) == len(lines)
        for line in lines:
            r = client.delete(f"/api/orders/202505/items/{line['id']}")
            assert r.status_code == 200
        assert client.delete("/api/orders/202505").status_code == 200
        assert client.delete("/api/catalog/groups/01/items/01").status_code == 200
        assert client.delete("/api/catalog/groups/01").status_code == 200
        assert client.get("/api/catalog/").json() == []
