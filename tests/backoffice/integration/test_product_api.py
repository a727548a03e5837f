"""Integration tests for the product and stock endpoints via TestClient."""

import pytest
from backoffice.api.routes import account_router, product_router
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(product_router)
    app.include_router(account_router)
    return TestClient(app)


def _create_variant_product(client, stock=6):
    response = client.post(
        "/products",
        json={
            "name": "T-Shirt",
            "price": 50000,
            "variants": [
                {"color": "Red", "size": "M", "stock": stock},
                {"color": "Red", "size": "L", "stock": stock},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()["product_id"]


class TestProductEndpoints:
    def test_create_flat_product(self, client):
        response = client.post("/products", json={"name": "Mug", "stock": 7})
        product_id = response.json()["product_id"]

        body = client.get(f"/products/{product_id}").json()
        assert body["stock"] == 7
        assert body["total_stock"] == 7
        assert body["variants"] == []

    def test_total_stock_sums_variants(self, client):
        product_id = _create_variant_product(client, stock=6)
        assert client.get(f"/products/{product_id}").json()["total_stock"] == 12

    def test_get_missing_product(self, client):
        assert client.get("/products/nope").status_code == 404

    def test_generate_variant_matrix(self, client):
        product_id = _create_variant_product(client)

        response = client.put(
            f"/products/{product_id}/variants",
            json={"colors": ["Red", "Blue"], "sizes": ["M", "L", "XL"]},
        )

        assert response.json()["variant_count"] == 6
        variants = client.get(f"/products/{product_id}").json()["variants"]
        stock = {(v["color"], v["size"]): v["stock"] for v in variants}
        assert stock[("Red", "M")] == 6
        assert stock[("Blue", "XL")] == 0


class TestStockEndpoints:
    def test_set_flat_stock(self, client, gateway):
        product_id = client.post("/products", json={"name": "Mug", "stock": 0}).json()["product_id"]

        response = client.put(f"/products/{product_id}/stock", json={"stock": 15})

        assert response.status_code == 200
        assert response.json()["previous_stock"] == 0
        assert response.json()["new_stock"] == 15
        assert gateway.calls_for("notify_low_stock")[0]["classification"] == "backInStock"

    def test_set_variant_stock_case_insensitive(self, client):
        product_id = _create_variant_product(client)

        response = client.put(
            f"/products/{product_id}/variants/stock",
            json={"color": "red ", "size": "l", "stock": 1},
        )

        assert response.status_code == 200
        assert response.json()["new_stock"] == 1

    def test_negative_stock_rejected(self, client):
        product_id = _create_variant_product(client)
        response = client.put(f"/products/{product_id}/stock", json={"stock": -1})
        assert response.status_code == 422

    def test_stock_report(self, client):
        product_id = _create_variant_product(client, stock=6)
        client.put(f"/products/{product_id}/variants/stock", json={"color": "Red", "size": "M", "stock": 0})

        body = client.get("/products/stock-report", params={"threshold": 8}).json()

        assert body["threshold"] == 8
        assert [entry["variant"] for entry in body["out_of_stock"]] == ["Red - M"]
        assert [entry["variant"] for entry in body["low_stock"]] == ["Red - L"]

    def test_stock_report_uses_configured_threshold(self, client):
        body = client.get("/products/stock-report").json()
        assert body["threshold"] == 10


class TestSubscriptionEndpoint:
    def test_subscribe(self, client):
        product_id = _create_variant_product(client, stock=0)
        account_id = client.post("/accounts", json={"name": "Shopper"}).json()["account_id"]

        response = client.post(
            f"/products/{product_id}/subscriptions",
            json={"account_id": account_id, "color": "Red", "size": "M"},
        )

        assert response.status_code == 201
        assert response.json()["subscription_id"]

    def test_subscribe_to_unknown_variant(self, client):
        product_id = _create_variant_product(client, stock=0)
        response = client.post(
            f"/products/{product_id}/subscriptions",
            json={"account_id": "acc-1", "color": "Green", "size": "M"},
        )
        assert response.status_code == 400
