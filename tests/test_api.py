import os
import tempfile
import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.api.routers import orders, products
from app.data.database import get_db
from app.main import create_app


@pytest.fixture
def client(db, media, notifications):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[orders.get_notifications] = lambda: notifications
    app.dependency_overrides[products.get_media_client] = lambda: media
    return TestClient(app)


@pytest.fixture
def spool_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    return tmp_path


@pytest.fixture
def product(make_product):
    return make_product(name="football", price="500")


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


class TestOrdersApi:
    def test_create_order(self, client, product, order_payload, notifications):
        resp = client.post("/api/v1/orders/", json=order_payload(product.id))

        assert resp.status_code == 201
        body = resp.json()
        assert Decimal(body["total_amount"]) == Decimal("1200")
        assert Decimal(body["shipping_cost"]) == Decimal("200")
        assert body["status"] == "pending"
        assert body["items"][0]["product"]["name"] == "football"
        assert len(notifications.customer) == 1

    def test_bad_phone_is_rejected(self, client, product, order_payload):
        resp = client.post("/api/v1/orders/", json=order_payload(product.id, phone="03001234567"))
        assert resp.status_code == 422

    def test_empty_items_rejected(self, client, product, order_payload):
        resp = client.post("/api/v1/orders/", json=order_payload(product.id, items=[]))
        assert resp.status_code == 422

    def test_unknown_product(self, client, order_payload):
        resp = client.post("/api/v1/orders/", json=order_payload(uuid.uuid4()))
        assert resp.status_code == 404

    def test_cancel_delivered_order(self, client, product, order_payload):
        order_id = client.post("/api/v1/orders/", json=order_payload(product.id)).json()["id"]
        client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "delivered"})

        resp = client.post(f"/api/v1/orders/{order_id}/cancel")

        assert resp.status_code == 400
        assert "delivered" in resp.json()["detail"]

    def test_status_flow(self, client, product, order_payload):
        order_id = client.post("/api/v1/orders/", json=order_payload(product.id)).json()["id"]

        resp = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "shipped"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "shipped"

        resp = client.get("/api/v1/orders/status", params={"status": "shipped"})
        assert resp.json()["pagination"]["total_orders"] == 1

    def test_unknown_status(self, client, product, order_payload):
        order_id = client.post("/api/v1/orders/", json=order_payload(product.id)).json()["id"]
        resp = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "lost"})
        assert resp.status_code == 400

    def test_malformed_id_is_not_found(self, client):
        assert client.get("/api/v1/orders/not-an-id").status_code == 404

    def test_customer_search_needs_a_filter(self, client):
        assert client.get("/api/v1/orders/customer").status_code == 400

    def test_listing(self, client, product, order_payload):
        for _ in range(3):
            client.post("/api/v1/orders/", json=order_payload(product.id))

        resp = client.get("/api/v1/orders/", params={"page": 1, "limit": 2})

        body = resp.json()
        assert len(body["orders"]) == 2
        assert body["pagination"]["total_pages"] == 2
        assert body["pagination"]["has_next_page"] is True


class TestProductsApi:
    def test_add_product(self, client, media, spool_dir):
        resp = client.post(
            "/api/v1/products/",
            data={
                "name": "Tennis Racket",
                "description": "Graphite frame",
                "category": "team sports",
                "price": "4500",
                "stock_quantity": "3",
            },
            files={"image": ("racket.jpg", b"\xff\xd8fake", "image/jpeg")},
        )
        assert resp.status_code == 201
        assert media.stored[0][0].startswith(str(spool_dir))
        assert os.listdir(spool_dir) == []
        body = resp.json()
        assert body["name"] == "tennis racket"
        assert body["image_asset_id"] == "asset-1"

    def test_add_product_without_image(self, client):
        resp = client.post(
            "/api/v1/products/",
            data={
                "name": "Tennis Racket",
                "description": "Graphite frame",
                "category": "team sports",
                "price": "4500",
            },
        )
        assert resp.status_code == 400

    def test_add_product_bad_category(self, client):
        resp = client.post(
            "/api/v1/products/",
            data={"name": "x", "description": "y", "category": "garden", "price": "1"},
        )
        assert resp.status_code == 400

    def test_delete_and_restore(self, client, product):
        assert client.delete(f"/api/v1/products/{product.id}").status_code == 200
        assert client.get(f"/api/v1/products/{product.id}").status_code == 404

        admin = client.get("/api/v1/products/admin/all", params={"show_deleted": True}).json()
        assert admin["pagination"]["total_products"] == 1

        resp = client.patch(f"/api/v1/products/{product.id}/restore")
        assert resp.status_code == 200
        assert resp.json()["is_deleted"] is False

    def test_public_list_hides_unavailable(self, client, product):
        client.patch(f"/api/v1/products/{product.id}/toggle-availability")

        assert client.get("/api/v1/products/").json()["pagination"]["total_products"] == 0
        assert client.get("/api/v1/products/all").json()["pagination"]["total_products"] == 1

    def test_toggle_returns_name_and_flag(self, client, product):
        resp = client.patch(f"/api/v1/products/{product.id}/toggle-availability")
        assert resp.json() == {"name": "football", "is_available": False}

    def test_stock_update(self, client, product):
        resp = client.patch(f"/api/v1/products/{product.id}/stock", json={"stock_quantity": 7})
        assert resp.json()["stock_quantity"] == 7

    def test_categories(self, client):
        assert "team sports" in client.get("/api/v1/products/categories").json()

    def test_duplicate_name_leaves_no_temp_file(self, client, product, media, spool_dir):
        resp = client.post(
            "/api/v1/products/",
            data={
                "name": "Football",
                "description": "Size 5",
                "category": "team sports",
                "price": "1500",
            },
            files={"image": ("ball.jpg", b"\xff\xd8fake", "image/jpeg")},
        )

        assert resp.status_code == 409
        assert media.stored == []
        assert os.listdir(spool_dir) == []

    def test_image_for_missing_product_leaves_no_temp_file(self, client, spool_dir):
        resp = client.patch(
            f"/api/v1/products/{uuid.uuid4()}/image",
            files={"image": ("ball.jpg", b"\xff\xd8fake", "image/jpeg")},
        )

        assert resp.status_code == 404
        assert os.listdir(spool_dir) == []
