"""
HTTP tests.

Verifies:
- credentials come from headers; every failure mode answers 401
- a missing capability answers 403 and never leaks data
- 403 (denied) and 404 (missing) stay distinct
- the product, owner and order routes end to end
"""

import pytest

from conftest import auth_headers
from stockroom.extensions import db
from stockroom.models import PendingOrder, Product


PRODUCT_BODY = {
    "upc": "012345678905",
    "name": "Flour 1kg",
    "measure_by_weight": False,
    "cost_price_per_unit": "1.20",
    "selling_price_per_unit": "2.00",
}


class TestHealth:
    def test_health_is_public(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json["checks"]["database"]["status"] == "healthy"


class TestAuthentication:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/categories"),
            ("GET", "/api/brands"),
            ("GET", "/api/suppliers"),
            ("GET", "/api/orders/pending"),
            ("GET", "/api/orders/received"),
            ("GET", "/api/users"),
            ("GET", "/api/auth/permissions"),
            ("POST", "/api/auth/signup"),
        ],
    )
    def test_requires_credentials(self, client, admin, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_unknown_user_and_wrong_password_look_the_same(self, client, admin):
        unknown = client.get("/api/products", headers=auth_headers("ghost", "Owner-Pass-1"))
        wrong = client.get("/api/products", headers=auth_headers("owner", "nope"))

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json == wrong.json

    def test_own_permissions(self, client, clerk_headers):
        resp = client.get("/api/auth/permissions", headers=clerk_headers)

        assert resp.status_code == 200
        assert resp.json["permissions"]["view_products"] is True
        assert resp.json["permissions"]["admin"] is False


class TestInitialize:
    def test_initialize_then_conflict(self, client):
        body = {"username": "owner", "password": "Owner-Pass-1"}

        first = client.post("/api/auth/initialize", json=body)
        second = client.post("/api/auth/initialize", json={"username": "x", "password": "X-Pass-1"})

        assert first.status_code == 201
        assert first.json["user"]["id"] == 0
        assert second.status_code == 409

    def test_initialize_requires_body(self, client):
        resp = client.post("/api/auth/initialize", json={"username": "owner"})
        assert resp.status_code == 400


class TestDenial:
    def test_missing_capability_is_403(self, client, nobody_headers, make_product):
        make_product()

        resp = client.get("/api/products", headers=nobody_headers)

        assert resp.status_code == 403
        assert resp.json["required_permission"] == "view_products"
        assert "items" not in resp.json

    def test_denied_and_missing_are_distinct(self, client, nobody_headers, clerk_headers):
        denied = client.get("/api/products/99", headers=nobody_headers)
        missing = client.get("/api/products/99", headers=clerk_headers)

        assert denied.status_code == 403
        assert missing.status_code == 404

    def test_denied_write_changes_nothing(self, client, nobody_headers):
        resp = client.post("/api/products", json=PRODUCT_BODY, headers=nobody_headers)

        assert resp.status_code == 403
        assert db.session.query(Product).count() == 0

    def test_admin_does_not_imply_other_capabilities(self, client, make_user):
        make_user("boss", "Boss-Pass-1", admin=True)

        resp = client.get("/api/products", headers=auth_headers("boss", "Boss-Pass-1"))
        assert resp.status_code == 403

    def test_signup_requires_admin(self, client, clerk_headers):
        resp = client.post(
            "/api/auth/signup",
            json={"username": "mallory", "password": "Mallory-Pass-1"},
            headers=clerk_headers,
        )
        assert resp.status_code == 403

    def test_user_admin_requires_admin(self, client, clerk_headers):
        assert client.get("/api/users", headers=clerk_headers).status_code == 403


class TestProducts:
    def test_create_with_memberships(self, client, clerk_headers, brand, category):
        body = {**PRODUCT_BODY, "brand": brand.id, "categories": [category.id]}

        resp = client.post("/api/products", json=body, headers=clerk_headers)

        assert resp.status_code == 201
        product = resp.json["product"]
        assert product["cost_price_per_unit"] == "1.2"
        assert product["amount"] == 0.0

        brand_resp = client.get(f"/api/products/{product['id']}/brand", headers=clerk_headers)
        assert brand_resp.json["brand"]["id"] == brand.id
        cats = client.get(f"/api/products/{product['id']}/categories", headers=clerk_headers)
        assert [c["id"] for c in cats.json["items"]] == [category.id]

    def test_create_with_missing_owner_is_404(self, client, clerk_headers):
        resp = client.post("/api/products", json={**PRODUCT_BODY, "suppliers": [9]}, headers=clerk_headers)

        assert resp.status_code == 404
        assert db.session.query(Product).count() == 0

    def test_create_validation(self, client, clerk_headers):
        resp = client.post("/api/products", json={"name": "x"}, headers=clerk_headers)
        assert resp.status_code == 400

    def test_list_pagination(self, client, clerk_headers, make_product):
        for _ in range(3):
            make_product()

        resp = client.get("/api/products?limit=2&offset=2", headers=clerk_headers)

        assert resp.status_code == 200
        assert resp.json["count"] == 3
        assert resp.json["limit"] == 2
        assert resp.json["offset"] == 2
        assert [p["id"] for p in resp.json["items"]] == [3]

    def test_limit_is_clamped(self, client, clerk_headers):
        resp = client.get("/api/products?limit=10000&offset=-4", headers=clerk_headers)
        assert (resp.json["limit"], resp.json["offset"]) == (500, 0)

    def test_update_and_delete(self, client, clerk_headers, make_product):
        product = make_product()
        product_id = product.id

        updated = client.put(f"/api/products/{product_id}", json={"amount": 4}, headers=clerk_headers)
        assert updated.status_code == 200
        assert updated.json["product"]["amount"] == 4.0

        deleted = client.delete(f"/api/products/{product_id}", headers=clerk_headers)
        assert deleted.status_code == 200
        assert client.get(f"/api/products/{product_id}", headers=clerk_headers).status_code == 404

    def test_attach_is_idempotent(self, client, clerk_headers, make_product, supplier):
        product = make_product()
        path = f"/api/products/{product.id}/suppliers/{supplier.id}"

        first = client.post(path, headers=clerk_headers)
        second = client.post(path, headers=clerk_headers)

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json["supplier"]["products"] == [product.id]

        removed = client.delete(path, headers=clerk_headers)
        assert removed.json["removed"] == 1
        assert removed.json["supplier"]["products"] == []

    def test_second_brand_is_409(self, client, clerk_headers, make_product, make_owner, brand):
        other = make_owner("brand", "Other")
        product = make_product(brand=brand.id)

        resp = client.post(f"/api/products/{product.id}/brands/{other.id}", headers=clerk_headers)

        assert resp.status_code == 409
        assert resp.json["brand_id"] == brand.id

    def test_unknown_membership_segment(self, client, clerk_headers, make_product):
        product = make_product()
        resp = client.post(f"/api/products/{product.id}/warehouses/1", headers=clerk_headers)
        assert resp.status_code == 400


class TestOwners:
    def test_crud(self, client, clerk_headers, make_product):
        product = make_product()

        created = client.post(
            "/api/suppliers",
            json={"name": "Mill Co", "phone_number": "555-0100", "products": [product.id]},
            headers=clerk_headers,
        )
        assert created.status_code == 201
        supplier = created.json["supplier"]
        assert supplier["products"] == [product.id]

        renamed = client.put(f"/api/suppliers/{supplier['id']}", json={"name": "Mill & Co"}, headers=clerk_headers)
        assert renamed.json["supplier"]["name"] == "Mill & Co"
        assert renamed.json["supplier"]["products"] == [product.id]

        names = client.get("/api/suppliers/names", headers=clerk_headers)
        assert names.json["items"] == [{"name": "Mill & Co", "id": supplier["id"]}]

        deleted = client.delete(f"/api/suppliers/{supplier['id']}", headers=clerk_headers)
        assert deleted.status_code == 200
        assert client.get(f"/api/suppliers/{supplier['id']}", headers=clerk_headers).status_code == 404

    def test_suppliers_need_view_suppliers(self, client, make_user):
        make_user("viewer", "Viewer-Pass-1", view_products=True)
        headers = auth_headers("viewer", "Viewer-Pass-1")

        assert client.get("/api/categories", headers=headers).status_code == 200
        assert client.get("/api/suppliers", headers=headers).status_code == 403

    def test_owner_writes_need_edit_products(self, client, make_user):
        make_user("viewer", "Viewer-Pass-1", view_products=True)
        headers = auth_headers("viewer", "Viewer-Pass-1")

        resp = client.post("/api/categories", json={"name": "Baking"}, headers=headers)
        assert resp.status_code == 403


class TestOrders:
    def test_lifecycle(self, client, clerk_headers, make_product):
        product = make_product()

        placed = client.post(
            "/api/orders/pending",
            json={"product_id": product.id, "amount": 10},
            headers=clerk_headers,
        )
        assert placed.status_code == 201
        pending_id = placed.json["pending_order"]["id"]

        received = client.post(
            f"/api/orders/pending/{pending_id}/receive",
            json={"received": "2024-05-01T10:00:00Z", "damaged": 1},
            headers=clerk_headers,
        )
        assert received.status_code == 201
        order = received.json["received_order"]
        assert order["gross_amount"] == 10
        assert order["actually_received"] == 10
        assert order["damaged"] == 1
        assert order["received"] == "2024-05-01T10:00:00Z"

        listed = client.get("/api/orders/received", headers=clerk_headers)
        assert listed.json["count"] == 1

        reverted = client.post(f"/api/orders/received/{order['id']}/revert", headers=clerk_headers)
        assert reverted.status_code == 201
        assert reverted.json["pending_order"]["amount"] == 10

        pending = client.get("/api/orders/pending", headers=clerk_headers)
        assert [o["product_id"] for o in pending.json["items"]] == [product.id]

    def test_place_for_missing_product(self, client, clerk_headers):
        resp = client.post("/api/orders/pending", json={"product_id": 5, "amount": 1}, headers=clerk_headers)
        assert resp.status_code == 404

    def test_invalid_amount(self, client, clerk_headers, make_product):
        product = make_product()
        resp = client.post(
            "/api/orders/pending",
            json={"product_id": product.id, "amount": 0},
            headers=clerk_headers,
        )
        assert resp.status_code == 400
        assert db.session.query(PendingOrder).count() == 0

    def test_receive_missing_order(self, client, clerk_headers):
        resp = client.post("/api/orders/pending/3/receive", json={}, headers=clerk_headers)
        assert resp.status_code == 404

    def test_receive_accepts_numeric_strings(self, client, clerk_headers, make_product):
        product = make_product()
        placed = client.post(
            "/api/orders/pending",
            json={"product_id": product.id, "amount": "10"},
            headers=clerk_headers,
        )
        assert placed.status_code == 201

        received = client.post(
            f"/api/orders/pending/{placed.json['pending_order']['id']}/receive",
            json={"actually_received": "9", "damaged": "1.5"},
            headers=clerk_headers,
        )

        assert received.status_code == 201
        order = received.json["received_order"]
        assert order["actually_received"] == 9
        assert order["damaged"] == 1.5

    def test_receive_rejects_negative_damage(self, client, clerk_headers, make_product):
        product = make_product()
        placed = client.post("/api/orders/pending", json={"product_id": product.id, "amount": 3}, headers=clerk_headers)

        resp = client.post(
            f"/api/orders/pending/{placed.json['pending_order']['id']}/receive",
            json={"damaged": "-1"},
            headers=clerk_headers,
        )

        assert resp.status_code == 400
        assert db.session.query(PendingOrder).count() == 1

    def test_remove_needs_remove_orders(self, client, make_user, make_product):
        product = make_product()
        make_user("buyer", "Buyer-Pass-1", create_orders=True)
        headers = auth_headers("buyer", "Buyer-Pass-1")

        placed = client.post("/api/orders/pending", json={"product_id": product.id, "amount": 2}, headers=headers)
        assert placed.status_code == 201

        resp = client.delete(f"/api/orders/pending/{placed.json['pending_order']['id']}", headers=headers)
        assert resp.status_code == 403
        assert db.session.query(PendingOrder).count() == 1


class TestRevertRejectPolicy:
    @pytest.fixture
    def config_overrides(self):
        return {"ORDER_REVERT_POLICY": "reject"}

    def test_revert_of_short_receipt_is_409(self, client, clerk_headers, make_product):
        product = make_product()
        placed = client.post("/api/orders/pending", json={"product_id": product.id, "amount": 5}, headers=clerk_headers)
        received = client.post(
            f"/api/orders/pending/{placed.json['pending_order']['id']}/receive",
            json={"actually_received": 4},
            headers=clerk_headers,
        )

        resp = client.post(f"/api/orders/received/{received.json['received_order']['id']}/revert", headers=clerk_headers)

        assert resp.status_code == 409
        assert resp.json["actually_received"] == 4


class TestUsers:
    def test_signup_and_grant(self, client, admin_headers):
        created = client.post(
            "/api/auth/signup",
            json={"username": "clerk", "password": "Clerk-Pass-1", "email": "clerk@shop.test"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        user_id = created.json["user"]["id"]

        clerk = auth_headers("clerk", "Clerk-Pass-1")
        assert client.get("/api/products", headers=clerk).status_code == 403

        granted = client.put(
            f"/api/users/{user_id}/permissions",
            json={"view_products": True},
            headers=admin_headers,
        )
        assert granted.json["permissions"]["view_products"] is True
        assert client.get("/api/products", headers=clerk).status_code == 200

    def test_lookup_by_name(self, client, admin_headers):
        resp = client.get("/api/users?name=owner", headers=admin_headers)
        assert [u["id"] for u in resp.json["items"]] == [0]
        assert "password" not in resp.json["items"][0]

    def test_duplicate_signup_is_409(self, client, admin_headers):
        resp = client.post(
            "/api/auth/signup",
            json={"username": "owner", "password": "Other-Pass-1"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_missing_user_is_404(self, client, admin_headers):
        assert client.get("/api/users/55", headers=admin_headers).status_code == 404

    def test_delete_user(self, client, admin_headers, make_user):
        user = make_user("temp")
        user_id = user.id

        resp = client.delete(f"/api/users/{user_id}", headers=admin_headers)

        assert resp.status_code == 200
        assert client.get(f"/api/users/{user_id}", headers=admin_headers).status_code == 404
