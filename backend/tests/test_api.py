"""
API tests.

Verifies:
- Unauthenticated requests return 401
- Salespeople are denied admin-only operations (403)
- Login/logout round trip
- Product, partner, dashboard and health endpoints
"""

import pytest

from tradedesk.extensions import db
from tradedesk.models import Product


TEST_PASSWORD = "Password123!"


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/users"),
            ("GET", "/api/products"),
            ("GET", "/api/products/low-stock"),
            ("GET", "/api/vendors"),
            ("GET", "/api/suppliers"),
            ("GET", "/api/distributors"),
            ("GET", "/api/retailers"),
            ("GET", "/api/billed-entities"),
            ("GET", "/api/approval-requests"),
            ("GET", "/api/purchases"),
            ("GET", "/api/sales"),
            ("GET", "/api/invoice-templates"),
            ("GET", "/api/dashboard"),
            ("POST", "/api/purchases"),
            ("POST", "/api/sales"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/products", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401


# =============================================================================
# SALESPERSON DENIED ADMIN OPERATIONS (403)
# =============================================================================


class TestSalespersonDeniedAdminOps:
    def test_cannot_list_users(self, client, sales_headers):
        assert client.get("/api/users", headers=sales_headers).status_code == 403

    def test_cannot_create_user(self, client, sales_headers):
        resp = client.post(
            "/api/users",
            json={"username": "x", "email": "x@x.com", "password": "P@ssw0rd123!", "full_name": "X"},
            headers=sales_headers,
        )
        assert resp.status_code == 403

    def test_cannot_list_approval_requests(self, client, sales_headers):
        assert client.get("/api/approval-requests", headers=sales_headers).status_code == 403

    def test_cannot_delete_supplier(self, client, sales_headers, supplier):
        assert client.delete(f"/api/suppliers/{supplier.id}", headers=sales_headers).status_code == 403


# =============================================================================
# AUTH
# =============================================================================


class TestAuth:
    def test_login_me_logout(self, client, sales_user):
        login = client.post("/api/auth/login", json={"username": "sam", "password": TEST_PASSWORD})
        assert login.status_code == 200
        assert "password_hash" not in login.json["user"]
        headers = {"Authorization": f"Bearer {login.json['token']}"}

        me = client.get("/api/auth/me", headers=headers)
        assert me.json["user"]["username"] == "sam"

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_wrong_password(self, client, sales_user):
        resp = client.post("/api/auth/login", json={"username": "sam", "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_missing_credentials(self, client, db_session):
        assert client.post("/api/auth/login", json={}).status_code == 400

    def test_deactivated_user_session_revoked(self, client, sales_user, sales_headers):
        sales_user.is_active = False
        db.session.commit()
        assert client.get("/api/auth/me", headers=sales_headers).status_code == 401


class TestUsers:
    def test_admin_creates_user(self, client, admin_headers):
        resp = client.post("/api/users", json={
            "username": "newbie",
            "email": "newbie@tradedesk.test",
            "password": "Str0ng!Pass",
            "full_name": "New Bie",
            "role": "manager",
        }, headers=admin_headers)

        assert resp.status_code == 201
        assert resp.json["role"] == "manager"

    def test_weak_password_rejected(self, client, admin_headers):
        resp = client.post("/api/users", json={
            "username": "weak", "email": "w@t.test", "password": "short", "full_name": "W",
        }, headers=admin_headers)
        assert resp.status_code == 400

    def test_duplicate_username_conflicts(self, client, admin_headers, sales_user):
        resp = client.post("/api/users", json={
            "username": "sam", "email": "s2@t.test", "password": "Str0ng!Pass", "full_name": "S",
        }, headers=admin_headers)
        assert resp.status_code == 409


# =============================================================================
# PRODUCTS
# =============================================================================


class TestProducts:
    PAYLOAD = {"sku": "PEN-1", "name": "Pen", "category": "stationery", "price_cents": 199, "stock": 10, "min_stock": 5}

    def test_create_and_get(self, client, sales_headers):
        created = client.post("/api/products", json=self.PAYLOAD, headers=sales_headers)
        assert created.status_code == 201
        assert created.json["stock"] == 10

        fetched = client.get(f"/api/products/{created.json['id']}", headers=sales_headers)
        assert fetched.json["sku"] == "PEN-1"

    def test_duplicate_sku_conflicts(self, client, sales_headers):
        client.post("/api/products", json=self.PAYLOAD, headers=sales_headers)
        resp = client.post("/api/products", json=self.PAYLOAD, headers=sales_headers)
        assert resp.status_code == 409

    def test_stock_not_writable_on_update(self, client, sales_headers):
        created = client.post("/api/products", json=self.PAYLOAD, headers=sales_headers).json
        resp = client.put(f"/api/products/{created['id']}", json={"stock": 999}, headers=sales_headers)

        assert resp.status_code == 400
        assert db.session.get(Product, created["id"]).stock == 10

    def test_unknown_vendor_rejected(self, client, sales_headers):
        resp = client.post("/api/products", json={**self.PAYLOAD, "vendor_id": 404}, headers=sales_headers)
        assert resp.status_code == 400

    def test_soft_delete_hides_product(self, client, sales_headers):
        created = client.post("/api/products", json=self.PAYLOAD, headers=sales_headers).json
        assert client.delete(f"/api/products/{created['id']}", headers=sales_headers).status_code == 200

        assert client.get("/api/products", headers=sales_headers).json["count"] == 0
        assert db.session.get(Product, created["id"]) is not None

    def test_low_stock_scenario(self, client, sales_headers, supplier, retailer, billed_entity):
        product = client.post("/api/products", json=self.PAYLOAD, headers=sales_headers).json

        client.post("/api/purchases", json={
            "purchase_order_number": "PO-100",
            "supplier_id": supplier.id,
            "items": [{"product_id": product["id"], "quantity": 20}],
        }, headers=sales_headers)
        assert client.get(f"/api/products/{product['id']}", headers=sales_headers).json["stock"] == 30

        client.post("/api/sales", json={
            "invoice_number": "INV-100",
            "retailer_id": retailer.id,
            "billed_entity_id": billed_entity.id,
            "items": [{"product_id": product["id"], "quantity": 25}],
        }, headers=sales_headers)

        low = client.get("/api/products/low-stock", headers=sales_headers).json
        assert [p["id"] for p in low["items"]] == [product["id"]]
        assert low["items"][0]["stock"] == 5

    def test_low_stock_threshold_param(self, client, sales_headers, make_product):
        p = make_product(stock=3, min_stock=0)
        make_product(stock=9, min_stock=50)

        resp = client.get("/api/products/low-stock?threshold=3", headers=sales_headers)
        assert [row["id"] for row in resp.json["items"]] == [p.id]

        assert client.get("/api/products/low-stock?threshold=abc", headers=sales_headers).status_code == 400


class TestMalformedLineItems:
    @pytest.mark.parametrize("quantity", ["+-5", "--5", 10**20])
    def test_purchase_rejected_without_touching_stock(self, client, sales_headers, supplier, make_product, quantity):
        product = make_product(stock=10)
        resp = client.post("/api/purchases", json={
            "purchase_order_number": "PO-BAD",
            "supplier_id": supplier.id,
            "items": [{"product_id": product.id, "quantity": quantity}],
        }, headers=sales_headers)

        assert resp.status_code == 400
        assert db.session.get(Product, product.id).stock == 10


# =============================================================================
# PARTNERS
# =============================================================================


class TestPartners:
    def test_retailer_with_unknown_distributor_rejected(self, client, sales_headers):
        resp = client.post("/api/retailers", json={
            "store_name": "Shop",
            "distributor_id": 999,
            "contact_name": "C",
            "email": "c@shop.test",
            "phone": "1",
            "address": "A",
        }, headers=sales_headers)
        assert resp.status_code == 400

    def test_missing_fields_rejected(self, client, sales_headers):
        resp = client.post("/api/billed-entities", json={"name": "Gov"}, headers=sales_headers)
        assert resp.status_code == 400

    def test_admin_soft_deletes_supplier(self, client, admin_headers, supplier):
        assert client.delete(f"/api/suppliers/{supplier.id}", headers=admin_headers).status_code == 200
        assert client.get("/api/suppliers", headers=admin_headers).json["count"] == 0
        assert client.get(f"/api/suppliers/{supplier.id}", headers=admin_headers).json["is_active"] is False

    def test_vendors_have_no_delete(self, client, admin_headers):
        assert client.delete("/api/vendors/1", headers=admin_headers).status_code == 405

    def test_missing_partner_is_404(self, client, sales_headers):
        assert client.get("/api/retailers/31337", headers=sales_headers).status_code == 404


# =============================================================================
# DASHBOARD / HEALTH
# =============================================================================


class TestDashboard:
    def test_dashboard_totals(self, client, sales_headers, supplier, make_product):
        p = make_product(stock=100, min_stock=5)
        make_product(stock=1, min_stock=5)
        client.post("/api/purchases", json={
            "purchase_order_number": "PO-D",
            "supplier_id": supplier.id,
            "items": [{"product_id": p.id, "quantity": 2, "unit_price_cents": 500}],
        }, headers=sales_headers)

        data = client.get("/api/dashboard", headers=sales_headers).json

        assert data["total_products"] == 2
        assert data["low_stock_products"] == 1
        assert data["total_users"] == 1
        assert data["purchase_overview"] == {"total_cents": 1000, "count": 1}
        assert data["sales_overview"] == {"total_cents": 0, "count": 0}
        assert data["inventory_summary"] == {"total": 2, "low_stock": 1}


def test_health_is_public(client, db_session):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "healthy"
