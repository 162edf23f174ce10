"""
HTTP surface tests.

Verifies:
- Unauthenticated requests return 401
- Login/logout/session via cookie and bearer token
- Error mapping: 400 invalid input, 404 missing, 409 stock and duplicates
- Sales are attributed to the session operator, never the request body
"""

import pytest

from sabor.extensions import db
from sabor.models import Operator, Product, Sale, StockMovement
from sabor.services.session_service import AUTH_COOKIE_NAME


# =============================================================================
# UNAUTHENTICATED ACCESS — 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/session"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/products/1"),
            ("PATCH", "/api/products/1"),
            ("GET", "/api/products/barcode/1111111111111"),
            ("POST", "/api/inventory/adjust"),
            ("GET", "/api/inventory/1/movements"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("GET", "/api/sales/1"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_bearer_token(self, client, db_session):
        resp = client.get("/api/products", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401


class TestAuthRoutes:

    def test_login_sets_cookie_and_returns_token(self, client, operator):
        resp = client.post("/api/auth/login", json={"login": "operador.master", "password": "Password123!"})

        assert resp.status_code == 200
        assert resp.json["operator"] == {"id": operator.id, "name": "Operador Master", "login": "operador.master"}
        assert resp.json["token"]
        cookie = resp.headers.get("Set-Cookie")
        assert cookie.startswith(f"{AUTH_COOKIE_NAME}=")
        assert "HttpOnly" in cookie

        # Cookie alone authenticates follow-up requests
        session_resp = client.get("/api/auth/session")
        assert session_resp.status_code == 200
        assert session_resp.json["operator"]["id"] == operator.id

    def test_login_bad_credentials(self, client, operator):
        wrong_password = client.post("/api/auth/login", json={"login": "operador.master", "password": "nope"})
        unknown = client.post("/api/auth/login", json={"login": "ghost", "password": "Password123!"})

        assert wrong_password.status_code == 401
        assert unknown.status_code == 401
        assert wrong_password.json == unknown.json

    def test_login_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"login": "operador.master"})
        assert resp.status_code == 400

    def test_logout_expires_cookie(self, client, operator):
        client.post("/api/auth/login", json={"login": "operador.master", "password": "Password123!"})

        resp = client.post("/api/auth/logout")
        assert resp.status_code == 200
        assert resp.json == {"success": True}

        assert client.get("/api/auth/session").status_code == 401

    def test_session_with_bearer(self, client, operator_headers, operator):
        resp = client.get("/api/auth/session", headers=operator_headers)
        assert resp.status_code == 200
        assert resp.json["operator"]["login"] == "operador.master"

    def test_missing_auth_secret_is_500(self, app, client, operator_headers):
        original = app.config["AUTH_SECRET"]
        app.config["AUTH_SECRET"] = None
        try:
            resp = client.get("/api/auth/session", headers=operator_headers)
            login = client.post("/api/auth/login", json={"login": "operador.master", "password": "Password123!"})
        finally:
            app.config["AUTH_SECRET"] = original

        assert resp.status_code == 500
        assert "AUTH_SECRET" in resp.json["error"]
        assert login.status_code == 500


class TestProductRoutes:

    def test_create_and_fetch(self, client, operator_headers):
        resp = client.post(
            "/api/products",
            json={"name": "Debug Burger", "barcode": "5555555555555", "price": "27.00", "quantity": 25},
            headers=operator_headers,
        )
        assert resp.status_code == 201
        product = resp.json["product"]
        assert product["price"] == "27.00"
        assert product["quantity_on_hand"] == 25

        resp = client.get(f"/api/products/{product['id']}", headers=operator_headers)
        assert resp.status_code == 200
        assert resp.json["product"]["barcode"] == "5555555555555"

    def test_duplicate_barcode_is_409(self, client, operator_headers, kernel_burger):
        resp = client.post(
            "/api/products",
            json={"name": "Again", "barcode": "1111111111111", "price": "1.00"},
            headers=operator_headers,
        )
        assert resp.status_code == 409

    def test_invalid_product_is_400(self, client, operator_headers):
        resp = client.post(
            "/api/products",
            json={"name": "No price", "barcode": "1234"},
            headers=operator_headers,
        )
        assert resp.status_code == 400
        assert "price" in resp.json["error"]

    def test_barcode_lookup(self, client, operator_headers, kernel_burger):
        resp = client.get("/api/products/barcode/1111111111111", headers=operator_headers)
        assert resp.status_code == 200
        assert resp.json["product"]["id"] == kernel_burger.id

        resp = client.get("/api/products/barcode/0000000000000", headers=operator_headers)
        assert resp.status_code == 404

    def test_barcode_lookup_out_of_stock(self, client, operator_headers, kernel_burger):
        client.post(
            "/api/inventory/adjust",
            json={"product_id": kernel_burger.id, "quantity": 0},
            headers=operator_headers,
        )
        resp = client.get("/api/products/barcode/1111111111111", headers=operator_headers)
        assert resp.status_code == 409
        assert resp.json["product"]["quantity_on_hand"] == 0

    def test_patch_product(self, client, operator_headers, kernel_burger):
        resp = client.patch(
            f"/api/products/{kernel_burger.id}",
            json={"price": "23.50"},
            headers=operator_headers,
        )
        assert resp.status_code == 200
        assert resp.json["product"]["price"] == "23.50"

        resp = client.patch(
            f"/api/products/{kernel_burger.id}",
            json={"quantity_on_hand": 999},
            headers=operator_headers,
        )
        assert resp.status_code == 400

    def test_list_products(self, client, operator_headers, kernel_burger, dual_core_burger):
        resp = client.get("/api/products?page=1&per_page=1", headers=operator_headers)
        assert resp.status_code == 200
        assert resp.json["pagination"]["total"] == 2


class TestInventoryRoutes:

    def test_adjust_and_movements(self, client, operator_headers, operator, kernel_burger):
        resp = client.post(
            "/api/inventory/adjust",
            json={"product_id": kernel_burger.id, "quantity": 50},
            headers=operator_headers,
        )
        assert resp.status_code == 200
        assert resp.json["product"]["quantity_on_hand"] == 50

        resp = client.get(f"/api/inventory/{kernel_burger.id}/movements", headers=operator_headers)
        assert resp.status_code == 200
        latest = resp.json["movements"][0]
        assert latest["reason"] == "AJUSTE_MANUAL"
        assert latest["type"] == "ENTRADA"
        assert latest["quantity"] == 15
        assert latest["operator_id"] == operator.id

    def test_adjust_negative_is_400(self, client, operator_headers, kernel_burger):
        resp = client.post(
            "/api/inventory/adjust",
            json={"product_id": kernel_burger.id, "quantity": -1},
            headers=operator_headers,
        )
        assert resp.status_code == 400

    def test_adjust_unknown_is_404(self, client, operator_headers):
        resp = client.post(
            "/api/inventory/adjust",
            json={"product_id": 9999, "quantity": 1},
            headers=operator_headers,
        )
        assert resp.status_code == 404

    def test_movements_unknown_product_is_404(self, client, operator_headers):
        resp = client.get("/api/inventory/9999/movements", headers=operator_headers)
        assert resp.status_code == 404


class TestSaleRoutes:

    def test_checkout(self, client, db_session, operator_headers, operator, kernel_burger):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": kernel_burger.id, "quantity": 3}], "payment_type": "Pix"},
            headers=operator_headers,
        )

        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["total"] == "66.00"
        assert sale["payment_type"] == "Pix"
        assert sale["operator"] == {"id": operator.id, "name": "Operador Master"}
        assert sale["lines"][0]["unit_price"] == "22.00"

        db_session.expire_all()
        assert db_session.get(Product, kernel_burger.id).quantity_on_hand == 32

        resp = client.get(f"/api/sales/{sale['id']}", headers=operator_headers)
        assert resp.status_code == 200
        assert resp.json["sale"]["id"] == sale["id"]

    def test_operator_in_body_is_ignored(self, client, db_session, operator_headers, operator, kernel_burger):
        other = Operator(name="Someone Else", login="someone", password_hash="x", is_active=True)
        db_session.add(other)
        db_session.commit()

        resp = client.post(
            "/api/sales",
            json={
                "items": [{"product_id": kernel_burger.id, "quantity": 1}],
                "operator_id": other.id,
                "idOperador": other.id,
            },
            headers=operator_headers,
        )

        assert resp.status_code == 201
        assert resp.json["sale"]["operator_id"] == operator.id

    def test_insufficient_stock_is_409(self, client, db_session, operator_headers, kernel_burger):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": kernel_burger.id, "quantity": 36}]},
            headers=operator_headers,
        )

        assert resp.status_code == 409
        assert "Kernel Burger" in resp.json["error"]
        assert resp.json["details"]["items"][0]["product_id"] == kernel_burger.id
        assert db_session.query(Sale).count() == 0

    def test_missing_product_is_404(self, client, db_session, operator_headers, kernel_burger):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": kernel_burger.id + 50, "quantity": 1}]},
            headers=operator_headers,
        )
        assert resp.status_code == 404
        assert db_session.query(StockMovement).filter_by(reason="VENDA").count() == 0

    def test_empty_cart_is_400(self, client, operator_headers):
        resp = client.post("/api/sales", json={"items": []}, headers=operator_headers)
        assert resp.status_code == 400

    def test_no_body_is_400(self, client, operator_headers):
        resp = client.post("/api/sales", headers=operator_headers)
        assert resp.status_code == 400

    def test_sale_not_found(self, client, operator_headers):
        resp = client.get("/api/sales/424242", headers=operator_headers)
        assert resp.status_code == 404

    def test_history(self, client, operator_headers, operator, kernel_burger):
        for qty in (1, 2):
            client.post(
                "/api/sales",
                json={"items": [{"product_id": kernel_burger.id, "quantity": qty}]},
                headers=operator_headers,
            )

        resp = client.get("/api/sales?page=0&per_page=500", headers=operator_headers)
        assert resp.status_code == 200
        body = resp.json
        assert body["pagination"]["page"] == 1
        assert body["pagination"]["per_page"] == 100
        assert body["summary"]["total_sales"] == 2
        assert body["summary"]["total_revenue"] == "66.00"
        assert body["summary"]["average_sale"] == "33.00"
        assert [s["total"] for s in body["sales"]] == ["44.00", "22.00"]


class TestMalformedInput:
    """Bad bodies and out-of-range numbers are 400s, never 500s."""

    @pytest.mark.parametrize(
        "path,body",
        [
            ("/api/inventory/adjust", [1, 2]),
            ("/api/sales", [{"product_id": 1, "quantity": 1}]),
            ("/api/products", ["Burger", "123", "1.00"]),
            ("/api/inventory/adjust", "text"),
            ("/api/sales", 42),
        ],
    )
    def test_non_object_body(self, client, operator_headers, path, body):
        resp = client.post(path, json=body, headers=operator_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Request body must be a JSON object"

    def test_login_with_list_body(self, client, db_session):
        resp = client.post("/api/auth/login", json=["operador.master", "Password123!"])
        assert resp.status_code == 400

    def test_sale_with_huge_product_id(self, client, db_session, operator_headers, kernel_burger):
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": 10**30, "quantity": 1}]},
            headers=operator_headers,
        )
        assert resp.status_code == 400
        assert db_session.query(Sale).count() == 0

    def test_adjust_with_huge_target(self, client, db_session, operator_headers, kernel_burger):
        resp = client.post(
            "/api/inventory/adjust",
            json={"product_id": kernel_burger.id, "quantity": 10**30},
            headers=operator_headers,
        )
        assert resp.status_code == 400

        db_session.expire_all()
        assert db_session.get(Product, kernel_burger.id).quantity_on_hand == 35

    def test_huge_price(self, client, operator_headers, kernel_burger):
        resp = client.post(
            "/api/products",
            json={"name": "Gold Burger", "barcode": "7000000000000", "price": "1e100"},
            headers=operator_headers,
        )
        assert resp.status_code == 400

        resp = client.patch(
            f"/api/products/{kernel_burger.id}",
            json={"price": "1e100"},
            headers=operator_headers,
        )
        assert resp.status_code == 400

    def test_huge_page_number(self, client, operator_headers, kernel_burger):
        resp = client.get(f"/api/sales?page={10**30}", headers=operator_headers)
        assert resp.status_code == 200
        assert resp.json["sales"] == []

        resp = client.get(f"/api/products?page={10**30}", headers=operator_headers)
        assert resp.status_code == 200
        assert resp.json["items"] == []


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["status"] == "healthy"
