"""
test_api_routes.py — HTTP surface of the calculator endpoints.

The auth dependency is overridden with an in-memory user, and only routes
that never touch the database are exercised, so no PostgreSQL is needed.
The lifespan hook is not triggered (TestClient is not used as a context
manager).
"""

import pytest
from fastapi.testclient import TestClient

from synprod.api.deps import get_current_user
from synprod.main import app
from synprod.models.orm_models import Role, User, UserStatus


def _user(role):
    return User(
        id="00000000-0000-0000-0000-000000000001",
        email="line.lead@synprod.local",
        first_name="Line",
        last_name="Lead",
        role=role,
        status=UserStatus.ACTIVE,
    )


@pytest.fixture
def client():
    app.dependency_overrides[get_current_user] = lambda: _user(Role.PRODUCTION)
    yield TestClient(app)
    app.dependency_overrides.clear()


YOGURT_BODY = {
    "product_type": "GREEK_YOGURT",
    "order_quantity": 2,
    "capacity_unit": "tubs",
    "compositions": [
        {"component_name": "Yogurt", "percentage": 90},
        {"component_name": "Yacon", "percentage": 10},
    ],
    "ingredients": [
        {"ingredient_name": "Salt", "quantity": 2, "unit": "g"},
    ],
}


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "active"
        assert "db_configured" in body

    def test_security_and_trace_headers(self, client):
        resp = client.get("/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Request-ID" in resp.headers


class TestCatalogEndpoint:

    def test_lists_all_types(self, client):
        resp = client.get("/api/recipes/catalog")
        assert resp.status_code == 200
        types = {entry["product_type"]: entry for entry in resp.json()}
        assert set(types) == {"GREEK_YOGURT", "CHEESE", "DRINKS"}
        assert [u["key"] for u in types["DRINKS"]["capacity_units"]] == ["bottles", "pouches"]


class TestCalculateEndpoint:

    def test_greek_yogurt_two_tubs(self, client):
        resp = client.post("/api/recipes/calculate", json=YOGURT_BODY)
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_weight"] == 760.0
        assert [c["scaled_weight"] for c in body["compositions"]] == [684.0, 76.0]
        assert body["ingredients"][0]["scaled_quantity"] == 4.0
        assert body["total_percentage"] == 100.0

    def test_default_unit_for_drinks(self, client):
        resp = client.post("/api/recipes/calculate", json={"product_type": "DRINKS", "order_quantity": 3})
        assert resp.status_code == 200
        body = resp.json()
        assert body["capacity_unit"] == "bottles"
        assert body["total_weight"] == 660.0

    def test_pouches(self, client):
        resp = client.post(
            "/api/recipes/calculate",
            json={"product_type": "DRINKS", "order_quantity": 10, "capacity_unit": "pouches"},
        )
        assert resp.json()["total_weight"] == 12100.0

    def test_partial_recipe_is_accepted(self, client):
        body = dict(YOGURT_BODY, compositions=[{"component_name": "Yogurt", "percentage": 60}])
        resp = client.post("/api/recipes/calculate", json=body)
        assert resp.status_code == 200
        assert resp.json()["compositions"][0]["scaled_weight"] == pytest.approx(456.0)

    def test_unit_not_offered_is_400(self, client):
        body = dict(YOGURT_BODY, capacity_unit="pouches")
        resp = client.post("/api/recipes/calculate", json=body)
        assert resp.status_code == 400
        assert "pouches" in resp.json()["detail"]

    def test_negative_quantity_is_400(self, client):
        body = dict(YOGURT_BODY, order_quantity=-1)
        resp = client.post("/api/recipes/calculate", json=body)
        assert resp.status_code == 400

    def test_nan_quantity_is_400(self, client):
        resp = client.post(
            "/api/recipes/calculate",
            content='{"product_type": "CHEESE", "order_quantity": NaN}',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert "finite" in resp.json()["detail"]

    def test_unknown_type_is_400(self, client):
        resp = client.post("/api/recipes/calculate", json={"product_type": "BUTTER", "order_quantity": 1})
        assert resp.status_code == 400
        assert "BUTTER" in resp.json()["detail"]


class TestAuthGuards:

    def test_missing_token_is_401(self):
        app.dependency_overrides.clear()
        resp = TestClient(app).get("/api/recipes/catalog")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Not authenticated"

    def test_production_role_cannot_create(self, client):
        resp = client.post("/api/products", json={"name": "X", "product_type": "CHEESE"})
        assert resp.status_code == 403
        assert "MANAGER" in resp.json()["detail"]
