"""
conftest.py — Shared pytest fixtures for the SynProd backend test suite.

No database or external service fixtures are defined here.  The calculator,
exporter, sanitizer and validation tests are pure unit tests; API tests
override the auth dependency so no database connection is ever opened.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``synprod.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import sys
import os
from datetime import datetime
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any synprod imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

os.environ.setdefault("LOG_FORMAT", "text")


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def recipe_scaler():
    """RecipeScaler — stateless, safe to share across the session."""
    from synprod.services.recipe_scaler import RecipeScaler
    return RecipeScaler()


@pytest.fixture(scope="session")
def recipe_exporter(recipe_scaler):
    """RecipeExporter wired to the shared scaler."""
    from synprod.services.recipe_exporter import RecipeExporter
    return RecipeExporter(recipe_scaler)


@pytest.fixture
def fixed_timestamp():
    return datetime(2025, 3, 14, 9, 30)


# ---------------------------------------------------------------------------
# Sample recipes
# ---------------------------------------------------------------------------

@pytest.fixture
def greek_yogurt_recipe():
    """
    GREEK_YOGURT, base 380 g:
      compositions: Yogurt 90 %, Yacon 10 %
      ingredients : Salt 2 g per base unit
    """
    from synprod.models.recipe import Composition, Ingredient, Recipe
    return Recipe(
        id=1,
        name="Yacon Greek Yogurt",
        product_type="GREEK_YOGURT",
        description="Strained yogurt sweetened with yacon syrup",
        compositions=[
            Composition("Yogurt", 90.0, sort_order=0),
            Composition("Yacon", 10.0, notes="syrup", sort_order=1),
        ],
        ingredients=[
            Ingredient("Salt", 2.0, "g", sort_order=0),
        ],
        created_by_name="Dana Manager",
    )


@pytest.fixture
def drinks_recipe():
    """
    DRINKS, base 220 g — three components summing to 100 %,
    two ingredients in different free-form units.
    """
    from synprod.models.recipe import Composition, Ingredient, Recipe
    return Recipe(
        id=2,
        name="Kefir Smoothie",
        product_type="DRINKS",
        compositions=[
            Composition("Kefir", 70.0, sort_order=0),
            Composition("Berry puree", 25.5, sort_order=1),
            Composition("Honey", 4.5, sort_order=2),
        ],
        ingredients=[
            Ingredient("Vanilla", 0.5, "tsp", sort_order=0),
            Ingredient("Pectin", 1.2, "g", notes="pre-hydrated", sort_order=1),
        ],
    )


@pytest.fixture
def partial_recipe():
    """Mid-edit CHEESE recipe whose compositions only reach 60 %."""
    from synprod.models.recipe import Composition, Ingredient, Recipe
    return Recipe(
        name="Draft Labneh",
        product_type="CHEESE",
        compositions=[
            Composition("Curd", 45.0),
            Composition("Cream", 15.0),
        ],
        ingredients=[Ingredient("Salt", 3.0, "g")],
    )


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------

class FakeResult:
    def __init__(self, value):
        self._value = value

    def scalar_one_or_none(self):
        return self._value


class FakeSession:
    """
    Stand-in for AsyncSession.  Each execute() answers with the next queued
    value (None once the queue is exhausted); writes are accepted and ignored.
    """

    def __init__(self, *results):
        self.results = list(results)
        self.added = []

    async def execute(self, statement):
        value = self.results.pop(0) if self.results else None
        return FakeResult(value)

    def add(self, obj):
        self.added.append(obj)

    async def flush(self):
        pass


@pytest.fixture
def fake_session():
    """FakeSession factory: fake_session(first_result, second_result, ...)."""
    return FakeSession


@pytest.fixture
def make_user():
    """Factory for detached User rows: make_user("u-1", Role.ADMIN, status=...)."""
    from synprod.models.orm_models import UserStatus

    def _make(user_id, role, status=UserStatus.ACTIVE, **fields):
        from synprod.models.orm_models import User
        fields.setdefault("email", f"{user_id}@synprod.local")
        return User(id=user_id, role=role, status=status, **fields)

    return _make


@pytest.fixture
def client_as():
    """
    Factory for a TestClient with the current user and the DB session
    overridden.  ``user=None`` leaves authentication in place.
    """
    from fastapi.testclient import TestClient
    from synprod.api.deps import get_current_user
    from synprod.db import get_db
    from synprod.main import app

    def _client(user=None, session=None):
        db = session if session is not None else FakeSession()
        app.dependency_overrides[get_db] = lambda: db
        if user is not None:
            app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()
