"""
Pytest configuration and shared fixtures for the warehouse back-office tests.

The app runs against an in-memory SQLite database; every test starts from
freshly created tables.
"""
import os
import tempfile
from typing import Any, Dict, Generator

import pytest

# Configuration is read at import time, so it has to be in place first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="warehouse_test_logs_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.setdefault("APP_TIMEZONE", "UTC")

from fastapi.testclient import TestClient  # noqa: E402

from database import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402
from utils.auth_utils import get_current_user  # noqa: E402

OWNER = {"sub": "user-1", "email": "owner@example.com", "groups": []}
OTHER_USER = {"sub": "user-2", "email": "other@example.com", "groups": []}
ADMIN = {"sub": "admin-1", "email": "admin@example.com", "groups": ["admin"]}


@pytest.fixture(autouse=True)
def _fresh_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


class ActingUser:
    """Switches the user every request is made as."""

    def __init__(self):
        self.user: Dict[str, Any] = OWNER

    def set(self, user: Dict[str, Any]):
        self.user = user


@pytest.fixture
def acting_user() -> ActingUser:
    acting = ActingUser()
    app.dependency_overrides[get_current_user] = lambda: acting.user
    return acting


@pytest.fixture
def client(acting_user: ActingUser) -> TestClient:
    return TestClient(app)


@pytest.fixture
def warehouse(client: TestClient) -> Dict[str, Any]:
    response = client.post("/warehouses/", json={"name": "Main Warehouse", "code": "MAIN", "city": "Turin"})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def product(client: TestClient) -> Dict[str, Any]:
    response = client.post("/products/", json={
        "name": "Pallet Jack",
        "sku": "PJ-100",
        "unit_cost": "80.00",
        "unit_price": "100.00",
        "reorder_level": 2,
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def second_product(client: TestClient) -> Dict[str, Any]:
    response = client.post("/products/", json={
        "name": "Shrink Wrap Roll",
        "sku": "SW-200",
        "unit_cost": "4.50",
        "unit_price": "7.25",
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def adjust_stock(client: TestClient):
    """Post a manual stock movement and return it."""

    def _adjust(product_id: int, warehouse_id: int, quantity: int, movement_type: str = "adjustment_increase"):
        response = client.post("/stock-movements/", json={
            "product_id": product_id,
            "warehouse_id": warehouse_id,
            "movement_type": movement_type,
            "quantity": quantity,
            "reason": "Cycle count",
        })
        assert response.status_code == 201, response.text
        return response.json()

    return _adjust
