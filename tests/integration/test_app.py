"""Authentication, error envelopes and the filter vocabulary endpoints."""
import time

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from main import app
from utils import auth_utils


def _token(claims, secret=None):
    return jwt.encode(claims, secret or auth_utils.JWT_SECRET, algorithm=auth_utils.JWT_ALGORITHM)


@pytest.fixture
def anonymous_client():
    return TestClient(app)


def test_missing_header_is_401(anonymous_client):
    response = anonymous_client.get("/purchase-orders/")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Authorization header is missing"}


def test_malformed_header_is_401(anonymous_client):
    response = anonymous_client.get("/purchase-orders/", headers={"Authorization": "Token abc"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid authorization header format"


def test_wrong_signature_is_401(anonymous_client):
    headers = {"Authorization": f"Bearer {_token({'sub': 'user-1'}, secret='not-the-secret')}"}
    response = anonymous_client.get("/purchase-orders/", headers=headers)
    assert response.status_code == 401


def test_expired_token_is_401(anonymous_client):
    headers = {"Authorization": f"Bearer {_token({'sub': 'user-1', 'exp': int(time.time()) - 60})}"}
    response = anonymous_client.get("/purchase-orders/", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired"


def test_token_without_subject_is_401(anonymous_client):
    headers = {"Authorization": f"Bearer {_token({'email': 'someone@example.com'})}"}
    assert anonymous_client.get("/purchase-orders/", headers=headers).status_code == 401


def test_valid_token_acts_as_its_subject(anonymous_client, warehouse):
    # the warehouse fixture acts through the user override; drop it so the token is decoded
    app.dependency_overrides.clear()
    headers = {"Authorization": f"Bearer {_token({'sub': 'token-user', 'exp': int(time.time()) + 600})}"}
    response = anonymous_client.post(
        "/purchase-orders/",
        json={"supplier_name": "Acme", "warehouse_id": warehouse["id"]},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["created_by"] == "token-user"


def test_admin_group_claims():
    assert auth_utils.is_admin({"sub": "a", "groups": ["staff", "admin"]})
    assert auth_utils.is_admin({"sub": "a", "cognito:groups": "admin"})
    assert not auth_utils.is_admin({"sub": "a"})
    assert auth_utils.get_user_identifier({"email": "x@example.com"}) == "x@example.com"


def test_filter_vocabulary(client):
    body = client.get("/filters/vocabulary").json()
    assert body["schema_version"] == 2
    stock = body["collections"]["stock_movements"]
    assert stock["ranges"]["quantityMin"] == "integer"
    assert "myOrders" in body["collections"]["purchase_orders"]["quick"]


def test_saved_filter_upgrade(client):
    response = client.post("/filters/stock_movements/upgrade", json={"entries": [
        {"name": "Old", "version": 1, "filters": {"quantityMovedMin": 5, "shelf": "A3"}},
    ]})
    assert response.status_code == 200
    (entry,) = response.json()["entries"]
    assert entry == {"name": "Old", "version": 2, "filters": {"quantityMin": 5}, "dropped": ["shelf"]}


def test_unknown_filter_collection_is_404(client):
    response = client.post("/filters/nothing/upgrade", json={"entries": []})
    assert response.status_code == 404


def test_root(client):
    assert client.get("/").json() == {"message": "Warehouse back-office API"}
