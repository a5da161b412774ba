"""Stock transfers: approval, dispatch and completion between two warehouses."""
import pytest

from conftest import ADMIN, OTHER_USER, OWNER


@pytest.fixture
def depot(client):
    response = client.post("/warehouses/", json={"name": "North Depot", "code": "NORTH"})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def stocked(warehouse, product, adjust_stock):
    adjust_stock(product["id"], warehouse["id"], 10)


@pytest.fixture
def create_transfer(client, warehouse, depot, product):
    def _create(**overrides):
        payload = {
            "from_warehouse_id": warehouse["id"],
            "to_warehouse_id": depot["id"],
            "product_id": product["id"],
            "quantity_transferred": 4,
        }
        payload.update(overrides)
        response = client.post("/stock-transfers/", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


def _on_hand(client, product_id, warehouse_id):
    rows = client.get("/inventories/", params={"productIds": product_id, "warehouseIds": warehouse_id}).json()
    return rows[0]["quantity_on_hand"] if rows else 0


def _approve(client, acting_user, transfer_id):
    acting_user.set(ADMIN)
    response = client.post(f"/stock-transfers/{transfer_id}/approve")
    acting_user.set(OWNER)
    return response


def test_transfer_lifecycle_moves_stock(client, acting_user, stocked, create_transfer, warehouse, depot, product):
    transfer = create_transfer(notes="Rebalance before the weekend")
    assert transfer["reference_number"].startswith("ST-")
    assert transfer["status"] == "pending"
    assert transfer["status_label"] == "Pending Approval"
    assert transfer["created_by"] == OWNER["sub"]
    # requesting a transfer does not move stock
    assert _on_hand(client, product["id"], warehouse["id"]) == 10

    assert client.post(f"/stock-transfers/{transfer['id']}/approve").status_code == 403
    response = _approve(client, acting_user, transfer["id"])
    assert response.status_code == 200, response.text
    assert response.json()["data"]["approved_by"] == ADMIN["sub"]

    response = client.post(f"/stock-transfers/{transfer['id']}/dispatch")
    data = response.json()["data"]
    assert data["status"] == "in_transit"
    assert data["dispatched_by"] == OWNER["sub"]
    assert data["can_be_cancelled"] is False
    assert _on_hand(client, product["id"], warehouse["id"]) == 6
    assert _on_hand(client, product["id"], depot["id"]) == 0

    response = client.post(f"/stock-transfers/{transfer['id']}/cancel", json={"reason": "Truck broke down"})
    assert response.status_code == 422
    assert response.json()["message"] == "Cannot cancel a transfer with status 'in_transit'."

    response = client.post(f"/stock-transfers/{transfer['id']}/complete")
    data = response.json()["data"]
    assert data["status"] == "completed"
    assert data["completed_at"] is not None
    assert _on_hand(client, product["id"], warehouse["id"]) == 6
    assert _on_hand(client, product["id"], depot["id"]) == 4

    moves = client.get("/stock-movements/", params={"relatedDocumentTypes": "transfer"}).json()
    assert sorted((m["movement_type"], m["quantity_moved"], m["warehouse_id"]) for m in moves) == [
        ("transfer_in", 4, depot["id"]),
        ("transfer_out", -4, warehouse["id"]),
    ]
    assert all(m["related_document_id"] == transfer["id"] for m in moves)

    actions = [entry["action"] for entry in client.get(f"/stock-transfers/{transfer['id']}/history").json()]
    assert actions == ["INSERT", "APPROVE", "DISPATCH", "COMPLETE"]

    # finished transfers are frozen
    assert client.patch(f"/stock-transfers/{transfer['id']}", json={"notes": "late"}).status_code == 422
    assert client.post(f"/stock-transfers/{transfer['id']}/dispatch").status_code == 422


def test_dispatch_requires_approval(client, stocked, create_transfer):
    transfer = create_transfer()
    response = client.post(f"/stock-transfers/{transfer['id']}/dispatch")
    assert response.status_code == 422
    assert "status" in response.json()["errors"]


def test_cancel_before_dispatch(client, acting_user, stocked, create_transfer, warehouse, product):
    pending = create_transfer()
    response = client.post(f"/stock-transfers/{pending['id']}/cancel", json={"reason": "Not needed"})
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancellation_reason"] == "Not needed"
    assert data["cancelled_by"] == OWNER["sub"]

    approved = create_transfer(quantity_transferred=2)
    _approve(client, acting_user, approved["id"])
    response = client.post(f"/stock-transfers/{approved['id']}/cancel", json={"reason": "Plans changed"})
    assert response.json()["data"]["status"] == "cancelled"

    assert client.post(f"/stock-transfers/{approved['id']}/cancel", json={"reason": "Again"}).status_code == 422
    assert client.post(f"/stock-transfers/{pending['id']}/cancel", json={"reason": " "}).status_code == 422
    assert _on_hand(client, product["id"], warehouse["id"]) == 10
    assert client.get("/stock-movements/", params={"relatedDocumentTypes": "transfer"}).json() == []


def test_source_and_destination_must_differ(client, stocked, warehouse, product):
    response = client.post("/stock-transfers/", json={
        "from_warehouse_id": warehouse["id"],
        "to_warehouse_id": warehouse["id"],
        "product_id": product["id"],
        "quantity_transferred": 1,
    })
    assert response.status_code == 422
    assert response.json()["errors"] == {"to_warehouse_id": ["Source and destination warehouses must be different."]}


def test_transfer_needs_stock_at_the_source(client, acting_user, stocked, create_transfer, warehouse, depot, product):
    response = client.post("/stock-transfers/", json={
        "from_warehouse_id": warehouse["id"],
        "to_warehouse_id": depot["id"],
        "product_id": product["id"],
        "quantity_transferred": 11,
    })
    assert response.status_code == 422
    assert response.json()["errors"]["quantity_transferred"] == ["Insufficient inventory. Available: 10, requested: 11."]

    # availability is checked again on approval
    transfer = create_transfer(quantity_transferred=8)
    client.post("/stock-movements/", json={
        "product_id": product["id"],
        "warehouse_id": warehouse["id"],
        "movement_type": "damage_write_off",
        "quantity": 5,
        "reason": "Water damage",
    })
    response = _approve(client, acting_user, transfer["id"])
    assert response.status_code == 422
    assert list(response.json()["errors"]) == ["quantity_transferred"]
    assert client.get(f"/stock-transfers/{transfer['id']}").json()["status"] == "pending"


def test_duplicate_pending_request_is_rejected(client, stocked, create_transfer, warehouse, depot, product):
    create_transfer()
    response = client.post("/stock-transfers/", json={
        "from_warehouse_id": warehouse["id"],
        "to_warehouse_id": depot["id"],
        "product_id": product["id"],
        "quantity_transferred": 4,
    })
    assert response.status_code == 422
    assert list(response.json()["errors"]) == ["product_id"]
    # a different quantity is a different request
    create_transfer(quantity_transferred=3)


def test_inactive_warehouse_is_a_field_error(client, stocked, depot, warehouse, product):
    client.delete(f"/warehouses/{depot['id']}")
    response = client.post("/stock-transfers/", json={
        "from_warehouse_id": warehouse["id"],
        "to_warehouse_id": depot["id"],
        "product_id": product["id"],
        "quantity_transferred": 1,
    })
    assert response.status_code == 422
    assert list(response.json()["errors"]) == ["to_warehouse_id"]


def test_only_the_requester_or_an_admin_moves_a_transfer(client, acting_user, stocked, create_transfer):
    transfer = create_transfer()
    acting_user.set(OTHER_USER)
    assert client.patch(f"/stock-transfers/{transfer['id']}", json={"notes": "mine now"}).status_code == 403
    assert client.post(f"/stock-transfers/{transfer['id']}/cancel", json={"reason": "x"}).status_code == 403
    assert client.get(f"/stock-transfers/{transfer['id']}").status_code == 200
    acting_user.set(OWNER)
    response = client.patch(f"/stock-transfers/{transfer['id']}", json={"notes": "Pallets 3 and 4"})
    assert response.status_code == 200
    assert response.json()["notes"] == "Pallets 3 and 4"


def test_list_filters(client, acting_user, stocked, create_transfer, depot):
    first = create_transfer()
    second = create_transfer(quantity_transferred=2)
    _approve(client, acting_user, second["id"])
    client.post(f"/stock-transfers/{second['id']}/dispatch")

    found = client.get("/stock-transfers/", params={"inTransit": "true"}).json()
    assert [t["id"] for t in found] == [second["id"]]
    found = client.get("/stock-transfers/", params={"statuses": "pending"}).json()
    assert [t["id"] for t in found] == [first["id"]]
    found = client.get("/stock-transfers/", params={"toWarehouseIds": depot["id"], "quantityMin": 3}).json()
    assert [t["id"] for t in found] == [first["id"]]
    found = client.get("/stock-transfers/", params={"search": "pallet"}).json()
    assert {t["id"] for t in found} == {first["id"], second["id"]}


def test_missing_transfer_is_404(client):
    response = client.get("/stock-transfers/999")
    assert response.status_code == 404
    assert response.json()["message"] == "Stock transfer not found"
