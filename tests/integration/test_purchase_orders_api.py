"""Purchase order endpoints: numbering, receiving, cancellation and deletion."""
from decimal import Decimal
from urllib.parse import unquote

import pytest

from conftest import ADMIN, OTHER_USER, OWNER
from crud import orders
from utils.clock import now


def money(value) -> Decimal:
    return Decimal(str(value))


@pytest.fixture
def create_po(client, warehouse, product):
    def _create(**overrides):
        payload = {
            "supplier_name": "Acme Supplies",
            "warehouse_id": warehouse["id"],
            "items": [{"product_id": product["id"], "quantity_ordered": 10}],
        }
        payload.update(overrides)
        response = client.post("/purchase-orders/", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def sent_po(client, acting_user, create_po):
    """A purchase order that has been approved and sent to the supplier."""
    po = create_po()
    client.post(f"/purchase-orders/{po['id']}/submit")
    acting_user.set(ADMIN)
    client.post(f"/purchase-orders/{po['id']}/approve")
    acting_user.set(OWNER)
    response = client.post(f"/purchase-orders/{po['id']}/send")
    assert response.json()["data"]["status"] == "sent_to_supplier"
    return response.json()["data"]


def test_sequential_references(create_po):
    bucket = f"PO-{now():%Y%m}-"
    assert create_po()["po_number"] == bucket + "001"
    assert create_po()["po_number"] == bucket + "002"


def test_unit_cost_defaults_to_product_cost(create_po):
    po = create_po()
    (item,) = po["items"]
    assert money(item["unit_cost"]) == Decimal("80.00")
    assert money(po["total_amount"]) == Decimal("800.00")
    assert money(po["tax_rate"]) == Decimal("0")


def test_reference_conflict_is_retried(client, create_po, monkeypatch):
    first = create_po()
    taken = first["po_number"]
    handed_out = iter([taken, taken.replace("-001", "-002")])
    monkeypatch.setattr(orders, "next_reference", lambda *args, **kwargs: next(handed_out))
    assert create_po()["po_number"].endswith("-002")


def test_reference_conflict_gives_up_with_409(client, warehouse, create_po, monkeypatch):
    taken = create_po()["po_number"]
    monkeypatch.setattr(orders, "next_reference", lambda *args, **kwargs: taken)
    response = client.post("/purchase-orders/", json={"supplier_name": "Acme", "warehouse_id": warehouse["id"]})
    assert response.status_code == 409
    assert response.json()["success"] is False
    assert len(client.get("/purchase-orders/").json()) == 1


def test_inactive_warehouse_is_rejected(client, warehouse):
    client.delete(f"/warehouses/{warehouse['id']}")
    response = client.post("/purchase-orders/", json={"supplier_name": "Acme", "warehouse_id": warehouse["id"]})
    assert response.status_code == 422
    assert list(response.json()["errors"]) == ["warehouse_id"]


def test_send_requires_approval(client, create_po):
    po = create_po()
    response = client.post(f"/purchase-orders/{po['id']}/send")
    assert response.status_code == 422
    assert response.json()["errors"] == {"status": ["Cannot send an order with status 'draft'."]}


def test_receiving_lifecycle(client, sent_po, product):
    po_id = sent_po["id"]
    item_id = sent_po["items"][0]["id"]

    response = client.post(f"/purchase-orders/{po_id}/receive", json={
        "items": [{"item_id": item_id, "quantity_received": 4, "quantity_rejected": 1, "rejection_reason": "Crushed box"}],
    })
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["status"] == "partially_received"
    assert data["receiving_progress"] == 40.0
    (item,) = data["items"]
    assert item["quantity_received"] == 4
    assert item["quantity_rejected"] == 1
    assert item["quantity_pending"] == 6
    assert item["item_status"] == "partially_received"
    assert item["rejection_reason"] == "Crushed box"
    first_received_at = data["received_at"]

    response = client.post(f"/purchase-orders/{po_id}/receive", json={"items": [{"item_id": item_id, "quantity_received": 6}]})
    data = response.json()["data"]
    assert data["status"] == "fully_received"
    assert data["items"][0]["item_status"] == "fully_received"
    assert data["received_at"] == first_received_at

    (inventory,) = client.get("/inventories/", params={"productIds": product["id"]}).json()
    assert inventory["quantity_on_hand"] == 10

    receipts = client.get("/stock-movements/", params={"movementTypes": "purchase_receive"}).json()
    assert sorted(m["quantity_moved"] for m in receipts) == [4, 6]
    assert all(m["reference_number"].startswith("SM-") for m in receipts)
    assert all(money(m["unit_cost"]) == Decimal("80") for m in receipts)

    response = client.post(f"/purchase-orders/{po_id}/close")
    assert response.json()["data"]["status"] == "closed"
    assert response.json()["data"]["closed_by"] == OWNER["sub"]


def test_receipt_validation(client, sent_po):
    po_id = sent_po["id"]
    item_id = sent_po["items"][0]["id"]
    response = client.post(f"/purchase-orders/{po_id}/receive", json={"items": [
        {"item_id": item_id, "quantity_received": 11},
        {"item_id": 999, "quantity_received": 1},
        {"item_id": item_id, "quantity_rejected": 2},
    ]})
    assert response.status_code == 422
    assert sorted(response.json()["errors"]) == [
        "items.0.quantity_received",
        "items.1.item_id",
        "items.2.rejection_reason",
    ]
    # nothing was booked
    po = client.get(f"/purchase-orders/{po_id}").json()
    assert po["status"] == "sent_to_supplier"
    assert po["items"][0]["quantity_received"] == 0
    assert client.get("/stock-movements/").json() == []


def test_receive_before_sending_is_rejected(client, create_po):
    po = create_po()
    response = client.post(f"/purchase-orders/{po['id']}/receive", json={
        "items": [{"item_id": po["items"][0]["id"], "quantity_received": 1}],
    })
    assert response.status_code == 422
    assert "status" in response.json()["errors"]


def test_cancel_requires_reason(client, create_po):
    po = create_po()
    response = client.post(f"/purchase-orders/{po['id']}/cancel", json={"reason": "   "})
    assert response.status_code == 422
    assert list(response.json()["errors"]) == ["reason"]

    response = client.post(f"/purchase-orders/{po['id']}/cancel", json={"reason": " Supplier closed "})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancellation_reason"] == "Supplier closed"
    assert data["cancelled_by"] == OWNER["sub"]
    assert data["items"][0]["item_status"] == "cancelled"
    assert data["can_be_edited"] is False

    response = client.patch(f"/purchase-orders/{po['id']}", json={"notes": "too late"})
    assert response.status_code == 422


def test_bulk_cancel_reports_each_order(client, acting_user, create_po):
    mine = [create_po(), create_po()]
    acting_user.set(OTHER_USER)
    theirs = create_po()
    acting_user.set(OWNER)

    response = client.post("/purchase-orders/bulk-cancel", json={
        "ids": [mine[0]["id"], mine[1]["id"], theirs["id"], 999],
        "reason": "Budget freeze",
    })
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["processed"] == 2
    assert body["failed"] == 2
    assert {error["id"]: error["message"] for error in body["errors"]} == {
        theirs["id"]: "Forbidden",
        999: "Purchase order not found",
    }
    assert client.get(f"/purchase-orders/{theirs['id']}").json()["status"] == "draft"
    assert client.get(f"/purchase-orders/{mine[0]['id']}").json()["status"] == "cancelled"


def test_only_drafts_can_be_deleted(client, create_po):
    draft = create_po()
    submitted = create_po()
    client.post(f"/purchase-orders/{submitted['id']}/submit")

    response = client.delete(f"/purchase-orders/{submitted['id']}")
    assert response.status_code == 422

    response = client.delete(f"/purchase-orders/{draft['id']}")
    assert response.status_code == 200
    assert response.json()["message"] == f"Purchase order {draft['po_number']} deleted."
    assert client.get(f"/purchase-orders/{draft['id']}").status_code == 404
    assert [po["id"] for po in client.get("/purchase-orders/").json()] == [submitted["id"]]

    # a deleted number is never handed out again
    assert create_po()["po_number"].endswith("-003")


def test_other_users_get_403(client, acting_user, create_po):
    po = create_po()
    acting_user.set(OTHER_USER)
    assert client.delete(f"/purchase-orders/{po['id']}").status_code == 403
    assert client.post(f"/purchase-orders/{po['id']}/cancel", json={"reason": "x"}).status_code == 403


def test_missing_order_is_404(client):
    response = client.get("/purchase-orders/12345")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Purchase order not found"}


def test_history_records_changes(client, create_po):
    po = create_po()
    client.patch(f"/purchase-orders/{po['id']}", json={"notes": "Deliver to dock 4"})
    client.post(f"/purchase-orders/{po['id']}/submit")
    history = client.get(f"/purchase-orders/{po['id']}/history").json()
    assert [entry["action"] for entry in history] == ["INSERT", "UPDATE", "SUBMIT"]
    update = history[1]
    assert update["old_values"]["notes"] is None
    assert update["new_values"]["notes"] == "Deliver to dock 4"
    submit = history[2]
    assert submit["old_values"]["status"] == "draft"
    assert submit["new_values"]["status"] == "pending_approval"
    assert "supplier_name" not in submit["new_values"]


def test_html_clients_are_redirected_with_a_flash_message(client, create_po):
    po = create_po()
    response = client.post(
        f"/purchase-orders/{po['id']}/submit",
        headers={"Accept": "text/html,application/xhtml+xml"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == f"/purchase-orders/{po['id']}"
    cookie = response.headers["set-cookie"]
    assert cookie.startswith("flash=")
    assert "submitted for approval" in unquote(cookie)


def test_list_filters_and_sorting(client, create_po, second_product):
    small = create_po(supplier_name="Small Parts Co", priority="urgent")
    large = create_po(items=[{"product_id": second_product["id"], "quantity_ordered": 1000}])
    ids = [po["id"] for po in client.get("/purchase-orders/", params={"sort": "-total_amount"}).json()]
    assert ids == [large["id"], small["id"]]
    urgent = client.get("/purchase-orders/", params={"isUrgent": "1"}).json()
    assert [po["id"] for po in urgent] == [small["id"]]
    mine = client.get("/purchase-orders/", params={"myOrders": "true", "statuses": "draft,approved"}).json()
    assert len(mine) == 2


def test_explicit_nulls_for_required_fields_are_field_errors(client, create_po):
    po = create_po()
    response = client.patch(f"/purchase-orders/{po['id']}", json={"supplier_name": None, "currency": None})
    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"supplier_name", "currency"}
    assert client.get(f"/purchase-orders/{po['id']}").json()["supplier_name"] == "Acme Supplies"


def test_fully_received_order_can_be_closed(client, sent_po):
    po_id = sent_po["id"]
    client.post(f"/purchase-orders/{po_id}/receive", json={
        "items": [{"item_id": sent_po["items"][0]["id"], "quantity_received": 10}],
    })
    assert client.get(f"/purchase-orders/{po_id}").json()["status"] == "fully_received"

    response = client.post(f"/purchase-orders/{po_id}/close")
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["status"] == "closed"
    assert data["closed_at"] is not None
    # closed is final
    response = client.post(f"/purchase-orders/{po_id}/cancel", json={"reason": "Too late"})
    assert response.status_code == 422
    assert "status" in response.json()["errors"]
