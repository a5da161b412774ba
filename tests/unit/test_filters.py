"""Filter translator tests; predicates run against SQLite rows."""
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from starlette.datastructures import QueryParams

from crud.filter_tables import FILTER_TABLES, PURCHASE_ORDER_FILTERS, STOCK_MOVEMENT_FILTERS
from models.inventories import Inventory
from models.products import Product
from models.purchase_orders import PurchaseOrder
from models.stock_movements import StockMovement
from models.warehouses import Warehouse
from utils.clock import now
from utils.exceptions import ValidationFailed
from utils.filters import FilterContext


@pytest.fixture
def catalogue(db_session):
    db_warehouse = Warehouse(name="North Depot", code="NORTH")
    db_product = Product(name="Forklift Battery", sku="FB-1", unit_cost=Decimal("10"), unit_price=Decimal("15"))
    db_session.add_all([db_warehouse, db_product])
    db_session.flush()
    return db_warehouse, db_product


@pytest.fixture
def movements(db_session, catalogue):
    db_warehouse, db_product = catalogue
    rows = []
    for index, quantity in enumerate([3, 10, -25]):
        rows.append(StockMovement(
            reference_number=f"SM-202501-00{index + 1}",
            product_id=db_product.id,
            warehouse_id=db_warehouse.id,
            user_id="user-1" if index else "user-2",
            movement_type="adjustment_increase" if quantity > 0 else "adjustment_decrease",
            quantity_moved=quantity,
            quantity_before=0,
            quantity_after=max(quantity, 0),
            total_value=Decimal(abs(quantity) * 100),
            reason=f"Count {index}",
        ))
    db_session.add_all(rows)
    db_session.flush()
    return rows


@pytest.fixture
def purchase_orders(db_session, catalogue):
    db_warehouse, _ = catalogue
    today = now().date()
    rows = [
        PurchaseOrder(po_number="PO-202501-001", supplier_name="ACME Supplies", warehouse_id=db_warehouse.id,
                      status="draft", priority="urgent", total_amount=Decimal("150.00"), created_by="user-1",
                      expected_delivery_date=today - timedelta(days=3)),
        PurchaseOrder(po_number="PO-202501-002", supplier_name="Globex", warehouse_id=db_warehouse.id,
                      status="approved", priority="normal", total_amount=Decimal("2500.00"), created_by="user-2",
                      expected_delivery_date=today + timedelta(days=3)),
        PurchaseOrder(po_number="PO-202501-003", supplier_name="Acme 50% Off", warehouse_id=db_warehouse.id,
                      status="closed", priority="low", total_amount=Decimal("900.00"), created_by="user-1",
                      expected_delivery_date=today - timedelta(days=10)),
    ]
    db_session.add_all(rows)
    db_session.flush()
    return rows


def _run(db_session, translator, model, filters, context=None):
    query = translator.apply(db_session.query(model), filters, context)
    return query.order_by(model.id).all()


def test_quantity_range_matches_magnitude(db_session, movements):
    filters = STOCK_MOVEMENT_FILTERS.parse({"quantityMin": "5", "quantityMax": "20"})
    assert [m.quantity_moved for m in _run(db_session, STOCK_MOVEMENT_FILTERS, StockMovement, filters)] == [10]


def test_decreases_match_by_size(db_session, movements):
    filters = STOCK_MOVEMENT_FILTERS.parse({"quantityMin": "20"})
    assert [m.quantity_moved for m in _run(db_session, STOCK_MOVEMENT_FILTERS, StockMovement, filters)] == [-25]


def test_empty_filter_selects_everything(db_session, movements):
    assert len(_run(db_session, STOCK_MOVEMENT_FILTERS, StockMovement, {})) == 3
    assert STOCK_MOVEMENT_FILTERS.predicates({}) == []


def test_unknown_key_is_the_same_as_omitting_it(db_session, movements):
    with_unknown = STOCK_MOVEMENT_FILTERS.parse({"quantityMin": "5", "colour": "blue"})
    without = STOCK_MOVEMENT_FILTERS.parse({"quantityMin": "5"})
    assert with_unknown == without
    direct = _run(db_session, STOCK_MOVEMENT_FILTERS, StockMovement, {"quantityMin": 5, "colour": "blue"})
    assert direct == _run(db_session, STOCK_MOVEMENT_FILTERS, StockMovement, without)


def test_empty_values_add_nothing(db_session, movements):
    filters = STOCK_MOVEMENT_FILTERS.parse({"quantityMin": "", "reason": "  ", "movementTypes": []})
    assert filters == {}


def test_min_greater_than_max_is_rejected():
    with pytest.raises(ValidationFailed) as exc_info:
        STOCK_MOVEMENT_FILTERS.parse({"quantityMin": "20", "quantityMax": "5"})
    assert list(exc_info.value.errors) == ["quantityMax"]


def test_malformed_values_are_rejected():
    with pytest.raises(ValidationFailed) as exc_info:
        PURCHASE_ORDER_FILTERS.parse({"totalAmountMin": "lots", "createdAtMax": "yesterday"})
    assert sorted(exc_info.value.errors) == ["createdAtMax", "totalAmountMin"]


def test_text_match_is_case_insensitive_and_escaped(db_session, purchase_orders):
    found = _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, {"supplierName": "acme"})
    assert [po.po_number for po in found] == ["PO-202501-001", "PO-202501-003"]
    # % is a literal, not a wildcard
    found = _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, {"supplierName": "50%"})
    assert [po.po_number for po in found] == ["PO-202501-003"]


def test_memberships_from_repeated_and_comma_separated_params(db_session, purchase_orders):
    repeated = PURCHASE_ORDER_FILTERS.parse(QueryParams("statuses=draft&statuses=closed"))
    comma = PURCHASE_ORDER_FILTERS.parse(QueryParams("statuses=draft,closed"))
    assert repeated == comma == {"statuses": ["draft", "closed"]}
    found = _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, repeated)
    assert [po.status for po in found] == ["draft", "closed"]


def test_keys_are_anded(db_session, purchase_orders):
    filters = PURCHASE_ORDER_FILTERS.parse({"supplierName": "acme", "totalAmountMin": "500"})
    found = _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, filters)
    assert [po.po_number for po in found] == ["PO-202501-003"]


def test_search_spans_several_columns(db_session, purchase_orders):
    found = _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, {"search": "202501-002"})
    assert [po.supplier_name for po in found] == ["Globex"]


def test_quick_filters_use_the_acting_user(db_session, purchase_orders):
    context = FilterContext(user_id="user-1")
    found = _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, {"myOrders": True}, context)
    assert [po.po_number for po in found] == ["PO-202501-001", "PO-202501-003"]


def test_quick_filter_false_adds_nothing(db_session, purchase_orders):
    filters = PURCHASE_ORDER_FILTERS.parse({"isUrgent": "false"})
    assert len(_run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, filters)) == 3


def test_overdue_ignores_closed_orders(db_session, purchase_orders):
    found = _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, {"overdue": True})
    assert [po.po_number for po in found] == ["PO-202501-001"]


def test_high_value_and_urgent(db_session, purchase_orders):
    assert [po.po_number for po in _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, {"highValue": True})] == [
        "PO-202501-002"
    ]
    assert [po.po_number for po in _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, {"isUrgent": True})] == [
        "PO-202501-001"
    ]


def test_date_range_is_inclusive(db_session, purchase_orders):
    today = now().date()
    filters = PURCHASE_ORDER_FILTERS.parse({
        "expectedDeliveryDateMin": (today - timedelta(days=3)).isoformat(),
        "expectedDeliveryDateMax": (today + timedelta(days=3)).isoformat(),
    })
    found = _run(db_session, PURCHASE_ORDER_FILTERS, PurchaseOrder, filters)
    assert [po.po_number for po in found] == ["PO-202501-001", "PO-202501-002"]


def test_created_at_max_covers_the_whole_day():
    filters = PURCHASE_ORDER_FILTERS.parse({"createdAtMax": "2025-01-31T08:00:00"})
    assert filters == {"createdAtMax": date(2025, 1, 31)}
    (clause,) = PURCHASE_ORDER_FILTERS.predicates(filters)
    bound = clause.right.value
    assert isinstance(bound, datetime)
    assert (bound.hour, bound.minute) == (23, 59)


def test_related_text_filters(db_session, catalogue, movements):
    db_warehouse, db_product = catalogue
    db_session.add(Inventory(product_id=db_product.id, warehouse_id=db_warehouse.id, quantity_on_hand=0))
    db_session.flush()
    inventory_filters = FILTER_TABLES["inventories"]
    assert len(_run(db_session, inventory_filters, Inventory, {"productName": "battery"})) == 1
    assert _run(db_session, inventory_filters, Inventory, {"warehouseName": "south"}) == []
    assert len(_run(db_session, inventory_filters, Inventory, {"outOfStock": True})) == 1
    found = _run(db_session, STOCK_MOVEMENT_FILTERS, StockMovement, {"search": "forklift"})
    assert len(found) == 3


def test_movement_quick_filters(db_session, movements):
    context = FilterContext(user_id="user-2")
    mine = _run(db_session, STOCK_MOVEMENT_FILTERS, StockMovement, {"myMovements": True}, context)
    assert [m.quantity_moved for m in mine] == [3]
    decreases = _run(db_session, STOCK_MOVEMENT_FILTERS, StockMovement, {"decreasesOnly": True})
    assert [m.quantity_moved for m in decreases] == [-25]
    high_value = _run(db_session, STOCK_MOVEMENT_FILTERS, StockMovement, {"highValueMovements": True})
    assert [m.quantity_moved for m in high_value] == [-25]


def test_vocabulary_lists_every_key():
    vocabulary = STOCK_MOVEMENT_FILTERS.vocabulary()
    assert vocabulary["ranges"]["quantityMin"] == "integer"
    assert "movementTypes" in vocabulary["memberships"]
    assert "myMovements" in vocabulary["quick"]
    assert set(FILTER_TABLES) == {
        "purchase_orders", "sales_orders", "products", "warehouses", "inventories", "stock_movements",
        "stock_transfers",
    }
