"""Unit tests for reference numbers and the create-with-retry loop."""
from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from crud import orders
from models.purchase_orders import PurchaseOrder
from models.sales_orders import SalesOrder
from models.warehouses import Warehouse
from utils.exceptions import ReferenceConflict
from utils.numbering import (
    REFERENCE_PATTERN,
    format_reference,
    next_reference,
    parse_sequence,
)

JANUARY = datetime(2025, 1, 15, 10, 30)
FEBRUARY = datetime(2025, 2, 1, 0, 0)


@pytest.fixture
def warehouse_id(db_session):
    db_warehouse = Warehouse(name="Main", code="MAIN")
    db_session.add(db_warehouse)
    db_session.flush()
    return db_warehouse.id


def _purchase_order(warehouse_id, po_number=None):
    return PurchaseOrder(
        po_number=po_number,
        supplier_name="Acme Supplies",
        warehouse_id=warehouse_id,
        status="draft",
        created_by="user-1",
    )


def test_format_reference():
    assert format_reference("PO", JANUARY, 1) == "PO-202501-001"
    assert format_reference("so", FEBRUARY, 42) == "SO-202502-042"
    assert REFERENCE_PATTERN.match("PO-202501-001")


def test_parse_sequence():
    assert parse_sequence("PO-202501-007") == 7
    assert parse_sequence("PO-202501-1000") == 1000
    assert parse_sequence(None) == 0
    assert parse_sequence("garbage") == 0


def test_first_reference_of_the_month(db_session):
    assert next_reference(db_session, PurchaseOrder.po_number, "PO", JANUARY) == "PO-202501-001"


def test_sequential_creation_increments(db_session, warehouse_id):
    first = orders.create_with_reference(db_session, _purchase_order(warehouse_id), moment=JANUARY)
    second = orders.create_with_reference(db_session, _purchase_order(warehouse_id), moment=JANUARY)
    assert first.po_number == "PO-202501-001"
    assert second.po_number == "PO-202501-002"


def test_sequence_restarts_each_month_and_per_prefix(db_session, warehouse_id):
    db_session.add(_purchase_order(warehouse_id, "PO-202501-005"))
    db_session.flush()
    assert next_reference(db_session, PurchaseOrder.po_number, "PO", FEBRUARY) == "PO-202502-001"
    assert next_reference(db_session, SalesOrder.so_number, "SO", JANUARY) == "SO-202501-001"


def test_soft_deleted_numbers_are_not_reused(db_session, warehouse_id):
    db_po = _purchase_order(warehouse_id, "PO-202501-003")
    db_session.add(db_po)
    db_session.flush()
    db_po.soft_delete("user-1")
    db_session.flush()
    assert db_session.query(PurchaseOrder).all() == []
    assert next_reference(db_session, PurchaseOrder.po_number, "PO", JANUARY) == "PO-202501-004"


def test_sequence_past_999_compares_numerically(db_session, warehouse_id):
    db_session.add(_purchase_order(warehouse_id, "PO-202501-999"))
    db_session.add(_purchase_order(warehouse_id, "PO-202501-1000"))
    db_session.flush()
    assert next_reference(db_session, PurchaseOrder.po_number, "PO", JANUARY) == "PO-202501-1001"


def test_conflict_is_retried(db_session, warehouse_id, monkeypatch):
    db_session.add(_purchase_order(warehouse_id, "PO-202501-001"))
    db_session.commit()

    handed_out = iter(["PO-202501-001", "PO-202501-002"])
    monkeypatch.setattr(orders, "next_reference", lambda *args, **kwargs: next(handed_out))

    db_po = orders.create_with_reference(db_session, _purchase_order(warehouse_id), moment=JANUARY)
    assert db_po.po_number == "PO-202501-002"


def test_persistent_conflict_gives_up(db_session, warehouse_id, monkeypatch):
    db_session.add(_purchase_order(warehouse_id, "PO-202501-001"))
    db_session.commit()

    calls = []

    def always_taken(*args, **kwargs):
        calls.append(1)
        return "PO-202501-001"

    monkeypatch.setattr(orders, "next_reference", always_taken)
    with pytest.raises(ReferenceConflict):
        orders.create_with_reference(db_session, _purchase_order(warehouse_id), moment=JANUARY)
    assert len(calls) == orders.REFERENCE_RETRY_ATTEMPTS


def test_other_integrity_errors_are_not_reported_as_conflicts(db_session, warehouse_id):
    db_po = _purchase_order(warehouse_id)
    db_po.supplier_name = None
    with pytest.raises(IntegrityError):
        orders.create_with_reference(db_session, db_po, moment=JANUARY)
