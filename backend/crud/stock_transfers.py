"""
Stock transfers between warehouses.

The source warehouse loses the stock when the transfer is dispatched and the
destination gains it on completion, each through a ``transfer_out`` /
``transfer_in`` stock movement tied back to the transfer.
"""
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from crud import orders
from crud.inventories import lock_inventory
from crud.products import ensure_orderable_product
from crud.stock_movements import record_movement
from crud.warehouses import ensure_active_warehouse
from models.stock_transfers import StockTransfer
from schemas.stock_transfers import StockTransferCreate
from utils import sqlalchemy_to_dict
from utils.clock import now
from utils.exceptions import Forbidden, NotFound, ValidationFailed
from utils.order_status import CANCELLED

logger = logging.getLogger(__name__)

RESOURCE = "Stock transfer"


def get_stock_transfer(db: Session, transfer_id: int):
    db_transfer = db.query(StockTransfer).filter(StockTransfer.id == transfer_id).first()
    if db_transfer is None:
        raise NotFound(RESOURCE)
    return db_transfer


def _assert_available(db: Session, warehouse_id: int, product_id: int, quantity: int):
    inventory = lock_inventory(db, product_id, warehouse_id)
    available = inventory.quantity_available if inventory else 0
    if available < quantity:
        raise ValidationFailed({"quantity_transferred": [
            f"Insufficient inventory. Available: {available}, requested: {quantity}."
        ]})
    return inventory


def _assert_not_duplicate(db: Session, transfer: StockTransferCreate):
    start_of_day = now().replace(hour=0, minute=0, second=0, microsecond=0)
    duplicate = (
        db.query(StockTransfer.id)
        .filter(
            StockTransfer.from_warehouse_id == transfer.from_warehouse_id,
            StockTransfer.to_warehouse_id == transfer.to_warehouse_id,
            StockTransfer.product_id == transfer.product_id,
            StockTransfer.quantity_transferred == transfer.quantity_transferred,
            StockTransfer.status == "pending",
            StockTransfer.created_at >= start_of_day,
        )
        .first()
    )
    if duplicate is not None:
        raise ValidationFailed({"product_id": ["A similar transfer request already exists."]})


def create_stock_transfer(db: Session, transfer: StockTransferCreate, user_id: str):
    if transfer.from_warehouse_id == transfer.to_warehouse_id:
        raise ValidationFailed({"to_warehouse_id": ["Source and destination warehouses must be different."]})
    ensure_active_warehouse(db, transfer.from_warehouse_id, field="from_warehouse_id")
    ensure_active_warehouse(db, transfer.to_warehouse_id, field="to_warehouse_id")
    ensure_orderable_product(db, transfer.product_id)
    _assert_available(db, transfer.from_warehouse_id, transfer.product_id, transfer.quantity_transferred)
    _assert_not_duplicate(db, transfer)

    db_transfer = StockTransfer(**transfer.model_dump(), status="pending", created_by=user_id, updated_by=user_id)
    orders.create_with_reference(db, db_transfer)
    orders.audit(db, db_transfer, "INSERT", user_id)
    logger.info(
        f"Stock transfer {db_transfer.reference_number} (ID: {db_transfer.id}) of {db_transfer.quantity_transferred} "
        f"x product {db_transfer.product_id} from warehouse {db_transfer.from_warehouse_id} "
        f"to {db_transfer.to_warehouse_id} initiated by user {user_id}"
    )
    return db_transfer


def update_stock_transfer(db: Session, db_transfer: StockTransfer, data: Dict[str, Any], user_id: str):
    db_transfer.workflow.assert_editable(db_transfer.status, data.keys())
    old_values = sqlalchemy_to_dict(db_transfer)
    for key, value in data.items():
        setattr(db_transfer, key, value)
    orders.touch(db_transfer, user_id)
    orders.audit(db, db_transfer, "UPDATE", user_id, old_values)
    logger.info(f"Stock transfer {db_transfer.reference_number} updated by user {user_id}")
    return db_transfer


def approve(db: Session, db_transfer: StockTransfer, user_id: str, admin: bool):
    if not admin:
        raise Forbidden()
    db_transfer.workflow.assert_transition(db_transfer.status, "approved", "approve")
    # stock may have moved since the request was made
    _assert_available(db, db_transfer.from_warehouse_id, db_transfer.product_id, db_transfer.quantity_transferred)
    return orders.transition(db, db_transfer, "approved", user_id, "approve")


def _move(db: Session, db_transfer: StockTransfer, warehouse_id: int, quantity: int, movement_type: str, user_id: str, reason: str):
    inventory = lock_inventory(db, db_transfer.product_id, warehouse_id, create=quantity > 0)
    if inventory is None:
        raise ValidationFailed({"quantity_transferred": ["Insufficient stock: the product is not stocked in this warehouse."]})
    return record_movement(
        db,
        inventory,
        quantity,
        movement_type,
        user_id,
        unit_cost=db_transfer.product.unit_cost,
        reason=reason,
        related_document_type="transfer",
        related_document_id=db_transfer.id,
    )


def dispatch(db: Session, db_transfer: StockTransfer, user_id: str):
    """Mark the transfer in transit and take the stock out of the source warehouse."""
    db_transfer.workflow.assert_transition(db_transfer.status, "in_transit", "dispatch")
    _move(
        db, db_transfer, db_transfer.from_warehouse_id, -db_transfer.quantity_transferred,
        "transfer_out", user_id, f"Transfer {db_transfer.reference_number} dispatched",
    )
    return orders.transition(db, db_transfer, "in_transit", user_id, "dispatch")


def complete(db: Session, db_transfer: StockTransfer, user_id: str):
    """Book the stock into the destination warehouse."""
    db_transfer.workflow.assert_transition(db_transfer.status, "completed", "complete")
    _move(
        db, db_transfer, db_transfer.to_warehouse_id, db_transfer.quantity_transferred,
        "transfer_in", user_id, f"Transfer {db_transfer.reference_number} received",
    )
    return orders.transition(db, db_transfer, "completed", user_id, "complete")


def cancel(db: Session, db_transfer: StockTransfer, reason: str, user_id: str):
    orders.transition(db, db_transfer, CANCELLED, user_id, "cancel")
    db_transfer.cancellation_reason = reason.strip()
    return db_transfer
