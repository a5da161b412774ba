import logging
from decimal import Decimal
from typing import Optional, Tuple
from sqlalchemy.orm import Session
from crud.inventories import lock_inventory
from crud.products import ensure_orderable_product
from crud.warehouses import ensure_active_warehouse
from models.stock_movements import StockMovement
from schemas.stock_movements import StockAdjustmentCreate
from utils.calculations import quantize_money, quantize_unit_cost
from utils.exceptions import Forbidden, NotFound, ValidationFailed
from utils.numbering import next_reference

logger = logging.getLogger(__name__)

# Manual movement types that take stock out of the warehouse
OUTBOUND_TYPES = {"adjustment_decrease", "damage_write_off", "expiry_write_off", "return_supplier"}

def get_stock_movement(db: Session, movement_id: int):
    db_movement = db.query(StockMovement).filter(StockMovement.id == movement_id).first()
    if db_movement is None:
        raise NotFound("Stock movement")
    return db_movement

def _insufficient(before: int, quantity: int) -> ValidationFailed:
    return ValidationFailed({"quantity": [f"Insufficient stock: {before} on hand, {abs(quantity)} requested."]})

def _apply_quantity(inventory, quantity: int) -> Tuple[int, int]:
    before = inventory.quantity_on_hand or 0
    after = before + quantity
    if after < 0:
        raise _insufficient(before, quantity)
    inventory.quantity_on_hand = after
    return before, after

def _valuation(quantity: int, unit_cost: Optional[Decimal]):
    cost = quantize_unit_cost(unit_cost) if unit_cost is not None else None
    return cost, quantize_money(abs(quantity) * cost) if cost is not None else None

def _add(db: Session, db_movement: StockMovement) -> StockMovement:
    db_movement.reference_number = next_reference(db, StockMovement.reference_number, StockMovement.reference_prefix)
    db.add(db_movement)
    # Flushed so the next reference in this transaction sees it
    db.flush()
    return db_movement

def record_movement(
    db: Session,
    inventory,
    quantity: int,
    movement_type: str,
    user_id: str,
    unit_cost: Optional[Decimal] = None,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    related_document_type: Optional[str] = None,
    related_document_id: Optional[int] = None,
):
    """Apply a signed ``quantity`` to a locked inventory row and log it."""
    before, after = _apply_quantity(inventory, quantity)
    cost, total_value = _valuation(quantity, unit_cost)
    db_movement = _add(db, StockMovement(
        product_id=inventory.product_id,
        warehouse_id=inventory.warehouse_id,
        user_id=user_id,
        movement_type=movement_type,
        status="applied",
        quantity_moved=quantity,
        quantity_before=before,
        quantity_after=after,
        unit_cost=cost,
        total_value=total_value,
        reason=reason,
        notes=notes,
        related_document_type=related_document_type,
        related_document_id=related_document_id,
        created_by=user_id,
    ))
    logger.info(
        f"Stock movement {db_movement.reference_number}: {movement_type} {quantity:+d} "
        f"for product {inventory.product_id} in warehouse {inventory.warehouse_id} ({before} -> {after}) by user {user_id}"
    )
    return db_movement

def _hold_adjustment(db: Session, adjustment: StockAdjustmentCreate, quantity: int, unit_cost, user_id: str):
    """Record the adjustment as pending; stock is only moved on approval."""
    inventory = lock_inventory(db, adjustment.product_id, adjustment.warehouse_id)
    before = inventory.quantity_on_hand if inventory else 0
    if before + quantity < 0:
        raise _insufficient(before, quantity)
    cost, total_value = _valuation(quantity, unit_cost)
    db_movement = _add(db, StockMovement(
        product_id=adjustment.product_id,
        warehouse_id=adjustment.warehouse_id,
        user_id=user_id,
        movement_type=adjustment.movement_type,
        status="pending",
        quantity_moved=quantity,
        quantity_before=before,
        quantity_after=before + quantity,
        unit_cost=cost,
        total_value=total_value,
        reason=adjustment.reason,
        notes=adjustment.notes,
        related_document_type="adjustment",
        created_by=user_id,
    ))
    logger.info(f"Stock movement {db_movement.reference_number}: {adjustment.movement_type} {quantity:+d} held for approval by user {user_id}")
    return db_movement

def create_adjustment(db: Session, adjustment: StockAdjustmentCreate, user_id: str):
    product = ensure_orderable_product(db, adjustment.product_id)
    ensure_active_warehouse(db, adjustment.warehouse_id)
    outbound = adjustment.movement_type in OUTBOUND_TYPES
    quantity = -adjustment.quantity if outbound else adjustment.quantity
    unit_cost = adjustment.unit_cost if adjustment.unit_cost is not None else product.unit_cost
    if adjustment.requires_approval:
        return _hold_adjustment(db, adjustment, quantity, unit_cost, user_id)
    inventory = lock_inventory(db, adjustment.product_id, adjustment.warehouse_id, create=not outbound)
    if inventory is None:
        raise ValidationFailed({"quantity": ["Insufficient stock: the product is not stocked in this warehouse."]})
    return record_movement(
        db,
        inventory,
        quantity,
        adjustment.movement_type,
        user_id,
        unit_cost=unit_cost,
        reason=adjustment.reason,
        notes=adjustment.notes,
        related_document_type="adjustment",
    )

def approve_movement(db: Session, db_movement: StockMovement, user_id: str, admin: bool):
    """Apply a held adjustment against the stock on hand now."""
    if not admin:
        raise Forbidden()
    db_movement.workflow.assert_transition(db_movement.status, "approved", "approve")
    inventory = lock_inventory(db, db_movement.product_id, db_movement.warehouse_id, create=db_movement.quantity_moved > 0)
    if inventory is None:
        raise ValidationFailed({"quantity": ["Insufficient stock: the product is not stocked in this warehouse."]})
    db_movement.quantity_before, db_movement.quantity_after = _apply_quantity(inventory, db_movement.quantity_moved)
    db_movement.transition_to("approved", user_id, "approve")
    db_movement.updated_by = user_id
    logger.info(
        f"Stock movement {db_movement.reference_number} approved by user {user_id} "
        f"({db_movement.quantity_before} -> {db_movement.quantity_after})"
    )
    return db_movement

def reject_movement(db: Session, db_movement: StockMovement, reason: str, user_id: str, admin: bool):
    if not admin:
        raise Forbidden()
    db_movement.transition_to("rejected", user_id, "reject")
    db_movement.rejection_reason = reason
    db_movement.updated_by = user_id
    logger.info(f"Stock movement {db_movement.reference_number} rejected by user {user_id}")
    return db_movement
