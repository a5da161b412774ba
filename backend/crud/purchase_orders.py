import logging
from typing import Dict, List

from sqlalchemy import and_
from sqlalchemy.orm import Session

from crud import orders
from crud.inventories import lock_inventory
from crud.stock_movements import record_movement
from crud.warehouses import ensure_active_warehouse
from models.purchase_order_items import PurchaseOrderItem
from models.purchase_orders import PurchaseOrder
from schemas.order_actions import ReceiveRequest
from schemas.purchase_orders import PurchaseOrderCreate
from utils.clock import now
from utils.exceptions import Forbidden, InvalidTransition, ValidationFailed
from utils.order_status import DRAFT, PURCHASE_ORDER_WORKFLOW, derive_progress_status

logger = logging.getLogger(__name__)

RESOURCE = "Purchase order"
RECEIVABLE_STATUSES = ("sent_to_supplier", "partially_received")


def get_purchase_order(db: Session, po_id: int):
    return orders.get_order(db, PurchaseOrder, po_id, RESOURCE)


def create_purchase_order(db: Session, po: PurchaseOrderCreate, user_id: str):
    ensure_active_warehouse(db, po.warehouse_id)
    data = po.model_dump(exclude={"items"})
    for key in orders.ZERO_WHEN_NULL:
        if key in data and data[key] is None:
            data[key] = 0
    db_po = PurchaseOrder(**data, status=DRAFT, created_by=user_id, updated_by=user_id)
    for index, item in enumerate(po.items):
        db_po.items.append(
            orders.build_item(db, PurchaseOrderItem, item.model_dump(), error_prefix=f"items.{index}.")
        )
    db_po.recalculate_totals()
    orders.create_with_reference(db, db_po)
    orders.audit(db, db_po, "INSERT", user_id)
    logger.info(f"Purchase order {db_po.po_number} (ID: {db_po.id}) created with {len(db_po.items)} items by user {user_id}")
    return db_po


def submit(db: Session, db_po: PurchaseOrder, user_id: str):
    return orders.transition(db, db_po, "pending_approval", user_id, "submit")


def approve(db: Session, db_po: PurchaseOrder, user_id: str, admin: bool):
    if not admin:
        raise Forbidden()
    PURCHASE_ORDER_WORKFLOW.assert_transition(db_po.status, "approved", "approve")
    orders.require_items(db_po, "approved")
    return orders.transition(db, db_po, "approved", user_id, "approve")


def send_to_supplier(db: Session, db_po: PurchaseOrder, user_id: str):
    return orders.transition(db, db_po, "sent_to_supplier", user_id, "send")


def close(db: Session, db_po: PurchaseOrder, user_id: str):
    return orders.transition(db, db_po, "closed", user_id, "close")


def _validate_receipt(db_po: PurchaseOrder, request: ReceiveRequest) -> List[PurchaseOrderItem]:
    items_by_id = {item.id: item for item in db_po.items}
    incoming: Dict[int, int] = {}
    errors: Dict[str, List[str]] = {}
    matched = []
    for index, line in enumerate(request.items):
        prefix = f"items.{index}."
        item = items_by_id.get(line.item_id)
        matched.append(item)
        if item is None:
            errors[prefix + "item_id"] = ["The item does not belong to this purchase order."]
            continue
        if line.quantity_received == 0 and line.quantity_rejected == 0:
            errors[prefix + "quantity_received"] = ["Enter a quantity to receive or reject."]
        if line.quantity_received:
            incoming[item.id] = incoming.get(item.id, 0) + line.quantity_received
            outstanding = item.quantity_ordered - (item.quantity_received or 0)
            if incoming[item.id] > outstanding:
                errors[prefix + "quantity_received"] = [f"Only {outstanding} units are still outstanding for this item."]
        if line.quantity_rejected and not (line.rejection_reason or "").strip():
            errors[prefix + "rejection_reason"] = ["A reason is required when rejecting units."]
    if errors:
        raise ValidationFailed(errors)
    return matched


def _append(existing, text):
    if not text:
        return existing
    return f"{existing}\n{text}" if existing else text


def receive(db: Session, db_po: PurchaseOrder, request: ReceiveRequest, user_id: str):
    """Book received and rejected units, move stock in and advance the order."""
    if db_po.status not in RECEIVABLE_STATUSES:
        raise InvalidTransition("receive items for", db_po.status)
    matched = _validate_receipt(db_po, request)

    received_at = now()
    for item, line in zip(matched, request.items):
        if line.quantity_received:
            inventory = lock_inventory(db, item.product_id, db_po.warehouse_id, create=True)
            record_movement(
                db,
                inventory,
                line.quantity_received,
                "purchase_receive",
                user_id,
                unit_cost=item.unit_cost,
                reason=f"Received on {db_po.po_number}",
                notes=line.notes,
                related_document_type="purchase_order",
                related_document_id=db_po.id,
            )
            item.quantity_received = (item.quantity_received or 0) + line.quantity_received
            item.last_received_at = received_at
        if line.quantity_rejected:
            item.quantity_rejected = (item.quantity_rejected or 0) + line.quantity_rejected
            item.rejection_reason = _append(item.rejection_reason, line.rejection_reason.strip())
        item.receiving_notes = _append(item.receiving_notes, line.notes)
        item.item_status = derive_progress_status(
            item.quantity_received, item.quantity_ordered, "partially_received", "fully_received", item.item_status
        )
        item.recalculate()

    if all(item.quantity_received >= item.quantity_ordered for item in db_po.items):
        target = "fully_received"
    elif any(item.quantity_received for item in db_po.items):
        target = "partially_received"
    else:
        target = db_po.status
    if target != db_po.status:
        orders.transition(db, db_po, target, user_id, "receive")
    else:
        orders.touch(db_po, user_id)
    logger.info(f"Receipt booked on {db_po.po_number} ({len(request.items)} lines) by user {user_id}, status {db_po.status}")
    return db_po


def overdue_filter():
    return and_(
        PurchaseOrder.expected_delivery_date < now().date(),
        PurchaseOrder.status.notin_(PURCHASE_ORDER_WORKFLOW.inactive),
    )


def statistics(db: Session):
    return orders.statistics(db, PurchaseOrder, overdue_filter())
