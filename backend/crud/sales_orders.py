import logging
from typing import Dict, List, Tuple

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from crud import orders
from crud.inventories import lock_inventory
from crud.stock_movements import record_movement
from crud.warehouses import ensure_active_warehouse
from models.sales_order_items import SalesOrderItem
from models.sales_orders import SalesOrder
from schemas.order_actions import FulfillRequest, ShipRequest
from schemas.sales_orders import SalesOrderCreate
from utils.clock import now
from utils.exceptions import Forbidden, InvalidTransition, ValidationFailed
from utils.order_status import DRAFT, SALES_ORDER_WORKFLOW, derive_progress_status

logger = logging.getLogger(__name__)

RESOURCE = "Sales order"
FULFILLABLE_STATUSES = ("confirmed", "partially_fulfilled")


def get_sales_order(db: Session, so_id: int):
    return orders.get_order(db, SalesOrder, so_id, RESOURCE)


def create_sales_order(db: Session, so: SalesOrderCreate, user_id: str):
    ensure_active_warehouse(db, so.warehouse_id)
    data = so.model_dump(exclude={"items"})
    for key in orders.ZERO_WHEN_NULL:
        if key in data and data[key] is None:
            data[key] = 0
    db_so = SalesOrder(**data, status=DRAFT, created_by=user_id, updated_by=user_id)
    for index, item in enumerate(so.items):
        db_so.items.append(
            orders.build_item(db, SalesOrderItem, item.model_dump(), error_prefix=f"items.{index}.")
        )
    db_so.recalculate_totals()
    orders.create_with_reference(db, db_so)
    orders.audit(db, db_so, "INSERT", user_id)
    logger.info(f"Sales order {db_so.so_number} (ID: {db_so.id}) created with {len(db_so.items)} items by user {user_id}")
    return db_so


def submit(db: Session, db_so: SalesOrder, user_id: str):
    return orders.transition(db, db_so, "pending_approval", user_id, "submit")


def approve(db: Session, db_so: SalesOrder, user_id: str, admin: bool):
    if not admin:
        raise Forbidden()
    SALES_ORDER_WORKFLOW.assert_transition(db_so.status, "approved", "approve")
    orders.require_items(db_so, "approved")
    return orders.transition(db, db_so, "approved", user_id, "approve")


def confirm(db: Session, db_so: SalesOrder, user_id: str):
    SALES_ORDER_WORKFLOW.assert_transition(db_so.status, "confirmed", "confirm")
    orders.require_items(db_so, "confirmed")
    return orders.transition(db, db_so, "confirmed", user_id, "confirm")


def close(db: Session, db_so: SalesOrder, user_id: str):
    return orders.transition(db, db_so, "closed", user_id, "close")


def _validate_fulfilment(db: Session, db_so: SalesOrder, request: FulfillRequest) -> List[Tuple]:
    """Resolve each line to (item, inventory, units to ship, units to backorder, notes)."""
    items_by_id = {item.id: item for item in db_so.items}
    requested: Dict[int, int] = {}
    stock_left: Dict[int, int] = {}
    inventories = {}
    errors: Dict[str, List[str]] = {}
    plan = []
    for index, line in enumerate(request.items):
        prefix = f"items.{index}."
        item = items_by_id.get(line.item_id)
        if item is None:
            errors[prefix + "item_id"] = ["The item does not belong to this sales order."]
            continue
        requested[item.id] = requested.get(item.id, 0) + line.quantity_fulfilled
        outstanding = item.quantity_ordered - (item.quantity_fulfilled or 0)
        if requested[item.id] > outstanding:
            errors[prefix + "quantity_fulfilled"] = [f"Only {outstanding} units are still outstanding for this item."]
            continue

        if item.product_id not in inventories:
            inventory = lock_inventory(db, item.product_id, db_so.warehouse_id)
            inventories[item.product_id] = inventory
            stock_left[item.product_id] = inventory.quantity_available if inventory else 0
        available = stock_left[item.product_id]
        to_ship = min(line.quantity_fulfilled, available)
        backorder = line.quantity_fulfilled - to_ship
        if backorder and not request.allow_backorder:
            errors[prefix + "quantity_fulfilled"] = [f"Only {available} units are in stock at this warehouse."]
            continue
        stock_left[item.product_id] = available - to_ship
        plan.append((item, inventories[item.product_id], to_ship, backorder, line.notes))
    if errors:
        raise ValidationFailed(errors)
    return plan


def fulfill(db: Session, db_so: SalesOrder, request: FulfillRequest, user_id: str):
    """Take stock out for the requested lines, backordering any shortfall."""
    if db_so.status not in FULFILLABLE_STATUSES:
        raise InvalidTransition("fulfill", db_so.status)
    plan = _validate_fulfilment(db, db_so, request)

    fulfilled_at = now()
    for item, inventory, to_ship, backorder, notes in plan:
        if to_ship:
            record_movement(
                db,
                inventory,
                -to_ship,
                "sale_fulfill",
                user_id,
                unit_cost=item.unit_price,
                reason=f"Fulfilled on {db_so.so_number}",
                notes=notes,
                related_document_type="sale_order",
                related_document_id=db_so.id,
            )
            item.quantity_fulfilled = (item.quantity_fulfilled or 0) + to_ship
            item.fulfilled_at = fulfilled_at
        # the shortfall still waiting on stock, never more than is outstanding
        item.quantity_backordered = min(
            max((item.quantity_backordered or 0) - to_ship, 0) + backorder,
            item.quantity_ordered - item.quantity_fulfilled,
        )
        if notes:
            item.fulfillment_notes = f"{item.fulfillment_notes}\n{notes}" if item.fulfillment_notes else notes
        waiting = "backordered" if item.quantity_backordered else "pending"
        item.item_status = derive_progress_status(
            item.quantity_fulfilled, item.quantity_ordered, "partially_fulfilled", "fully_fulfilled", waiting
        )
        item.recalculate()

    if all(item.quantity_fulfilled >= item.quantity_ordered for item in db_so.items):
        target = "fully_fulfilled"
    elif any(item.quantity_fulfilled for item in db_so.items):
        target = "partially_fulfilled"
    else:
        target = db_so.status
    if target != db_so.status:
        orders.transition(db, db_so, target, user_id, "fulfill")
    else:
        orders.touch(db_so, user_id)
    logger.info(f"Fulfilment booked on {db_so.so_number} ({len(plan)} lines) by user {user_id}, status {db_so.status}")
    return db_so


def ship(db: Session, db_so: SalesOrder, request: ShipRequest, user_id: str):
    SALES_ORDER_WORKFLOW.assert_transition(db_so.status, "shipped", "ship")
    for key, value in request.model_dump(exclude_none=True).items():
        setattr(db_so, key, value)
    for item in db_so.items:
        item.quantity_shipped = item.quantity_fulfilled
        item.item_status = "shipped"
    return orders.transition(db, db_so, "shipped", user_id, "ship")


def deliver(db: Session, db_so: SalesOrder, user_id: str):
    SALES_ORDER_WORKFLOW.assert_transition(db_so.status, "delivered", "deliver")
    for item in db_so.items:
        item.item_status = "delivered"
    return orders.transition(db, db_so, "delivered", user_id, "deliver")


def overdue_filter():
    return and_(
        func.coalesce(SalesOrder.promised_delivery_date, SalesOrder.requested_delivery_date) < now().date(),
        SalesOrder.status.notin_(SALES_ORDER_WORKFLOW.inactive),
    )


def statistics(db: Session):
    return orders.statistics(db, SalesOrder, overdue_filter())
