"""
Operations shared by purchase and sales orders.

Nothing here commits: every function stages its changes on the request's
session and the router commits once at the end, so a raised error leaves the
order exactly as it was.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from crud.audit_log import create_audit_log
from crud.products import ensure_orderable_product
from crud.warehouses import ensure_active_warehouse
from schemas.audit_log import AuditLogCreate
from utils import changed_values, null_field_errors, sqlalchemy_to_dict
from utils.clock import now
from utils.exceptions import Forbidden, InvalidTransition, NotFound, OrderError, ReferenceConflict, ValidationFailed
from utils.filters import FilterContext, FilterTranslator
from utils.numbering import next_reference
from utils.order_status import CANCELLED, DRAFT

logger = logging.getLogger(__name__)

REFERENCE_RETRY_ATTEMPTS = 3

# Nullable inputs that are stored as zero
ZERO_WHEN_NULL = ("tax_rate", "shipping_cost", "discount_amount", "discount_percentage")

SORTABLE_FIELDS = ("id", "created_at", "updated_at", "total_amount", "status", "priority")


def get_order(db: Session, model, order_id: int, resource: str):
    db_order = (
        db.query(model)
        .options(selectinload(model.items))
        .filter(model.id == order_id)
        .first()
    )
    if db_order is None:
        raise NotFound(resource)
    return db_order


def list_orders(
    db: Session,
    model,
    translator: FilterTranslator,
    filters: Dict[str, Any],
    context: FilterContext,
    skip: int = 0,
    limit: int = 100,
    sort: str = "-created_at",
):
    query = translator.apply(db.query(model), filters, context)
    field = sort.lstrip("-")
    column = getattr(model, field if field in SORTABLE_FIELDS else "created_at")
    ordering = column.desc() if sort.startswith("-") else column.asc()
    return (
        query.options(selectinload(model.items))
        .order_by(ordering, model.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def assert_can_modify(order, user_id: str, admin: bool):
    """Admins may act on any order; everyone else only on orders they created."""
    if admin or order.created_by == user_id:
        return
    logger.warning(f"User {user_id} denied access to {order.__tablename__} {order.id}")
    raise Forbidden()


def audit(db: Session, order, action: str, user_id: str, old_values: Optional[dict] = None):
    new_values = sqlalchemy_to_dict(order)
    if old_values is not None:
        old_values, new_values = changed_values(old_values, new_values)
    create_audit_log(db, AuditLogCreate(
        table_name=order.__tablename__,
        record_id=order.id,
        changed_by=user_id,
        action=action,
        old_values=old_values,
        new_values=new_values,
    ))


def touch(order, user_id: str):
    order.updated_by = user_id
    order.updated_at = now()


def _reference_taken(db: Session, column, reference: str) -> bool:
    return (
        db.query(column).filter(column == reference).execution_options(include_deleted=True).first()
        is not None
    )


def create_with_reference(db: Session, order, moment=None):
    """Insert ``order`` under the next free reference number.

    The reference column is unique; losing a race to another request surfaces
    as an IntegrityError on flush, after which the number is recomputed. Any
    other integrity error is raised as is.
    """
    column = getattr(type(order), order.reference_field)
    for attempt in range(1, REFERENCE_RETRY_ATTEMPTS + 1):
        reference = next_reference(db, column, order.reference_prefix, moment)
        setattr(order, order.reference_field, reference)
        db.add(order)
        try:
            db.flush()
            return order
        except IntegrityError:
            db.rollback()
            if not _reference_taken(db, column, reference):
                raise
            logger.warning(f"Reference {reference} already taken (attempt {attempt}/{REFERENCE_RETRY_ATTEMPTS})")
    raise ReferenceConflict()


def build_item(db: Session, item_model, data: Dict[str, Any], error_prefix: str = ""):
    """New line item with the product snapshot and derived money fields set."""
    product = ensure_orderable_product(db, data["product_id"], field=f"{error_prefix}product_id")
    data = dict(data)
    price_field = item_model.unit_cost_field
    if data.get(price_field) is None:
        data[price_field] = getattr(product, price_field)
    for key in ZERO_WHEN_NULL:
        if key in data and data[key] is None:
            data[key] = Decimal(0)
    db_item = item_model(**data, product_sku=product.sku, product_name=product.name, item_status="pending")
    # Counters default at insert time; the calculator needs them now
    setattr(db_item, item_model.progress_quantity_field, 0)
    db_item.recalculate()
    return db_item


def apply_update(db: Session, order, data: Dict[str, Any], user_id: str):
    order.workflow.assert_editable(order.status, data.keys())
    errors = null_field_errors(type(order), data, allowed=ZERO_WHEN_NULL)
    if errors:
        raise ValidationFailed(errors)
    if "warehouse_id" in data:
        ensure_active_warehouse(db, data["warehouse_id"])
    old_values = sqlalchemy_to_dict(order)
    for key, value in data.items():
        if value is None and key in ZERO_WHEN_NULL:
            value = Decimal(0)
        setattr(order, key, value)
    order.recalculate_totals()
    touch(order, user_id)
    audit(db, order, "UPDATE", user_id, old_values)
    logger.info(f"{order.reference} updated ({', '.join(sorted(data))}) by user {user_id}")
    return order


def _find_item(order, item_id: int):
    item = next((item for item in order.items if item.id == item_id), None)
    if item is None:
        raise NotFound("Order item")
    return item


def add_item(db: Session, order, item_model, data: Dict[str, Any], user_id: str):
    order.workflow.assert_items_editable(order.status)
    db_item = build_item(db, item_model, data)
    order.items.append(db_item)
    order.recalculate_totals()
    touch(order, user_id)
    db.flush()
    audit(db, order, "ADD_ITEM", user_id)
    logger.info(f"Item {db_item.product_sku} x{db_item.quantity_ordered} added to {order.reference} by user {user_id}")
    return db_item


def update_item(db: Session, order, item_id: int, data: Dict[str, Any], user_id: str):
    order.workflow.assert_items_editable(order.status)
    db_item = _find_item(order, item_id)
    quantity = data.get("quantity_ordered")
    if quantity is not None and quantity < db_item.progressed_quantity:
        raise ValidationFailed({"quantity_ordered": [
            f"Quantity ordered cannot be less than the {db_item.progressed_quantity} units already processed."
        ]})
    price_field = db_item.unit_cost_field
    for key, value in data.items():
        if value is None:
            if key in ("quantity_ordered", price_field):
                continue
            if key in ZERO_WHEN_NULL:
                value = Decimal(0)
        setattr(db_item, key, value)
    db_item.recalculate()
    order.recalculate_totals()
    touch(order, user_id)
    audit(db, order, "UPDATE_ITEM", user_id)
    logger.info(f"Item {item_id} on {order.reference} updated by user {user_id}")
    return db_item


def remove_item(db: Session, order, item_id: int, user_id: str):
    order.workflow.assert_items_editable(order.status)
    db_item = _find_item(order, item_id)
    if db_item.progressed_quantity > 0:
        raise ValidationFailed({"items": ["Items that have already been processed cannot be removed."]})
    order.items.remove(db_item)
    order.recalculate_totals()
    touch(order, user_id)
    audit(db, order, "REMOVE_ITEM", user_id)
    logger.info(f"Item {item_id} removed from {order.reference} by user {user_id}")


def require_items(order, action: str):
    if not order.items:
        raise ValidationFailed({"items": [f"An order needs at least one item before it can be {action}."]})


def transition(db: Session, order, target: str, user_id: str, action: str):
    previous = order.status
    old_values = sqlalchemy_to_dict(order)
    try:
        order.transition_to(target, user_id, action)
    except InvalidTransition:
        logger.warning(f"Rejected {action} of {order.reference} in status '{previous}' by user {user_id}")
        raise
    touch(order, user_id)
    audit(db, order, action.upper().replace(" ", "_"), user_id, old_values)
    logger.info(f"{order.reference} moved {previous} -> {target} by user {user_id}")
    return order


def cancel(db: Session, order, reason: str, user_id: str):
    if not reason or not reason.strip():
        raise ValidationFailed({"reason": ["A cancellation reason is required."]})
    transition(db, order, CANCELLED, user_id, "cancel")
    order.cancellation_reason = reason.strip()
    for item in order.items:
        if item.progressed_quantity < (item.quantity_ordered or 0):
            item.item_status = "cancelled"
    return order


def bulk_cancel(db: Session, model, ids: Iterable[int], reason: str, user_id: str, admin: bool, resource: str):
    """Cancel each order independently and report what happened to each."""
    processed, errors = 0, []
    for order_id in dict.fromkeys(ids):
        try:
            db_order = get_order(db, model, order_id, resource)
            assert_can_modify(db_order, user_id, admin)
            cancel(db, db_order, reason, user_id)
        except OrderError as exc:
            errors.append({"id": order_id, "message": exc.message})
            continue
        processed += 1
    logger.info(f"Bulk cancel of {model.__tablename__}: {processed} processed, {len(errors)} failed, by user {user_id}")
    return {"processed": processed, "failed": len(errors), "errors": errors}


def soft_delete(db: Session, order, user_id: str):
    if order.status != DRAFT:
        raise InvalidTransition("delete", order.status)
    old_values = sqlalchemy_to_dict(order)
    order.soft_delete(user_id)
    audit(db, order, "DELETE", user_id, old_values)
    logger.info(f"{order.reference} soft deleted by user {user_id}")


def statistics(db: Session, model, overdue_filter, moment=None):
    moment = moment or now()
    # aggregates filter deleted rows explicitly
    live = model.deleted_at.is_(None)
    by_status = dict(db.query(model.status, func.count(model.id)).filter(live).group_by(model.status).all())
    month_start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    total_value = (
        db.query(func.coalesce(func.sum(model.total_amount), 0))
        .filter(live, model.status != CANCELLED)
        .scalar()
    )
    return {
        "total": sum(by_status.values()),
        "by_status": {status: by_status.get(status, 0) for status in model.workflow.statuses},
        "pending_approval": by_status.get("pending_approval", 0),
        "overdue": db.query(func.count(model.id)).filter(live, overdue_filter).scalar(),
        "this_month": db.query(func.count(model.id)).filter(live, model.created_at >= month_start).scalar(),
        "total_value": Decimal(str(total_value)).quantize(Decimal("0.01")),
    }
