# backend/routers/sales_orders.py

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import orders
import crud.sales_orders as crud_so
from crud.audit_log import get_audit_logs
from crud.filter_tables import SALES_ORDER_FILTERS
from models.sales_orders import SalesOrder as SalesOrderModel
from models.sales_order_items import SalesOrderItem as SalesOrderItemModel
from schemas.audit_log import AuditLog as AuditLogSchema
from schemas.order_actions import BulkActionResult, BulkCancelRequest, CancelRequest, FulfillRequest, ShipRequest
from schemas.sales_order_items import SalesOrderItemCreateRequest, SalesOrderItemUpdate
from schemas.sales_orders import (
    SalesOrder as SalesOrderSchema,
    SalesOrderCreate,
    SalesOrderUpdate,
)
from utils.auth_utils import get_current_user, get_user_identifier, is_admin
from utils.filters import FilterContext
from utils.responses import action_response

router = APIRouter(prefix="/sales-orders", tags=["Sales Orders"])


def _load_for_change(db: Session, so_id: int, user: dict):
    db_so = crud_so.get_sales_order(db, so_id)
    orders.assert_can_modify(db_so, get_user_identifier(user), is_admin(user))
    return db_so


def _committed(db: Session, db_so):
    db.commit()
    db.refresh(db_so)
    return SalesOrderSchema.model_validate(db_so)


def _action_done(request: Request, db: Session, db_so, message: str):
    data = _committed(db, db_so).model_dump(mode="json")
    return action_response(request, message, data, redirect_to=f"/sales-orders/{db_so.id}")


@router.get("/", response_model=List[SalesOrderSchema])
def read_sales_orders(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    sort: str = "-created_at",
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """List sales orders. Every filter key is a query parameter (see /filters/vocabulary)."""
    filters = SALES_ORDER_FILTERS.parse(request.query_params)
    context = FilterContext(user_id=get_user_identifier(user))
    return orders.list_orders(db, SalesOrderModel, SALES_ORDER_FILTERS, filters, context, skip, limit, sort)


@router.get("/statistics")
def sales_order_statistics(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_so.statistics(db)


@router.post("/bulk-cancel", response_model=BulkActionResult)
def bulk_cancel_sales_orders(
    payload: BulkCancelRequest,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    result = orders.bulk_cancel(
        db, SalesOrderModel, payload.ids, payload.reason,
        get_user_identifier(user), is_admin(user), crud_so.RESOURCE,
    )
    db.commit()
    return result


@router.post("/", response_model=SalesOrderSchema, status_code=status.HTTP_201_CREATED)
def create_sales_order(
    so: SalesOrderCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Create a draft sales order, optionally with its first items."""
    db_so = crud_so.create_sales_order(db, so, get_user_identifier(user))
    return _committed(db, db_so)


@router.get("/{so_id}", response_model=SalesOrderSchema)
def read_sales_order(so_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_so.get_sales_order(db, so_id)


@router.get("/{so_id}/history", response_model=List[AuditLogSchema])
def read_sales_order_history(so_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_so = crud_so.get_sales_order(db, so_id)
    return get_audit_logs(db, SalesOrderModel.__tablename__, db_so.id)


@router.patch("/{so_id}", response_model=SalesOrderSchema)
def update_sales_order(
    so_id: int,
    so_update: SalesOrderUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Partial update. Which fields may change depends on the order's status."""
    db_so = _load_for_change(db, so_id, user)
    orders.apply_update(db, db_so, so_update.model_dump(exclude_unset=True), get_user_identifier(user))
    return _committed(db, db_so)


@router.delete("/{so_id}")
def delete_sales_order(
    so_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Soft delete a draft sales order. Anything further along must be cancelled."""
    db_so = _load_for_change(db, so_id, user)
    so_number = db_so.so_number
    orders.soft_delete(db, db_so, get_user_identifier(user))
    db.commit()
    # the row is now hidden from queries, so nothing is read back after the commit
    return action_response(request, f"Sales order {so_number} deleted.", redirect_to="/sales-orders")


# --- Sales Order Item Endpoints ---

@router.post("/{so_id}/items", response_model=SalesOrderSchema, status_code=status.HTTP_201_CREATED)
def add_item_to_sales_order(
    so_id: int,
    item_request: SalesOrderItemCreateRequest,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_so = _load_for_change(db, so_id, user)
    orders.add_item(db, db_so, SalesOrderItemModel, item_request.model_dump(), get_user_identifier(user))
    return _committed(db, db_so)


@router.patch("/{so_id}/items/{item_id}", response_model=SalesOrderSchema)
def update_item_in_sales_order(
    so_id: int,
    item_id: int,
    item_update: SalesOrderItemUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_so = _load_for_change(db, so_id, user)
    orders.update_item(db, db_so, item_id, item_update.model_dump(exclude_unset=True), get_user_identifier(user))
    return _committed(db, db_so)


@router.delete("/{so_id}/items/{item_id}", response_model=SalesOrderSchema)
def remove_item_from_sales_order(
    so_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_so = _load_for_change(db, so_id, user)
    orders.remove_item(db, db_so, item_id, get_user_identifier(user))
    return _committed(db, db_so)


# --- Lifecycle actions ---

@router.post("/{so_id}/submit")
def submit_sales_order(so_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_so = _load_for_change(db, so_id, user)
    crud_so.submit(db, db_so, get_user_identifier(user))
    return _action_done(request, db, db_so, f"Sales order {db_so.so_number} submitted for approval.")


@router.post("/{so_id}/approve")
def approve_sales_order(so_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_so = crud_so.get_sales_order(db, so_id)
    crud_so.approve(db, db_so, get_user_identifier(user), is_admin(user))
    return _action_done(request, db, db_so, f"Sales order {db_so.so_number} approved.")


@router.post("/{so_id}/confirm")
def confirm_sales_order(so_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_so = _load_for_change(db, so_id, user)
    crud_so.confirm(db, db_so, get_user_identifier(user))
    return _action_done(request, db, db_so, f"Sales order {db_so.so_number} confirmed.")


@router.post("/{so_id}/fulfill")
def fulfill_sales_order(
    so_id: int,
    payload: FulfillRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_so = _load_for_change(db, so_id, user)
    crud_so.fulfill(db, db_so, payload, get_user_identifier(user))
    return _action_done(request, db, db_so, f"Items fulfilled on sales order {db_so.so_number}.")


@router.post("/{so_id}/ship")
def ship_sales_order(
    so_id: int,
    payload: ShipRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_so = _load_for_change(db, so_id, user)
    crud_so.ship(db, db_so, payload, get_user_identifier(user))
    return _action_done(request, db, db_so, f"Sales order {db_so.so_number} shipped.")


@router.post("/{so_id}/deliver")
def deliver_sales_order(so_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_so = _load_for_change(db, so_id, user)
    crud_so.deliver(db, db_so, get_user_identifier(user))
    return _action_done(request, db, db_so, f"Sales order {db_so.so_number} delivered.")


@router.post("/{so_id}/close")
def close_sales_order(so_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_so = _load_for_change(db, so_id, user)
    crud_so.close(db, db_so, get_user_identifier(user))
    return _action_done(request, db, db_so, f"Sales order {db_so.so_number} closed.")


@router.post("/{so_id}/cancel")
def cancel_sales_order(
    so_id: int,
    payload: CancelRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_so = _load_for_change(db, so_id, user)
    orders.cancel(db, db_so, payload.reason, get_user_identifier(user))
    return _action_done(request, db, db_so, f"Sales order {db_so.so_number} cancelled.")
