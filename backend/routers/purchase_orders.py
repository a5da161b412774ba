# backend/routers/purchase_orders.py

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import orders
import crud.purchase_orders as crud_po
from crud.audit_log import get_audit_logs
from crud.filter_tables import PURCHASE_ORDER_FILTERS
from models.purchase_orders import PurchaseOrder as PurchaseOrderModel
from models.purchase_order_items import PurchaseOrderItem as PurchaseOrderItemModel
from schemas.audit_log import AuditLog as AuditLogSchema
from schemas.order_actions import BulkActionResult, BulkCancelRequest, CancelRequest, ReceiveRequest
from schemas.purchase_order_items import PurchaseOrderItemCreateRequest, PurchaseOrderItemUpdate
from schemas.purchase_orders import (
    PurchaseOrder as PurchaseOrderSchema,
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
)
from utils.auth_utils import get_current_user, get_user_identifier, is_admin
from utils.filters import FilterContext
from utils.responses import action_response

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])


def _load_for_change(db: Session, po_id: int, user: dict):
    db_po = crud_po.get_purchase_order(db, po_id)
    orders.assert_can_modify(db_po, get_user_identifier(user), is_admin(user))
    return db_po


def _committed(db: Session, db_po):
    db.commit()
    db.refresh(db_po)
    return PurchaseOrderSchema.model_validate(db_po)


def _action_done(request: Request, db: Session, db_po, message: str):
    data = _committed(db, db_po).model_dump(mode="json")
    return action_response(request, message, data, redirect_to=f"/purchase-orders/{db_po.id}")


@router.get("/", response_model=List[PurchaseOrderSchema])
def read_purchase_orders(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    sort: str = "-created_at",
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """List purchase orders. Every filter key is a query parameter (see /filters/vocabulary)."""
    filters = PURCHASE_ORDER_FILTERS.parse(request.query_params)
    context = FilterContext(user_id=get_user_identifier(user))
    return orders.list_orders(db, PurchaseOrderModel, PURCHASE_ORDER_FILTERS, filters, context, skip, limit, sort)


@router.get("/statistics")
def purchase_order_statistics(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_po.statistics(db)


@router.post("/bulk-cancel", response_model=BulkActionResult)
def bulk_cancel_purchase_orders(
    payload: BulkCancelRequest,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    result = orders.bulk_cancel(
        db, PurchaseOrderModel, payload.ids, payload.reason,
        get_user_identifier(user), is_admin(user), crud_po.RESOURCE,
    )
    db.commit()
    return result


@router.post("/", response_model=PurchaseOrderSchema, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    po: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Create a draft purchase order, optionally with its first items."""
    db_po = crud_po.create_purchase_order(db, po, get_user_identifier(user))
    return _committed(db, db_po)


@router.get("/{po_id}", response_model=PurchaseOrderSchema)
def read_purchase_order(po_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_po.get_purchase_order(db, po_id)


@router.get("/{po_id}/history", response_model=List[AuditLogSchema])
def read_purchase_order_history(po_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_po = crud_po.get_purchase_order(db, po_id)
    return get_audit_logs(db, PurchaseOrderModel.__tablename__, db_po.id)


@router.patch("/{po_id}", response_model=PurchaseOrderSchema)
def update_purchase_order(
    po_id: int,
    po_update: PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Partial update. Which fields may change depends on the order's status."""
    db_po = _load_for_change(db, po_id, user)
    orders.apply_update(db, db_po, po_update.model_dump(exclude_unset=True), get_user_identifier(user))
    return _committed(db, db_po)


@router.delete("/{po_id}")
def delete_purchase_order(
    po_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Soft delete a draft purchase order. Anything further along must be cancelled."""
    db_po = _load_for_change(db, po_id, user)
    po_number = db_po.po_number
    orders.soft_delete(db, db_po, get_user_identifier(user))
    db.commit()
    # the row is now hidden from queries, so nothing is read back after the commit
    return action_response(request, f"Purchase order {po_number} deleted.", redirect_to="/purchase-orders")


# --- Purchase Order Item Endpoints ---

@router.post("/{po_id}/items", response_model=PurchaseOrderSchema, status_code=status.HTTP_201_CREATED)
def add_item_to_purchase_order(
    po_id: int,
    item_request: PurchaseOrderItemCreateRequest,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_po = _load_for_change(db, po_id, user)
    orders.add_item(db, db_po, PurchaseOrderItemModel, item_request.model_dump(), get_user_identifier(user))
    return _committed(db, db_po)


@router.patch("/{po_id}/items/{item_id}", response_model=PurchaseOrderSchema)
def update_item_in_purchase_order(
    po_id: int,
    item_id: int,
    item_update: PurchaseOrderItemUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_po = _load_for_change(db, po_id, user)
    orders.update_item(db, db_po, item_id, item_update.model_dump(exclude_unset=True), get_user_identifier(user))
    return _committed(db, db_po)


@router.delete("/{po_id}/items/{item_id}", response_model=PurchaseOrderSchema)
def remove_item_from_purchase_order(
    po_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_po = _load_for_change(db, po_id, user)
    orders.remove_item(db, db_po, item_id, get_user_identifier(user))
    return _committed(db, db_po)


# --- Lifecycle actions ---

@router.post("/{po_id}/submit")
def submit_purchase_order(po_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_po = _load_for_change(db, po_id, user)
    crud_po.submit(db, db_po, get_user_identifier(user))
    return _action_done(request, db, db_po, f"Purchase order {db_po.po_number} submitted for approval.")


@router.post("/{po_id}/approve")
def approve_purchase_order(po_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_po = crud_po.get_purchase_order(db, po_id)
    crud_po.approve(db, db_po, get_user_identifier(user), is_admin(user))
    return _action_done(request, db, db_po, f"Purchase order {db_po.po_number} approved.")


@router.post("/{po_id}/send")
def send_purchase_order(po_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_po = _load_for_change(db, po_id, user)
    crud_po.send_to_supplier(db, db_po, get_user_identifier(user))
    return _action_done(request, db, db_po, f"Purchase order {db_po.po_number} sent to supplier.")


@router.post("/{po_id}/receive")
def receive_purchase_order(
    po_id: int,
    payload: ReceiveRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_po = _load_for_change(db, po_id, user)
    crud_po.receive(db, db_po, payload, get_user_identifier(user))
    return _action_done(request, db, db_po, f"Items received on purchase order {db_po.po_number}.")


@router.post("/{po_id}/close")
def close_purchase_order(po_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_po = _load_for_change(db, po_id, user)
    crud_po.close(db, db_po, get_user_identifier(user))
    return _action_done(request, db, db_po, f"Purchase order {db_po.po_number} closed.")


@router.post("/{po_id}/cancel")
def cancel_purchase_order(
    po_id: int,
    payload: CancelRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_po = _load_for_change(db, po_id, user)
    orders.cancel(db, db_po, payload.reason, get_user_identifier(user))
    return _action_done(request, db, db_po, f"Purchase order {db_po.po_number} cancelled.")
