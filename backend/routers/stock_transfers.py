# backend/routers/stock_transfers.py

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import orders
import crud.stock_transfers as crud_transfers
from crud.audit_log import get_audit_logs
from crud.filter_tables import STOCK_TRANSFER_FILTERS
from models.stock_transfers import StockTransfer as StockTransferModel
from schemas.audit_log import AuditLog as AuditLogSchema
from schemas.order_actions import CancelRequest
from schemas.stock_transfers import (
    StockTransfer as StockTransferSchema,
    StockTransferCreate,
    StockTransferUpdate,
)
from utils.auth_utils import get_current_user, get_user_identifier, is_admin
from utils.filters import FilterContext
from utils.responses import action_response

router = APIRouter(prefix="/stock-transfers", tags=["Stock Transfers"])


def _load_for_change(db: Session, transfer_id: int, user: dict):
    db_transfer = crud_transfers.get_stock_transfer(db, transfer_id)
    orders.assert_can_modify(db_transfer, get_user_identifier(user), is_admin(user))
    return db_transfer


def _committed(db: Session, db_transfer):
    db.commit()
    db.refresh(db_transfer)
    return StockTransferSchema.model_validate(db_transfer)


def _action_done(request: Request, db: Session, db_transfer, message: str):
    data = _committed(db, db_transfer).model_dump(mode="json")
    return action_response(request, message, data, redirect_to=f"/stock-transfers/{db_transfer.id}")


@router.get("/", response_model=List[StockTransferSchema])
def read_stock_transfers(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    filters = STOCK_TRANSFER_FILTERS.parse(request.query_params)
    query = STOCK_TRANSFER_FILTERS.apply(
        db.query(StockTransferModel), filters, FilterContext(user_id=get_user_identifier(user))
    )
    return query.order_by(StockTransferModel.created_at.desc(), StockTransferModel.id.desc()).offset(skip).limit(limit).all()


@router.post("/", response_model=StockTransferSchema, status_code=status.HTTP_201_CREATED)
def create_stock_transfer(
    transfer: StockTransferCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Request a transfer. Stock stays put until the transfer is dispatched."""
    db_transfer = crud_transfers.create_stock_transfer(db, transfer, get_user_identifier(user))
    return _committed(db, db_transfer)


@router.get("/{transfer_id}", response_model=StockTransferSchema)
def read_stock_transfer(transfer_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_transfers.get_stock_transfer(db, transfer_id)


@router.get("/{transfer_id}/history", response_model=List[AuditLogSchema])
def read_stock_transfer_history(transfer_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_transfer = crud_transfers.get_stock_transfer(db, transfer_id)
    return get_audit_logs(db, StockTransferModel.__tablename__, db_transfer.id)


@router.patch("/{transfer_id}", response_model=StockTransferSchema)
def update_stock_transfer(
    transfer_id: int,
    transfer_update: StockTransferUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_transfer = _load_for_change(db, transfer_id, user)
    crud_transfers.update_stock_transfer(
        db, db_transfer, transfer_update.model_dump(exclude_unset=True), get_user_identifier(user)
    )
    return _committed(db, db_transfer)


@router.post("/{transfer_id}/approve")
def approve_stock_transfer(transfer_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_transfer = crud_transfers.get_stock_transfer(db, transfer_id)
    crud_transfers.approve(db, db_transfer, get_user_identifier(user), is_admin(user))
    return _action_done(request, db, db_transfer, f"Stock transfer {db_transfer.reference_number} approved.")


@router.post("/{transfer_id}/dispatch")
def dispatch_stock_transfer(transfer_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_transfer = _load_for_change(db, transfer_id, user)
    crud_transfers.dispatch(db, db_transfer, get_user_identifier(user))
    return _action_done(request, db, db_transfer, f"Stock transfer {db_transfer.reference_number} is in transit.")


@router.post("/{transfer_id}/complete")
def complete_stock_transfer(transfer_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_transfer = _load_for_change(db, transfer_id, user)
    crud_transfers.complete(db, db_transfer, get_user_identifier(user))
    return _action_done(request, db, db_transfer, f"Stock transfer {db_transfer.reference_number} completed.")


@router.post("/{transfer_id}/cancel")
def cancel_stock_transfer(
    transfer_id: int,
    payload: CancelRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_transfer = _load_for_change(db, transfer_id, user)
    crud_transfers.cancel(db, db_transfer, payload.reason, get_user_identifier(user))
    return _action_done(request, db, db_transfer, f"Stock transfer {db_transfer.reference_number} cancelled.")
