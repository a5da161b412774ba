from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import stock_movements as crud_movements
from crud.filter_tables import STOCK_MOVEMENT_FILTERS
from models.stock_movements import StockMovement as StockMovementModel
from schemas.stock_movements import StockAdjustmentCreate, StockMovement, StockMovementRejection
from utils.auth_utils import get_current_user, get_user_identifier, is_admin
from utils.filters import FilterContext
from utils.responses import action_response

router = APIRouter(prefix="/stock-movements", tags=["Stock Movements"])

@router.get("/", response_model=List[StockMovement])
def read_stock_movements(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    filters = STOCK_MOVEMENT_FILTERS.parse(request.query_params)
    query = STOCK_MOVEMENT_FILTERS.apply(
        db.query(StockMovementModel), filters, FilterContext(user_id=get_user_identifier(user))
    )
    return query.order_by(StockMovementModel.created_at.desc(), StockMovementModel.id.desc()).offset(skip).limit(limit).all()

@router.post("/", response_model=StockMovement, status_code=status.HTTP_201_CREATED)
def create_stock_adjustment(
    adjustment: StockAdjustmentCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Manual adjustment or write-off. Stock can never go below zero.

    With ``requires_approval`` the movement is stored as pending and an admin
    applies it later through the approve action.
    """
    db_movement = crud_movements.create_adjustment(db, adjustment, get_user_identifier(user))
    db.commit()
    db.refresh(db_movement)
    return db_movement

@router.get("/{movement_id}", response_model=StockMovement)
def read_stock_movement(movement_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_movements.get_stock_movement(db, movement_id)

def _reviewed(request: Request, db: Session, db_movement, message: str):
    db.commit()
    db.refresh(db_movement)
    data = StockMovement.model_validate(db_movement).model_dump(mode="json")
    return action_response(request, message, data, redirect_to=f"/stock-movements/{db_movement.id}")

@router.post("/{movement_id}/approve")
def approve_stock_movement(movement_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_movement = crud_movements.get_stock_movement(db, movement_id)
    crud_movements.approve_movement(db, db_movement, get_user_identifier(user), is_admin(user))
    return _reviewed(request, db, db_movement, f"Stock movement {db_movement.reference_number} approved.")

@router.post("/{movement_id}/reject")
def reject_stock_movement(
    movement_id: int,
    payload: StockMovementRejection,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_movement = crud_movements.get_stock_movement(db, movement_id)
    crud_movements.reject_movement(db, db_movement, payload.reason, get_user_identifier(user), is_admin(user))
    return _reviewed(request, db, db_movement, f"Stock movement {db_movement.reference_number} rejected.")
