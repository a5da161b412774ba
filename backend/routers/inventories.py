from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session, selectinload
from typing import List

from database import get_db
from crud import inventories as crud_inventories
from crud.filter_tables import INVENTORY_FILTERS
from models.inventories import Inventory as InventoryModel
from schemas.inventories import Inventory
from utils.auth_utils import get_current_user, get_user_identifier
from utils.filters import FilterContext

router = APIRouter(prefix="/inventories", tags=["Inventories"])

@router.get("/", response_model=List[Inventory])
def read_inventories(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Stock balances; changes go through stock movements and order actions."""
    filters = INVENTORY_FILTERS.parse(request.query_params)
    query = INVENTORY_FILTERS.apply(db.query(InventoryModel), filters, FilterContext(user_id=get_user_identifier(user)))
    return (
        query.options(selectinload(InventoryModel.product))
        .order_by(InventoryModel.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )

@router.get("/{inventory_id}", response_model=Inventory)
def read_inventory(inventory_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_inventories.get_inventory(db, inventory_id)
