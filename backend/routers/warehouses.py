from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import warehouses as crud_warehouses
from crud.filter_tables import WAREHOUSE_FILTERS
from models.warehouses import Warehouse as WarehouseModel
from schemas.warehouses import Warehouse, WarehouseCreate, WarehouseUpdate
from utils.auth_utils import get_current_user, get_user_identifier
from utils.filters import FilterContext
from utils.responses import action_response

router = APIRouter(prefix="/warehouses", tags=["Warehouses"])

@router.get("/", response_model=List[Warehouse])
def read_warehouses(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    filters = WAREHOUSE_FILTERS.parse(request.query_params)
    query = WAREHOUSE_FILTERS.apply(db.query(WarehouseModel), filters, FilterContext(user_id=get_user_identifier(user)))
    return query.order_by(WarehouseModel.name.asc()).offset(skip).limit(limit).all()

@router.post("/", response_model=Warehouse, status_code=status.HTTP_201_CREATED)
def create_warehouse(warehouse: WarehouseCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_warehouse = crud_warehouses.create_warehouse(db, warehouse, get_user_identifier(user))
    db.commit()
    db.refresh(db_warehouse)
    return db_warehouse

@router.get("/{warehouse_id}", response_model=Warehouse)
def read_warehouse(warehouse_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_warehouses.get_warehouse(db, warehouse_id)

@router.patch("/{warehouse_id}", response_model=Warehouse)
def update_warehouse(
    warehouse_id: int,
    warehouse: WarehouseUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_warehouse = crud_warehouses.update_warehouse(db, warehouse_id, warehouse, get_user_identifier(user))
    db.commit()
    db.refresh(db_warehouse)
    return db_warehouse

@router.delete("/{warehouse_id}")
def deactivate_warehouse(warehouse_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    """Warehouses are never removed; they stop accepting new orders and stock."""
    db_warehouse = crud_warehouses.deactivate_warehouse(db, warehouse_id, get_user_identifier(user))
    db.commit()
    db.refresh(db_warehouse)
    return action_response(
        request,
        f"Warehouse {db_warehouse.code} deactivated.",
        Warehouse.model_validate(db_warehouse).model_dump(mode="json"),
        redirect_to="/warehouses",
    )
