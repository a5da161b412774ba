import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from models.warehouses import Warehouse
from schemas.warehouses import WarehouseCreate, WarehouseUpdate
from utils import null_field_errors
from utils.exceptions import NotFound, ValidationFailed

logger = logging.getLogger(__name__)

def get_warehouse(db: Session, warehouse_id: int):
    db_warehouse = db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()
    if db_warehouse is None:
        raise NotFound("Warehouse")
    return db_warehouse

def ensure_active_warehouse(db: Session, warehouse_id: int, field: str = "warehouse_id"):
    db_warehouse = db.query(Warehouse).filter(Warehouse.id == warehouse_id, Warehouse.is_active.is_(True)).first()
    if db_warehouse is None:
        raise ValidationFailed({field: ["The selected warehouse is invalid or inactive."]})
    return db_warehouse

def _assert_unique_code(db: Session, code: str, exclude_id: int = None):
    query = db.query(Warehouse).filter(Warehouse.code == code)
    if exclude_id is not None:
        query = query.filter(Warehouse.id != exclude_id)
    if query.first():
        raise ValidationFailed({"code": ["The code has already been taken."]})

def create_warehouse(db: Session, warehouse: WarehouseCreate, user_id: str):
    _assert_unique_code(db, warehouse.code)
    db_warehouse = Warehouse(**warehouse.model_dump(), created_by=user_id, updated_by=user_id)
    db.add(db_warehouse)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ValidationFailed({"code": ["The code has already been taken."]})
    logger.info(f"Warehouse '{db_warehouse.code}' (ID: {db_warehouse.id}) created by user {user_id}")
    return db_warehouse

def update_warehouse(db: Session, warehouse_id: int, warehouse: WarehouseUpdate, user_id: str):
    db_warehouse = get_warehouse(db, warehouse_id)
    update_data = warehouse.model_dump(exclude_unset=True)
    errors = null_field_errors(Warehouse, update_data)
    if errors:
        raise ValidationFailed(errors)
    if update_data.get("code") and update_data["code"] != db_warehouse.code:
        _assert_unique_code(db, update_data["code"], exclude_id=warehouse_id)
    for key, value in update_data.items():
        setattr(db_warehouse, key, value)
    db_warehouse.updated_by = user_id
    logger.info(f"Warehouse (ID: {warehouse_id}) updated by user {user_id}")
    return db_warehouse

def deactivate_warehouse(db: Session, warehouse_id: int, user_id: str):
    db_warehouse = get_warehouse(db, warehouse_id)
    db_warehouse.is_active = False
    db_warehouse.updated_by = user_id
    logger.info(f"Warehouse (ID: {warehouse_id}) deactivated by user {user_id}")
    return db_warehouse
