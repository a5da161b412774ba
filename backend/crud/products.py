import logging
from sqlalchemy.orm import Session
from models.products import Product
from schemas.products import ProductCreate, ProductUpdate
from utils import null_field_errors
from utils.exceptions import NotFound, ValidationFailed

logger = logging.getLogger(__name__)

def get_product(db: Session, product_id: int):
    db_product = db.query(Product).filter(Product.id == product_id).first()
    if db_product is None:
        raise NotFound("Product")
    return db_product

def ensure_orderable_product(db: Session, product_id: int, field: str = "product_id"):
    db_product = db.query(Product).filter(Product.id == product_id, Product.is_active.is_(True)).first()
    if db_product is None:
        raise ValidationFailed({field: ["The selected product is invalid or inactive."]})
    return db_product

def _assert_unique_sku(db: Session, sku: str, exclude_id: int = None):
    # Deleted products keep their SKU reserved
    query = db.query(Product).filter(Product.sku == sku).execution_options(include_deleted=True)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ValidationFailed({"sku": ["The sku has already been taken."]})

def create_product(db: Session, product: ProductCreate, user_id: str):
    _assert_unique_sku(db, product.sku)
    db_product = Product(**product.model_dump(), created_by=user_id, updated_by=user_id)
    db.add(db_product)
    db.flush()
    logger.info(f"Product '{db_product.sku}' (ID: {db_product.id}) created by user {user_id}")
    return db_product

def update_product(db: Session, product_id: int, product: ProductUpdate, user_id: str):
    db_product = get_product(db, product_id)
    update_data = product.model_dump(exclude_unset=True)
    errors = null_field_errors(Product, update_data)
    if errors:
        raise ValidationFailed(errors)
    if update_data.get("sku") and update_data["sku"] != db_product.sku:
        _assert_unique_sku(db, update_data["sku"], exclude_id=product_id)
    for key, value in update_data.items():
        setattr(db_product, key, value)
    db_product.updated_by = user_id
    logger.info(f"Product (ID: {product_id}) updated by user {user_id}")
    return db_product

def delete_product(db: Session, product_id: int, user_id: str):
    db_product = get_product(db, product_id)
    db_product.soft_delete(user_id)
    db_product.is_active = False
    logger.info(f"Product (ID: {product_id}) soft deleted by user {user_id}")
    return db_product
