from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import products as crud_products
from crud.filter_tables import PRODUCT_FILTERS
from models.products import Product as ProductModel
from schemas.products import Product, ProductCreate, ProductUpdate
from utils.auth_utils import get_current_user, get_user_identifier
from utils.filters import FilterContext
from utils.responses import action_response

router = APIRouter(prefix="/products", tags=["Products"])

@router.get("/", response_model=List[Product])
def read_products(
    request: Request,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    filters = PRODUCT_FILTERS.parse(request.query_params)
    query = PRODUCT_FILTERS.apply(db.query(ProductModel), filters, FilterContext(user_id=get_user_identifier(user)))
    return query.order_by(ProductModel.name.asc()).offset(skip).limit(limit).all()

@router.post("/", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(product: ProductCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_product = crud_products.create_product(db, product, get_user_identifier(user))
    db.commit()
    db.refresh(db_product)
    return db_product

@router.get("/{product_id}", response_model=Product)
def read_product(product_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_products.get_product(db, product_id)

@router.patch("/{product_id}", response_model=Product)
def update_product(
    product_id: int,
    product: ProductUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    db_product = crud_products.update_product(db, product_id, product, get_user_identifier(user))
    db.commit()
    db.refresh(db_product)
    return db_product

@router.delete("/{product_id}")
def delete_product(product_id: int, request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    """Soft delete; existing order lines keep their product snapshot."""
    db_product = crud_products.delete_product(db, product_id, get_user_identifier(user))
    sku = db_product.sku
    db.commit()
    return action_response(request, f"Product {sku} deleted.", redirect_to="/products")
