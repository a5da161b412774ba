from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

class SalesOrderItemCreateRequest(BaseModel):
    # unit_price falls back to the product's list price when omitted
    product_id: int
    quantity_ordered: int = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    discount_percentage: Decimal = Field(Decimal(0), ge=0, le=100)
    notes: Optional[str] = None
    customer_notes: Optional[str] = None

class SalesOrderItemUpdate(BaseModel):
    quantity_ordered: Optional[int] = Field(None, gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    notes: Optional[str] = None
    customer_notes: Optional[str] = None

class SalesOrderItem(BaseModel):
    id: int
    sales_order_id: int
    product_id: int
    product_sku: Optional[str] = None
    product_name: Optional[str] = None
    quantity_ordered: int
    allocated_quantity: int
    quantity_fulfilled: int
    quantity_shipped: int
    quantity_backordered: int
    quantity_pending: int
    unit_price: Decimal
    discount_percentage: Decimal
    line_total: Decimal
    discount_amount: Decimal
    final_line_total: Decimal
    item_status: str
    status_label: str
    status_color: str
    progress: float
    fulfilled_at: Optional[datetime] = None
    fulfillment_notes: Optional[str] = None
    notes: Optional[str] = None
    customer_notes: Optional[str] = None

    class Config:
        from_attributes = True
