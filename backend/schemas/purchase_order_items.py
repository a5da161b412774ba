from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

class PurchaseOrderItemCreateRequest(BaseModel):
    # unit_cost falls back to the product's current cost when omitted
    product_id: int
    quantity_ordered: int = Field(..., gt=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    discount_percentage: Decimal = Field(Decimal(0), ge=0, le=100)
    expected_delivery_date: Optional[date] = None
    notes: Optional[str] = None

class PurchaseOrderItemUpdate(BaseModel):
    quantity_ordered: Optional[int] = Field(None, gt=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    expected_delivery_date: Optional[date] = None
    notes: Optional[str] = None

class PurchaseOrderItem(BaseModel):
    id: int
    purchase_order_id: int
    product_id: int
    product_sku: Optional[str] = None
    product_name: Optional[str] = None
    quantity_ordered: int
    quantity_received: int
    quantity_rejected: int
    quantity_pending: int
    unit_cost: Decimal
    discount_percentage: Decimal
    line_total: Decimal
    discount_amount: Decimal
    final_line_total: Decimal
    item_status: str
    status_label: str
    status_color: str
    progress: float
    expected_delivery_date: Optional[date] = None
    last_received_at: Optional[datetime] = None
    receiving_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True
