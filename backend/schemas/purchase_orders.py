from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Literal
from datetime import date, datetime
from decimal import Decimal
from schemas.order_fields import TaxRateInput
from schemas.purchase_order_items import PurchaseOrderItem, PurchaseOrderItemCreateRequest

Priority = Literal["low", "normal", "high", "urgent"]

class PurchaseOrderBase(BaseModel):
    supplier_reference: Optional[str] = None
    supplier_name: str = Field(..., min_length=1, max_length=255)
    supplier_email: Optional[EmailStr] = None
    supplier_phone: Optional[str] = None
    supplier_address: Optional[str] = None
    supplier_contact_person: Optional[str] = None
    warehouse_id: int
    priority: Priority = "normal"
    currency: str = Field("USD", min_length=3, max_length=3)
    shipping_cost: Decimal = Field(Decimal(0), ge=0)
    discount_amount: Decimal = Field(Decimal(0), ge=0)
    expected_delivery_date: Optional[date] = None
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None

class PurchaseOrderCreate(TaxRateInput, PurchaseOrderBase):
    items: List[PurchaseOrderItemCreateRequest] = []

class PurchaseOrderUpdate(TaxRateInput):
    # Status only changes through the action endpoints
    supplier_reference: Optional[str] = None
    supplier_name: Optional[str] = Field(None, min_length=1, max_length=255)
    supplier_email: Optional[EmailStr] = None
    supplier_phone: Optional[str] = None
    supplier_address: Optional[str] = None
    supplier_contact_person: Optional[str] = None
    warehouse_id: Optional[int] = None
    priority: Optional[Priority] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    expected_delivery_date: Optional[date] = None
    notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None

class PurchaseOrder(PurchaseOrderBase):
    id: int
    po_number: str
    supplier_email: Optional[str] = None
    status: str
    status_label: str
    status_color: str
    priority_label: str
    priority_color: str
    subtotal: Decimal
    tax_rate: Decimal
    tax_rate_percentage: Optional[Decimal] = None
    tax_amount: Decimal
    total_amount: Decimal
    submitted_at: Optional[datetime] = None
    submitted_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    sent_at: Optional[datetime] = None
    sent_by: Optional[str] = None
    received_at: Optional[datetime] = None
    received_by: Optional[str] = None
    closed_at: Optional[datetime] = None
    closed_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    can_be_edited: bool
    can_be_cancelled: bool
    is_overdue: bool
    days_until_delivery: Optional[int] = None
    receiving_progress: float
    created_by: Optional[str] = None
    created_at: datetime
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None
    items: List[PurchaseOrderItem] = []

    class Config:
        from_attributes = True
