from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Literal
from datetime import date, datetime
from decimal import Decimal
from schemas.order_fields import TaxRateInput
from schemas.sales_order_items import SalesOrderItem, SalesOrderItemCreateRequest

Priority = Literal["low", "normal", "high", "urgent"]
PaymentStatus = Literal["pending", "partial", "paid", "overdue", "cancelled"]

class SalesOrderBase(BaseModel):
    customer_reference: Optional[str] = None
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_contact_person: Optional[str] = None
    warehouse_id: int
    priority: Priority = "normal"
    payment_status: PaymentStatus = "pending"
    payment_terms: Optional[str] = None
    currency: str = Field("USD", min_length=3, max_length=3)
    shipping_cost: Decimal = Field(Decimal(0), ge=0)
    discount_amount: Decimal = Field(Decimal(0), ge=0)
    requested_delivery_date: Optional[date] = None
    promised_delivery_date: Optional[date] = None
    shipping_address: Optional[str] = None
    shipping_method: Optional[str] = None
    notes: Optional[str] = None
    customer_notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None

class SalesOrderCreate(TaxRateInput, SalesOrderBase):
    items: List[SalesOrderItemCreateRequest] = []

class SalesOrderUpdate(TaxRateInput):
    # Status only changes through the action endpoints
    customer_reference: Optional[str] = None
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_contact_person: Optional[str] = None
    warehouse_id: Optional[int] = None
    priority: Optional[Priority] = None
    payment_status: Optional[PaymentStatus] = None
    payment_terms: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    requested_delivery_date: Optional[date] = None
    promised_delivery_date: Optional[date] = None
    shipping_address: Optional[str] = None
    shipping_method: Optional[str] = None
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    notes: Optional[str] = None
    customer_notes: Optional[str] = None
    terms_and_conditions: Optional[str] = None

class SalesOrder(SalesOrderBase):
    id: int
    so_number: str
    customer_email: Optional[str] = None
    status: str
    status_label: str
    status_color: str
    priority_label: str
    priority_color: str
    payment_status: str
    payment_status_label: str
    payment_status_color: str
    subtotal: Decimal
    tax_rate: Decimal
    tax_rate_percentage: Optional[Decimal] = None
    tax_amount: Decimal
    total_amount: Decimal
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    submitted_at: Optional[datetime] = None
    submitted_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[str] = None
    fulfilled_at: Optional[datetime] = None
    fulfilled_by: Optional[str] = None
    shipped_at: Optional[datetime] = None
    shipped_by: Optional[str] = None
    delivered_at: Optional[datetime] = None
    delivered_by: Optional[str] = None
    closed_at: Optional[datetime] = None
    closed_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    can_be_edited: bool
    can_be_cancelled: bool
    is_overdue: bool
    days_until_delivery: Optional[int] = None
    fulfillment_progress: float
    created_by: Optional[str] = None
    created_at: datetime
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None
    items: List[SalesOrderItem] = []

    class Config:
        from_attributes = True
