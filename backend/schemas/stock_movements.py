from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal

# Manual movements only; receipts and fulfilments are written by the order actions
AdjustmentType = Literal[
    "adjustment_increase",
    "adjustment_decrease",
    "damage_write_off",
    "expiry_write_off",
    "return_customer",
    "return_supplier",
]

class StockAdjustmentCreate(BaseModel):
    product_id: int
    warehouse_id: int
    movement_type: AdjustmentType
    quantity: int = Field(..., gt=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    reason: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = None
    # Hold the adjustment for an admin instead of moving stock now
    requires_approval: bool = False

class StockMovementRejection(BaseModel):
    reason: str = Field(..., max_length=500)

    @field_validator("reason")
    @classmethod
    def reason_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("A rejection reason is required.")
        return value

class StockMovement(BaseModel):
    id: int
    reference_number: str
    product_id: int
    warehouse_id: int
    user_id: Optional[str] = None
    movement_type: str
    movement_type_label: str
    direction: str
    status: str
    status_label: str
    status_color: str
    quantity_moved: int
    quantity_before: int
    quantity_after: int
    unit_cost: Optional[Decimal] = None
    total_value: Optional[Decimal] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    related_document_type: Optional[str] = None
    related_document_id: Optional[int] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
