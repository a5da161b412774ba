from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class StockTransferCreate(BaseModel):
    from_warehouse_id: int
    to_warehouse_id: int
    product_id: int
    quantity_transferred: int = Field(..., ge=1, le=999999)
    notes: Optional[str] = Field(None, max_length=1000)

class StockTransferUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)

class StockTransfer(BaseModel):
    id: int
    reference_number: str
    from_warehouse_id: int
    to_warehouse_id: int
    product_id: int
    quantity_transferred: int
    status: str
    status_label: str
    status_color: str
    can_be_cancelled: bool
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    dispatched_at: Optional[datetime] = None
    dispatched_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
