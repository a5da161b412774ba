from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional

class CancelRequest(BaseModel):
    reason: str = Field(..., max_length=500)

    @field_validator("reason")
    @classmethod
    def reason_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("A cancellation reason is required.")
        return value

class BulkCancelRequest(CancelRequest):
    ids: List[int] = Field(..., min_length=1)

class ReceiveItem(BaseModel):
    item_id: int
    quantity_received: int = Field(0, ge=0)
    quantity_rejected: int = Field(0, ge=0)
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None

class ReceiveRequest(BaseModel):
    items: List[ReceiveItem] = Field(..., min_length=1)

class FulfillItem(BaseModel):
    item_id: int
    quantity_fulfilled: int = Field(..., gt=0)
    notes: Optional[str] = None

class FulfillRequest(BaseModel):
    items: List[FulfillItem] = Field(..., min_length=1)
    # Ship what is in stock and backorder the rest instead of rejecting
    allow_backorder: bool = False

class ShipRequest(BaseModel):
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    shipping_method: Optional[str] = None

class BulkActionError(BaseModel):
    id: int
    message: str

class BulkActionResult(BaseModel):
    processed: int
    failed: int
    errors: List[BulkActionError] = []

class ActionResponse(BaseModel):
    success: bool = True
    message: str
    data: Optional[Any] = None
