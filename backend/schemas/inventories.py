from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class Inventory(BaseModel):
    id: int
    product_id: int
    warehouse_id: int
    quantity_on_hand: int
    quantity_reserved: int
    quantity_available: int
    is_low_stock: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
