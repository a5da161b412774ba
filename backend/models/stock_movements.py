from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
from models.order_mixins import WorkflowMixin
from utils.order_status import STOCK_MOVEMENT_WORKFLOW

MOVEMENT_TYPES = {
    "adjustment_increase": "Adjustment (Increase)",
    "adjustment_decrease": "Adjustment (Decrease)",
    "transfer_in": "Transfer In",
    "transfer_out": "Transfer Out",
    "purchase_receive": "Purchase Receipt",
    "sale_fulfill": "Sale Fulfilment",
    "return_customer": "Customer Return",
    "return_supplier": "Supplier Return",
    "damage_write_off": "Damage Write-off",
    "expiry_write_off": "Expiry Write-off",
}


class StockMovement(Base, TimestampMixin, WorkflowMixin):
    """One signed change to an inventory balance, with before/after snapshot.

    A pending movement has not touched stock yet; its before/after columns are
    the projection at request time and are rewritten when it is approved.
    """
    __tablename__ = "stock_movements"

    workflow = STOCK_MOVEMENT_WORKFLOW
    reference_prefix = "SM"
    reference_field = "reference_number"

    id = Column(Integer, primary_key=True, index=True)
    reference_number = Column(String(50), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)
    user_id = Column(String, index=True, nullable=True) # acting user identifier
    movement_type = Column(String(30), nullable=False)
    status = Column(String(20), default="applied", nullable=False)
    quantity_moved = Column(Integer, nullable=False) # negative for stock leaving
    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(14, 4), nullable=True)
    total_value = Column(Numeric(14, 2), nullable=True)
    reason = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    related_document_type = Column(String(30), nullable=True)
    related_document_id = Column(Integer, nullable=True)
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(String, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    # Relationships
    product = relationship("Product")
    warehouse = relationship("Warehouse")

    @property
    def movement_type_label(self) -> str:
        return MOVEMENT_TYPES.get(self.movement_type, "Unknown")

    @property
    def direction(self) -> str:
        return "increase" if (self.quantity_moved or 0) > 0 else "decrease"

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"
