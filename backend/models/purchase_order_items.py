from sqlalchemy import Column, Integer, Numeric, ForeignKey, String, Text, Date, DateTime
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
from models.order_mixins import LineItemMixin
from utils.order_status import PURCHASE_ORDER_ITEM_STATUSES

class PurchaseOrderItem(Base, TimestampMixin, LineItemMixin):
    __tablename__ = "purchase_order_items"

    unit_cost_field = "unit_cost"
    progress_quantity_field = "quantity_received"
    item_statuses = PURCHASE_ORDER_ITEM_STATUSES

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    product_sku = Column(String(100), nullable=True) # snapshot at order time
    product_name = Column(String(255), nullable=True)
    quantity_ordered = Column(Integer, nullable=False)
    quantity_received = Column(Integer, default=0, nullable=False)
    quantity_rejected = Column(Integer, default=0, nullable=False)
    quantity_pending = Column(Integer, default=0, nullable=False)
    unit_cost = Column(Numeric(14, 4), nullable=False)
    discount_percentage = Column(Numeric(5, 2), default=0, nullable=False) # 0-100
    line_total = Column(Numeric(14, 2), default=0, nullable=False) # quantity_ordered * unit_cost
    discount_amount = Column(Numeric(14, 2), default=0, nullable=False)
    final_line_total = Column(Numeric(14, 2), default=0, nullable=False)
    item_status = Column(String(30), default="pending", nullable=False)
    expected_delivery_date = Column(Date, nullable=True)
    last_received_at = Column(DateTime(timezone=True), nullable=True)
    receiving_notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    purchase_order = relationship("PurchaseOrder", back_populates="items")
    product = relationship("Product")
