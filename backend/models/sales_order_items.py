from sqlalchemy import Column, Integer, Numeric, ForeignKey, String, Text, DateTime
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
from models.order_mixins import LineItemMixin
from utils.order_status import SALES_ORDER_ITEM_STATUSES

class SalesOrderItem(Base, TimestampMixin, LineItemMixin):
    __tablename__ = "sales_order_items"

    unit_cost_field = "unit_price"
    progress_quantity_field = "quantity_fulfilled"
    item_statuses = SALES_ORDER_ITEM_STATUSES

    id = Column(Integer, primary_key=True, index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    product_sku = Column(String(100), nullable=True) # snapshot at order time
    product_name = Column(String(255), nullable=True)
    quantity_ordered = Column(Integer, nullable=False)
    allocated_quantity = Column(Integer, default=0, nullable=False)
    quantity_fulfilled = Column(Integer, default=0, nullable=False)
    quantity_shipped = Column(Integer, default=0, nullable=False)
    quantity_backordered = Column(Integer, default=0, nullable=False)
    quantity_pending = Column(Integer, default=0, nullable=False)
    unit_price = Column(Numeric(14, 4), nullable=False)
    discount_percentage = Column(Numeric(5, 2), default=0, nullable=False) # 0-100
    line_total = Column(Numeric(14, 2), default=0, nullable=False)
    discount_amount = Column(Numeric(14, 2), default=0, nullable=False)
    final_line_total = Column(Numeric(14, 2), default=0, nullable=False)
    item_status = Column(String(30), default="pending", nullable=False)
    fulfilled_at = Column(DateTime(timezone=True), nullable=True)
    fulfillment_notes = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    customer_notes = Column(Text, nullable=True)

    # Relationships
    sales_order = relationship("SalesOrder", back_populates="items")
    product = relationship("Product")
