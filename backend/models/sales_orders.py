from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin
from models.order_mixins import OrderTotalsMixin
from utils.order_status import SALES_ORDER_WORKFLOW

PAYMENT_STATUSES = {
    "pending": ("Pending", "yellow"),
    "partial": ("Partial", "orange"),
    "paid": ("Paid", "green"),
    "overdue": ("Overdue", "red"),
    "cancelled": ("Cancelled", "gray"),
}

class SalesOrder(Base, AuditMixin, OrderTotalsMixin):
    __tablename__ = "sales_orders"

    workflow = SALES_ORDER_WORKFLOW
    reference_prefix = "SO"
    reference_field = "so_number"
    progress_quantity_field = "quantity_fulfilled"
    delivery_date_fields = ("promised_delivery_date", "requested_delivery_date")

    id = Column(Integer, primary_key=True, index=True)
    so_number = Column(String(50), unique=True, index=True, nullable=False) # SO-YYYYMM-NNN
    customer_reference = Column(String(255), nullable=True)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_address = Column(Text, nullable=True)
    customer_contact_person = Column(String(255), nullable=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)
    status = Column(String(30), default="draft", nullable=False, index=True)
    priority = Column(String(10), default="normal", nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)
    payment_terms = Column(String(255), nullable=True)
    currency = Column(String(3), default="USD", nullable=False)

    # Derived money fields, always recomputed server-side
    subtotal = Column(Numeric(14, 2), default=0, nullable=False)
    tax_rate = Column(Numeric(7, 4), default=0, nullable=False) # fraction, 0.22 == 22%
    tax_amount = Column(Numeric(14, 2), default=0, nullable=False)
    shipping_cost = Column(Numeric(14, 2), default=0, nullable=False)
    discount_amount = Column(Numeric(14, 2), default=0, nullable=False)
    total_amount = Column(Numeric(14, 2), default=0, nullable=False)

    requested_delivery_date = Column(Date, nullable=True)
    promised_delivery_date = Column(Date, nullable=True)
    shipping_address = Column(Text, nullable=True)
    shipping_method = Column(String(100), nullable=True)
    tracking_number = Column(String(100), nullable=True)
    carrier = Column(String(100), nullable=True)

    # Write-once transition stamps
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    submitted_by = Column(String, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String, nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_by = Column(String, nullable=True)
    fulfilled_at = Column(DateTime(timezone=True), nullable=True)
    fulfilled_by = Column(String, nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    shipped_by = Column(String, nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    delivered_by = Column(String, nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    closed_by = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)
    customer_notes = Column(Text, nullable=True)
    terms_and_conditions = Column(Text, nullable=True)

    # Relationships
    warehouse = relationship("Warehouse")
    items = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.id",
    )

    @property
    def payment_status_label(self) -> str:
        return PAYMENT_STATUSES.get(self.payment_status, ("Unknown", "gray"))[0]

    @property
    def payment_status_color(self) -> str:
        return PAYMENT_STATUSES.get(self.payment_status, ("Unknown", "gray"))[1]

    @property
    def fulfillment_progress(self) -> float:
        return self.progress
