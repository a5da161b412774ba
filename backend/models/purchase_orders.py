from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin
from models.order_mixins import OrderTotalsMixin
from utils.order_status import PURCHASE_ORDER_WORKFLOW

class PurchaseOrder(Base, AuditMixin, OrderTotalsMixin):
    __tablename__ = "purchase_orders"

    workflow = PURCHASE_ORDER_WORKFLOW
    reference_prefix = "PO"
    reference_field = "po_number"
    progress_quantity_field = "quantity_received"
    delivery_date_fields = ("expected_delivery_date",)

    id = Column(Integer, primary_key=True, index=True)
    po_number = Column(String(50), unique=True, index=True, nullable=False) # PO-YYYYMM-NNN
    supplier_reference = Column(String(255), nullable=True)
    supplier_name = Column(String(255), nullable=False)
    supplier_email = Column(String(255), nullable=True)
    supplier_phone = Column(String(50), nullable=True)
    supplier_address = Column(Text, nullable=True)
    supplier_contact_person = Column(String(255), nullable=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)
    status = Column(String(30), default="draft", nullable=False, index=True)
    priority = Column(String(10), default="normal", nullable=False)
    currency = Column(String(3), default="USD", nullable=False)

    # Derived money fields, always recomputed server-side
    subtotal = Column(Numeric(14, 2), default=0, nullable=False)
    tax_rate = Column(Numeric(7, 4), default=0, nullable=False) # fraction, 0.22 == 22%
    tax_amount = Column(Numeric(14, 2), default=0, nullable=False)
    shipping_cost = Column(Numeric(14, 2), default=0, nullable=False)
    discount_amount = Column(Numeric(14, 2), default=0, nullable=False)
    total_amount = Column(Numeric(14, 2), default=0, nullable=False)

    expected_delivery_date = Column(Date, nullable=True)

    # Write-once transition stamps
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    submitted_by = Column(String, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    sent_by = Column(String, nullable=True)
    received_at = Column(DateTime(timezone=True), nullable=True)
    received_by = Column(String, nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    closed_by = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)
    terms_and_conditions = Column(Text, nullable=True)

    # Relationships
    warehouse = relationship("Warehouse")
    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )

    @property
    def receiving_progress(self) -> float:
        return self.progress
