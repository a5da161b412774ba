from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Inventory(Base, TimestampMixin):
    """Stock balance of one product in one warehouse."""
    __tablename__ = "inventories"
    __table_args__ = (UniqueConstraint('product_id', 'warehouse_id', name='_inventory_product_warehouse_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False)
    quantity_on_hand = Column(Integer, default=0, nullable=False)
    quantity_reserved = Column(Integer, default=0, nullable=False)

    # Relationships
    product = relationship("Product", back_populates="inventories")
    warehouse = relationship("Warehouse", back_populates="inventories")

    @property
    def quantity_available(self) -> int:
        return max((self.quantity_on_hand or 0) - (self.quantity_reserved or 0), 0)

    @property
    def is_low_stock(self) -> bool:
        reorder_level = self.product.reorder_level if self.product else None
        return reorder_level is not None and (self.quantity_on_hand or 0) <= reorder_level
