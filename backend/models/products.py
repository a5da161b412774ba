from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin

class Product(Base, AuditMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    unit_cost = Column(Numeric(14, 4), default=0, nullable=False) # default purchase cost
    unit_price = Column(Numeric(14, 4), default=0, nullable=False) # default selling price
    reorder_level = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    inventories = relationship("Inventory", back_populates="product")
