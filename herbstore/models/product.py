"""
Catalog product model
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Float, Boolean, JSON

from herbstore.database import Base, utcnow

class Product(Base):
    """Catalog entry referenced by order items"""
    __tablename__ = "product"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    brand = Column(String(100), nullable=True, index=True)
    category = Column(String(100), nullable=True, index=True)
    actual_price = Column(Float, nullable=False)
    selling_price = Column(Float, nullable=False)
    stock_quantity = Column(Integer, default=0, nullable=False)
    description = Column(Text, nullable=True)
    images = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def primary_image(self):
        return self.images[0] if self.images else None

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}')>"
