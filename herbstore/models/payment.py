"""
Payment records attached to orders
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship

from herbstore.database import Base, utcnow

class Payment(Base):
    """Payment captured for an order (written only when a transaction id exists)"""
    __tablename__ = "payment"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(50), ForeignKey("order.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    method = Column(String(50), nullable=False, default="test_payment")
    transaction_id = Column(String(100), nullable=True, index=True)
    status = Column(String(30), nullable=False, default="completed")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    order = relationship("Order", back_populates="payments")

    def __repr__(self):
        return f"<Payment(id={self.id}, order_id='{self.order_id}', amount={self.amount})>"
