"""
Order and order item models
"""

import secrets
import string
import time
from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Text, Float, ForeignKey
from sqlalchemy.orm import relationship

from herbstore.database import Base, utcnow

class OrderStatus(str, Enum):
    ORDERED = "Ordered"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    REPLACEMENT = "Replacement"
    REFUNDED = "Refunded"
    CANCELLED = "Cancelled"

ORDER_STATUSES = [s.value for s in OrderStatus]

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_order_id() -> str:
    """HERB-<base36 epoch millis>-<6 random base36 chars>"""
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"HERB-{timestamp}-{random_part}"


class Order(Base):
    """Customer order; status is one of ORDER_STATUSES"""
    __tablename__ = "order"

    id = Column(String(50), primary_key=True, default=generate_order_id)
    customer_id = Column(Integer, ForeignKey("customer.id"), nullable=False, index=True)
    total_amount = Column(Float, nullable=False)
    address = Column(Text, nullable=False)  # snapshot, plain text or JSON
    status = Column(String(20), default=OrderStatus.ORDERED.value, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    prescription_url = Column(Text, nullable=True)
    replacement_image = Column(Text, nullable=True)
    delivery_option = Column(String(50), nullable=True)
    order_date = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="order", order_by="Payment.id", cascade="all, delete-orphan")

    @property
    def customer_name(self):
        return self.customer.name if self.customer else None

    @property
    def customer_mobile(self):
        return self.customer.mobile if self.customer else None

    @property
    def customer_email(self):
        return self.customer.email if self.customer else None

    def __repr__(self):
        return f"<Order(id='{self.id}', customer_id={self.customer_id}, status='{self.status}')>"


class OrderItem(Base):
    """Line item; price is the snapshot taken when the order was placed"""
    __tablename__ = "order_item"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(50), ForeignKey("order.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("product.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def product_image(self):
        return self.product.primary_image if self.product else None

    def __repr__(self):
        return f"<OrderItem(order_id='{self.order_id}', product_id={self.product_id}, qty={self.quantity})>"
