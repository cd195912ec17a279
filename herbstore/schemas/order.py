"""
Pydantic schemas for Order operations
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, Union, Any
from datetime import datetime
import json

from herbstore.models.order import ORDER_STATUSES

def _check_status(v):
    if v not in ORDER_STATUSES:
        raise ValueError(f'Status must be one of: {", ".join(ORDER_STATUSES)}')
    return v

def serialize_address(address: Union[str, dict, Any]) -> str:
    """Orders keep the shipping address as a text snapshot"""
    if isinstance(address, str):
        return address
    return json.dumps(address)

class OrderItemCreate(BaseModel):
    """One line of a new order"""
    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price at order time")

class OrderCreate(BaseModel):
    """Schema for placing an order"""
    customer_id: Optional[int] = Field(None, description="Required when an admin places the order")
    total_amount: Optional[float] = Field(None, ge=0, description="Order total")
    shipping_address: Optional[Union[str, dict]] = Field(None, description="Address text or object")
    payment_status: Optional[str] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    transaction_id: Optional[str] = Field(None, max_length=100)
    delivery_option: Optional[str] = Field(None, max_length=50)
    order_notes: Optional[str] = None
    prescription_url: Optional[str] = None
    items: list[OrderItemCreate] = Field(default_factory=list)

class OrderStatusUpdate(BaseModel):
    """Schema for status changes (cancel, replacement requests, fulfilment)"""
    status: str = Field(..., description="New order status")
    replacement_image: Optional[str] = None
    notes: Optional[str] = None

    @validator('status')
    def validate_status(cls, v):
        return _check_status(v)

class OrderUpdate(BaseModel):
    """Schema for admin edits; only fields that are sent are changed"""
    status: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    address: Optional[Union[str, dict]] = Field(None)
    total_amount: Optional[float] = Field(None, ge=0)
    replacement_image: Optional[str] = Field(None)

    @validator('status')
    def validate_status(cls, v):
        if v is None:
            return v
        return _check_status(v)

class OrderItemResponse(BaseModel):
    """Schema for order line responses"""
    id: int
    order_id: str
    product_id: int
    quantity: int
    price: float
    product_name: Optional[str] = None
    product_image: Optional[str] = None

    class Config:
        from_attributes = True

class OrderResponse(BaseModel):
    """Schema for order responses, items included"""
    id: str
    customer_id: int
    total_amount: float
    address: str
    status: str
    notes: Optional[str] = None
    prescription_url: Optional[str] = None
    replacement_image: Optional[str] = None
    delivery_option: Optional[str] = None
    order_date: datetime
    updated_at: Optional[datetime] = None
    customer_name: Optional[str] = None
    customer_mobile: Optional[str] = None
    customer_email: Optional[str] = None
    items: list[OrderItemResponse] = []

    class Config:
        from_attributes = True

class OrderDeleteResponse(BaseModel):
    message: str
    order: OrderResponse
