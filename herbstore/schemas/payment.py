"""
Pydantic schemas for payments
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class PaymentResponse(BaseModel):
    """Schema for payment responses"""
    id: int
    order_id: str
    amount: float
    method: str
    transaction_id: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True

class PaymentGatewayConfig(BaseModel):
    merchant_id: str
    base_url: str
