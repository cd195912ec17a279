"""
Pydantic schemas for catalog products
"""

from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

class ProductBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    brand: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    actual_price: float = Field(..., ge=0)
    selling_price: float = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)
    description: Optional[str] = Field(None, max_length=5000)
    images: list[str] = Field(default_factory=list)

class ProductCreate(ProductBase):
    """Schema for adding a product"""

    @validator('selling_price')
    def selling_not_above_actual(cls, v, values):
        actual = values.get('actual_price')
        if actual is not None and v > actual:
            raise ValueError('must not exceed actual price')
        return v

class ProductUpdate(BaseModel):
    """Partial product update"""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    brand: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    actual_price: Optional[float] = Field(None, ge=0)
    selling_price: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=5000)
    images: Optional[list[str]] = None
    is_active: Optional[bool] = None

class ProductResponse(ProductBase):
    """Schema for product responses"""
    id: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @validator('images', pre=True)
    def default_images(cls, v):
        return v or []
