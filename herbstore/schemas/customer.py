"""
Pydantic schemas for customer profiles
"""

from pydantic import BaseModel, Field, validator, EmailStr
from typing import Optional
from datetime import datetime

class CustomerProfileUpdate(BaseModel):
    """Fields a customer may change on their own profile"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = Field(None)

    @validator('name')
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('Name cannot be blank')
        return v

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower() if v else v

class CustomerResponse(BaseModel):
    """Schema for customer responses"""
    id: int
    name: str
    email: Optional[str] = None
    mobile: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class CustomerListResponse(BaseModel):
    """Schema for paginated customer list responses"""
    customers: list[CustomerResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
