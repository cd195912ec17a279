"""
Pydantic schemas for the customer address book
"""

from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime
import re

REQUIRED_ADDRESS_MESSAGE = "Address line 1, city, state, and pincode are required"

class AddressBase(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    contact: Optional[str] = Field(None, max_length=20)
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    is_default: Optional[bool] = None

    @validator('contact')
    def validate_contact(cls, v):
        if v is None or v == "":
            return None
        digits_only = re.sub(r'\D', '', v)
        if len(digits_only) < 10 or len(digits_only) > 15:
            raise ValueError('Contact number must be between 10-15 digits')
        return v

class AddressCreate(AddressBase):
    """Schema for adding an address; required fields are checked by the service"""

    def missing_required(self) -> bool:
        return not all(
            (value or "").strip()
            for value in (self.address_line1, self.city, self.state, self.pincode)
        )

class AddressUpdate(AddressBase):
    """Partial update; only fields that are sent are changed"""

class AddressResponse(BaseModel):
    """Schema for address responses"""
    id: int
    customer_id: int
    full_name: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    pincode: str
    country: str
    is_default: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
