"""
Pydantic schemas for OTP login and admin authentication
"""

from pydantic import BaseModel, Field, validator, EmailStr
from typing import Optional
from datetime import datetime
import re

MOBILE_PATTERN = re.compile(r'^[6-9]\d{9}$')
OTP_PATTERN = re.compile(r'^\d{6}$')

def _validate_mobile(v: str) -> str:
    v = (v or "").strip()
    if not MOBILE_PATTERN.match(v):
        raise ValueError('must be a valid 10-digit Indian mobile number')
    return v

class SendOtpRequest(BaseModel):
    """Schema for requesting an OTP"""
    mobile: str = Field(..., description="10-digit mobile number starting with 6-9")

    @validator('mobile')
    def validate_mobile(cls, v):
        return _validate_mobile(v)

class VerifyOtpRequest(BaseModel):
    """Schema for verifying an OTP"""
    mobile: str = Field(..., description="Mobile number the OTP was sent to")
    otp: str = Field(..., description="6-digit one-time password")

    @validator('mobile')
    def validate_mobile(cls, v):
        return _validate_mobile(v)

    @validator('otp')
    def validate_otp(cls, v):
        v = (v or "").strip()
        if not OTP_PATTERN.match(v):
            raise ValueError('must be a 6-digit number')
        return v

class SessionUser(BaseModel):
    """Customer summary returned on login"""
    id: int
    name: str
    email: Optional[str] = None
    mobile: str

    class Config:
        from_attributes = True

class OtpLoginResponse(BaseModel):
    """Payload of a successful OTP verification"""
    is_new_user: bool = Field(..., alias="isNewUser")
    user: SessionUser
    token: str
    expires_at: datetime = Field(..., alias="expiresAt")

    class Config:
        populate_by_name = True

class AdminLoginRequest(BaseModel):
    """Schema for admin login"""
    email: EmailStr = Field(..., description="Admin email address")
    password: str = Field(..., min_length=1, description="Password")

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower()

class AdminUserCreate(BaseModel):
    """Schema for creating a back-office account"""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128, description="Password (minimum 8 characters)")
    role: str = Field("limited_admin", description="admin or limited_admin")

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower()

    @validator('password')
    def validate_password(cls, v):
        if not re.search(r'[A-Za-z]', v) or not re.search(r'\d', v):
            raise ValueError('Password must contain at least one letter and one digit')
        return v

    @validator('role')
    def validate_role(cls, v):
        allowed_roles = ['admin', 'limited_admin']
        if v not in allowed_roles:
            raise ValueError(f'Role must be one of: {", ".join(allowed_roles)}')
        return v

class AdminUserResponse(BaseModel):
    """Admin account (excludes the password hash)"""
    id: int
    name: str
    email: str
    role: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class AdminLoginResponse(BaseModel):
    token: str
    expires_at: datetime = Field(..., alias="expiresAt")
    user: AdminUserResponse

    class Config:
        populate_by_name = True
