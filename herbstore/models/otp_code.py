"""
Pending OTP codes, one row per mobile number
"""

from sqlalchemy import Column, Integer, String, DateTime

from herbstore.database import Base, utcnow

class OtpCode(Base):
    """Hashed OTP with expiry, attempt counter and the daily send quota.

    code_hash is cleared once the code is used, expires or runs out of
    attempts; the row itself stays so the daily counter survives.
    """
    __tablename__ = "otp_code"

    mobile = Column(String(20), primary_key=True)
    code_hash = Column(String(64), nullable=True)
    expires_at = Column(DateTime, nullable=True)
    attempts = Column(Integer, default=0, nullable=False)
    send_count = Column(Integer, default=0, nullable=False)
    send_date = Column(String(10), nullable=True)  # YYYY-MM-DD (UTC)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<OtpCode(mobile='{self.mobile}', pending={self.code_hash is not None})>"
