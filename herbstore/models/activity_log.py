"""
Activity log model for the auth and error audit trail
"""

from sqlalchemy import Column, Integer, String, DateTime, Text

from herbstore.database import Base, utcnow

class ActivityLog(Base):
    """One row per audited request (logins, logouts, OTP events, unhandled errors).

    principal_type/principal_id name the admin or customer behind the call;
    both stay empty for anonymous requests and failed logins.
    """
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    endpoint = Column(String(255), nullable=False)
    method = Column(String(10), nullable=False)
    status_code = Column(Integer, nullable=False)
    principal_type = Column(String(20), nullable=True, index=True)
    principal_id = Column(Integer, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    request_body = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        actor = f"{self.principal_type}:{self.principal_id}" if self.principal_type else "anonymous"
        return f"<ActivityLog(id={self.id}, {self.method} {self.endpoint} -> {self.status_code}, by={actor})>"
