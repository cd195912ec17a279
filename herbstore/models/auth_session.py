"""
Bearer-token sessions for both admins and customers
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from herbstore.database import Base, utcnow

PRINCIPAL_ADMIN = "admin"
PRINCIPAL_CUSTOMER = "customer"

class AuthSession(Base):
    """One row per issued token; principal_type says which FK is set"""
    __tablename__ = "auth_session"
    __table_args__ = (
        CheckConstraint(
            "(principal_type = 'admin' AND admin_user_id IS NOT NULL AND customer_id IS NULL) OR "
            "(principal_type = 'customer' AND customer_id IS NOT NULL AND admin_user_id IS NULL)",
            name="check_session_principal",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_token = Column(String(128), unique=True, index=True, nullable=False)
    principal_type = Column(String(20), nullable=False)
    customer_id = Column(Integer, ForeignKey("customer.id", ondelete="CASCADE"), nullable=True, index=True)
    admin_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    customer = relationship("Customer")
    admin_user = relationship("AdminUser")

    def __repr__(self):
        return f"<AuthSession(id={self.id}, type='{self.principal_type}', expires_at={self.expires_at})>"
