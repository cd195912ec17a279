"""
Admin user model for back-office authentication
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, CheckConstraint

from herbstore.database import Base, utcnow

ADMIN_ROLES = ("admin", "limited_admin")

class AdminUser(Base):
    """Back-office account; customers live in their own table"""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'limited_admin')", name="check_admin_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(30), default="admin", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<AdminUser(id={self.id}, email='{self.email}', role='{self.role}')>"
