"""
Session service: issuing and revoking bearer-token sessions
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from herbstore.auth.auth_handler import AuthHandler
from herbstore.config import settings
from herbstore.database import utcnow
from herbstore.models.admin_user import AdminUser
from herbstore.models.auth_session import AuthSession, PRINCIPAL_ADMIN, PRINCIPAL_CUSTOMER
from herbstore.models.customer import Customer

logger = logging.getLogger(__name__)

class SessionService:
    """Creates and removes auth_session rows.

    The issue_* methods only flush; the caller owns the transaction so a
    session is committed together with the login that produced it.
    """

    def __init__(self, db: Session):
        self.db = db
        self.auth_handler = AuthHandler()

    def _new_session(
        self,
        principal_type: str,
        expires_at: datetime,
        customer_id: Optional[int] = None,
        admin_user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuthSession:
        session = AuthSession(
            session_token=self.auth_handler.generate_session_token(),
            principal_type=principal_type,
            customer_id=customer_id,
            admin_user_id=admin_user_id,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(session)
        self.db.flush()
        return session

    def issue_customer_session(
        self, customer: Customer, ip_address: Optional[str] = None, user_agent: Optional[str] = None
    ) -> AuthSession:
        """Replace every existing session of the customer with a fresh one (last login wins)"""
        self.db.query(AuthSession).filter(
            AuthSession.principal_type == PRINCIPAL_CUSTOMER,
            AuthSession.customer_id == customer.id,
        ).delete(synchronize_session=False)

        expires_at = utcnow() + timedelta(hours=settings.customer_session_hours)
        return self._new_session(
            PRINCIPAL_CUSTOMER,
            expires_at,
            customer_id=customer.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def issue_admin_session(
        self, user: AdminUser, ip_address: Optional[str] = None, user_agent: Optional[str] = None
    ) -> AuthSession:
        expires_at = utcnow() + timedelta(hours=settings.admin_session_hours)
        return self._new_session(
            PRINCIPAL_ADMIN,
            expires_at,
            admin_user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def revoke(self, token: str) -> bool:
        """Delete the session carrying this token"""
        deleted = (
            self.db.query(AuthSession)
            .filter(AuthSession.session_token == token)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0

    def revoke_customer_sessions(self, customer_id: int) -> int:
        """Delete every session of a customer; caller commits"""
        return (
            self.db.query(AuthSession)
            .filter(
                AuthSession.principal_type == PRINCIPAL_CUSTOMER,
                AuthSession.customer_id == customer_id,
            )
            .delete(synchronize_session=False)
        )

    def purge_expired(self) -> int:
        deleted = (
            self.db.query(AuthSession)
            .filter(AuthSession.expires_at <= utcnow())
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info(f"Purged {deleted} expired sessions")
        return deleted
