"""
Admin account service
Password login, account creation and the startup bootstrap account
"""

from email_validator import validate_email, EmailNotValidError
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
import logging

from herbstore.auth.auth_handler import AuthHandler
from herbstore.config import settings
from herbstore.database import utcnow
from herbstore.models.admin_user import AdminUser
from herbstore.models.auth_session import AuthSession
from herbstore.schemas.auth import AdminLoginRequest, AdminUserCreate
from herbstore.services.session_service import SessionService
from herbstore.utils.error_handler import ApiError, DatabaseError

logger = logging.getLogger(__name__)

class AdminService:
    """Service for back-office account operations"""

    def __init__(self, db: Session):
        self.db = db
        self.auth_handler = AuthHandler()

    async def authenticate(
        self,
        login_data: AdminLoginRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> tuple[AdminUser, AuthSession]:
        """Check credentials and open a session"""
        user = self.db.query(AdminUser).filter(AdminUser.email == login_data.email).first()

        if not user:
            logger.warning(f"Login attempt with unknown admin email: {login_data.email}")
            raise ApiError.unauthorized("Invalid email or password")

        if not self.auth_handler.verify_password(login_data.password, user.password_hash):
            logger.warning(f"Failed login attempt for admin: {user.email}")
            raise ApiError.unauthorized("Invalid email or password")

        if not user.is_active:
            logger.warning(f"Login attempt with inactive admin: {user.email}")
            raise ApiError.forbidden("Account is deactivated")

        try:
            user.last_login = utcnow()
            session = SessionService(self.db).issue_admin_session(
                user, ip_address=ip_address, user_agent=user_agent
            )
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to open admin session for {user.email}: {e}")
            raise DatabaseError(f"Authentication failed: {str(e)}", e)

        logger.info(f"Successful login for admin: {user.email}")
        return user, session

    async def create_admin(self, user_data: AdminUserCreate) -> AdminUser:
        existing = self.db.query(AdminUser).filter(AdminUser.email == user_data.email).first()
        if existing:
            raise ApiError.conflict("Email already registered")

        try:
            user = AdminUser(
                name=user_data.name.strip(),
                email=user_data.email,
                password_hash=self.auth_handler.get_password_hash(user_data.password),
                role=user_data.role,
                is_active=True,
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(f"Created admin account: {user.email} ({user.role})")
        return user

    async def list_admins(self) -> list[AdminUser]:
        return self.db.query(AdminUser).order_by(AdminUser.created_at.asc(), AdminUser.id.asc()).all()

    def bootstrap_admin(self) -> Optional[AdminUser]:
        """Create the configured first admin if it does not exist yet"""
        if not settings.admin_email or not settings.admin_password:
            return None

        try:
            email = validate_email(settings.admin_email.strip(), check_deliverability=False).normalized.lower()
        except EmailNotValidError as e:
            logger.error(f"ADMIN_EMAIL is not a valid address, skipping bootstrap: {e}")
            return None

        existing = self.db.query(AdminUser).filter(AdminUser.email == email).first()
        if existing:
            return None

        user = AdminUser(
            name=settings.admin_name,
            email=email,
            password_hash=self.auth_handler.get_password_hash(settings.admin_password),
            role="admin",
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        logger.info(f"Bootstrapped admin account {user.email}")
        return user
