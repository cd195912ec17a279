"""
Authentication and authorization handler for Herbstore

Admins and customers both authenticate with opaque bearer tokens stored in
the auth_session table. A token resolves to exactly one principal.
"""

import secrets
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from herbstore.config import settings
from herbstore.database import get_db, utcnow
from herbstore.models.admin_user import AdminUser, ADMIN_ROLES
from herbstore.models.auth_session import AuthSession, PRINCIPAL_ADMIN, PRINCIPAL_CUSTOMER
from herbstore.models.customer import Customer
from herbstore.utils.error_handler import ApiError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)
security = HTTPBearer(auto_error=False)

@dataclass(frozen=True)
class AdminPrincipal:
    id: int
    name: str
    email: str
    role: str
    type: str = PRINCIPAL_ADMIN

@dataclass(frozen=True)
class CustomerPrincipal:
    id: int
    name: str
    email: Optional[str]
    mobile: str
    type: str = PRINCIPAL_CUSTOMER

Principal = Union[AdminPrincipal, CustomerPrincipal]

class AuthHandler:
    """Password hashing, token generation and session lookup"""

    def __init__(self):
        self.pwd_context = pwd_context

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return self.pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        """Hash a password"""
        return self.pwd_context.hash(password)

    @staticmethod
    def generate_session_token() -> str:
        """32 random bytes, hex encoded"""
        return secrets.token_hex(32)

    def resolve_principal(self, db: Session, token: str) -> Optional[Principal]:
        """Look up a live session and return whoever it belongs to.

        A single query covers both principal types. Expired tokens, and admin
        sessions whose account was deactivated, resolve to None. A session for
        a deactivated customer raises 403.
        """
        row = (
            db.query(AuthSession, Customer, AdminUser)
            .outerjoin(Customer, AuthSession.customer_id == Customer.id)
            .outerjoin(AdminUser, AuthSession.admin_user_id == AdminUser.id)
            .filter(AuthSession.session_token == token, AuthSession.expires_at > utcnow())
            .first()
        )
        if row is None:
            return None

        session, customer, admin = row
        if session.principal_type == PRINCIPAL_ADMIN:
            if admin is None or not admin.is_active or admin.role not in ADMIN_ROLES:
                return None
            return AdminPrincipal(id=admin.id, name=admin.name, email=admin.email, role=admin.role)

        if session.principal_type == PRINCIPAL_CUSTOMER and customer is not None:
            if not customer.is_active:
                raise ApiError.forbidden("Account is deactivated")
            return CustomerPrincipal(
                id=customer.id, name=customer.name, email=customer.email, mobile=customer.mobile
            )
        return None

auth_handler = AuthHandler()


def get_bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> Optional[str]:
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


def get_current_principal(
    token: Optional[str] = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> Principal:
    """Dependency accepting either an admin or a customer token"""
    if not token:
        raise ApiError.unauthorized("Authentication token required")

    principal = auth_handler.resolve_principal(db, token)
    if principal is None:
        raise ApiError.unauthorized("Invalid or expired token")
    return principal


def customer_required(principal: Principal = Depends(get_current_principal)) -> CustomerPrincipal:
    if not isinstance(principal, CustomerPrincipal):
        raise ApiError.forbidden("Customer access required")
    return principal

# Role-based access control for admin routes
class RoleChecker:
    """Check admin roles for authorization"""

    def __init__(self, allowed_roles: list):
        self.allowed_roles = allowed_roles

    def __call__(self, principal: Principal = Depends(get_current_principal)) -> AdminPrincipal:
        if not isinstance(principal, AdminPrincipal):
            raise ApiError.forbidden("Admin access required")
        if principal.role not in self.allowed_roles:
            raise ApiError.forbidden("Operation not permitted")
        return principal

admin_required = RoleChecker(list(ADMIN_ROLES))
full_admin_required = RoleChecker(["admin"])


def ensure_customer_access(principal: Principal, customer_id: int, message: str) -> None:
    """Admins may act on any customer; customers only on themselves"""
    if isinstance(principal, AdminPrincipal):
        return
    if principal.id != customer_id:
        raise ApiError.forbidden(message)
