"""
Back-office authentication and admin account endpoints
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
import logging

from herbstore.auth.auth_handler import (
    AdminPrincipal, admin_required, full_admin_required, get_bearer_token
)
from herbstore.database import get_db
from herbstore.models.admin_user import AdminUser
from herbstore.models.auth_session import PRINCIPAL_ADMIN
from herbstore.schemas.auth import AdminLoginRequest, AdminLoginResponse, AdminUserCreate, AdminUserResponse
from herbstore.services.activity_logger import ActivityLogger
from herbstore.services.admin_service import AdminService
from herbstore.services.session_service import SessionService
from herbstore.utils.error_handler import ApiError
from herbstore.utils.rate_limit import limiter
from herbstore.utils.request_info import client_ip, user_agent
from herbstore.utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login")
@limiter.limit("10/minute")  # Prevent brute force attacks
async def login(
    request: Request,
    login_data: AdminLoginRequest,
    db: Session = Depends(get_db)
):
    """Authenticate an admin and return a session token"""
    admin_service = AdminService(db)
    activity_logger = ActivityLogger(db)

    try:
        user, session = await admin_service.authenticate(
            login_data,
            ip_address=client_ip(request),
            user_agent=user_agent(request)
        )
    except ApiError as e:
        await activity_logger.record(
            request,
            e.status_code,
            error_message=f"Failed login attempt for: {login_data.email}"
        )
        raise

    await activity_logger.record(request, 200, principal_type=PRINCIPAL_ADMIN, principal_id=user.id)

    response = AdminLoginResponse(
        token=session.session_token,
        expires_at=session.expires_at,
        user=AdminUserResponse.from_orm(user)
    )
    return success_response(response.dict(by_alias=True), "Login successful")

@router.post("/logout")
@limiter.limit("30/minute")
async def logout(
    request: Request,
    admin: AdminPrincipal = Depends(admin_required),
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db)
):
    """End the current admin session"""
    SessionService(db).revoke(token)

    await ActivityLogger(db).record(request, 200, principal_type=admin.type, principal_id=admin.id)

    logger.info(f"Admin {admin.email} logged out")
    return success_response(None, "Logged out successfully")

@router.get("/me")
@limiter.limit("30/minute")
async def get_current_admin(
    request: Request,
    admin: AdminPrincipal = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Get the logged-in admin account"""
    user = db.query(AdminUser).filter(AdminUser.id == admin.id).first()
    if not user:
        raise ApiError.not_found("User not found")
    return success_response(AdminUserResponse.from_orm(user).dict())

@router.get("/users")
@limiter.limit("30/minute")
async def list_admin_users(
    request: Request,
    admin: AdminPrincipal = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """List back-office accounts"""
    users = await AdminService(db).list_admins()
    return success_response([AdminUserResponse.from_orm(u).dict() for u in users])

@router.post("/users", status_code=201)
@limiter.limit("5/minute")
async def create_admin_user(
    request: Request,
    user_data: AdminUserCreate,
    admin: AdminPrincipal = Depends(full_admin_required),
    db: Session = Depends(get_db)
):
    """Create a back-office account (full admin only)"""
    user = await AdminService(db).create_admin(user_data)
    logger.info(f"Admin {admin.email} created account {user.email}")
    return success_response(AdminUserResponse.from_orm(user).dict(), "User created successfully")

@router.get("/activity-logs")
@limiter.limit("30/minute")
async def get_activity_logs(
    request: Request,
    limit: int = Query(100, ge=1, le=500, description="Number of entries"),
    principal_type: Optional[str] = Query(None, pattern="^(admin|customer)$", description="Only entries of this principal type"),
    admin: AdminPrincipal = Depends(full_admin_required),
    db: Session = Depends(get_db)
):
    """Recent audit entries, newest first"""
    logs = ActivityLogger(db).recent(limit=limit, principal_type=principal_type)
    return success_response([
        {
            "id": log.id,
            "endpoint": log.endpoint,
            "method": log.method,
            "status_code": log.status_code,
            "principal_type": log.principal_type,
            "principal_id": log.principal_id,
            "ip_address": log.ip_address,
            "user_agent": log.user_agent,
            "error_message": log.error_message,
            "created_at": log.created_at,
        }
        for log in logs
    ])
