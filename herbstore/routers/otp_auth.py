"""
Customer authentication endpoints: OTP login, profile and logout
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from herbstore.auth.auth_handler import CustomerPrincipal, customer_required, get_bearer_token
from herbstore.config import settings
from herbstore.database import get_db
from herbstore.models.auth_session import PRINCIPAL_CUSTOMER
from herbstore.schemas.auth import SendOtpRequest, VerifyOtpRequest, OtpLoginResponse, SessionUser
from herbstore.schemas.customer import CustomerProfileUpdate, CustomerResponse
from herbstore.services.activity_logger import ActivityLogger
from herbstore.services.customer_service import CustomerService
from herbstore.services.otp_service import OtpService
from herbstore.services.session_service import SessionService
from herbstore.utils.error_handler import ApiError
from herbstore.utils.rate_limit import limiter
from herbstore.utils.request_info import client_ip, user_agent
from herbstore.utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/send-otp")
@limiter.limit("5/minute")  # SMS costs money; keep bursts out
async def send_otp(
    request: Request,
    payload: SendOtpRequest,
    db: Session = Depends(get_db)
):
    """Send a login OTP to a mobile number"""
    otp_service = OtpService(db)
    otp = await otp_service.send_otp(payload.mobile)

    await ActivityLogger(db).record(request, 200, body={"mobile": payload.mobile})

    data = {"otp": otp} if settings.is_development else {}
    return success_response(data, "OTP sent successfully")

@router.post("/verify-otp")
@limiter.limit("10/minute")
async def verify_otp(
    request: Request,
    payload: VerifyOtpRequest,
    db: Session = Depends(get_db)
):
    """Verify an OTP and open a customer session"""
    otp_service = OtpService(db)
    activity_logger = ActivityLogger(db)

    try:
        result = await otp_service.verify_otp(
            payload.mobile,
            payload.otp,
            ip_address=client_ip(request),
            user_agent=user_agent(request)
        )
    except ApiError as e:
        await activity_logger.record(
            request,
            e.status_code,
            body={"mobile": payload.mobile},
            error_message=f"OTP verification failed for {payload.mobile}: {e.message}"
        )
        raise

    await activity_logger.record(
        request,
        200,
        principal_type=PRINCIPAL_CUSTOMER,
        principal_id=result.customer.id,
        body={"mobile": payload.mobile, "is_new_user": result.is_new_user}
    )

    login = OtpLoginResponse(
        is_new_user=result.is_new_user,
        user=SessionUser.from_orm(result.customer),
        token=result.token,
        expires_at=result.expires_at
    )
    return success_response(login.dict(by_alias=True), "Login successful")

@router.get("/profile")
@limiter.limit("30/minute")
async def get_profile(
    request: Request,
    customer: CustomerPrincipal = Depends(customer_required),
    db: Session = Depends(get_db)
):
    """Get the logged-in customer's profile"""
    profile = await CustomerService(db).get_customer(customer.id)
    return success_response(CustomerResponse.from_orm(profile).dict(), "Profile retrieved successfully")

@router.put("/profile")
@limiter.limit("10/minute")
async def update_profile(
    request: Request,
    profile_update: CustomerProfileUpdate,
    customer: CustomerPrincipal = Depends(customer_required),
    db: Session = Depends(get_db)
):
    """Update name and email of the logged-in customer"""
    profile = await CustomerService(db).update_profile(customer.id, profile_update)
    return success_response(CustomerResponse.from_orm(profile).dict(), "Profile updated successfully")

@router.post("/logout")
@limiter.limit("30/minute")
async def logout(
    request: Request,
    customer: CustomerPrincipal = Depends(customer_required),
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db)
):
    """End the session that carries this token"""
    SessionService(db).revoke(token)

    await ActivityLogger(db).record(request, 200, principal_type=customer.type, principal_id=customer.id)

    logger.info(f"Customer {customer.id} logged out")
    return success_response(None, "Logged out successfully")
