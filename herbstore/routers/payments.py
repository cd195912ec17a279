"""
Payment endpoints
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from herbstore.auth.auth_handler import (
    AdminPrincipal, Principal, admin_required, get_current_principal, ensure_customer_access
)
from herbstore.config import settings
from herbstore.database import get_db
from herbstore.models.order import Order
from herbstore.models.payment import Payment
from herbstore.schemas.payment import PaymentResponse, PaymentGatewayConfig
from herbstore.utils.error_handler import ApiError
from herbstore.utils.rate_limit import limiter
from herbstore.utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_CONFIGURED = "Not configured"

@router.get("")
@limiter.limit("30/minute")
async def list_payments(
    request: Request,
    admin: AdminPrincipal = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """All payments, newest first"""
    payments = db.query(Payment).order_by(Payment.created_at.desc(), Payment.id.desc()).all()
    return success_response([PaymentResponse.from_orm(p).dict() for p in payments])

@router.get("/config")
@limiter.limit("30/minute")
async def payment_config(request: Request):
    """Which payment gateway the server is wired to"""
    config = PaymentGatewayConfig(
        merchant_id=settings.phonepe_merchant_id or NOT_CONFIGURED,
        base_url=settings.phonepe_base_url or NOT_CONFIGURED,
    )
    return success_response(config.dict(), "Payment gateway configuration")

@router.get("/order/{order_id}")
@limiter.limit("30/minute")
async def get_order_payments(
    request: Request,
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Payments recorded against one order"""
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise ApiError.not_found("Order not found")
    ensure_customer_access(principal, order.customer_id, "Forbidden: cannot access another customer's order")

    payments = (
        db.query(Payment)
        .filter(Payment.order_id == order_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
    return success_response([PaymentResponse.from_orm(p).dict() for p in payments])
