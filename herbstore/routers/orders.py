"""
Order management endpoints
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
import logging

from herbstore.auth.auth_handler import (
    AdminPrincipal, Principal, admin_required, full_admin_required,
    get_current_principal, ensure_customer_access
)
from herbstore.database import get_db
from herbstore.models.order import ORDER_STATUSES
from herbstore.schemas.order import (
    OrderCreate, OrderStatusUpdate, OrderUpdate, OrderResponse, OrderDeleteResponse
)
from herbstore.services.order_service import OrderService
from herbstore.utils.error_handler import ApiError
from herbstore.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", response_model=OrderResponse, status_code=201)
@limiter.limit("10/minute")
async def create_order(
    request: Request,
    order: OrderCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Place a new order"""
    return await OrderService(db).create_order(principal, order)

@router.get("", response_model=list[OrderResponse])
@limiter.limit("30/minute")
async def get_orders(
    request: Request,
    status: Optional[str] = Query(None, description="Filter by status"),
    admin: AdminPrincipal = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """All orders, newest first, with customer details and items"""
    if status and status not in ORDER_STATUSES:
        raise ApiError.bad_request(f"Status must be one of: {', '.join(ORDER_STATUSES)}")
    return await OrderService(db).list_orders(status)

@router.get("/customer/{customer_id}", response_model=list[OrderResponse])
@limiter.limit("30/minute")
async def get_customer_orders(
    request: Request,
    customer_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Orders of one customer, newest first"""
    ensure_customer_access(principal, customer_id, "Forbidden: cannot access orders for another customer")
    return await OrderService(db).get_customer_orders(customer_id)

@router.get("/{order_id}", response_model=OrderResponse)
@limiter.limit("30/minute")
async def get_order(
    request: Request,
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Get a specific order by ID"""
    return await OrderService(db).get_order(principal, order_id)

@router.patch("/{order_id}/status", response_model=OrderResponse)
@limiter.limit("10/minute")
async def update_order_status(
    request: Request,
    order_id: str,
    status_update: OrderStatusUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Change the status of an order (cancellation, replacement, fulfilment)"""
    return await OrderService(db).update_status(principal, order_id, status_update)

@router.put("/{order_id}", response_model=OrderResponse)
@limiter.limit("10/minute")
async def update_order(
    request: Request,
    order_id: str,
    order_update: OrderUpdate,
    admin: AdminPrincipal = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Edit an existing order"""
    return await OrderService(db).update_order(admin, order_id, order_update)

@router.delete("/{order_id}", response_model=OrderDeleteResponse)
@limiter.limit("5/minute")
async def delete_order(
    request: Request,
    order_id: str,
    admin: AdminPrincipal = Depends(full_admin_required),
    db: Session = Depends(get_db)
):
    """Delete an order together with its items and payments"""
    order = await OrderService(db).delete_order(admin, order_id)
    return {"message": "Order deleted successfully", "order": order}
