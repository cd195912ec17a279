"""
Customer management endpoints for the back office
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
import logging

from herbstore.auth.auth_handler import AdminPrincipal, admin_required, full_admin_required
from herbstore.database import get_db
from herbstore.schemas.customer import CustomerResponse, CustomerListResponse
from herbstore.services.customer_service import CustomerService
from herbstore.utils.rate_limit import limiter
from herbstore.utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("")
@limiter.limit("30/minute")
async def list_customers(
    request: Request,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Customers per page"),
    search: Optional[str] = Query(None, description="Search name, mobile or email"),
    active_only: bool = Query(False, description="Only active customers"),
    admin: AdminPrincipal = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Get paginated list of customers"""
    result = await CustomerService(db).list_customers(
        page=page, page_size=page_size, search=search, active_only=active_only
    )
    result["customers"] = [CustomerResponse.from_orm(c) for c in result["customers"]]
    return success_response(CustomerListResponse(**result).dict())

@router.get("/{customer_id}")
@limiter.limit("30/minute")
async def get_customer(
    request: Request,
    customer_id: int,
    admin: AdminPrincipal = Depends(admin_required),
    db: Session = Depends(get_db)
):
    customer = await CustomerService(db).get_customer(customer_id)
    return success_response(CustomerResponse.from_orm(customer).dict())

@router.post("/{customer_id}/deactivate")
@limiter.limit("10/minute")
async def deactivate_customer(
    request: Request,
    customer_id: int,
    admin: AdminPrincipal = Depends(full_admin_required),
    db: Session = Depends(get_db)
):
    """Deactivate a customer account and end its sessions"""
    customer = await CustomerService(db).deactivate_customer(customer_id)
    logger.info(f"Admin {admin.email} deactivated customer {customer_id}")
    return success_response(CustomerResponse.from_orm(customer).dict(), "Customer deactivated successfully")

@router.post("/{customer_id}/activate")
@limiter.limit("10/minute")
async def activate_customer(
    request: Request,
    customer_id: int,
    admin: AdminPrincipal = Depends(full_admin_required),
    db: Session = Depends(get_db)
):
    customer = await CustomerService(db).activate_customer(customer_id)
    logger.info(f"Admin {admin.email} activated customer {customer_id}")
    return success_response(CustomerResponse.from_orm(customer).dict(), "Customer activated successfully")
