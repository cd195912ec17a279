"""
Customer address book endpoints
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from herbstore.auth.auth_handler import Principal, get_current_principal, ensure_customer_access
from herbstore.database import get_db
from herbstore.schemas.address import AddressCreate, AddressUpdate, AddressResponse
from herbstore.services.address_service import AddressService
from herbstore.utils.rate_limit import limiter
from herbstore.utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter()

FORBIDDEN_MESSAGE = "Forbidden: cannot access addresses for another customer"


def _serialize(address) -> dict:
    return AddressResponse.from_orm(address).dict()

@router.get("/{customer_id}/addresses")
@limiter.limit("30/minute")
async def list_addresses(
    request: Request,
    customer_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Saved addresses, default first"""
    ensure_customer_access(principal, customer_id, FORBIDDEN_MESSAGE)
    addresses = await AddressService(db).list_addresses(customer_id)
    return success_response([_serialize(a) for a in addresses], "Addresses retrieved successfully")

@router.get("/{customer_id}/addresses/{address_id}")
@limiter.limit("30/minute")
async def get_address(
    request: Request,
    customer_id: int,
    address_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    ensure_customer_access(principal, customer_id, FORBIDDEN_MESSAGE)
    address = await AddressService(db).get_address(customer_id, address_id)
    return success_response(_serialize(address), "Address retrieved successfully")

@router.post("/{customer_id}/addresses", status_code=201)
@limiter.limit("10/minute")
async def create_address(
    request: Request,
    customer_id: int,
    address_data: AddressCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Add an address; is_default true makes it the only default"""
    ensure_customer_access(principal, customer_id, FORBIDDEN_MESSAGE)
    address = await AddressService(db).create_address(customer_id, address_data)
    return success_response(_serialize(address), "Address added successfully")

@router.put("/{customer_id}/addresses/{address_id}")
@limiter.limit("10/minute")
async def update_address(
    request: Request,
    customer_id: int,
    address_id: int,
    address_data: AddressUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    ensure_customer_access(principal, customer_id, FORBIDDEN_MESSAGE)
    address = await AddressService(db).update_address(customer_id, address_id, address_data)
    return success_response(_serialize(address), "Address updated successfully")

@router.delete("/{customer_id}/addresses/{address_id}")
@limiter.limit("10/minute")
async def delete_address(
    request: Request,
    customer_id: int,
    address_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    ensure_customer_access(principal, customer_id, FORBIDDEN_MESSAGE)
    await AddressService(db).delete_address(customer_id, address_id)
    return success_response(None, "Address deleted successfully")

@router.post("/{customer_id}/addresses/{address_id}/set-default")
@limiter.limit("10/minute")
async def set_default_address(
    request: Request,
    customer_id: int,
    address_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """Make one address the default"""
    ensure_customer_access(principal, customer_id, FORBIDDEN_MESSAGE)
    address = await AddressService(db).set_default(customer_id, address_id)
    return success_response(_serialize(address), "Default address updated successfully")
