"""
Customer service for profiles and back-office account management
"""

from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
import logging
import math

from herbstore.models.customer import Customer
from herbstore.schemas.customer import CustomerProfileUpdate
from herbstore.services.session_service import SessionService
from herbstore.utils.error_handler import ApiError, DatabaseError

logger = logging.getLogger(__name__)

class CustomerService:
    """Service for customer management operations"""

    def __init__(self, db: Session):
        self.db = db

    async def get_customer(self, customer_id: int) -> Customer:
        customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise ApiError.not_found("Customer not found")
        return customer

    async def update_profile(self, customer_id: int, profile: CustomerProfileUpdate) -> Customer:
        """Update name and/or email; only the fields sent are changed"""
        update_data = {k: v for k, v in profile.dict(exclude_unset=True).items() if v is not None}
        if not update_data:
            raise ApiError.bad_request("No fields to update")

        customer = await self.get_customer(customer_id)
        try:
            for field, value in update_data.items():
                setattr(customer, field, value)
            self.db.commit()
            self.db.refresh(customer)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update customer {customer_id}: {e}")
            raise DatabaseError(f"Failed to update profile: {str(e)}", e)

        logger.info(f"Updated profile of customer {customer_id}: {sorted(update_data)}")
        return customer

    async def list_customers(
        self,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        active_only: bool = False,
    ) -> dict:
        """Paginated customer list with optional search over name, mobile and email"""
        query = self.db.query(Customer)

        if search:
            search_term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(search_term),
                    Customer.mobile.ilike(search_term),
                    Customer.email.ilike(search_term)
                )
            )
        if active_only:
            query = query.filter(Customer.is_active.is_(True))

        total = query.count()
        offset = (page - 1) * page_size
        customers = query.order_by(Customer.created_at.desc(), Customer.id.desc()).offset(offset).limit(page_size).all()

        return {
            "customers": customers,
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": math.ceil(total / page_size) if total else 0,
        }

    async def deactivate_customer(self, customer_id: int) -> Customer:
        """Deactivate an account and end its sessions"""
        customer = await self.get_customer(customer_id)
        try:
            customer.is_active = False
            revoked = SessionService(self.db).revoke_customer_sessions(customer_id)
            self.db.commit()
            self.db.refresh(customer)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to deactivate customer {customer_id}: {e}")
            raise DatabaseError(f"Failed to deactivate customer: {str(e)}", e)

        logger.info(f"Deactivated customer {customer_id}, revoked {revoked} sessions")
        return customer

    async def activate_customer(self, customer_id: int) -> Customer:
        customer = await self.get_customer(customer_id)
        try:
            customer.is_active = True
            self.db.commit()
            self.db.refresh(customer)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to activate customer {customer_id}: {e}")
            raise DatabaseError(f"Failed to activate customer: {str(e)}", e)

        logger.info(f"Activated customer {customer_id}")
        return customer
