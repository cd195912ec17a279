"""
Address book service

A customer has at most one default address. Every write that sets a default
clears the others in the same transaction.
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from herbstore.models.address import Address
from herbstore.schemas.address import AddressCreate, AddressUpdate, REQUIRED_ADDRESS_MESSAGE
from herbstore.utils.error_handler import ApiError, DatabaseError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("address_line1", "city", "state", "pincode")

class AddressService:
    """Service for customer address operations"""

    def __init__(self, db: Session):
        self.db = db

    def _get(self, customer_id: int, address_id: int) -> Address:
        address = self.db.query(Address).filter(
            Address.id == address_id,
            Address.customer_id == customer_id
        ).first()
        if not address:
            raise ApiError.not_found("Address not found")
        return address

    def _clear_default(self, customer_id: int, keep_id: int = None) -> None:
        query = self.db.query(Address).filter(
            Address.customer_id == customer_id,
            Address.is_default.is_(True)
        )
        if keep_id is not None:
            query = query.filter(Address.id != keep_id)
        query.update({Address.is_default: False}, synchronize_session="fetch")

    async def list_addresses(self, customer_id: int) -> list[Address]:
        """Default first, then newest"""
        return (
            self.db.query(Address)
            .filter(Address.customer_id == customer_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
            .all()
        )

    async def get_address(self, customer_id: int, address_id: int) -> Address:
        return self._get(customer_id, address_id)

    async def create_address(self, customer_id: int, address_data: AddressCreate) -> Address:
        if address_data.missing_required():
            raise ApiError.bad_request(REQUIRED_ADDRESS_MESSAGE)

        values = address_data.dict(exclude_unset=True)
        values["is_default"] = bool(values.get("is_default"))
        if not values.get("country"):
            values.pop("country", None)

        try:
            if values["is_default"]:
                self._clear_default(customer_id)

            address = Address(customer_id=customer_id, **values)
            self.db.add(address)
            self.db.commit()
            self.db.refresh(address)

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to add address for customer {customer_id}: {e}")
            raise

        logger.info(f"Added address {address.id} for customer {customer_id}")
        return address

    async def update_address(self, customer_id: int, address_id: int, address_data: AddressUpdate) -> Address:
        """Partial update; sending is_default true makes this the only default"""
        address = self._get(customer_id, address_id)
        update_data = address_data.dict(exclude_unset=True)

        for field in REQUIRED_FIELDS:
            if field in update_data and not (update_data[field] or "").strip():
                raise ApiError.bad_request(REQUIRED_ADDRESS_MESSAGE)
        if "country" in update_data and not update_data["country"]:
            update_data.pop("country")
        if "is_default" in update_data:
            update_data["is_default"] = bool(update_data["is_default"])

        try:
            if update_data.get("is_default"):
                self._clear_default(customer_id, keep_id=address.id)

            for field, value in update_data.items():
                setattr(address, field, value)
            self.db.commit()
            self.db.refresh(address)

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update address {address_id}: {e}")
            raise DatabaseError(f"Failed to update address: {str(e)}", e)

        return address

    async def delete_address(self, customer_id: int, address_id: int) -> None:
        address = self._get(customer_id, address_id)
        try:
            self.db.delete(address)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete address {address_id}: {e}")
            raise DatabaseError(f"Failed to delete address: {str(e)}", e)
        logger.info(f"Deleted address {address_id} of customer {customer_id}")

    async def set_default(self, customer_id: int, address_id: int) -> Address:
        address = self._get(customer_id, address_id)
        try:
            self._clear_default(customer_id, keep_id=address.id)
            address.is_default = True
            self.db.commit()
            self.db.refresh(address)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to set default address {address_id}: {e}")
            raise DatabaseError(f"Failed to set default address: {str(e)}", e)
        return address
