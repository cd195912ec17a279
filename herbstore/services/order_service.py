"""
Order service
Placement, lookup, status changes and deletion of customer orders
"""

from sqlalchemy.orm import Session, selectinload, joinedload
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
import logging

from herbstore.auth.auth_handler import Principal, AdminPrincipal, CustomerPrincipal
from herbstore.models.order import Order, OrderItem, OrderStatus
from herbstore.models.payment import Payment
from herbstore.schemas.order import (
    OrderCreate, OrderStatusUpdate, OrderUpdate, OrderResponse, serialize_address
)
from herbstore.utils.error_handler import ApiError, DatabaseError

logger = logging.getLogger(__name__)

REQUIRED_ORDER_FIELDS = ("status", "address", "total_amount")

class OrderService:
    """Service for order lifecycle operations"""

    def __init__(self, db: Session):
        self.db = db

    def _order_query(self):
        # Items, their products and the customer come back in batched queries
        return self.db.query(Order).options(
            joinedload(Order.customer),
            selectinload(Order.items).joinedload(OrderItem.product),
        )

    def _load_order(self, order_id: str) -> Order:
        order = self._order_query().filter(Order.id == order_id).first()
        if not order:
            raise ApiError.not_found("Order not found")
        return order

    @staticmethod
    def _check_access(principal: Principal, order: Order) -> None:
        if isinstance(principal, CustomerPrincipal) and order.customer_id != principal.id:
            raise ApiError.forbidden("Forbidden: cannot access another customer's order")

    async def create_order(self, principal: Principal, order_data: OrderCreate) -> Order:
        """Place an order.

        The order row, its payment and its items commit together. Each payment
        or item insert runs in a savepoint; one that fails is logged and
        skipped without losing the others.
        """
        if isinstance(principal, CustomerPrincipal):
            customer_id = principal.id
        else:
            customer_id = order_data.customer_id
        if not customer_id:
            raise ApiError.bad_request("Customer ID is required. Please login to place an order.")

        if not order_data.total_amount or not order_data.shipping_address:
            raise ApiError.bad_request("Missing required fields: total_amount and shipping_address")

        try:
            order = Order(
                customer_id=customer_id,
                total_amount=order_data.total_amount,
                address=serialize_address(order_data.shipping_address),
                status=OrderStatus.ORDERED.value,
                notes=order_data.order_notes,
                prescription_url=order_data.prescription_url,
                delivery_option=order_data.delivery_option,
            )
            self.db.add(order)
            self.db.flush()

            if order_data.transaction_id:
                try:
                    with self.db.begin_nested():
                        self.db.add(Payment(
                            order_id=order.id,
                            amount=order_data.total_amount,
                            method=order_data.payment_method or "test_payment",
                            transaction_id=order_data.transaction_id,
                            status=order_data.payment_status or "completed",
                        ))
                except SQLAlchemyError as e:
                    logger.error(f"Failed to record payment for order {order.id}: {e}")

            for item in order_data.items:
                try:
                    with self.db.begin_nested():
                        self.db.add(OrderItem(
                            order_id=order.id,
                            product_id=item.product_id,
                            quantity=item.quantity,
                            price=item.price,
                        ))
                except SQLAlchemyError as e:
                    logger.error(
                        f"Skipped item product_id={item.product_id} for order {order.id}: {e}"
                    )

            self.db.commit()
            order_id = order.id

        except ApiError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create order for customer {customer_id}: {e}")
            raise

        # Fresh load so skipped items are not reported
        self.db.expire_all()
        created = self._load_order(order_id)
        logger.info(f"Created order {order_id} with {len(created.items)} items for customer {customer_id}")
        return created

    async def get_order(self, principal: Principal, order_id: str) -> Order:
        order = self._load_order(order_id)
        self._check_access(principal, order)
        return order

    async def list_orders(self, status: Optional[str] = None) -> list[Order]:
        """All orders for the back office, newest first"""
        query = self._order_query()
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(Order.order_date.desc()).all()

    async def get_customer_orders(self, customer_id: int) -> list[Order]:
        return (
            self._order_query()
            .filter(Order.customer_id == customer_id)
            .order_by(Order.order_date.desc())
            .all()
        )

    async def update_status(self, principal: Principal, order_id: str, update: OrderStatusUpdate) -> Order:
        """Change the status; other fields keep their value unless sent"""
        order = self._load_order(order_id)
        self._check_access(principal, order)

        try:
            for field, value in update.dict(exclude_unset=True).items():
                setattr(order, field, value)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update status of order {order_id}: {e}")
            raise DatabaseError(f"Failed to update order status: {str(e)}", e)

        logger.info(f"Order {order_id} status set to {order.status} by {principal.type} {principal.id}")
        self.db.refresh(order)
        return order

    async def update_order(self, admin: AdminPrincipal, order_id: str, update: OrderUpdate) -> Order:
        update_data = update.dict(exclude_unset=True)
        # An explicit null on a required column leaves the stored value alone
        update_data = {
            field: value for field, value in update_data.items()
            if value is not None or field not in REQUIRED_ORDER_FIELDS
        }
        if not update_data:
            raise ApiError.bad_request("No fields to update")

        order = self._load_order(order_id)
        try:
            for field, value in update_data.items():
                if field == "address" and value is not None:
                    value = serialize_address(value)
                setattr(order, field, value)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update order {order_id}: {e}")
            raise

        logger.info(f"Order {order_id} updated by admin {admin.id}: {sorted(update_data)}")
        self.db.refresh(order)
        return order

    async def delete_order(self, admin: AdminPrincipal, order_id: str) -> dict:
        """Remove an order with its items and payments in one transaction.

        Returns the order as it was before deletion.
        """
        order = self._load_order(order_id)
        snapshot = OrderResponse.from_orm(order).dict()

        try:
            self.db.delete(order)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete order {order_id}: {e}")
            raise DatabaseError(f"Failed to delete order: {str(e)}", e)

        logger.info(f"Order {order_id} deleted by admin {admin.id}")
        return snapshot
