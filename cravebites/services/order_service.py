# cravebites/services/order_service.py
"""
Order persistence and lifecycle
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional, Union
from opentelemetry import trace
import logging

from cravebites.db.database import is_valid_id, utcnow
from cravebites.errors import DuplicateKey, InvalidState, NotFound
from cravebites.models.catalog import Product
from cravebites.models.order import (
    GUEST_NAME, GUEST_PHONE, Order, OrderItem, OrderStatus
)
from cravebites.models.schemas import OrderCreate, PaymentResult
from cravebites.services.item_normalizer import normalize_order
from cravebites.services.order_numbers import next_order_number

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Attempts at inserting an order before a number collision is reported
MAX_NUMBERING_ATTEMPTS = 3


def parse_order_id(order_id: Union[int, str]) -> int:
    """Malformed ids are reported the same way as missing ones"""
    try:
        value = int(str(order_id).strip())
    except (TypeError, ValueError):
        raise NotFound("Order", order_id)
    if not is_valid_id(value):
        raise NotFound("Order", order_id)
    return value


def is_number_collision(error: IntegrityError) -> bool:
    """Whether the insert broke the unique ``orders.order_number`` constraint"""
    # SQLite: "UNIQUE constraint failed: orders.order_number"
    # PostgreSQL: "... unique constraint "ix_orders_order_number" ... Key (order_number)=..."
    return "order_number" in str(error.orig)


class OrderService:
    """Order service for business logic"""

    @staticmethod
    def _with_items(query):
        # Everything the response needs is loaded here; the session is closed
        # before the response is serialized
        return query.options(
            selectinload(Order.order_items)
            .joinedload(OrderItem.product)
            .joinedload(Product.category)
        ).execution_options(populate_existing=True)

    @staticmethod
    def create_order(db: Session, order_data: OrderCreate) -> Order:
        """
        Create a new order

        Process:
        1. Normalize line items (catalog vs ad-hoc) and check taxes
        2. Reserve the next order number
        3. Insert order and items in one transaction
        """
        with tracer.start_as_current_span("order_service.create_order") as span:
            span.set_attribute("items.count", len(order_data.order_items))

            items = normalize_order(db, order_data)
            customer = order_data.customer

            for attempt in range(1, MAX_NUMBERING_ATTEMPTS + 1):
                try:
                    order_number = next_order_number(db)
                except DuplicateKey as e:
                    logger.warning(f"{e} (attempt {attempt}/{MAX_NUMBERING_ATTEMPTS})")
                    continue

                order = Order(
                    order_number=order_number,
                    customer_name=(customer.name if customer and customer.name is not None else GUEST_NAME),
                    customer_phone=(customer.phone if customer and customer.phone is not None else GUEST_PHONE),
                    payment_method=order_data.payment_method,
                    subtotal=order_data.subtotal,
                    cgst=order_data.cgst,
                    sgst=order_data.sgst,
                    delivery_charge=order_data.delivery_charge,
                    total_amount=order_data.total_amount,
                    status=OrderStatus.PENDING,
                    is_paid=False,
                    order_items=[
                        OrderItem(
                            position=position,
                            product_ref=item.product_ref,
                            product_kind=item.product_kind,
                            product_id=item.product_id,
                            name=item.name,
                            quantity=item.quantity,
                            price=item.price,
                            image=item.image,
                        )
                        for position, item in enumerate(items)
                    ],
                )
                db.add(order)
                try:
                    db.commit()
                    break
                except IntegrityError as e:
                    db.rollback()
                    if not is_number_collision(e):
                        logger.error(f"Order {order_number} rejected by the database: {e.orig}")
                        raise
                    logger.warning(
                        f"Order number {order_number} collided (attempt {attempt}/{MAX_NUMBERING_ATTEMPTS}): {e.orig}"
                    )
                    # Burn the taken number so the next attempt gets a fresh one
                    next_order_number(db)
                    db.commit()
            else:
                raise DuplicateKey("Could not assign a unique order number, please retry")

            span.set_attribute("order.id", order.id)
            span.set_attribute("order.number", order.order_number)
            logger.info(
                f"Order {order.order_number} created with {len(items)} items, total {order.total_amount}"
            )

            return OrderService.get_order(db, order.id)

    @staticmethod
    def get_order(db: Session, order_id: Union[int, str]) -> Order:
        """Get order by ID with catalog details resolved"""
        with tracer.start_as_current_span("order_service.get_order") as span:
            order_pk = parse_order_id(order_id)
            span.set_attribute("order.id", order_pk)
            order = OrderService._with_items(db.query(Order)).filter(Order.id == order_pk).first()
            if order is None:
                raise NotFound("Order", order_id)
            return order

    @staticmethod
    def get_orders(db: Session, skip: int = 0, limit: Optional[int] = None) -> List[Order]:
        """Get all orders, newest first"""
        with tracer.start_as_current_span("order_service.get_orders") as span:
            query = OrderService._with_items(db.query(Order)).order_by(
                Order.created_at.desc(), Order.id.desc()
            )
            if skip:
                query = query.offset(skip)
            if limit is not None:
                query = query.limit(limit)

            orders = query.all()
            span.set_attribute("orders.returned", len(orders))
            return orders

    @staticmethod
    def update_order_status(db: Session, order_id: Union[int, str], status: Optional[str]) -> Order:
        """Set the order status; any status may follow any other"""
        with tracer.start_as_current_span("order_service.update_status") as span:
            try:
                new_status = OrderStatus((status or "").strip().lower())
            except ValueError:
                valid = ", ".join(s.value for s in OrderStatus)
                raise InvalidState(f"Invalid status: '{status}'. Valid statuses are: {valid}")

            order = OrderService.get_order(db, order_id)
            span.set_attribute("order.id", order.id)
            span.set_attribute("status.new", new_status.value)

            old_status = order.status
            order.status = new_status
            db.commit()

            span.set_attribute("status.old", old_status.value)
            logger.info(f"Order {order.order_number} status updated: {old_status.value} -> {new_status.value}")

            return OrderService.get_order(db, order.id)

    @staticmethod
    def mark_paid(db: Session, order_id: Union[int, str], payment: PaymentResult) -> Order:
        """
        Record a payment

        Repeating the call overwrites the payment result but keeps the
        original ``paid_at``.
        """
        with tracer.start_as_current_span("order_service.mark_paid") as span:
            order = OrderService.get_order(db, order_id)
            span.set_attribute("order.id", order.id)

            if not order.is_paid:
                order.paid_at = utcnow()
            order.is_paid = True
            order.payment_id = payment.id
            order.payment_status = payment.status
            order.payment_update_time = payment.update_time
            order.payer_email = payment.email_address
            db.commit()

            logger.info(f"Order {order.order_number} marked paid (payment {payment.id})")
            return OrderService.get_order(db, order.id)
