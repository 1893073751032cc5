"""
Order database models
"""
from sqlalchemy import (
    Boolean, Column, DateTime, Enum as SQLEnum, Float, ForeignKey, Integer, String
)
from sqlalchemy.orm import relationship

from cravebites.db.database import Base, utcnow
import enum


class OrderStatus(str, enum.Enum):
    """Order status enum"""
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    """Accepted payment methods"""
    CASH = "cash"
    CARD = "card"
    UPI = "upi"


class ProductKind(str, enum.Enum):
    """Whether an order line points into the catalog or carries its own product"""
    CATALOG = "catalog"
    ADHOC = "adhoc"


GUEST_NAME = "Guest"
GUEST_PHONE = "0000000000"


class Order(Base):
    """Order model"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)

    # Customer info (guest checkout allowed)
    customer_name = Column(String(255), nullable=False, default=GUEST_NAME)
    customer_phone = Column(String(32), nullable=False, default=GUEST_PHONE)

    payment_method = Column(SQLEnum(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    subtotal = Column(Float, nullable=False)
    cgst = Column(Float, nullable=False)
    sgst = Column(Float, nullable=False)
    delivery_charge = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False)

    status = Column(SQLEnum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)

    # Payment, written only by mark_paid
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True))
    payment_id = Column(String(255))
    payment_status = Column(String(64))
    payment_update_time = Column(String(64))
    payer_email = Column(String(255))

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    order_items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position"
    )

    @property
    def customer(self) -> dict:
        return {"name": self.customer_name, "phone": self.customer_phone}

    @property
    def payment_result(self):
        if not self.is_paid:
            return None
        return {
            "id": self.payment_id,
            "status": self.payment_status,
            "update_time": self.payment_update_time,
            "email_address": self.payer_email,
        }

    def __repr__(self):
        return f"<Order(id={self.id}, number={self.order_number}, status={self.status}, total={self.total_amount})>"


class OrderItem(Base):
    """Order line item.

    ``product_ref`` keeps the reference exactly as submitted. For catalog
    items ``product_id`` holds the resolved foreign key; ad-hoc items have no
    foreign key and their name/price/image columns are the only record of the
    product.
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    product_ref = Column(String(255), nullable=False)
    product_kind = Column(SQLEnum(ProductKind), nullable=False, default=ProductKind.CATALOG)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), index=True)

    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    image = Column(String(1024))

    order = relationship("Order", back_populates="order_items")
    product = relationship("Product")

    def __repr__(self):
        return f"<OrderItem(id={self.id}, ref={self.product_ref}, kind={self.product_kind}, qty={self.quantity})>"


class Counter(Base):
    """Named sequence, advanced with a single atomic UPDATE"""
    __tablename__ = "counters"

    name = Column(String(64), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
