"""
Order number generation

Numbers are ``ORD`` followed by the 1-based creation sequence, zero padded to
four digits (``ORD0001``). The sequence lives in the ``counters`` table and is
advanced with a single ``UPDATE counters SET value = value + 1``, so two
transactions creating orders at the same time serialize on that row instead of
both reading the same order count.
"""
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from cravebites.errors import DuplicateKey
from cravebites.models.order import Counter, Order

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_WIDTH = 4
ORDER_COUNTER = "order_number"


def format_order_number(count: int) -> str:
    """Order number for the order created after ``count`` existing orders"""
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    return f"{ORDER_NUMBER_PREFIX}{count + 1:0{ORDER_NUMBER_WIDTH}d}"


def next_order_number(db: Session) -> str:
    """Reserve the next order number inside the caller's transaction.

    The counter row is created on first use, seeded with the number of orders
    already stored so numbering continues from existing data. The reservation
    is released if the caller rolls back.
    """
    result = db.execute(
        update(Counter)
        .where(Counter.name == ORDER_COUNTER)
        .values(value=Counter.value + 1)
    )

    if result.rowcount == 0:
        existing = db.execute(select(func.count(Order.id))).scalar_one()
        db.add(Counter(name=ORDER_COUNTER, value=existing + 1))
        try:
            db.flush()
        except IntegrityError as e:
            # Another transaction seeded the counter first
            db.rollback()
            raise DuplicateKey("Order number sequence was initialised concurrently, retry") from e
        logger.info(f"Seeded order number counter at {existing}")

    value = db.execute(
        select(Counter.value).where(Counter.name == ORDER_COUNTER)
    ).scalar_one()

    return format_order_number(value - 1)
