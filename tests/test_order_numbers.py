"""Tests for order number generation."""

import pytest
from sqlalchemy.exc import IntegrityError

from cravebites.models.order import Counter, Order, PaymentMethod, ProductKind
from cravebites.services import order_service
from cravebites.services.item_normalizer import NormalizedItem
from cravebites.services.order_numbers import ORDER_COUNTER, format_order_number, next_order_number


def _stored_order(number):
    return Order(
        order_number=number,
        payment_method=PaymentMethod.CASH,
        subtotal=100,
        cgst=5,
        sgst=5,
        total_amount=110,
    )


class TestFormatOrderNumber:
    def test_first_order(self):
        assert format_order_number(0) == "ORD0001"

    def test_padding(self):
        assert format_order_number(41) == "ORD0042"

    def test_grows_past_four_digits(self):
        assert format_order_number(9999) == "ORD10000"

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            format_order_number(-1)


class TestNextOrderNumber:
    def test_empty_store_starts_at_one(self, db):
        assert next_order_number(db) == "ORD0001"
        db.commit()
        assert next_order_number(db) == "ORD0002"

    def test_seeds_from_existing_orders(self, db):
        for n in range(1, 4):
            db.add(_stored_order(format_order_number(n - 1)))
        db.commit()

        assert next_order_number(db) == "ORD0004"
        counter = db.get(Counter, ORDER_COUNTER)
        assert counter.value == 4

    def test_rollback_releases_number(self, db):
        next_order_number(db)
        db.commit()

        assert next_order_number(db) == "ORD0002"
        db.rollback()
        assert next_order_number(db) == "ORD0002"


class TestSequentialCreation:
    def test_numbers_are_unique_and_sequential(self, place_order, make_product):
        product = make_product()
        numbers = [
            place_order([{"productRef": product.id, "quantity": 1}]).order_number
            for _ in range(12)
        ]

        assert numbers == [format_order_number(i) for i in range(12)]
        assert len(set(numbers)) == 12

    def test_collision_skips_taken_number(self, db, place_order):
        # Counter is behind the stored data
        db.add(_stored_order("ORD0001"))
        db.add(Counter(name=ORDER_COUNTER, value=0))
        db.commit()

        order = place_order([{"productRef": "custom-1", "name": "Chef special", "price": 50, "quantity": 1}])

        assert order.order_number == "ORD0002"

    def test_other_integrity_errors_are_not_retried(self, db, place_order, monkeypatch):
        # A catalog line whose product vanished after validation
        vanished = NormalizedItem(
            product_ref="9999",
            product_kind=ProductKind.CATALOG,
            product_id=9999,
            name="Gone",
            quantity=1,
            price=10.0,
        )
        monkeypatch.setattr(order_service, "normalize_order", lambda db, order: [vanished])

        with pytest.raises(IntegrityError) as excinfo:
            place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        assert not order_service.is_number_collision(excinfo.value)
        assert db.query(Order).count() == 0
        assert next_order_number(db) == "ORD0001"
