"""Tests for the order endpoints."""

from datetime import timedelta

from cravebites.db.database import utcnow
from cravebites.models.order import Order


class TestCreateOrder:
    def test_create_catalog_order(self, client, make_product, payload):
        product = make_product(name="Paneer Tikka", price=100.0)
        body = payload(
            [{"productRef": product.id, "quantity": 2}],
            subtotal=200, cgst=9, sgst=9, totalAmount=218,
        )

        response = client.post("/api/orders", json=body)

        assert response.status_code == 201
        data = response.json()
        assert data["orderNumber"] == "ORD0001"
        assert data["status"] == "pending"
        assert data["isPaid"] is False
        assert data["paidAt"] is None
        assert data["paymentResult"] is None
        assert data["totalAmount"] == 218
        assert data["customer"] == {"name": "Asha", "phone": "9876543210"}

        [item] = data["orderItems"]
        assert item["productRef"] == str(product.id)
        assert item["productKind"] == "catalog"
        assert item["name"] == "Paneer Tikka"
        assert item["price"] == 100.0
        assert item["quantity"] == 2
        assert item["product"]["name"] == "Paneer Tikka"
        assert item["product"]["category"]["name"] == "Pizza"

    def test_storefront_field_name(self, client, make_product, payload):
        product = make_product()

        response = client.post("/api/orders", json=payload([{"product": str(product.id), "quantity": 1}]))

        assert response.status_code == 201
        assert response.json()["orderItems"][0]["productKind"] == "catalog"

    def test_adhoc_item_has_no_product(self, client, payload):
        body = payload([{"productRef": "walk-in-1", "name": "Lassi", "price": 40, "quantity": 1}])

        response = client.post("/api/orders", json=body)

        assert response.status_code == 201
        [item] = response.json()["orderItems"]
        assert item["productKind"] == "adhoc"
        assert item["product"] is None
        assert item["name"] == "Lassi"

    def test_guest_customer_default(self, client, payload):
        body = payload([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])
        del body["customer"]

        response = client.post("/api/orders", json=body)

        assert response.json()["customer"] == {"name": "Guest", "phone": "0000000000"}

    def test_empty_items_rejected(self, client, payload):
        response = client.post("/api/orders", json=payload([]))

        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Validation Error"
        assert "Order items are required" in data["errors"]

    def test_zero_tax_rejected(self, client, payload):
        body = payload([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}], cgst=0)

        response = client.post("/api/orders", json=body)

        assert response.status_code == 400
        assert response.json()["errors"] == ["CGST and SGST are required"]

    def test_zero_quantity_rejected(self, client, payload):
        body = payload([{"productRef": "x", "name": "X", "price": 10, "quantity": 0}])

        response = client.post("/api/orders", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Validation Error"

    def test_unknown_payment_method_rejected(self, client, payload):
        body = payload([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}], paymentMethod="bitcoin")

        assert client.post("/api/orders", json=body).status_code == 400

    def test_unknown_catalog_product_rejected(self, client, payload):
        response = client.post("/api/orders", json=payload([{"productRef": 4242, "quantity": 1}]))

        assert response.status_code == 400
        assert response.json()["errors"] == ["Item 1: Product 4242 not found"]

    def test_catalog_ref_beyond_column_range_rejected(self, client, payload):
        response = client.post("/api/orders", json=payload([{"productRef": 10 ** 20, "quantity": 1}]))

        assert response.status_code == 400
        assert response.json()["errors"] == [f"Item 1: Product {10 ** 20} not found"]

    def test_rejected_order_does_not_consume_number(self, client, payload):
        client.post("/api/orders", json=payload([]))
        response = client.post(
            "/api/orders", json=payload([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])
        )

        assert response.json()["orderNumber"] == "ORD0001"


class TestGetOrders:
    def test_get_order(self, client, place_order):
        order = place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        response = client.get(f"/api/orders/{order.id}")

        assert response.status_code == 200
        assert response.json()["orderNumber"] == order.order_number

    def test_missing_order(self, client):
        response = client.get("/api/orders/9999")

        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"

    def test_malformed_id_is_not_found(self, client):
        assert client.get("/api/orders/not-an-id").status_code == 404
        assert client.get("/api/orders/0").status_code == 404

    def test_id_beyond_column_range_is_not_found(self, client):
        response = client.get("/api/orders/99999999999999999999999")

        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"

    def test_list_newest_first(self, client, db, place_order):
        first = place_order([{"productRef": "a", "name": "A", "price": 10, "quantity": 1}])
        second = place_order([{"productRef": "b", "name": "B", "price": 10, "quantity": 1}])
        first.created_at = utcnow() - timedelta(hours=1)
        db.commit()

        response = client.get("/api/orders")

        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [second.id, first.id]

    def test_list_pagination(self, client, place_order):
        for _ in range(3):
            place_order([{"productRef": "a", "name": "A", "price": 10, "quantity": 1}])

        response = client.get("/api/orders", params={"skip": 1, "limit": 1})

        assert len(response.json()) == 1

    def test_deleted_product_keeps_order_line(self, client, db, make_product, place_order):
        product = make_product(name="Seasonal Special", price=99.0)
        order = place_order([{"productRef": product.id, "quantity": 1}])
        db.delete(product)
        db.commit()

        [item] = client.get(f"/api/orders/{order.id}").json()["orderItems"]

        assert item["product"] is None
        assert item["name"] == "Seasonal Special"
        assert item["price"] == 99.0


class TestUpdateStatus:
    def test_update_status(self, client, place_order):
        order = place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        response = client.put(f"/api/orders/{order.id}/status", json={"status": "delivered"})

        assert response.status_code == 200
        assert response.json()["status"] == "delivered"

    def test_any_transition_allowed(self, client, place_order):
        order = place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        client.put(f"/api/orders/{order.id}/status", json={"status": "cancelled"})
        response = client.put(f"/api/orders/{order.id}/status", json={"status": "Pending"})

        assert response.json()["status"] == "pending"

    def test_invalid_status(self, client, place_order):
        order = place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        response = client.put(f"/api/orders/{order.id}/status", json={"status": "shipped"})

        assert response.status_code == 400
        assert "Valid statuses are: pending, processing, delivered, cancelled" in response.json()["message"]

    def test_missing_status(self, client, place_order):
        order = place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        assert client.put(f"/api/orders/{order.id}/status", json={}).status_code == 400

    def test_unknown_order(self, client):
        response = client.put("/api/orders/9999/status", json={"status": "delivered"})

        assert response.status_code == 404


class TestMarkPaid:
    PAYMENT = {
        "id": "PAY-123",
        "status": "COMPLETED",
        "update_time": "2026-10-19T10:00:00Z",
        "email_address": "payer@example.com",
    }

    def test_mark_paid(self, client, place_order):
        order = place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        response = client.put(f"/api/orders/{order.id}/pay", json=self.PAYMENT)

        assert response.status_code == 200
        data = response.json()
        assert data["isPaid"] is True
        assert data["paidAt"] is not None
        assert data["paymentResult"] == self.PAYMENT

    def test_repeat_payment_keeps_paid_at(self, client, place_order):
        order = place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        first = client.put(f"/api/orders/{order.id}/pay", json=self.PAYMENT).json()
        second = client.put(
            f"/api/orders/{order.id}/pay", json=dict(self.PAYMENT, id="PAY-456")
        ).json()

        assert second["paidAt"] == first["paidAt"]
        assert second["paymentResult"]["id"] == "PAY-456"

    def test_same_payment_twice_is_idempotent(self, client, place_order):
        order = place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        first = client.put(f"/api/orders/{order.id}/pay", json=self.PAYMENT).json()
        second = client.put(f"/api/orders/{order.id}/pay", json=self.PAYMENT).json()

        for key in ("isPaid", "paidAt", "paymentResult", "status", "totalAmount"):
            assert second[key] == first[key]

    def test_payment_does_not_change_status(self, client, db, place_order):
        order = place_order([{"productRef": "x", "name": "X", "price": 10, "quantity": 1}])

        client.put(f"/api/orders/{order.id}/pay", json=self.PAYMENT)

        assert db.get(Order, order.id, populate_existing=True).status.value == "pending"

    def test_unknown_order(self, client):
        assert client.put("/api/orders/9999/pay", json=self.PAYMENT).status_code == 404
