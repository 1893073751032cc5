"""Pytest fixtures for CraveBites tests."""

import os

# Settings are read when cravebites.config is first imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OTEL_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CLOUDINARY_CLOUD_NAME"] = ""
os.environ["EMAIL_USER"] = ""

import pytest
from fastapi.testclient import TestClient

from cravebites.db import database
from cravebites.dependencies import get_mail_client, get_media_client
from cravebites.errors import MailError
from cravebites.models.catalog import Category, Product
from cravebites.models.schemas import OrderCreate
from cravebites.services.media_client import UploadedImage
from cravebites.services.order_service import OrderService


class FakeMediaClient:
    """Records uploads instead of calling the media host."""

    def __init__(self):
        self.uploads = []

    async def upload(self, content, filename, content_type, folder=None):
        folder = folder or "cravebites"
        self.uploads.append({"filename": filename, "size": len(content), "folder": folder})
        return UploadedImage(
            url=f"https://media.example.com/{folder}/{filename}",
            public_id=f"{folder}/{filename}"
        )


class FakeMailClient:
    """Records outgoing mail; set ``fail`` to simulate an SMTP outage."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def _record(self, kind, to, **extra):
        if self.fail:
            raise MailError("Failed to send email")
        self.sent.append(dict(kind=kind, to=to, **extra))

    def send_otp_email(self, to, otp, expires_minutes=10):
        self._record("otp", to, otp=otp)

    def send_password_reset_confirmation(self, to):
        self._record("reset_confirmation", to)


@pytest.fixture
def db():
    """Fresh in-memory database for each test."""
    database.init_database("sqlite://")
    database.create_tables()
    session = database.SessionLocal()
    yield session
    session.close()
    database.drop_tables()


@pytest.fixture
def media():
    return FakeMediaClient()


@pytest.fixture
def mail():
    return FakeMailClient()


@pytest.fixture
def client(db, media, mail):
    """Test client bound to the fresh database, with fake collaborators."""
    from cravebites.main import app

    app.dependency_overrides[get_media_client] = lambda: media
    app.dependency_overrides[get_mail_client] = lambda: mail
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_category(db):
    def _make(name="Pizza", **fields):
        category = Category(name=name, image="https://media.example.com/pizza.png", **fields)
        db.add(category)
        db.commit()
        return category
    return _make


@pytest.fixture
def make_product(db, make_category):
    def _make(name="Margherita", price=100.0, category=None, **fields):
        category = category or db.query(Category).filter_by(name="Pizza").first() or make_category()
        product = Product(
            name=name,
            price=price,
            image=f"https://media.example.com/{name.lower()}.png",
            category_id=category.id,
            **fields
        )
        db.add(product)
        db.commit()
        return product
    return _make


def order_payload(items, **overrides):
    """Wire-format order body; totals follow the items unless overridden."""
    subtotal = sum(item.get("price", 0) * item["quantity"] for item in items)
    payload = {
        "customer": {"name": "Asha", "phone": "9876543210"},
        "orderItems": items,
        "paymentMethod": "cash",
        "subtotal": subtotal,
        "cgst": 5,
        "sgst": 5,
        "deliveryCharge": 0,
        "totalAmount": subtotal + 10,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def place_order(db):
    """Create an order through the service layer."""
    def _place(items, **overrides):
        return OrderService.create_order(db, OrderCreate.model_validate(order_payload(items, **overrides)))
    return _place


@pytest.fixture
def payload():
    return order_payload
