"""Pytest fixtures for the shop service tests."""

import os

# must be set before anything from app is imported
os.environ["DATABASE_URL"] = "sqlite://"

import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.celery_worker import celery_app
from app.data.database import Base
from app.data.models import ProductModel
from app.domain.errors import DependencyFailure
from app.services.media_client import StoredAsset
from app.utils.settings import ShopConfig

celery_app.conf.task_always_eager = True


class FakeMedia:
    """In-memory stand-in for the media host client."""

    def __init__(self, fail_store=False, release_result=True):
        self.fail_store = fail_store
        self.release_result = release_result
        self.stored = []
        self.released = []

    def store(self, local_path):
        if self.fail_store:
            raise DependencyFailure("media", "Failed to upload image")
        n = len(self.stored) + 1
        asset = StoredAsset(url=f"https://media.test/img-{n}.jpg", asset_id=f"asset-{n}")
        self.stored.append((local_path, asset))
        return asset

    def release(self, asset_id):
        self.released.append(asset_id)
        if isinstance(self.release_result, Exception):
            raise self.release_result
        return self.release_result


class FakeNotifications:
    def __init__(self):
        self.customer = []
        self.operations = []

    def notify_customer(self, order):
        self.customer.append(order)
        return True

    def notify_operations(self, order):
        self.operations.append(order)
        return True


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config():
    return ShopConfig(shipping_rates={"standard": Decimal("100"), "fast": Decimal("200")})


@pytest.fixture
def media():
    return FakeMedia()


@pytest.fixture
def notifications():
    return FakeNotifications()


@pytest.fixture
def make_product(db):
    """Inserts a product row directly, bypassing the catalog service."""

    def _make(
        name=None,
        price="500",
        stock_quantity=10,
        category="team sports",
        is_available=True,
        deleted_at=None,
    ):
        product = ProductModel(
            name=name or f"product {uuid.uuid4().hex[:8]}",
            description="A sturdy test product",
            category=category,
            price=Decimal(price),
            stock_quantity=stock_quantity,
            image_url="https://media.test/seed.jpg",
            image_asset_id=f"seed-{uuid.uuid4().hex[:8]}",
            is_available=is_available,
            is_deleted=deleted_at is not None,
            deleted_at=deleted_at,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def order_payload():
    def _payload(product_id, quantity=2, unit_price="500", shipping_method="fast", **overrides):
        data = {
            "full_name": "Ali Khan",
            "email": "Ali.Khan@Example.com",
            "phone": "+923001234567",
            "address": "House 1, Street 2, Lahore",
            "shipping_method": shipping_method,
            "items": [
                {"product_id": str(product_id), "quantity": quantity, "unit_price": unit_price}
            ],
        }
        data.update(overrides)
        return data

    return _payload


@pytest.fixture
def utcnow():
    return datetime.now(timezone.utc)
