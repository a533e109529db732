"""
Pytest fixtures: in-memory SQLite, a TestClient wired to it, and factories.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CHECKOUT_LOCKING"] = "false"

from decimal import Decimal

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api import create_app
from storefront.api.routers import orders
from storefront.data.database import Base, get_db
from storefront.data.models import (
    CartItemModel,
    CartModel,
    ProductModel,
    ProductVariantModel,
    UserModel,
    VoucherModel,
)
from storefront.services.order_service import OrderService
from tests.fakes import FakeNotifier


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(session_factory, notifier):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_order_service(db: Session = Depends(get_db)):
        return OrderService(db=db, notification_service=notifier)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[orders.get_service] = override_order_service

    with TestClient(app) as c:
        yield c


#factories

@pytest.fixture
def make_user(db):
    def _make(user_id=1, name="Anna"):
        user = UserModel(id=user_id, name=name)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_variant(db):
    counter = {"n": 0}

    def _make(price="100000", stock=10, name="Keyboard"):
        counter["n"] += 1
        product = ProductModel(name=name, is_active=True)
        variant = ProductVariantModel(
            product=product,
            sku=f"SKU-{counter['n']:03d}",
            price=Decimal(price),
            stock=stock,
        )
        db.add(variant)
        db.commit()
        db.refresh(variant)
        return variant

    return _make


@pytest.fixture
def fill_cart(db):
    def _fill(user_id, lines):
        cart = db.query(CartModel).filter_by(user_id=user_id).one_or_none()
        if cart is None:
            cart = CartModel(user_id=user_id)
            db.add(cart)
            db.commit()
        for variant, quantity in lines:
            db.add(CartItemModel(cart_id=cart.id, product_variant_id=variant.id, quantity=quantity))
        db.commit()
        return cart.id

    return _fill


@pytest.fixture
def make_voucher(db):
    def _make(code="SAVE10", discount_type="percent", discount_value="10", **kwargs):
        voucher = VoucherModel(
            code=code,
            description=kwargs.pop("description", ""),
            discount_type=discount_type,
            discount_value=Decimal(discount_value),
            min_order_value=Decimal(kwargs.pop("min_order_value", "0")),
            usage_per_user=kwargs.pop("usage_per_user", 1),
            used_count=kwargs.pop("used_count", 0),
            is_active=kwargs.pop("is_active", True),
            **kwargs,
        )
        db.add(voucher)
        db.commit()
        db.refresh(voucher)
        return voucher

    return _make
