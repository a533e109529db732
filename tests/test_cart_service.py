"""Tests for cart management and the cart snapshot."""
from decimal import Decimal

import pytest

from storefront.domain.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    VariantNotFoundError,
)
from storefront.data.models import CartModel
from storefront.services.cart_service import CartService


@pytest.fixture
def user(make_user):
    return make_user(1)


class TestCartSnapshot:
    def test_missing_cart_is_none(self, db, user):
        assert CartService(db).load_cart(user.id) is None

    def test_cart_created_lazily_once(self, db, user):
        svc = CartService(db)

        first = svc.get_cart(user.id)
        second = svc.get_cart(user.id)

        assert first["id"] == second["id"]
        assert first["items"] == []
        assert first["sub_total"] == Decimal("0.00")

    def test_concurrent_first_read_reuses_existing_cart(self, db, user, fill_cart, monkeypatch):
        svc = CartService(db)
        real_get = svc.repo.get_cart_by_user
        calls = []

        def get_cart_by_user(user_id):
            #pierwszy odczyt nie widzi koszyka zalozonego przez drugi request
            calls.append(user_id)
            if len(calls) == 1:
                fill_cart(user_id, [])
                return None
            return real_get(user_id)

        monkeypatch.setattr(svc.repo, "get_cart_by_user", get_cart_by_user)

        cart = svc.get_cart(user.id)

        assert cart["user_id"] == user.id
        assert db.query(CartModel).filter_by(user_id=user.id).count() == 1

    def test_unknown_user_has_no_cart(self, db):
        with pytest.raises(NotFoundError):
            CartService(db).get_cart(42)

    def test_snapshot_resolves_variants(self, db, user, make_variant, fill_cart):
        variant = make_variant(price="12.50", stock=7, name="Switch set")
        fill_cart(user.id, [(variant, 4)])

        cart = CartService(db).get_cart(user.id)

        assert cart["total_items"] == 1
        assert cart["sub_total"] == Decimal("50.00")
        item = cart["items"][0]
        assert item["product_name"] == "Switch set"
        assert item["variant"]["stock"] == 7
        assert item["sub_total"] == Decimal("50.00")


class TestCartCommands:
    def test_add_to_cart(self, db, user, make_variant):
        variant = make_variant(price="10", stock=5)

        cart = CartService(db).add_to_cart(user.id, variant.id, 2)

        assert [(i["variant"]["id"], i["quantity"]) for i in cart["items"]] == [(variant.id, 2)]

    def test_adding_same_variant_increases_quantity(self, db, user, make_variant):
        variant = make_variant(stock=5)
        svc = CartService(db)

        svc.add_to_cart(user.id, variant.id, 2)
        cart = svc.add_to_cart(user.id, variant.id, 1)

        assert cart["total_items"] == 1
        assert cart["items"][0]["quantity"] == 3

    def test_add_more_than_stock(self, db, user, make_variant):
        variant = make_variant(stock=2)
        svc = CartService(db)
        svc.add_to_cart(user.id, variant.id, 2)

        with pytest.raises(InsufficientStockError):
            svc.add_to_cart(user.id, variant.id, 1)

    def test_add_unknown_variant(self, db, user):
        with pytest.raises(VariantNotFoundError):
            CartService(db).add_to_cart(user.id, 999, 1)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity(self, db, user, make_variant, quantity):
        variant = make_variant()

        with pytest.raises(ValidationError):
            CartService(db).add_to_cart(user.id, variant.id, quantity)

    def test_update_and_remove_item(self, db, user, make_variant):
        variant = make_variant(stock=5)
        svc = CartService(db)
        item_id = svc.add_to_cart(user.id, variant.id, 1)["items"][0]["id"]

        assert svc.update_cart_item(user.id, item_id, 4)["items"][0]["quantity"] == 4
        assert svc.remove_from_cart(user.id, item_id)["items"] == []

    def test_cannot_touch_someone_elses_item(self, db, make_user, make_variant):
        owner, other = make_user(1), make_user(2, "Binh")
        variant = make_variant(stock=5)
        svc = CartService(db)
        item_id = svc.add_to_cart(owner.id, variant.id, 1)["items"][0]["id"]
        svc.get_cart(other.id)

        with pytest.raises(NotFoundError):
            svc.remove_from_cart(other.id, item_id)

    def test_clear_cart(self, db, user, make_variant):
        svc = CartService(db)
        svc.add_to_cart(user.id, make_variant().id, 1)
        svc.add_to_cart(user.id, make_variant().id, 1)

        cart = svc.clear_cart(user.id)

        assert cart["items"] == []
        assert cart["sub_total"] == Decimal("0.00")
