# storefront/services/cart_service.py
from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    VariantNotFoundError,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.product_service import variant_to_dict
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def cart_subtotal(cart: CartModel) -> Decimal:
    #pozycje bez wariantu (np. usuniety) sa pomijane
    return sum(
        (i.variant.price * i.quantity for i in cart.items if i.variant is not None),
        Decimal("0.00"),
    )


class CartService:
    """
    Koszyk uzytkownika. Zawsze jeden koszyk na usera, tworzony przy pierwszym odczycie.
    query (get) tylko odczyt, commands (add, update, remove, clear) modyfikuja stan
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.product_repo = ProductRepo(db)
        self.user_repo = UserRepo(db)

    def load_cart(self, user_id: int) -> CartModel | None:
        """Snapshot koszyka z wariantami; None gdy user nie ma jeszcze koszyka."""
        return self.repo.get_cart_by_user(user_id)

    def get_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        if not self.user_repo.user_exists(user_id):
            raise NotFoundError(f"User {user_id} not found")

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id))
            logger.info(f"Utworzono nowy koszyk {created.id} dla użytkownika {user_id}")
        except IntegrityError:
            #rownolegly request zalozyl koszyk pierwszy (unique user_id)
            self.repo.rollback()
            logger.info(f"Koszyk uzytkownika {user_id} juz istnieje, uzywam istniejacego")
        return self.repo.get_cart_by_user(user_id)

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        return self._to_dict(self.get_or_create_cart(user_id))

    #commands
    def add_to_cart(self, user_id: int, variant_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0", field="quantity")

        cart = self.get_or_create_cart(user_id)

        variant = self.product_repo.get_variant(variant_id)
        if not variant:
            raise VariantNotFoundError(variant_id)

        existing_item = self.repo.get_cart_item(cart.id, variant_id)
        wanted = quantity + (existing_item.quantity if existing_item else 0)

        if variant.stock < wanted:
            raise InsufficientStockError(variant_id, wanted, variant.stock)

        if existing_item:
            logger.info(
                f"Wariant {variant_id} już jest w koszyku {cart.id}, zwiekszam ilosc "
                f"z {existing_item.quantity} do {wanted}"
            )
            existing_item.quantity = wanted
            self.repo.save_cart_item(existing_item)
        else:
            logger.info(f"Dodaje wariant {variant_id} do koszyka {cart.id}")
            self.repo.save_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_variant_id=variant_id,
                    quantity=quantity,
                )
            )

        return self.get_cart(user_id)

    def update_cart_item(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0", field="quantity")

        item = self._get_own_item(user_id, item_id)
        item.quantity = quantity
        self.repo.save_cart_item(item)

        return self.get_cart(user_id)

    def remove_from_cart(self, user_id: int, item_id: int) -> Dict[str, Any]:
        item = self._get_own_item(user_id, item_id)
        self.repo.remove_cart_item(item)
        logger.info(f"Usunieto pozycje {item_id} z koszyka usera {user_id}")

        return self.get_cart(user_id)

    def clear_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        removed = self.repo.clear_cart(cart.id)
        logger.info(f"Wyczyszczono koszyk {cart.id} ({removed} pozycji)")

        return self.get_cart(user_id)

    def _get_own_item(self, user_id: int, item_id: int) -> CartItemModel:
        cart = self.repo.get_cart_by_user(user_id)
        item = self.repo.get_cart_item_by_id(item_id)

        #cudza pozycja wyglada tak samo jak nieistniejaca
        if not cart or not item or item.cart_id != cart.id:
            raise NotFoundError(f"Cart item {item_id} not found")
        return item

    @staticmethod
    def _to_dict(cart: CartModel) -> Dict[str, Any]:
        items = [
            {
                "id": i.id,
                "product_name": i.variant.product.name if i.variant.product else "",
                "variant": variant_to_dict(i.variant),
                "quantity": i.quantity,
                "price": i.variant.price,
                "sub_total": i.variant.price * i.quantity,
            }
            for i in cart.items
            if i.variant is not None
        ]

        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "items": items,
            "total_items": len(items),
            "sub_total": cart_subtotal(cart),
        }
