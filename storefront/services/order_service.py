# storefront/services/order_service.py
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, Any

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import ORDER_STATUSES, OrderModel, OrderItemModel
from storefront.data.models.payment import PAYMENT_METHODS, PaymentModel
from storefront.domain.errors import (
    ConflictError,
    EmptyCartError,
    InsufficientStockError,
    InternalError,
    OrderNotFoundError,
    ValidationError,
    VoucherNotFoundError,
    VoucherRejectedError,
    VoucherRejection,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.voucher_repo import VoucherRepo
from storefront.services.cart_service import CartService, cart_subtotal
from storefront.services.lock_service import LockService, variant_lock_key, voucher_lock_key
from storefront.services.notification_service import NotificationService
from storefront.services.product_service import variant_to_dict
from storefront.services.voucher_service import VoucherService
from storefront.utils.logging import get_logger
from storefront.utils.money import ZERO, to_money

logger = get_logger(__name__)


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.

    Skladanie zamowienia to kilka niezaleznych zapisow (zamowienie + pozycje,
    stock, czyszczenie koszyka, licznik vouchera), kazdy z wlasnym commitem.
    Blad przed zapisem zamowienia przerywa operacje; bledy po zapisie sa
    logowane i ignorowane, bo zamowienie juz istnieje.
    """

    def __init__(
        self,
        db: Session,
        notification_service: NotificationService | None = None,
        lock_service: LockService | None = None,
        lock_ttl: int = 30,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.product_repo = ProductRepo(db)
        self.voucher_repo = VoucherRepo(db)
        self.cart_service = CartService(db)
        self.voucher_service = VoucherService(db)
        self.notification_service = notification_service
        self.lock_service = lock_service
        self.lock_ttl = lock_ttl

    def place_order(self, user_id: int, shipping_address: str, voucher_code: str | None = None) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamówienia z koszyka użytkownika.

        1. Snapshot koszyka i subtotal
        2. Walidacja ilosci i stanow magazynowych
        3. Voucher (opcjonalnie)
        4. Zapis zamowienia i pozycji
        5. Stock, czyszczenie koszyka, liczniki vouchera, powiadomienie (best effort)
        """
        voucher_code = (voucher_code or "").strip() or None

        cart = self.cart_service.load_cart(user_id)
        if not cart or not cart.items:
            raise EmptyCartError()

        variant_ids = [i.product_variant_id for i in cart.items]

        with self._checkout_guard(voucher_code, variant_ids):
            if self.lock_service is not None:
                #pod lockiem czytamy swiezy stan z bazy, nie z identity map
                self.db.expire_all()
                cart = self.cart_service.load_cart(user_id)
                if not cart or not cart.items:
                    raise EmptyCartError()
                #itemy dodane miedzy odczytem a lockiem nie sa zablokowane
                if not {i.product_variant_id for i in cart.items} <= set(variant_ids):
                    raise ConflictError("Cart changed during checkout, try again")

            lines = [i for i in cart.items if i.variant is not None]
            if not lines:
                raise EmptyCartError()

            self._check_lines(lines)
            subtotal = cart_subtotal(cart)
            cart_id = cart.id
            #snapshot pozycji przed commitem, commit wygasza obiekty z sesji
            frozen = [(i.product_variant_id, i.variant.price, i.quantity) for i in lines]

            voucher_id = None
            discount = ZERO
            if voucher_code:
                evaluation = self.voucher_service.evaluate(voucher_code, subtotal)
                if not evaluation.applicable:
                    logger.info(f"Voucher {voucher_code} odrzucony dla usera {user_id}: {evaluation.reason}")
                    if evaluation.rejection == VoucherRejection.NOT_FOUND:
                        raise VoucherNotFoundError(evaluation.reason)
                    raise VoucherRejectedError(evaluation.rejection, evaluation.reason)

                voucher_id = evaluation.voucher.id
                discount = evaluation.discount_amount

            #fixed voucher nie jest obcinany do subtotal, total moze byc ujemny
            total = to_money(subtotal - discount)

            order_id = self._persist_order(user_id, cart_id, frozen, voucher_id, discount, total, shipping_address)

            logger.info(
                f"Order {order_id} created for user {user_id}: "
                f"subtotal {subtotal}, discount {discount}, total {total}"
            )

            self._apply_side_effects(order_id, user_id, cart_id, frozen, voucher_id)

        self._notify(user_id, order_id, total)

        return self.get_order(order_id)

    def _check_lines(self, lines):
        for item in lines:
            if item.quantity <= 0:
                raise ValidationError(
                    f"Quantity for variant {item.product_variant_id} must be greater than 0",
                    field="quantity",
                )
            if item.variant.stock < item.quantity:
                raise InsufficientStockError(item.product_variant_id, item.quantity, item.variant.stock)

    def _persist_order(
        self,
        user_id: int,
        cart_id: int,
        frozen: list[tuple[int, Decimal, int]],
        voucher_id: int | None,
        discount: Decimal,
        total: Decimal,
        shipping_address: str,
    ) -> int:
        try:
            order = self.repo.create_order(
                OrderModel(
                    user_id=user_id,
                    voucher_id=voucher_id,
                    discount_amount=discount,
                    total_amount=total,
                    status="pending",
                    shipping_address=shipping_address,
                )
            )
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Failed to create order for user {user_id} (cart {cart_id}): {e}")
            raise InternalError("Failed to create order") from e

        order_id = order.id
        try:
            self.repo.create_order_items(
                [
                    OrderItemModel(
                        order_id=order_id,
                        product_variant_id=variant_id,
                        price=price,
                        quantity=quantity,
                    )
                    for variant_id, price, quantity in frozen
                ]
            )
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Failed to create items for order {order_id}: {e}")
            raise InternalError("Failed to create order items") from e

        return order_id

    def _apply_side_effects(
        self,
        order_id: int,
        user_id: int,
        cart_id: int,
        frozen: list[tuple[int, Decimal, int]],
        voucher_id: int | None,
    ):
        for variant_id, _, quantity in frozen:
            try:
                self.product_repo.adjust_stock(variant_id, -quantity)
            except SQLAlchemyError as e:
                self.product_repo.rollback()
                logger.error(f"Failed to update stock for variant {variant_id} (order {order_id}): {e}")

        try:
            self.cart_repo.clear_cart(cart_id)
        except SQLAlchemyError as e:
            self.cart_repo.rollback()
            logger.error(f"Failed to clear cart {cart_id} (order {order_id}): {e}")

        if voucher_id is None:
            return

        try:
            self.voucher_repo.increment_used_count(voucher_id)
        except SQLAlchemyError as e:
            self.voucher_repo.rollback()
            logger.error(f"Failed to increment voucher {voucher_id} usage (order {order_id}): {e}")

        try:
            self.voucher_repo.increment_user_voucher_count(user_id, voucher_id)
        except SQLAlchemyError as e:
            self.voucher_repo.rollback()
            logger.error(f"Failed to increment voucher {voucher_id} usage for user {user_id}: {e}")

    def _notify(self, user_id: int, order_id: int, total: Decimal):
        if self.notification_service is None:
            return
        try:
            self.notification_service.send_order_placed(user_id, order_id, str(total))
        except Exception as e:
            logger.error(f"Failed to queue notification for order {order_id}: {e}")

    @contextmanager
    def _checkout_guard(self, voucher_code: str | None, variant_ids: list[int]):
        """
        Bez lock_service nic nie robi: dwa rownolegle checkouty moga przejsc
        sprawdzenie usage_limit / stock zanim ktorykolwiek zapisze.
        """
        if self.lock_service is None:
            yield
            return

        keys = [variant_lock_key(v) for v in variant_ids]
        if voucher_code:
            keys.append(voucher_lock_key(voucher_code))

        token = self.lock_service.new_token()
        try:
            acquired = self.lock_service.acquire_many(keys, token, self.lock_ttl)
        except RedisError as e:
            logger.error(f"Checkout lock failed: {e}")
            raise InternalError("Checkout lock unavailable") from e
        if not acquired:
            raise ConflictError("Checkout in progress for the same voucher or product, try again")

        try:
            yield
        finally:
            self.lock_service.release_many(sorted(set(keys)), token)

    #query
    def get_order(self, order_id: int) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)
        return self._to_dict(order)

    def get_user_orders(self, user_id: int) -> list[Dict[str, Any]]:
        return [self._to_dict(o) for o in self.repo.get_orders_by_user(user_id)]

    #commands
    def update_order_status(self, order_id: int, status: str):
        """
        Bez walidacji przejsc: kazdy status mozna ustawic z kazdego.
        Nie rusza stocku ani voucherow.
        """
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Invalid order status: {status}", field="status")

        if self.repo.update_order_status(order_id, status) == 0:
            raise OrderNotFoundError(order_id)

        logger.info(f"Order {order_id} status -> {status}")

    def record_payment(self, order_id: int, payment_method: str) -> Dict[str, Any]:
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method: {payment_method}", field="payment_method")

        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)
        if order.payment is not None:
            raise ValidationError(f"Order {order_id} already has a payment")

        try:
            self.repo.create_payment(
                PaymentModel(order_id=order_id, payment_method=payment_method, payment_status="pending")
            )
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Failed to record payment for order {order_id}: {e}")
            raise InternalError("Failed to record payment") from e

        return self.get_order(order_id)

    @staticmethod
    def _to_dict(order: OrderModel) -> Dict[str, Any]:
        payment = None
        if order.payment is not None:
            payment = {
                "id": order.payment.id,
                "payment_method": order.payment.payment_method,
                "payment_status": order.payment.payment_status,
                "paid_at": order.payment.paid_at,
            }

        return {
            "id": order.id,
            "user_id": order.user_id,
            "voucher_code": order.voucher.code if order.voucher else None,
            "discount_amount": order.discount_amount,
            "total_amount": order.total_amount,
            "status": order.status,
            "shipping_address": order.shipping_address,
            "created_at": order.created_at,
            "items": [
                {
                    "id": i.id,
                    "product_name": i.variant.product.name if i.variant.product else "",
                    "variant": variant_to_dict(i.variant),
                    "price": i.price,
                    "quantity": i.quantity,
                    "sub_total": i.price * i.quantity,
                }
                for i in order.items
                if i.variant is not None
            ],
            "payment": payment,
        }
