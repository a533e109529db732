# storefront/domain/errors.py
"""
Wyjatki domenowe. Routery mapuja je na kody HTTP.
"""
from enum import Enum


class StorefrontError(Exception):
    """Base exception for the service layer."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class NotFoundError(StorefrontError):
    def __init__(self, message: str):
        super().__init__(message, code="NOT_FOUND")


class VariantNotFoundError(NotFoundError):
    def __init__(self, variant_id: int):
        super().__init__(f"Product variant {variant_id} not found")
        self.variant_id = variant_id


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class VoucherNotFoundError(NotFoundError):
    def __init__(self, message: str = "Invalid voucher code"):
        super().__init__(message)


class ValidationError(StorefrontError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class EmptyCartError(ValidationError):
    def __init__(self):
        super().__init__("Cart is empty")
        self.code = "EMPTY_CART"


class VoucherRejection(str, Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    BELOW_MINIMUM = "below_minimum"
    LIMIT_REACHED = "limit_reached"


class VoucherRejectedError(StorefrontError):
    """Voucher exists but cannot be applied; `reason` says why."""

    def __init__(self, reason: VoucherRejection, message: str):
        super().__init__(message, code="VOUCHER_REJECTED")
        self.reason = reason


class InsufficientStockError(StorefrontError):
    def __init__(self, variant_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for variant {variant_id}: requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
        )
        self.variant_id = variant_id
        self.requested = requested
        self.available = available


class ConflictError(StorefrontError):
    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


class InternalError(StorefrontError):
    def __init__(self, message: str = "Internal storage error"):
        super().__init__(message, code="INTERNAL_ERROR")
